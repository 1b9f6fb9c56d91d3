"""
errors.py
~~~~~~~~~

Exceptions raised by the network engine and the backup format.
"""


class NetworkError(Exception):
    """Base class for every error raised by this package."""


class TopologyError(NetworkError, ValueError):
    """Invalid construction arguments (layer count, layer size, rate)."""


class DimensionMismatchError(NetworkError, ValueError):
    """An input or desired-output vector disagrees with a layer size."""

    def __init__(self, expected: int, actual: int, what: str = "vector"):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Incompatible {what}: expected length {expected}, got {actual}"
        )


class ShapeMismatchError(NetworkError, ValueError):
    """A serialized weight structure does not fit the live topology."""


class BackupIOError(NetworkError, OSError):
    """A backup file is missing, unreadable or malformed."""
