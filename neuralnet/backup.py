"""
backup.py
~~~~~~~~~

Snapshot of a network's topology, learning rate and weights, plus the
plain-text weight file format.

File layout::

    <layerCount>
    <size_0> <size_1> ... <size_n-1>
    <learningRate>
    <blank line>
    <blank line>
    for each layer 1..n-1, one line per neuron:
    <w_1> ... <w_prev> <bias>
    followed by a blank line

The input layer has no weight block. Reading only relies on whitespace
between tokens.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional

from neuralnet.errors import BackupIOError

logger = logging.getLogger(__name__)

Weights = List[List[List[float]]]


@dataclass
class Backup:
    """
    Serializable network snapshot.

    ``weights[i][j]`` holds the incoming weights of neuron ``j`` in layer
    ``i`` followed by its bias. ``weights[0]`` belongs to the input layer and
    carries no connection weights.
    """

    topology: List[int]
    learning_rate: float
    weights: Weights

    # ------------------------------------------------------------------
    # Text format
    # ------------------------------------------------------------------

    def to_text(self) -> str:
        """Render the backup in the weight file format."""
        parts = [f"{len(self.topology)}\n"]
        parts.append(''.join(f"{size} " for size in self.topology) + "\n")
        parts.append(f"{float(self.learning_rate)!r}\n\n\n")
        for layer in self.weights[1:]:
            for neuron in layer:
                parts.append(''.join(f"{float(value)!r} " for value in neuron))
                parts.append("\n")
            parts.append("\n")
        return ''.join(parts)

    @classmethod
    def from_text(cls, text: str) -> 'Backup':
        """
        Parse the weight file format.

        Raises:
            BackupIOError: On a malformed number, an invalid topology or a
                premature end of data
        """
        tokens = _Tokens(text.split())

        layer_count = tokens.next_int()
        if layer_count < 2:
            raise BackupIOError(f"Backup needs at least 2 layers, got {layer_count}")
        topology = [tokens.next_int() for _ in range(layer_count)]
        if any(size <= 0 for size in topology):
            raise BackupIOError(f"Backup has a non-positive layer size: {topology}")

        learning_rate = tokens.next_float()

        needed = sum((prev + 1) * size for prev, size in zip(topology, topology[1:]))
        if tokens.remaining < needed:
            raise BackupIOError(
                f"Backup ended prematurely: {tokens.remaining} weight token(s) "
                f"for topology {topology}, expected {needed}"
            )

        weights: Weights = []
        for prev_size, size in zip(topology, topology[1:]):
            weights.append([
                [tokens.next_float() for _ in range(prev_size + 1)]
                for _ in range(size)
            ])
        # Input layer placeholder: one zero per neuron.
        weights.insert(0, [[0.0] for _ in range(topology[0])])

        if tokens.remaining:
            logger.debug(f"Ignoring {tokens.remaining} trailing token(s) in backup")

        return cls(topology, learning_rate, weights)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def write(self, path: str) -> None:
        """
        Write the backup to ``path``.

        Raises:
            BackupIOError: If the file cannot be written
        """
        try:
            with open(path, 'w') as f:
                f.write(self.to_text())
        except OSError as e:
            raise BackupIOError(f"Cannot write backup '{path}': {e}") from e
        logger.info(f"Wrote backup of topology {self.topology} to '{path}'")

    @classmethod
    def read(cls, path: str) -> 'Backup':
        """
        Read a backup from ``path``.

        Raises:
            BackupIOError: If the file is missing, unreadable or malformed
        """
        try:
            with open(path, 'r') as f:
                text = f.read()
        except OSError as e:
            raise BackupIOError(f"Cannot read backup '{path}': {e}") from e
        except UnicodeDecodeError as e:
            raise BackupIOError(f"Backup '{path}' is not text: {e}") from e

        backup = cls.from_text(text)
        logger.info(f"Read backup of topology {backup.topology} from '{path}'")
        return backup

    def save_to_file(self, path: str) -> bool:
        """
        Write the backup, reporting failure instead of raising.

        Returns:
            bool: True if the file was written, False otherwise
        """
        try:
            self.write(path)
            return True
        except BackupIOError as e:
            logger.error(f"Failed to save backup: {e}")
            return False

    @classmethod
    def read_from_file(cls, path: str) -> Optional['Backup']:
        """
        Read a backup, reporting failure instead of raising.

        Returns:
            The backup, or None if the file could not be read or parsed
        """
        try:
            return cls.read(path)
        except BackupIOError as e:
            logger.error(f"Failed to read backup: {e}")
            return None


class _Tokens:
    """Cursor over whitespace-separated tokens."""

    def __init__(self, tokens: List[str]):
        self._tokens = tokens
        self._iter: Iterator[str] = iter(tokens)
        self._consumed = 0

    @property
    def remaining(self) -> int:
        return len(self._tokens) - self._consumed

    def _next(self) -> str:
        try:
            token = next(self._iter)
        except StopIteration:
            raise BackupIOError("Backup ended prematurely") from None
        self._consumed += 1
        return token

    def next_int(self) -> int:
        token = self._next()
        try:
            return int(token)
        except ValueError:
            raise BackupIOError(f"Expected an integer, got {token!r}") from None

    def next_float(self) -> float:
        token = self._next()
        try:
            return float(token)
        except ValueError:
            raise BackupIOError(f"Expected a number, got {token!r}") from None
