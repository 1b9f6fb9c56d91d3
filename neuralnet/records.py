"""
records.py
~~~~~~~~~~

Training/test samples.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class IORecord:
    """An input vector paired with its desired output vector."""

    inputs: Tuple[float, ...]
    outputs: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, 'inputs', tuple(float(x) for x in self.inputs))
        object.__setattr__(self, 'outputs', tuple(float(y) for y in self.outputs))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'IORecord':
        """
        Build a record from ``{'inputs': [...], 'outputs': [...]}``.

        Raises:
            ValueError: If a key is missing or a value is not numeric
        """
        try:
            return cls(data['inputs'], data['outputs'])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid record {data!r}: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {'inputs': list(self.inputs), 'outputs': list(self.outputs)}
