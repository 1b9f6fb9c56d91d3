"""
datasets.py
~~~~~~~~~~~

Small built-in record sets.
"""

import itertools
from typing import Dict, List

from neuralnet.records import IORecord

# 3-bit parity, rows in Gray-code order.
XOR3_RECORDS: List[IORecord] = [
    IORecord([0.0, 0.0, 0.0], [0.0]),
    IORecord([0.0, 0.0, 1.0], [1.0]),
    IORecord([0.0, 1.0, 1.0], [0.0]),
    IORecord([0.0, 1.0, 0.0], [1.0]),
    IORecord([1.0, 1.0, 0.0], [0.0]),
    IORecord([1.0, 1.0, 1.0], [1.0]),
    IORecord([1.0, 0.0, 1.0], [0.0]),
    IORecord([1.0, 0.0, 0.0], [1.0]),
]


def parity_records(bits: int) -> List[IORecord]:
    """
    Every ``bits``-wide binary input with its parity as the single output.

    Raises:
        ValueError: If ``bits`` is not positive
    """
    if bits < 1:
        raise ValueError(f"bits must be positive, got {bits}")
    return [
        IORecord(inputs, [float(sum(inputs) % 2)])
        for inputs in itertools.product([0.0, 1.0], repeat=bits)
    ]


DATASETS: Dict[str, List[IORecord]] = {
    'xor3': XOR3_RECORDS,
    'xor2': parity_records(2),
}
