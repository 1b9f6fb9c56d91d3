"""
training.py
~~~~~~~~~~~

Epoch loop and evaluation helpers around ``Network.train_record`` and
``Network.test_record``.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from neuralnet.network import Network
from neuralnet.records import IORecord

logger = logging.getLogger(__name__)


def record_errors(network: Network, records: Sequence[IORecord]) -> List[float]:
    """Raw sum-of-squares error of each record."""
    return [network.test_record(record) for record in records]


def evaluate(network: Network, records: Sequence[IORecord]) -> float:
    """
    Mean of the per-record errors.

    Raises:
        ValueError: If ``records`` is empty
    """
    if not records:
        raise ValueError("Cannot evaluate on an empty record set")
    return sum(record_errors(network, records)) / len(records)


def train(
    network: Network,
    records: Sequence[IORecord],
    epochs: int,
    test_records: Optional[Sequence[IORecord]] = None,
    callback: Optional[Callable[[Dict[str, Any]], None]] = None,
    yield_func: Optional[Callable[[], None]] = None,
    shuffle: bool = False,
    rng: Optional[np.random.Generator] = None
) -> List[float]:
    """
    Train ``network`` for ``epochs`` passes over ``records``.

    Args:
        network: Network to train in place
        records: Training records, presented in order unless ``shuffle``
        epochs: Number of passes over the training records
        test_records: Records evaluated after each epoch; the training
            records when omitted
        callback: Called after each epoch with ``epoch``, ``total_epochs``,
            ``error`` and ``elapsed_time``
        yield_func: Called after each record so cooperative schedulers can
            run other tasks
        shuffle: Reorder the records every epoch
        rng: Generator used for shuffling

    Returns:
        Mean test error after each epoch

    Raises:
        ValueError: If ``epochs`` is not positive, or ``records`` or a given
            ``test_records`` is empty
    """
    if epochs < 1:
        raise ValueError(f"epochs must be a positive integer, got {epochs}")
    if not records:
        raise ValueError("Cannot train on an empty record set")
    if test_records is not None and not test_records:
        raise ValueError("Cannot evaluate on an empty test record set")

    records = list(records)
    test_records = records if test_records is None else list(test_records)
    if shuffle and rng is None:
        rng = np.random.default_rng()

    history: List[float] = []
    start = time.time()

    for epoch in range(1, epochs + 1):
        order = rng.permutation(len(records)) if shuffle else range(len(records))
        for index in order:
            network.train_record(records[index])
            if yield_func is not None:
                yield_func()

        error = evaluate(network, test_records)
        history.append(error)

        if callback is not None:
            callback({
                'epoch': epoch,
                'total_epochs': epochs,
                'error': error,
                'elapsed_time': time.time() - start
            })

    logger.info(
        f"Trained network {network.topology} for {epochs} epoch(s) "
        f"in {time.time() - start:.2f}s, final error {history[-1]:.6f}"
    )
    return history
