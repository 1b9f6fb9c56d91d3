"""
dispatch.py
~~~~~~~~~~~

Strategies for running one per-neuron operation across a layer.

Every call to ``run`` is a barrier: it returns only after the operation has
finished on every neuron, so the network can move on to the next layer or
phase. Per-neuron operations within one layer never read a value written by
a sibling in the same call, which is what makes fan-out safe.
"""

import logging
from typing import Callable, Iterable, TypeVar

from gevent.pool import Pool

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SerialDispatcher:
    """Run the operation in order on the calling greenlet/thread."""

    def run(self, func: Callable[[T], None], items: Iterable[T]) -> None:
        for item in items:
            func(item)

    def close(self) -> None:
        pass


class PoolDispatcher:
    """
    Fan the operation out over a fixed-size gevent pool and join.

    Args:
        size: Maximum number of concurrent workers
    """

    def __init__(self, size: int = 4):
        if size < 1:
            raise ValueError(f"Pool size must be positive, got {size}")
        self.size = size
        self._pool = Pool(size)
        logger.debug(f"Created pool dispatcher with {size} worker(s)")

    def run(self, func: Callable[[T], None], items: Iterable[T]) -> None:
        # Pool.map blocks until every greenlet has finished and re-raises
        # the first failure.
        self._pool.map(func, items)

    def close(self) -> None:
        self._pool.kill()


SERIAL = SerialDispatcher()
