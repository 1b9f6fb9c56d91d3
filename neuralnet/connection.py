"""
connection.py
~~~~~~~~~~~~~

Directed weighted edge between two neurons.
"""

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from neuralnet.neuron import Neuron


class Connection:
    """
    Edge from a ``tail`` neuron to a ``head`` neuron.

    A single instance is shared by the tail's outgoing list and the head's
    incoming list. The network keeps the canonical store of all connections.
    """

    __slots__ = ('weight', 'tail', 'head')

    def __init__(self, tail: 'Neuron', head: 'Neuron', rng: np.random.Generator):
        self.weight = float(rng.uniform(-1.0, 1.0))
        self.tail = tail
        self.head = head

    @classmethod
    def join(
        cls,
        tail: 'Neuron',
        head: 'Neuron',
        rng: np.random.Generator
    ) -> 'Connection':
        """
        Create a connection and register it with both endpoints.

        Args:
            tail: Source neuron
            head: Destination neuron
            rng: Generator used for the initial weight

        Returns:
            The new connection
        """
        connection = cls(tail, head, rng)
        tail.add_output(connection)
        head.add_input(connection)
        return connection

    def serialize(self) -> float:
        return self.weight

    def deserialize(self, weight: float) -> None:
        self.weight = float(weight)

    def __repr__(self) -> str:
        return f"Connection(weight={self.weight:.3f})"
