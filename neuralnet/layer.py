"""
layer.py
~~~~~~~~

Ordered, fixed-size collection of neurons sharing one role in the network.
"""

from typing import List, Sequence

import numpy as np

from neuralnet.connection import Connection
from neuralnet.dispatch import SERIAL
from neuralnet.errors import (
    DimensionMismatchError,
    ShapeMismatchError,
    TopologyError,
)
from neuralnet.neuron import Neuron


class Layer:
    """
    A layer of neurons.

    Neuron order only matters for positional input/output assignment and
    serialization. Batch operations go through ``dispatcher``, which may run
    them concurrently within the layer.
    """

    def __init__(
        self,
        size: int,
        learning_rate: float,
        rng: np.random.Generator,
        dispatcher=None
    ):
        if size <= 0:
            raise TopologyError(f"Layer size must be positive, got {size}")

        self.neurons: List[Neuron] = [
            Neuron(learning_rate, rng) for _ in range(size)
        ]
        self.dispatcher = dispatcher if dispatcher is not None else SERIAL

    @staticmethod
    def join(
        prev: 'Layer',
        next_layer: 'Layer',
        rng: np.random.Generator
    ) -> List[Connection]:
        """
        Fully connect every neuron of ``prev`` to every neuron of ``next_layer``.

        Returns:
            The ``len(prev) * len(next_layer)`` new connections
        """
        return [
            Connection.join(tail, head, rng)
            for tail in prev.neurons
            for head in next_layer.neurons
        ]

    def __len__(self) -> int:
        return len(self.neurons)

    def assign(self, inputs: Sequence[float]) -> None:
        """
        Set each neuron's value positionally (input layer).

        Raises:
            DimensionMismatchError: If ``inputs`` does not match the layer size
        """
        if len(inputs) != len(self.neurons):
            raise DimensionMismatchError(len(self.neurons), len(inputs), 'input')
        for neuron, value in zip(self.neurons, inputs):
            neuron.set_value(value)

    def compute_values(self) -> None:
        self.dispatcher.run(Neuron.compute_value, self.neurons)

    def export_values(self) -> List[float]:
        return [neuron.output_value for neuron in self.neurons]

    def calculate_error(self, desired: Sequence[float]) -> float:
        """
        Sum of squared differences between neuron values and ``desired``.

        Iterates over ``desired``; neurons past its end are ignored.
        """
        error = 0.0
        for neuron, target in zip(self.neurons, desired):
            difference = neuron.output_value - target
            error += difference * difference
        return error

    def compute_output_gradients(self, desired: Sequence[float]) -> None:
        if len(desired) != len(self.neurons):
            raise DimensionMismatchError(
                len(self.neurons), len(desired), 'desired output'
            )
        self.dispatcher.run(
            lambda pair: pair[0].compute_output_gradient(pair[1]),
            list(zip(self.neurons, desired))
        )

    def compute_hidden_gradients(self) -> None:
        self.dispatcher.run(Neuron.compute_hidden_gradient, self.neurons)

    def update_inputs(self) -> None:
        self.dispatcher.run(Neuron.update_inputs, self.neurons)

    def serialize(self) -> List[List[float]]:
        return [neuron.serialize() for neuron in self.neurons]

    def check_shape(self, weights: Sequence[Sequence[float]]) -> None:
        """
        Validate ``weights`` against the layer without touching any neuron.

        Raises:
            ShapeMismatchError: On a wrong neuron count or any wrong row length
        """
        if len(weights) != len(self.neurons):
            raise ShapeMismatchError(
                f"Layer has {len(self.neurons)} neuron(s), "
                f"weights describe {len(weights)}"
            )
        for neuron, row in zip(self.neurons, weights):
            neuron.check_shape(row)

    def deserialize(self, weights: Sequence[Sequence[float]]) -> None:
        """
        Overwrite every neuron's weights and bias.

        The whole structure is validated first, so a failure leaves the layer
        unchanged.
        """
        self.check_shape(weights)
        for neuron, row in zip(self.neurons, weights):
            neuron.deserialize(row)

    def describe(self, indent: str = '') -> str:
        lines = [f"{indent}Layer[{len(self.neurons)} neuron(s)]"]
        for neuron in self.neurons:
            lines.append(f"{indent}\t{neuron!r}")
            for connection in neuron.inputs:
                lines.append(f"{indent}\t (i) {connection!r}")
            for connection in neuron.outputs:
                lines.append(f"{indent}\t (o) {connection!r}")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"Layer(size={len(self.neurons)})"
