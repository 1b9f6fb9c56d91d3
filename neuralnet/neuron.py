"""
neuron.py
~~~~~~~~~

Single tanh neuron: activation, gradient and weight-update math.
"""

import math
from typing import List, Sequence

import numpy as np

from neuralnet.connection import Connection
from neuralnet.errors import ShapeMismatchError, TopologyError


def transfer(x: float) -> float:
    """Activation function (hyperbolic tangent)."""
    return math.tanh(x)


def transfer_derivative(x: float) -> float:
    """Derivative of tanh expressed through tanh(x)."""
    y = math.tanh(x)
    return 1.0 - y * y


class Neuron:
    """
    A neuron with a bias, a pre/post-activation value and a gradient.

    Incoming connections feed ``compute_value``; outgoing connections feed
    ``compute_hidden_gradient``. The learning rate is fixed at construction.
    """

    def __init__(self, learning_rate: float, rng: np.random.Generator):
        """
        Create a neuron with a random bias in [-1, 1).

        Args:
            learning_rate: Step size, strictly between 0 and 1
            rng: Generator used for the initial bias

        Raises:
            TopologyError: If the learning rate is out of range
        """
        if not 0.0 < learning_rate < 1.0:
            raise TopologyError(
                f"Learning rate must be in (0, 1), got {learning_rate}"
            )

        self.rate = learning_rate
        self.bias = float(rng.uniform(-1.0, 1.0))
        self.input_value = 0.0
        self.output_value = 0.0
        self.gradient = 0.0
        self.inputs: List[Connection] = []
        self.outputs: List[Connection] = []

    def add_input(self, connection: Connection) -> None:
        self.inputs.append(connection)

    def add_output(self, connection: Connection) -> None:
        self.outputs.append(connection)

    @property
    def value(self) -> float:
        return self.output_value

    def set_value(self, value: float) -> None:
        """Input layer only: activate ``value`` directly, ignoring the bias."""
        self.input_value = value
        self.output_value = transfer(value)

    def compute_value(self) -> None:
        total = self.bias
        for connection in self.inputs:
            total += connection.tail.output_value * connection.weight
        self.input_value = total
        self.output_value = transfer(total)

    def compute_output_gradient(self, desired: float) -> None:
        # Derivative taken at the post-activation value; stored weight files
        # were trained with this formula.
        self.gradient = (
            2.0 * (self.output_value - desired)
            * transfer_derivative(self.output_value)
        )

    def compute_hidden_gradient(self) -> None:
        total = 0.0
        for connection in self.outputs:
            total += connection.head.gradient * connection.weight
        self.gradient = total * transfer_derivative(self.output_value)

    def update_inputs(self) -> None:
        """
        Apply one gradient-descent step to incoming weights and the bias.

        Reads the current gradient; every gradient of the training step must
        already be computed.
        """
        step = self.rate * self.gradient
        for connection in self.inputs:
            connection.weight -= step * connection.tail.output_value
        self.bias -= step

    def serialize(self) -> List[float]:
        """Incoming weights in connection order, bias last."""
        weights = [connection.serialize() for connection in self.inputs]
        weights.append(self.bias)
        return weights

    def check_shape(self, weights: Sequence[float]) -> None:
        """
        Raises:
            ShapeMismatchError: If ``weights`` does not hold one value per
                incoming connection plus the bias
        """
        if len(weights) != len(self.inputs) + 1:
            raise ShapeMismatchError(
                f"Neuron expects {len(self.inputs) + 1} values "
                f"({len(self.inputs)} weights + bias), got {len(weights)}"
            )

    def deserialize(self, weights: Sequence[float]) -> None:
        self.check_shape(weights)
        for connection, weight in zip(self.inputs, weights):
            connection.deserialize(weight)
        self.bias = float(weights[-1])

    def __repr__(self) -> str:
        return (
            f"Neuron(inputs={len(self.inputs)}, outputs={len(self.outputs)}, "
            f"bias={self.bias:.3f})"
        )
