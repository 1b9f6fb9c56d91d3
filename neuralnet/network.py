"""
network.py
~~~~~~~~~~

Fully-connected feedforward network trained one record at a time by
backpropagation with per-neuron gradient descent.

Activation is tanh everywhere except the input layer, whose neurons take the
tanh of the raw input directly. Weights and biases start uniform in [-1, 1).
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from neuralnet.backup import Backup, Weights
from neuralnet.connection import Connection
from neuralnet.errors import DimensionMismatchError, ShapeMismatchError, TopologyError
from neuralnet.layer import Layer
from neuralnet.records import IORecord

logger = logging.getLogger(__name__)


class Network:
    """
    Ordered sequence of fully-connected layers.

    Layer 0 is the input layer, the last layer is the output layer. Every
    neuron of layer ``i`` receives one connection from every neuron of layer
    ``i - 1``.

    Args:
        topology: Layer sizes, at least two, all positive
        learning_rate: Shared by every neuron, strictly between 0 and 1
        rng: Generator for the initial weights; a fresh one when omitted
        dispatcher: Runs per-neuron operations within a layer (serial by
            default, see ``neuralnet.dispatch``)

    Raises:
        TopologyError: If the topology or learning rate is invalid

    Example:
        >>> net = Network([3, 4, 4, 1], 0.05)
        >>> len(net.compute_for([0.0, 1.0, 1.0]))
        1
    """

    def __init__(
        self,
        topology: Sequence[int],
        learning_rate: float,
        rng: Optional[np.random.Generator] = None,
        dispatcher=None
    ):
        topology = [int(size) for size in topology]
        if len(topology) < 2:
            raise TopologyError(
                f"Network needs at least 2 layers, got {len(topology)}"
            )
        if any(size <= 0 for size in topology):
            raise TopologyError(f"Layer sizes must be positive, got {topology}")

        if rng is None:
            rng = np.random.default_rng()

        self.learning_rate = float(learning_rate)
        self.layers: List[Layer] = [
            Layer(size, self.learning_rate, rng, dispatcher)
            for size in topology
        ]
        self.connections: List[Connection] = []
        for prev, current in zip(self.layers, self.layers[1:]):
            self.connections.extend(Layer.join(prev, current, rng))

        self.input_layer = self.layers[0]
        self.output_layer = self.layers[-1]

        logger.debug(
            f"Created network {topology} with {len(self.connections)} "
            f"connection(s), learning_rate={self.learning_rate}"
        )

    @classmethod
    def from_backup(
        cls,
        backup: Backup,
        dispatcher=None
    ) -> 'Network':
        """
        Rebuild a network from a backup.

        Raises:
            TopologyError: If the backup's topology or rate is invalid
            ShapeMismatchError: If the weights do not fit the topology
        """
        network = cls(backup.topology, backup.learning_rate, dispatcher=dispatcher)
        network.deserialize(backup.weights)
        return network

    @property
    def topology(self) -> List[int]:
        return [len(layer) for layer in self.layers]

    @property
    def input_size(self) -> int:
        return len(self.input_layer)

    @property
    def output_size(self) -> int:
        return len(self.output_layer)

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def _propagate_forward(self, inputs: Sequence[float]) -> None:
        self.input_layer.assign(inputs)
        for layer in self.layers[1:]:
            layer.compute_values()

    def _propagate_backward(self, desired: Sequence[float]) -> None:
        self.output_layer.compute_output_gradients(desired)
        for layer in reversed(self.layers[1:-1]):
            layer.compute_hidden_gradients()

        # Only once every gradient is known: updating layer i reads values of
        # layer i - 1 and hidden gradients read weights of layer i.
        for layer in reversed(self.layers[1:]):
            layer.update_inputs()

    def _check_record(self, record: IORecord) -> None:
        if len(record.inputs) != self.input_size:
            raise DimensionMismatchError(
                self.input_size, len(record.inputs), 'record input'
            )
        if len(record.outputs) != self.output_size:
            raise DimensionMismatchError(
                self.output_size, len(record.outputs), 'record output'
            )

    def compute_for(self, inputs: Sequence[float]) -> List[float]:
        """
        Run a forward pass and return the output layer values.

        Raises:
            DimensionMismatchError: If ``inputs`` does not match the input
                layer; no neuron is touched in that case
        """
        if len(inputs) != self.input_size:
            raise DimensionMismatchError(self.input_size, len(inputs), 'input')
        self._propagate_forward(inputs)
        return self.output_layer.export_values()

    def train_record(self, record: IORecord) -> None:
        """One forward pass followed by one backpropagation step."""
        self._check_record(record)
        self._propagate_forward(record.inputs)
        self._propagate_backward(record.outputs)

    def test_record(self, record: IORecord) -> float:
        """
        Forward pass, then the sum of squared output errors.

        The error is not normalized by the output size.
        """
        self._check_record(record)
        self._propagate_forward(record.inputs)
        return self.output_layer.calculate_error(record.outputs)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize(self) -> Backup:
        return Backup(
            topology=self.topology,
            learning_rate=self.learning_rate,
            weights=[layer.serialize() for layer in self.layers]
        )

    def deserialize(self, weights: Weights) -> None:
        """
        Overwrite every weight and bias from a serialized structure.

        The structure is validated in full before anything is written.

        Raises:
            ShapeMismatchError: If the structure does not fit the topology
        """
        if len(weights) != len(self.layers):
            logger.warning(
                f"Rejected weights for {len(weights)} layer(s), "
                f"network has {len(self.layers)}"
            )
            raise ShapeMismatchError(
                f"Network has {len(self.layers)} layer(s), "
                f"weights describe {len(weights)}"
            )
        for index, (layer, layer_weights) in enumerate(zip(self.layers, weights)):
            try:
                layer.check_shape(layer_weights)
            except ShapeMismatchError as e:
                logger.warning(f"Rejected weights for layer {index}: {e}")
                raise ShapeMismatchError(f"Layer {index}: {e}") from e

        for layer, layer_weights in zip(self.layers, weights):
            layer.deserialize(layer_weights)
        logger.debug(f"Deserialized weights for network {self.topology}")

    def describe(self) -> str:
        """Multi-line dump of every layer, neuron and connection."""
        header = (
            f"Network[{len(self.layers)} layers, "
            f"learningRate = {self.learning_rate}]"
        )
        return '\n'.join([header] + [layer.describe() for layer in self.layers])

    def __repr__(self) -> str:
        return (
            f"Network(topology={self.topology}, "
            f"learning_rate={self.learning_rate})"
        )
