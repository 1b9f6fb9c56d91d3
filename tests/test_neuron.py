"""
test_neuron.py
~~~~~~~~~~~~~~

Unit tests for neurons and connections.
"""

import math
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuralnet.connection import Connection
from neuralnet.errors import ShapeMismatchError, TopologyError
from neuralnet.neuron import Neuron, transfer_derivative


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def pair(rng):
    """A tail neuron feeding a head neuron through one known connection."""
    tail = Neuron(0.1, rng)
    head = Neuron(0.1, rng)
    connection = Connection.join(tail, head, rng)
    connection.weight = 0.3
    head.bias = 0.1
    return tail, head, connection


@pytest.mark.unit
class TestConnection:
    """Test connection creation and registration."""

    def test_join_registers_with_both_endpoints(self, rng):
        """Test that joining adds the same object to both adjacency lists."""
        tail = Neuron(0.5, rng)
        head = Neuron(0.5, rng)

        connection = Connection.join(tail, head, rng)

        assert tail.outputs == [connection]
        assert head.inputs == [connection]
        assert tail.inputs == []
        assert head.outputs == []
        assert connection.tail is tail
        assert connection.head is head

    def test_initial_weight_in_range(self, rng):
        """Test that random weights fall in [-1, 1)."""
        tail = Neuron(0.5, rng)
        weights = [
            Connection.join(tail, Neuron(0.5, rng), rng).weight
            for _ in range(200)
        ]
        assert all(-1.0 <= w < 1.0 for w in weights)
        assert len(set(weights)) > 1

    def test_serialize_deserialize(self, pair):
        """Test that the weight can be read and overwritten."""
        _, _, connection = pair
        assert connection.serialize() == 0.3
        connection.deserialize(-0.75)
        assert connection.weight == -0.75


@pytest.mark.unit
class TestNeuron:
    """Test neuron activation, gradients and updates."""

    @pytest.mark.parametrize('rate', [0.0, 1.0, -0.1, 1.5])
    def test_learning_rate_must_be_in_open_interval(self, rng, rate):
        """Test that rates outside (0, 1) are rejected."""
        with pytest.raises(TopologyError):
            Neuron(rate, rng)

    def test_initial_bias_in_range(self, rng):
        """Test that biases are drawn from [-1, 1)."""
        biases = [Neuron(0.5, rng).bias for _ in range(200)]
        assert all(-1.0 <= b < 1.0 for b in biases)

    def test_set_value_applies_activation_only(self, rng):
        """Test that set_value ignores the bias."""
        neuron = Neuron(0.5, rng)
        neuron.bias = 0.9
        neuron.set_value(0.5)
        assert neuron.input_value == 0.5
        assert neuron.value == math.tanh(0.5)

    def test_compute_value(self, pair):
        """Test the weighted sum plus bias through tanh."""
        tail, head, _ = pair
        tail.set_value(0.5)

        head.compute_value()

        expected_input = 0.1 + math.tanh(0.5) * 0.3
        assert head.input_value == pytest.approx(expected_input)
        assert head.output_value == pytest.approx(math.tanh(expected_input))

    def test_output_gradient_uses_post_activation_derivative(self, pair):
        """Test that the derivative is evaluated at the output value."""
        tail, head, _ = pair
        tail.set_value(0.5)
        head.compute_value()

        head.compute_output_gradient(1.0)

        y = head.output_value
        expected = 2.0 * (y - 1.0) * (1.0 - math.tanh(y) ** 2)
        assert head.gradient == pytest.approx(expected)
        # Not the textbook derivative at the pre-activation value
        textbook = 2.0 * (y - 1.0) * (1.0 - y ** 2)
        assert head.gradient != pytest.approx(textbook)

    def test_hidden_gradient(self, pair):
        """Test that hidden gradients sum downstream gradient times weight."""
        tail, head, _ = pair
        tail.set_value(0.5)
        head.compute_value()
        head.compute_output_gradient(0.0)

        tail.compute_hidden_gradient()

        expected = head.gradient * 0.3 * transfer_derivative(tail.output_value)
        assert tail.gradient == pytest.approx(expected)

    def test_update_inputs(self, pair):
        """Test the gradient-descent step on weights and bias."""
        tail, head, connection = pair
        tail.set_value(0.5)
        head.compute_value()
        head.compute_output_gradient(1.0)
        gradient = head.gradient

        head.update_inputs()

        assert connection.weight == pytest.approx(
            0.3 - 0.1 * gradient * math.tanh(0.5)
        )
        assert head.bias == pytest.approx(0.1 - 0.1 * gradient)

    def test_serialize_puts_bias_last(self, pair):
        """Test serialization order: weights, then bias."""
        _, head, _ = pair
        assert head.serialize() == [0.3, 0.1]

    def test_deserialize_overwrites(self, pair):
        """Test that deserialize sets weights positionally and the bias."""
        _, head, connection = pair
        head.deserialize([0.7, -0.2])
        assert connection.weight == 0.7
        assert head.bias == -0.2

    @pytest.mark.parametrize('values', [[], [0.5], [0.1, 0.2, 0.3]])
    def test_deserialize_wrong_length(self, pair, values):
        """Test that a wrong-length vector is rejected without changes."""
        _, head, connection = pair

        with pytest.raises(ShapeMismatchError):
            head.deserialize(values)

        assert connection.weight == 0.3
        assert head.bias == 0.1
