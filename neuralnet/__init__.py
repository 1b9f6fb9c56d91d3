"""
neuralnet package
~~~~~~~~~~~~~~~~~

Fully-connected feedforward neural network trained by per-neuron
backpropagation. Contains the neuron/connection/layer graph, the network
engine, the plain-text weight backup format, SQLite persistence, a training
driver and the API server.
"""

from neuralnet.backup import Backup
from neuralnet.errors import (
    BackupIOError,
    DimensionMismatchError,
    NetworkError,
    ShapeMismatchError,
    TopologyError,
)
from neuralnet.network import Network
from neuralnet.records import IORecord

__version__ = "1.0.0"

__all__ = [
    "Backup",
    "BackupIOError",
    "DimensionMismatchError",
    "IORecord",
    "Network",
    "NetworkError",
    "ShapeMismatchError",
    "TopologyError",
]
