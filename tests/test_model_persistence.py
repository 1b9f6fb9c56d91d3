"""
test_model_persistence.py
~~~~~~~~~~~~~~~~~~~~~~~~~~

Unit tests for SQLite-based model persistence.
"""

import pytest
import os
import sqlite3
import sys

import numpy as np

# Add repository root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuralnet.datasets import XOR3_RECORDS
from neuralnet.network import Network
from neuralnet.training import train
from neuralnet.model_persistence import (
    save_network,
    load_network,
    list_saved_networks,
    delete_network,
    get_network_metadata,
    delete_old_networks,
    ModelDatabase
)


def _age_network(db_dir: str, network_id: str, days: int) -> None:
    """Move a network's created_at timestamp into the past."""
    conn = sqlite3.connect(os.path.join(db_dir, "networks.db"))
    conn.execute(
        "UPDATE networks SET created_at = datetime('now', ?) WHERE network_id = ?",
        (f'-{days} days', network_id)
    )
    conn.commit()
    conn.close()


@pytest.fixture
def temp_db_dir(tmp_path):
    """Create a temporary directory for database storage."""
    db_dir = tmp_path / "test_models"
    db_dir.mkdir()
    return str(db_dir)


@pytest.fixture
def simple_network():
    """Create a simple 3-layer network for testing."""
    return Network([3, 4, 2], 0.1, rng=np.random.default_rng(0))


@pytest.fixture
def trained_network():
    """Create a parity network with some training applied."""
    net = Network([3, 4, 4, 1], 0.05, rng=np.random.default_rng(1))
    train(net, XOR3_RECORDS, epochs=5)
    return net


@pytest.mark.unit
class TestModelPersistence:
    """Test basic model persistence operations."""

    def test_save_network_creates_database(self, simple_network, temp_db_dir):
        """Test that saving a network creates the database file."""
        success = save_network(
            simple_network,
            "test_network_1",
            model_dir=temp_db_dir,
            trained=False
        )

        assert success is True
        assert os.path.exists(f"{temp_db_dir}/networks.db")

    def test_save_network_with_metadata(self, trained_network, temp_db_dir):
        """Test that network metadata is saved correctly."""
        network_id = "trained_network_1"

        success = save_network(
            trained_network,
            network_id,
            model_dir=temp_db_dir,
            trained=True,
            error=0.015
        )

        assert success is True

        metadata = get_network_metadata(network_id, temp_db_dir)
        assert metadata is not None
        assert metadata['network_id'] == network_id
        assert metadata['trained'] is True
        assert metadata['error'] == 0.015
        assert metadata['architecture'] == [3, 4, 4, 1]
        assert metadata['learning_rate'] == 0.05
        assert metadata['connections'] == 32

    def test_load_network_returns_network(self, simple_network, temp_db_dir):
        """Test that loading a network returns a valid Network object."""
        save_network(simple_network, "test_network_2", model_dir=temp_db_dir)
        loaded_network = load_network("test_network_2", temp_db_dir)

        assert isinstance(loaded_network, Network)
        assert loaded_network.topology == simple_network.topology
        assert loaded_network.learning_rate == simple_network.learning_rate

    def test_load_nonexistent_network(self, temp_db_dir):
        """Test that loading a non-existent network returns None."""
        assert load_network("nonexistent", temp_db_dir) is None

    def test_load_preserves_weights(self, trained_network, temp_db_dir):
        """Test that saved weights are restored exactly."""
        save_network(trained_network, "test_network_3", model_dir=temp_db_dir)
        loaded_network = load_network("test_network_3", temp_db_dir)

        original = trained_network.serialize().weights
        loaded = loaded_network.serialize().weights
        # The input layer is not stored
        assert loaded[1:] == original[1:]
        for record in XOR3_RECORDS:
            assert loaded_network.compute_for(record.inputs) == \
                trained_network.compute_for(record.inputs)

    def test_load_corrupt_backup_returns_none(self, simple_network, temp_db_dir):
        """Test that a damaged stored backup yields no network."""
        save_network(simple_network, "corrupt", model_dir=temp_db_dir)

        conn = sqlite3.connect(os.path.join(temp_db_dir, "networks.db"))
        conn.execute(
            "UPDATE networks SET backup = ? WHERE network_id = ?",
            ("3\n3 4 2\n0.1\n0.5 0.5", "corrupt")
        )
        conn.commit()
        conn.close()

        assert load_network("corrupt", temp_db_dir) is None

    def test_list_saved_networks_empty(self, temp_db_dir):
        """Test listing networks when database is empty."""
        assert list_saved_networks(temp_db_dir) == []

    def test_list_saved_networks(self, simple_network, temp_db_dir):
        """Test that listing networks returns correct metadata."""
        save_network(simple_network, "net1", model_dir=temp_db_dir, trained=True, error=0.2)
        save_network(simple_network, "net2", model_dir=temp_db_dir, trained=False)

        networks = list_saved_networks(temp_db_dir)

        assert len(networks) == 2
        assert {net['network_id'] for net in networks} == {"net1", "net2"}

    def test_list_saved_networks_includes_metadata(self, simple_network, temp_db_dir):
        """Test that listed networks include all expected metadata fields."""
        save_network(
            simple_network,
            "metadata_test",
            model_dir=temp_db_dir,
            trained=True,
            error=0.25
        )

        network = list_saved_networks(temp_db_dir)[0]

        assert network['network_id'] == "metadata_test"
        assert network['architecture'] == [3, 4, 2]
        assert network['trained'] is True
        assert network['error'] == 0.25
        assert network['connections'] == 20
        assert 'created_at' in network
        assert 'updated_at' in network

    def test_delete_network_success(self, simple_network, temp_db_dir):
        """Test successful network deletion."""
        save_network(simple_network, "delete_test", model_dir=temp_db_dir)
        assert load_network("delete_test", temp_db_dir) is not None

        assert delete_network("delete_test", temp_db_dir) is True
        assert load_network("delete_test", temp_db_dir) is None

    def test_delete_nonexistent_network(self, temp_db_dir):
        """Test that deleting a non-existent network returns False."""
        ModelDatabase(db_path=f'{temp_db_dir}/networks.db')
        assert delete_network("nonexistent", temp_db_dir) is False

    def test_update_network(self, simple_network, temp_db_dir):
        """Test that saving a network with the same ID updates it."""
        network_id = "update_test"

        save_network(simple_network, network_id, model_dir=temp_db_dir, trained=False)
        assert get_network_metadata(network_id, temp_db_dir)['trained'] is False

        save_network(
            simple_network,
            network_id,
            model_dir=temp_db_dir,
            trained=True,
            error=0.12
        )

        metadata = get_network_metadata(network_id, temp_db_dir)
        assert metadata['trained'] is True
        assert metadata['error'] == 0.12
        assert len(list_saved_networks(temp_db_dir)) == 1

    def test_update_keeps_creation_time(self, simple_network, temp_db_dir):
        """Test that re-saving does not reset created_at."""
        save_network(simple_network, "aged", model_dir=temp_db_dir)
        _age_network(temp_db_dir, "aged", 5)
        created = get_network_metadata("aged", temp_db_dir)['created_at']

        save_network(simple_network, "aged", model_dir=temp_db_dir)

        assert get_network_metadata("aged", temp_db_dir)['created_at'] == created

    def test_negative_error_rejected(self, simple_network, temp_db_dir):
        """Test that a negative error is refused."""
        assert save_network(
            simple_network, "bad", model_dir=temp_db_dir, error=-1.0
        ) is False
        assert get_network_metadata("bad", temp_db_dir) is None

    @pytest.mark.parametrize('network_id', ['', None, 42])
    def test_invalid_network_id(self, simple_network, temp_db_dir, network_id):
        """Test that ids must be non-empty strings."""
        assert save_network(simple_network, network_id, model_dir=temp_db_dir) is False
        assert load_network(network_id, temp_db_dir) is None
        assert delete_network(network_id, temp_db_dir) is False
        assert get_network_metadata(network_id, temp_db_dir) is None


@pytest.mark.integration
class TestPersistenceIntegration:
    """Integration tests for model persistence."""

    def test_save_load_train_cycle(self, temp_db_dir):
        """Test complete cycle: save, load, train, save again."""
        network_id = "cycle_test"
        save_network(
            Network([3, 4, 4, 1], 0.05, rng=np.random.default_rng(4)),
            network_id,
            model_dir=temp_db_dir,
            trained=False
        )

        loaded_network = load_network(network_id, temp_db_dir)
        history = train(loaded_network, XOR3_RECORDS, epochs=3)

        save_network(
            loaded_network,
            network_id,
            model_dir=temp_db_dir,
            trained=True,
            error=history[-1]
        )

        final_network = load_network(network_id, temp_db_dir)
        metadata = get_network_metadata(network_id, temp_db_dir)

        assert final_network.serialize().weights[1:] == \
            loaded_network.serialize().weights[1:]
        assert metadata['trained'] is True
        assert metadata['error'] == history[-1]

    def test_multiple_networks_coexist(self, temp_db_dir):
        """Test that multiple networks can coexist in the database."""
        networks_to_create = [
            ([3, 4, 4, 1], "parity_network"),
            ([3, 4, 2], "simple_network"),
            ([10, 20, 20, 10], "deep_network")
        ]

        for topology, network_id in networks_to_create:
            save_network(Network(topology, 0.1), network_id, model_dir=temp_db_dir)

        assert len(list_saved_networks(temp_db_dir)) == len(networks_to_create)

        for topology, network_id in networks_to_create:
            loaded = load_network(network_id, temp_db_dir)
            assert loaded is not None
            assert loaded.topology == topology


class TestDeleteOldNetworks:
    """Tests for automatic cleanup of old networks."""

    def test_delete_old_networks_basic(self, simple_network, temp_db_dir):
        """Test that networks past the threshold are deleted."""
        save_network(simple_network, "test_network", model_dir=temp_db_dir)
        _age_network(temp_db_dir, "test_network", 3)

        assert delete_old_networks(days=2, model_dir=temp_db_dir) == 1
        assert load_network("test_network", temp_db_dir) is None

    def test_delete_old_networks_preserves_recent(self, simple_network, temp_db_dir):
        """Test that recent networks are not deleted."""
        save_network(simple_network, "recent_network", model_dir=temp_db_dir)

        assert delete_old_networks(days=2, model_dir=temp_db_dir) == 0
        assert load_network("recent_network", temp_db_dir) is not None

    def test_delete_old_networks_mixed_ages(self, simple_network, temp_db_dir):
        """Test with a mix of old and recent networks."""
        for network_id in ("old_1", "old_2", "new_1"):
            save_network(simple_network, network_id, model_dir=temp_db_dir)
        _age_network(temp_db_dir, "old_1", 3)
        _age_network(temp_db_dir, "old_2", 10)

        assert delete_old_networks(days=2, model_dir=temp_db_dir) == 2

        remaining = [net['network_id'] for net in list_saved_networks(temp_db_dir)]
        assert remaining == ["new_1"]

    def test_delete_old_networks_negative_days(self, temp_db_dir):
        """Test that a negative threshold is rejected."""
        with pytest.raises(ValueError):
            delete_old_networks(days=-1, model_dir=temp_db_dir)


@pytest.mark.unit
class TestNetworkMetadata:
    """Tests for reading metadata without rebuilding the network."""

    def test_metadata_for_existing_network(self, temp_db_dir):
        """Test every derived and stored metadata field."""
        net = Network([2, 3, 1], 0.2, rng=np.random.default_rng(6))
        save_network(net, "meta", model_dir=temp_db_dir, trained=True, error=0.125)

        metadata = get_network_metadata("meta", temp_db_dir)

        assert metadata['network_id'] == "meta"
        assert metadata['architecture'] == [2, 3, 1]
        assert metadata['learning_rate'] == 0.2
        assert metadata['connections'] == 2 * 3 + 3 * 1
        assert metadata['connections'] == len(net.connections)
        assert metadata['trained'] is True
        assert metadata['error'] == 0.125

    def test_metadata_untrained_without_error(self, simple_network, temp_db_dir):
        """Test that an untrained network reports no error."""
        save_network(simple_network, "fresh", model_dir=temp_db_dir, trained=False)

        metadata = get_network_metadata("fresh", temp_db_dir)

        assert metadata['trained'] is False
        assert metadata['error'] is None

    def test_metadata_missing_network(self, simple_network, temp_db_dir):
        """Test that an unknown id yields None."""
        save_network(simple_network, "present", model_dir=temp_db_dir)
        assert get_network_metadata("absent", temp_db_dir) is None

    @pytest.mark.parametrize('network_id', ['', None, 3.5])
    def test_metadata_invalid_id(self, temp_db_dir, network_id):
        """Test that invalid ids yield None without touching the database."""
        assert get_network_metadata(network_id, temp_db_dir) is None
