"""
api_server.py
~~~~~~~~~~~~~

Flask-based REST API server with WebSocket support for network training.

This module provides endpoints for:
- Creating networks from a topology or importing a weight backup
- Training networks with real-time progress updates via WebSockets
- Running inference and testing against record sets
- Exporting weight backups and plotting training error
- Persisting networks to/from SQLite database

The server uses:
- Flask for REST API endpoints
- Flask-SocketIO for WebSocket communication
- Gevent for background training and cleanup tasks
- Matplotlib for error plots
- SQLite for network persistence
"""

import os
import sys
import uuid
import base64
import logging
from io import BytesIO
from typing import Dict, Any, List, Optional, Tuple

import gevent
import numpy as np
from flask import Flask, Response, request, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO

# Use non-GUI backend for matplotlib (required for server environments)
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

# Local imports
from neuralnet.backup import Backup
from neuralnet.datasets import DATASETS
from neuralnet.errors import DimensionMismatchError, NetworkError
from neuralnet.network import Network
from neuralnet.records import IORecord
from neuralnet.training import evaluate, record_errors, train
from neuralnet.model_persistence import (
    save_network,
    load_network,
    list_saved_networks,
    delete_network,
    delete_old_networks,
    get_network_metadata
)

# ============================================================================
# CONFIGURATION
# ============================================================================

MODEL_DIR = os.getenv('MODEL_DIR', 'models')
CLEANUP_DAYS = int(os.getenv('CLEANUP_DAYS', '2'))

DEFAULT_TOPOLOGY = [3, 4, 4, 1]
DEFAULT_LEARNING_RATE = 0.05
DEFAULT_EPOCHS = 1000

# ============================================================================
# LOGGING SETUP
# ============================================================================

def configure_logging() -> None:
    """
    Set up logging based on environment.

    - In production: Show fewer logs (less noise) but keep important logs
    - In development: Show more detailed logs for debugging
    """
    log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    is_production = os.getenv('FLASK_ENV') == 'production'

    # Set up basic logging format
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # In production, silence noisy third-party logs but keep our logs visible
    if is_production:
        for logger_name in ['socketio', 'engineio', 'engineio.server',
                            'socketio.server', 'werkzeug']:
            logging.getLogger(logger_name).setLevel(logging.WARNING)
        logging.getLogger('neuralnet').setLevel(logging.INFO)
    else:
        logging.getLogger('socketio').setLevel(logging.INFO)
        logging.getLogger('engineio').setLevel(logging.INFO)


configure_logging()
logger = logging.getLogger(__name__)

# ============================================================================
# FLASK APP SETUP
# ============================================================================

app = Flask(__name__)
CORS(app, resources={r"/*": {"origins": "*"}})  # Allow requests from any origin

is_production = os.getenv('FLASK_ENV') == 'production'

# SocketIO enables real-time communication (WebSockets) for training updates
socketio = SocketIO(
    app,
    cors_allowed_origins="*",
    async_mode='gevent',
    logger=not is_production,
    engineio_logger=not is_production,
    ping_timeout=60,
    ping_interval=25
)

# ============================================================================
# GLOBAL STATE
# ============================================================================

# Networks currently loaded in memory: {network_id: network_info}
active_networks: Dict[str, Dict[str, Any]] = {}

# Training jobs being tracked: {job_id: job_info}
training_jobs: Dict[str, Dict[str, Any]] = {}


def _network_info(net: Network, trained: bool = False,
                  error: Optional[float] = None) -> Dict[str, Any]:
    return {
        'network': net,
        'architecture': net.topology,
        'learning_rate': net.learning_rate,
        'trained': trained,
        'error': error,
        'history': [],
        'training_job': None
    }


def reload_saved_networks() -> None:
    """
    Reload all saved networks from the database into memory.

    Called at startup to restore networks that were saved before the
    application was restarted.
    """
    saved_networks = list_saved_networks(MODEL_DIR)

    if not saved_networks:
        logger.info("No saved networks to reload")
        return

    loaded_count = 0
    for net_info in saved_networks:
        network_id = net_info['network_id']
        net = load_network(network_id, MODEL_DIR)
        if net is None:
            logger.warning(f"Failed to load network {network_id}")
            continue
        active_networks[network_id] = _network_info(
            net, net_info['trained'], net_info['error']
        )
        loaded_count += 1

    logger.info(f"Reloaded {loaded_count} network(s) from database")


reload_saved_networks()

# ============================================================================
# BACKGROUND TASKS
# ============================================================================

# Flag to ensure cleanup task only starts once
_cleanup_task_started = False


def cleanup_old_networks_task() -> None:
    """
    Background task that runs immediately on startup, then every 24 hours to:
    - Delete networks older than CLEANUP_DAYS from the database
    - Sync in-memory networks with the database
    - Remove finished training jobs from memory
    """
    while True:
        try:
            logger.info("Starting automatic cleanup of old networks...")
            saved_before = {
                net['network_id'] for net in list_saved_networks(MODEL_DIR)
            }
            deleted_count = delete_old_networks(
                days=CLEANUP_DAYS, model_dir=MODEL_DIR
            )

            if deleted_count > 0:
                # Drop networks whose rows were just deleted, unless they
                # are still training
                saved_after = {
                    net['network_id'] for net in list_saved_networks(MODEL_DIR)
                }
                networks_to_remove = [
                    nid for nid, info in active_networks.items()
                    if nid in saved_before - saved_after
                    and info['training_job'] is None
                ]
                for nid in networks_to_remove:
                    del active_networks[nid]
                    logger.info(f"Removed network {nid} from memory (deleted from database)")
                logger.info(f"Cleanup completed: deleted {deleted_count} network(s)")
            elif deleted_count == 0:
                logger.info("Cleanup completed: no old networks found to delete")
            else:
                logger.error("Cleanup returned error code")

            cleanup_finished_training_jobs()

            logger.info("Next cleanup scheduled in 24 hours")
            gevent.sleep(86400)

        except Exception as e:
            logger.exception(f"Error during network cleanup: {e}")
            gevent.sleep(3600)


def cleanup_finished_training_jobs() -> None:
    """Remove completed or failed training jobs from memory."""
    finished_statuses = {'completed', 'failed'}
    jobs_to_remove = [
        job_id for job_id, job_info in training_jobs.items()
        if job_info.get('status') in finished_statuses
    ]

    for job_id in jobs_to_remove:
        del training_jobs[job_id]

    if jobs_to_remove:
        logger.info(f"Cleaned up {len(jobs_to_remove)} finished training job(s)")


def start_cleanup_task() -> None:
    """
    Start the background cleanup task.

    Uses gevent.spawn() directly so it works both when running directly and
    under gunicorn. Calling it more than once has no effect.
    """
    global _cleanup_task_started

    if _cleanup_task_started:
        logger.debug("Cleanup task already started, skipping")
        return

    _cleanup_task_started = True
    logger.info(f"Starting cleanup task (networks older than {CLEANUP_DAYS} day(s))")
    gevent.spawn(cleanup_old_networks_task)


# Start the cleanup task when module is loaded (works with gunicorn)
start_cleanup_task()


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def parse_records(
    data: Dict[str, Any],
    key: str = 'records',
    dataset_key: str = 'dataset'
) -> Tuple[Optional[List[IORecord]], Optional[str]]:
    """
    Read a record set from a request body.

    Accepts either ``{'dataset': 'xor3'}`` or
    ``{'records': [{'inputs': [...], 'outputs': [...]}, ...]}``.

    Returns:
        (records, None) on success, (None, error message) otherwise
    """
    if dataset_key in data:
        name = data[dataset_key]
        if name not in DATASETS:
            return None, f"Unknown dataset '{name}'. Available: {sorted(DATASETS)}"
        return DATASETS[name], None

    raw = data.get(key)
    if not isinstance(raw, list) or not raw:
        return None, f"'{key}' must be a non-empty list or '{dataset_key}' must be given"
    try:
        return [IORecord.from_dict(item) for item in raw], None
    except (ValueError, TypeError) as e:
        return None, str(e)


def create_error_plot(history: List[float], title: str) -> str:
    """
    Create a base64-encoded PNG of the per-epoch training error.

    Args:
        history: Mean test error after each epoch
        title: Plot title

    Returns:
        Base64-encoded PNG image string
    """
    epochs = np.arange(1, len(history) + 1)

    plt.figure(figsize=(5, 3))
    plt.plot(epochs, history)
    plt.yscale('log')
    plt.xlabel('Epoch')
    plt.ylabel('Mean error')
    plt.title(title)
    plt.grid(True, alpha=0.3)

    # Save image to a bytes buffer instead of a file
    buffer = BytesIO()
    plt.savefig(buffer, format='png', bbox_inches='tight')
    buffer.seek(0)
    img_base64 = base64.b64encode(buffer.getvalue()).decode('utf-8')
    plt.close()

    return img_base64


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.route('/api/status', methods=['GET'])
def get_status():
    """
    Return server status and statistics.

    Counts networks in memory and training jobs that are pending or running.
    """
    active_statuses = ('pending', 'training')
    active_training = sum(
        1 for job in training_jobs.values()
        if job.get('status') in active_statuses
    )

    return jsonify({
        'status': 'online',
        'active_networks': len(active_networks),
        'training_jobs': active_training,
        'datasets': sorted(DATASETS)
    }), 200


@app.route('/api/networks', methods=['POST'])
def create_network():
    """
    Create a new network with random weights.

    Request body (optional):
        {'topology': [3, 4, 4, 1], 'learning_rate': 0.05, 'seed': 42}

    Returns:
        JSON with network_id, architecture, learning_rate and status
    """
    data = request.get_json(silent=True) or {}
    topology = data.get('topology', DEFAULT_TOPOLOGY)
    learning_rate = data.get('learning_rate', DEFAULT_LEARNING_RATE)
    seed = data.get('seed')

    if (not isinstance(topology, list) or len(topology) < 2
            or not all(isinstance(size, int) and size > 0 for size in topology)):
        logger.warning(f"Invalid topology requested: {topology}")
        return jsonify({
            'error': 'Invalid topology. Must have at least 2 positive layer sizes.'
        }), 400
    if not isinstance(learning_rate, (int, float)) or not 0 < learning_rate < 1:
        return jsonify({'error': 'learning_rate must be between 0 and 1'}), 400
    if seed is not None and not isinstance(seed, int):
        return jsonify({'error': 'seed must be an integer'}), 400

    network_id = str(uuid.uuid4())
    net = Network(topology, learning_rate, rng=np.random.default_rng(seed))
    active_networks[network_id] = _network_info(net)

    logger.info(f"Created network {network_id} with topology {topology}")

    return jsonify({
        'network_id': network_id,
        'architecture': topology,
        'learning_rate': learning_rate,
        'status': 'created'
    }), 201


@app.route('/api/networks/import', methods=['POST'])
def import_network():
    """
    Create a network from a weight backup sent as the raw request body.

    Returns:
        JSON with network_id and architecture, 400 if the backup is invalid
    """
    text = request.get_data(as_text=True)
    try:
        net = Network.from_backup(Backup.from_text(text))
    except NetworkError as e:
        logger.warning(f"Rejected backup import: {e}")
        return jsonify({'error': f'Invalid backup: {e}'}), 400

    network_id = str(uuid.uuid4())
    active_networks[network_id] = _network_info(net, trained=True)
    save_network(net, network_id, model_dir=MODEL_DIR, trained=True)

    logger.info(f"Imported network {network_id} with topology {net.topology}")

    return jsonify({
        'network_id': network_id,
        'architecture': net.topology,
        'learning_rate': net.learning_rate,
        'status': 'imported'
    }), 201


@app.route('/api/networks/<network_id>/compute', methods=['POST'])
def compute(network_id: str):
    """
    Run inference on one input vector.

    Request body:
        {'inputs': [0.0, 1.0, 1.0]}
    """
    if network_id not in active_networks:
        return jsonify({'error': 'Network not found'}), 404

    data = request.get_json(silent=True) or {}
    inputs = data.get('inputs')
    if not isinstance(inputs, list):
        return jsonify({'error': "'inputs' must be a list of numbers"}), 400

    net = active_networks[network_id]['network']
    try:
        outputs = net.compute_for([float(x) for x in inputs])
    except DimensionMismatchError as e:
        return jsonify({'error': str(e)}), 400
    except (TypeError, ValueError):
        return jsonify({'error': "'inputs' must be a list of numbers"}), 400

    return jsonify({'network_id': network_id, 'outputs': outputs}), 200


@app.route('/api/networks/<network_id>/test', methods=['POST'])
def test_network(network_id: str):
    """
    Evaluate a network on a record set without training it.

    Request body:
        {'dataset': 'xor3'} or {'records': [{'inputs': [...], 'outputs': [...]}]}

    Returns:
        JSON with the mean error and the per-record errors
    """
    if network_id not in active_networks:
        return jsonify({'error': 'Network not found'}), 404

    data = request.get_json(silent=True) or {}
    records, problem = parse_records(data)
    if problem:
        return jsonify({'error': problem}), 400

    net = active_networks[network_id]['network']
    try:
        errors = record_errors(net, records)
    except DimensionMismatchError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'network_id': network_id,
        'mean_error': sum(errors) / len(errors),
        'errors': errors
    }), 200


@app.route('/api/networks/<network_id>/train', methods=['POST'])
def train_network(network_id: str):
    """
    Start training a network in the background.

    Request body:
        {
            'dataset': 'xor3' | 'records': [...],
            'test_dataset': ... | 'test_records': [...],   # optional
            'epochs': 1000,
            'shuffle': false
        }

    Returns:
        JSON with job_id, network_id, and status
    """
    if network_id not in active_networks:
        logger.warning(f"Training requested for non-existent network: {network_id}")
        return jsonify({'error': 'Network not found'}), 404

    info = active_networks[network_id]
    if info['training_job'] is not None:
        return jsonify({
            'error': 'Network is already training',
            'job_id': info['training_job']
        }), 409

    data = request.get_json(silent=True) or {}
    epochs = data.get('epochs', DEFAULT_EPOCHS)
    shuffle = data.get('shuffle', False)

    if not isinstance(epochs, int) or epochs < 1:
        return jsonify({'error': 'epochs must be a positive integer'}), 400
    if not isinstance(shuffle, bool):
        return jsonify({'error': 'shuffle must be a boolean'}), 400

    records, problem = parse_records(data)
    if problem:
        return jsonify({'error': problem}), 400
    test_records = None
    if 'test_records' in data or 'test_dataset' in data:
        test_records, problem = parse_records(
            data, key='test_records', dataset_key='test_dataset'
        )
        if problem:
            return jsonify({'error': problem}), 400

    net = info['network']
    for record in records + (test_records or []):
        if len(record.inputs) != net.input_size or len(record.outputs) != net.output_size:
            return jsonify({
                'error': f'Record {record.to_dict()} does not fit topology {net.topology}'
            }), 400

    job_id = str(uuid.uuid4())
    training_jobs[job_id] = {
        'network_id': network_id,
        'status': 'pending',
        'progress': 0,
        'epochs': epochs
    }
    info['training_job'] = job_id

    logger.info(
        f"Created training job {job_id} for network {network_id}: "
        f"epochs={epochs}, records={len(records)}, shuffle={shuffle}"
    )

    # Run training in background so we can return immediately
    socketio.start_background_task(
        train_network_task,
        network_id, job_id, records, test_records, epochs, shuffle
    )

    return jsonify({
        'job_id': job_id,
        'network_id': network_id,
        'status': 'training_started'
    }), 202


def train_network_task(
    network_id: str,
    job_id: str,
    records: List[IORecord],
    test_records: Optional[List[IORecord]],
    epochs: int,
    shuffle: bool
) -> None:
    """
    Background task that trains a network.

    Sends progress updates via WebSocket as training progresses.
    """
    info = active_networks[network_id]
    net = info['network']

    def on_epoch_complete(data: Dict[str, Any]) -> None:
        """Called after each training epoch to send progress updates."""
        progress = (data['epoch'] / data['total_epochs']) * 100

        training_jobs[job_id]['status'] = 'training'
        training_jobs[job_id]['progress'] = progress
        training_jobs[job_id]['error'] = data['error']
        info['history'].append(data['error'])

        socketio.emit('training_update', {
            'job_id': job_id,
            'network_id': network_id,
            'epoch': data['epoch'],
            'total_epochs': data['total_epochs'],
            'error': data['error'],
            'elapsed_time': data['elapsed_time'],
            'progress': progress
        })

        # Let gevent send the message immediately
        gevent.sleep(0)

    try:
        logger.info(f"Starting training for job {job_id}")

        # Allows HTTP requests to be processed between records
        def yield_to_other_tasks():
            gevent.sleep(0)

        train(
            net,
            records,
            epochs,
            test_records=test_records,
            callback=on_epoch_complete,
            yield_func=yield_to_other_tasks,
            shuffle=shuffle
        )

        error = evaluate(net, test_records or records)

        info['trained'] = True
        info['error'] = error

        training_jobs[job_id]['status'] = 'completed'
        training_jobs[job_id]['error'] = error
        training_jobs[job_id]['progress'] = 100

        save_network(net, network_id, model_dir=MODEL_DIR, trained=True, error=error)

        logger.info(f"Training completed for job {job_id}: mean error {error:.6f}")

        socketio.emit('training_complete', {
            'job_id': job_id,
            'network_id': network_id,
            'status': 'completed',
            'error': float(error),
            'progress': 100
        })
        gevent.sleep(0)

    except Exception as e:
        logger.exception(f"Training failed for job {job_id}: {e}")

        training_jobs[job_id]['status'] = 'failed'
        training_jobs[job_id]['message'] = str(e)

        socketio.emit('training_error', {
            'job_id': job_id,
            'network_id': network_id,
            'status': 'failed',
            'error': str(e)
        })
        gevent.sleep(0)

    finally:
        info['training_job'] = None


@app.route('/api/training/<job_id>', methods=['GET'])
def get_training_status(job_id: str):
    """Get the current status of a training job."""
    if job_id in training_jobs:
        return jsonify(training_jobs[job_id]), 200

    logger.warning(f"Status requested for non-existent job: {job_id}")
    return jsonify({'error': 'Training job not found'}), 404


@app.route('/api/networks', methods=['GET'])
def list_networks():
    """List all available networks (both in-memory and saved to disk)."""
    in_memory = [
        {
            'network_id': nid,
            'architecture': info['architecture'],
            'learning_rate': info['learning_rate'],
            'trained': info['trained'],
            'error': info['error'],
            'status': 'training' if info['training_job'] else 'in_memory'
        }
        for nid, info in active_networks.items()
    ]

    # Get saved networks, excluding duplicates already in memory
    in_memory_ids = set(active_networks.keys())
    saved_only = []
    for net in list_saved_networks(MODEL_DIR):
        if net['network_id'] not in in_memory_ids:
            net['status'] = 'saved'
            saved_only.append(net)

    logger.debug(f"Listing networks: {len(in_memory)} in memory, {len(saved_only)} saved")

    return jsonify({'networks': in_memory + saved_only}), 200


@app.route('/api/networks/<network_id>', methods=['GET'])
def get_network(network_id: str):
    """
    Describe one network.

    Networks in memory report their live state; networks only on disk report
    their stored metadata without being rebuilt.
    """
    info = active_networks.get(network_id)
    saved = get_network_metadata(network_id, MODEL_DIR)

    if info is None and saved is None:
        return jsonify({'error': 'Network not found'}), 404

    if info is None:
        saved['status'] = 'saved'
        return jsonify(saved), 200

    return jsonify({
        'network_id': network_id,
        'architecture': info['architecture'],
        'learning_rate': info['learning_rate'],
        'connections': len(info['network'].connections),
        'trained': info['trained'],
        'error': info['error'],
        'status': 'training' if info['training_job'] else 'in_memory',
        'saved': saved is not None
    }), 200


@app.route('/api/networks/<network_id>/backup', methods=['GET'])
def export_backup(network_id: str):
    """Return the network's weights in the plain-text backup format."""
    if network_id not in active_networks:
        return jsonify({'error': 'Network not found'}), 404

    backup = active_networks[network_id]['network'].serialize()
    return Response(
        backup.to_text(),
        mimetype='text/plain',
        headers={'Content-Disposition': f'attachment; filename={network_id}.txt'}
    )


@app.route('/api/networks/<network_id>/error_plot', methods=['GET'])
def get_error_plot(network_id: str):
    """Return a base64 PNG of the error recorded during training."""
    if network_id not in active_networks:
        return jsonify({'error': 'Network not found'}), 404

    history = active_networks[network_id]['history']
    if not history:
        return jsonify({'error': 'Network has no training history'}), 404

    return jsonify({
        'network_id': network_id,
        'epochs': len(history),
        'final_error': history[-1],
        'image_data': create_error_plot(history, f"Network {network_id[:8]}")
    }), 200


@app.route('/api/networks/<network_id>', methods=['DELETE'])
def delete_network_endpoint(network_id: str):
    """Delete a network from both memory and disk."""
    info = active_networks.get(network_id)
    if info is not None and info['training_job'] is not None:
        return jsonify({'error': 'Network is training'}), 409

    deleted_from_memory = active_networks.pop(network_id, None) is not None
    deleted_from_disk = delete_network(network_id, MODEL_DIR)

    if not deleted_from_memory and not deleted_from_disk:
        logger.warning(f"Delete attempted for non-existent network: {network_id}")
        return jsonify({'error': 'Network not found'}), 404

    logger.info(f"Deleted network {network_id}: memory={deleted_from_memory}, disk={deleted_from_disk}")

    return jsonify({
        'network_id': network_id,
        'deleted_from_memory': deleted_from_memory,
        'deleted_from_disk': deleted_from_disk
    }), 200


@app.route('/api/networks', methods=['DELETE'])
def delete_all_networks():
    """Delete every idle network from both memory and disk."""
    training_ids = {
        nid for nid, info in active_networks.items()
        if info['training_job'] is not None
    }
    saved_ids = {net['network_id'] for net in list_saved_networks(MODEL_DIR)}
    all_network_ids = (set(active_networks) | saved_ids) - training_ids

    deleted_from_memory_count = 0
    deleted_from_disk_count = 0

    for network_id in all_network_ids:
        if active_networks.pop(network_id, None) is not None:
            deleted_from_memory_count += 1
        if delete_network(network_id, MODEL_DIR):
            deleted_from_disk_count += 1

    logger.info(
        f"Deleted all networks: {len(all_network_ids)} total, "
        f"{deleted_from_memory_count} from memory, {deleted_from_disk_count} from disk"
    )

    return jsonify({
        'deleted_count': len(all_network_ids),
        'deleted_from_memory': deleted_from_memory_count,
        'deleted_from_disk': deleted_from_disk_count,
        'message': f'Successfully deleted {len(all_network_ids)} network(s)'
    }), 200


@app.route('/api/networks/cleanup', methods=['POST'])
def cleanup_old_networks_endpoint():
    """
    Manually trigger cleanup of networks older than specified days.

    Request body (optional):
        {'days': 2}  # defaults to CLEANUP_DAYS

    Returns:
        JSON with deleted_count, days, and message
    """
    data = request.get_json(silent=True) or {}
    days = data.get('days', CLEANUP_DAYS)

    if not isinstance(days, (int, float)) or days < 0:
        return jsonify({'error': 'days must be a non-negative number'}), 400

    deleted_count = delete_old_networks(days=int(days), model_dir=MODEL_DIR)
    if deleted_count == -1:
        return jsonify({'error': 'Error occurred during cleanup'}), 500

    logger.info(f"Manual cleanup: deleted {deleted_count} network(s) older than {days} day(s)")

    return jsonify({
        'deleted_count': deleted_count,
        'days': days,
        'message': f'Successfully deleted {deleted_count} network(s) older than {days} day(s)'
    }), 200


# ============================================================================
# SERVER STARTUP
# ============================================================================

if __name__ == '__main__':
    # Check if running in cloud environment (Railway, etc.)
    is_cloud = bool(os.environ.get('RAILWAY_STATIC_URL') or os.environ.get('PORT'))
    port = int(os.environ.get('PORT', 8000))

    if is_cloud:
        logger.info(f"Starting server in production mode on port {port}")
    else:
        logger.info(f"Starting server at http://localhost:{port}/")

    start_cleanup_task()

    # Start the server with WebSocket support
    try:
        socketio.run(
            app,
            host='0.0.0.0',
            port=port,
            debug=not is_cloud,
            use_reloader=False,
            allow_unsafe_werkzeug=True
        )
    except OSError as e:
        if "Address already in use" in str(e):
            logger.error(f"Port {port} is already in use.")
            sys.exit(1)
        else:
            raise
