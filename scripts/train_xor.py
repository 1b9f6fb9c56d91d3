#!/usr/bin/env python3
"""
Train the 3-bit parity network and store its weights.

Usage:
    python scripts/train_xor.py

The script will:
1. Build a 3-4-4-1 network with learning rate 0.05
2. Train it for 1000 epochs on the 8 parity records
3. Save the weights to XOR3.txt in the current directory
4. Read the file back and print per-record and average error
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuralnet.backup import Backup
from neuralnet.datasets import XOR3_RECORDS
from neuralnet.errors import NetworkError
from neuralnet.network import Network
from neuralnet.training import record_errors, train

BACKUP_PATH = 'XOR3.txt'
TOPOLOGY = [3, 4, 4, 1]
LEARNING_RATE = 0.05
EPOCHS = 1000


def report(network: Network) -> float:
    """Print each record's error and return the average."""
    errors = record_errors(network, XOR3_RECORDS)
    for error in errors:
        print(f"   Particular error = {error:.6f}")
    average = sum(errors) / len(errors)
    print(f"   Average error = {average:.6f}")
    return average


def main() -> int:
    print(f"🧠 Training {TOPOLOGY} for {EPOCHS} epochs...")
    network = Network(TOPOLOGY, LEARNING_RATE)
    train(network, XOR3_RECORDS, EPOCHS)
    report(network)

    print(f"\n💾 Saving weights to: {BACKUP_PATH}")
    if not network.serialize().save_to_file(BACKUP_PATH):
        print(f"❌ File \"{BACKUP_PATH}\" was not written.")
        return 1

    print(f"\n📂 Reloading weights from: {BACKUP_PATH}")
    backup = Backup.read_from_file(BACKUP_PATH)
    if backup is None:
        print(f"❌ File \"{BACKUP_PATH}\" was not read.")
        return 1
    try:
        restored = Network.from_backup(backup)
    except NetworkError as e:
        print(f"❌ Backup does not describe a valid network: {e}")
        return 1

    report(restored)
    print("\n✅ Done")
    return 0


if __name__ == '__main__':
    sys.exit(main())
