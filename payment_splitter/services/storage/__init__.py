"""
Storage Services Package

Provides the abstract snapshot interface and concrete implementations.
Local JSON file is the default backend; Google Sheets and in-memory
stores are drop-in replacements.
"""

from payment_splitter.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptSnapshotError,
    SnapshotStoreInterface,
    StorageError,
)
from payment_splitter.services.storage.key_value import KeyValueSnapshotStore
from payment_splitter.services.storage.json_file import JsonFileSnapshotStore
from payment_splitter.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySnapshotStore,
)
from payment_splitter.services.storage.factory import create_snapshot_store

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueSnapshotStore",
    "SnapshotStoreInterface",
    # Exceptions
    "ConnectionError",
    "CorruptSnapshotError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    # Factory
    "create_snapshot_store",
]
