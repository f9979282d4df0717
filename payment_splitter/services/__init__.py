"""Services package."""

from payment_splitter.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    CorruptSnapshotError,
    InMemoryAuditStorage,
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
    KeyValueSnapshotStore,
    SnapshotStoreInterface,
    StorageError,
    create_snapshot_store,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "CorruptSnapshotError",
    "InMemoryAuditStorage",
    "InMemorySnapshotStore",
    "JsonFileSnapshotStore",
    "KeyValueSnapshotStore",
    "SnapshotStoreInterface",
    "StorageError",
    "create_snapshot_store",
]
