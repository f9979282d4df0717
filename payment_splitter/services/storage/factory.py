"""Build the snapshot store selected in configuration."""

from typing import Optional

from payment_splitter.config import StorageSettings, get_settings
from payment_splitter.services.storage.interface import SnapshotStoreInterface
from payment_splitter.services.storage.json_file import JsonFileSnapshotStore
from payment_splitter.services.storage.memory import InMemorySnapshotStore


def create_snapshot_store(
    settings: Optional[StorageSettings] = None,
) -> SnapshotStoreInterface:
    """
    Create the configured snapshot store.

    The Google Sheets backend is imported lazily so the local backends
    work without Google credentials.
    """
    settings = settings or get_settings().storage

    if settings.backend == "memory":
        return InMemorySnapshotStore(
            users_key=settings.users_key,
            expenses_key=settings.expenses_key,
        )
    if settings.backend == "google_sheets":
        from payment_splitter.services.storage.google_sheets import (
            GoogleSheetsSnapshotStore,
        )
        return GoogleSheetsSnapshotStore()

    return JsonFileSnapshotStore(
        settings.data_path,
        users_key=settings.users_key,
        expenses_key=settings.expenses_key,
    )
