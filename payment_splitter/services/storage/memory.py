"""
In-Memory Storage Implementations

Used for tests and for sessions that should not touch the disk.
Stored values go through the same text encoding as the persistent
backends, so a round trip here behaves like a real one.
"""

from typing import Optional

from payment_splitter.models.audit import AuditEvent
from payment_splitter.services.storage.interface import AuditStorageInterface
from payment_splitter.services.storage.key_value import (
    DEFAULT_EXPENSES_KEY,
    DEFAULT_USERS_KEY,
    KeyValueSnapshotStore,
)


class InMemorySnapshotStore(KeyValueSnapshotStore):
    """Key-value snapshot store backed by a dict."""

    def __init__(
        self,
        items: Optional[dict[str, str]] = None,
        users_key: str = DEFAULT_USERS_KEY,
        expenses_key: str = DEFAULT_EXPENSES_KEY,
    ):
        super().__init__(users_key=users_key, expenses_key=expenses_key)
        self.items: dict[str, str] = dict(items or {})

    def _get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def _set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def _remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
