"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger itself free of any storage code
2. Use in-memory storage for testing
3. Swap a local file for a shared spreadsheet without touching the ledger

The ledger is always saved and loaded as a whole snapshot.
Calls are synchronous: one user drives one command at a time.
"""

from abc import ABC, abstractmethod
from typing import Optional

from payment_splitter.models.audit import AuditEvent
from payment_splitter.models.ledger import LedgerSnapshot


class SnapshotStoreInterface(ABC):
    """
    Abstract interface for ledger snapshot storage.

    Any storage implementation (file, spreadsheet, memory)
    must implement these methods.
    """

    @abstractmethod
    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        """
        Load the stored snapshot.

        Returns:
            The snapshot, or None if nothing has been stored yet

        Raises:
            CorruptSnapshotError: If stored data cannot be decoded
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        """
        Replace the stored snapshot.

        Args:
            snapshot: Participants and expenses to store

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Remove the stored snapshot.

        Raises:
            StorageError: If the backend cannot be written
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptSnapshotError(StorageError):
    """Stored data exists but cannot be decoded into a snapshot."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
