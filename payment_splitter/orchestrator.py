"""
Main Orchestrator for Payment Splitter

This module ties the ledger, the snapshot store and the audit logger
together into the session the front end talks to.

Flow for every command:
1. Apply the command to the ledger (invalid input → silent no-op)
2. Audit the outcome
3. Persist the whole snapshot if the ledger changed

DESIGN DECISION: The session enforces the boundaries:
- Destructive actions (settle, clear) require explicit confirmation
- Storage failures never touch the in-memory ledger
- Every step is audited

The ledger instance is owned by the session and handed to it
explicitly; there is no process-wide ledger.
"""

from typing import Any, Optional
from uuid import UUID

import structlog

from payment_splitter.audit import AuditLogger, create_correlation_id
from payment_splitter.config import get_settings
from payment_splitter.ledger import LedgerCore
from payment_splitter.models.ledger import Expense, Participant, SettlementRecord
from payment_splitter.services.storage import (
    AuditStorageInterface,
    InMemorySnapshotStore,
    SnapshotStoreInterface,
    StorageError,
    create_snapshot_store,
)
from payment_splitter.validation import parse_amount


# Status messages shown next to the data management buttons
STATUS_LOADED = "Data loaded successfully"
STATUS_LOAD_ERROR = "Error loading data"
STATUS_SAVED = "Data saved successfully"
STATUS_SAVE_ERROR = "Error saving data"
STATUS_CLEARED = "Data cleared successfully"
STATUS_CLEAR_ERROR = "Error clearing data"
STATUS_NO_STORAGE = "Storage is not configured"

logger = structlog.get_logger("payment_splitter.orchestrator")


class LedgerSession:
    """
    Presentation-facing session around one ledger.

    Applies commands, persists after every successful mutation
    and keeps a status message for the user.
    """

    def __init__(
        self,
        ledger: Optional[LedgerCore] = None,
        store: Optional[SnapshotStoreInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        correlation_id: Optional[UUID] = None,
    ):
        self._ledger = ledger if ledger is not None else LedgerCore()
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self.correlation_id = correlation_id or create_correlation_id()
        self.status = ""

    @property
    def ledger(self) -> LedgerCore:
        return self._ledger

    @property
    def store(self) -> Optional[SnapshotStoreInterface]:
        return self._store

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """
        Replace the ledger contents with the stored snapshot.

        Nothing stored leaves the ledger as it is. A failed load also
        leaves it untouched; at startup that means an empty ledger.
        """
        if self._store is None:
            self.status = STATUS_NO_STORAGE
            return False

        try:
            snapshot = self._store.load_snapshot()
        except StorageError as e:
            self.status = STATUS_LOAD_ERROR
            self._audit_logger.log_storage_error(
                operation="load",
                error_message=str(e),
                correlation_id=self.correlation_id,
            )
            return False

        if snapshot is not None:
            self._ledger.restore(snapshot)
            self._audit_logger.log_snapshot_loaded(
                participant_count=len(snapshot.participants),
                expense_count=len(snapshot.expenses),
                correlation_id=self.correlation_id,
            )

        self.status = STATUS_LOADED
        return True

    def save(self) -> bool:
        """Persist the current snapshot. The ledger is untouched on failure."""
        if self._store is None:
            self.status = STATUS_NO_STORAGE
            return False

        snapshot = self._ledger.snapshot()
        try:
            self._store.save_snapshot(snapshot)
        except StorageError as e:
            self.status = STATUS_SAVE_ERROR
            self._audit_logger.log_storage_error(
                operation="save",
                error_message=str(e),
                correlation_id=self.correlation_id,
            )
            return False

        self.status = STATUS_SAVED
        self._audit_logger.log_snapshot_saved(
            participant_count=len(snapshot.participants),
            expense_count=len(snapshot.expenses),
            correlation_id=self.correlation_id,
        )
        return True

    def clear_data(self, confirmed: bool = False) -> bool:
        """
        Remove all participants and expenses, in memory and in storage.

        CRITICAL: Only runs when the user explicitly confirmed.
        """
        if not confirmed:
            return False

        if self._store is not None:
            try:
                self._store.clear()
            except StorageError as e:
                self.status = STATUS_CLEAR_ERROR
                self._audit_logger.log_storage_error(
                    operation="clear",
                    error_message=str(e),
                    correlation_id=self.correlation_id,
                )
                return False

        participant_count = len(self._ledger.participants)
        expense_count = len(self._ledger.expenses)
        self._ledger.clear_all()
        self.status = STATUS_CLEARED
        self._audit_logger.log_ledger_cleared(
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=self.correlation_id,
        )
        return True

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_participant(self, name: Any) -> Optional[Participant]:
        participant = self._ledger.add_participant(name)
        if participant is None:
            self._rejected("add_participant", name=name)
            return None

        self._audit_logger.log_participant_added(
            participant_id=participant.id,
            name=participant.name,
            correlation_id=self.correlation_id,
        )
        self._persist()
        return participant

    def add_expense(
        self,
        amount: Any,
        description: Any,
        participant_ids: Any,
    ) -> Optional[Expense]:
        expense = self._ledger.add_expense(amount, description, participant_ids)
        if expense is None:
            self._rejected(
                "add_expense",
                amount=amount,
                participant_ids=participant_ids,
            )
            return None

        self._audit_logger.log_expense_added(
            expense_id=expense.id,
            amount=expense.amount,
            participant_ids=list(expense.participant_ids),
            correlation_id=self.correlation_id,
        )
        self._persist()
        return expense

    def set_payment_input(self, participant_id: int, value: Any) -> None:
        """Track the payment amount typed for a participant (not persisted)."""
        self._ledger.set_payment_input(participant_id, value)

    def record_payment(self, participant_id: int, amount: Any = None) -> bool:
        """
        Record a payment from a participant.

        When amount is omitted the pending payment input is used.
        """
        raw = amount if amount is not None else self._ledger.payment_inputs.get(participant_id)
        if not self._ledger.record_payment(participant_id, raw):
            self._rejected(
                "record_payment",
                participant_id=participant_id,
                amount=raw,
            )
            return False

        participant = self._ledger.get_participant(participant_id)
        self._audit_logger.log_payment_recorded(
            participant_id=participant_id,
            amount=parse_amount(raw),
            new_balance=participant.balance,
            correlation_id=self.correlation_id,
        )
        self._persist()
        return True

    def settle(
        self,
        participant_id: int,
        confirmed: bool = False,
    ) -> Optional[SettlementRecord]:
        """
        Settle a participant's balance to zero.

        CRITICAL: Only runs when the user explicitly confirmed.
        """
        if not confirmed:
            return None

        record = self._ledger.settle(participant_id)
        if record is None:
            self._rejected("settle", participant_id=participant_id)
            return None

        self._audit_logger.log_balance_settled(
            participant_id=participant_id,
            previous_balance=record.previous_balance,
            correlation_id=self.correlation_id,
        )
        self._persist()
        return record

    def undo_last_settlement(self) -> Optional[SettlementRecord]:
        record = self._ledger.undo_last_settlement()
        if record is None:
            self._rejected("undo_last_settlement")
            return None

        self._audit_logger.log_settlement_undone(
            participant_id=record.participant_id,
            restored_balance=record.previous_balance,
            correlation_id=self.correlation_id,
        )
        self._persist()
        return record

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        if self._store is not None:
            self.save()

    def _rejected(self, command: str, **inputs: Any) -> None:
        self._audit_logger.log_command_rejected(
            command=command,
            inputs={key: repr(value) for key, value in inputs.items()},
            correlation_id=self.correlation_id,
        )


def create_app_components(use_storage: bool = True) -> LedgerSession:
    """
    Factory function to create a ready-to-use ledger session.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False for an in-memory session.

    Returns:
        A session whose ledger has been loaded from storage
    """
    store: SnapshotStoreInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage:
        try:
            settings = get_settings().storage
            store = create_snapshot_store(settings)
            if settings.backend == "google_sheets":
                from payment_splitter.services.storage.google_sheets import (
                    GoogleSheetsAuditStorage,
                )
                audit_storage = GoogleSheetsAuditStorage(store.client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            store = InMemorySnapshotStore()
            audit_storage = None
    else:
        store = InMemorySnapshotStore()

    session = LedgerSession(
        store=store,
        audit_logger=AuditLogger(audit_storage),
    )
    session.load()
    return session
