"""
Audit Logger

DESIGN DECISION: Every ledger command and every storage call is logged.
This provides:
1. A trail of how each balance got to its current value
2. Debugging capability when a save or load fails
3. Visibility into commands that were silently ignored

The audit logger:
- Is synchronous, like the ledger itself
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace the events of one session
"""

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from payment_splitter.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from payment_splitter.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for persistence and user visibility), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("payment_splitter.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                stored = self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
            if not stored:
                self._logger.warning(
                    "audit_storage_rejected",
                    event_id=str(event.event_id),
                )
            return stored

        return True

    def log_participant_added(
        self,
        participant_id: int,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new participant."""
        self.log(AuditEventBuilder.participant_added(
            participant_id=participant_id,
            name=name,
            correlation_id=correlation_id,
        ))

    def log_expense_added(
        self,
        expense_id: int,
        amount: Decimal,
        participant_ids: list[int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a recorded expense."""
        self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            amount=amount,
            participant_ids=participant_ids,
            correlation_id=correlation_id,
        ))

    def log_payment_recorded(
        self,
        participant_id: int,
        amount: Decimal,
        new_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.payment_recorded(
            participant_id=participant_id,
            amount=amount,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    def log_balance_settled(
        self,
        participant_id: int,
        previous_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.balance_settled(
            participant_id=participant_id,
            previous_balance=previous_balance,
            correlation_id=correlation_id,
        ))

    def log_settlement_undone(
        self,
        participant_id: int,
        restored_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.settlement_undone(
            participant_id=participant_id,
            restored_balance=restored_balance,
            correlation_id=correlation_id,
        ))

    def log_command_rejected(
        self,
        command: str,
        inputs: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a command that was ignored because of invalid input."""
        self.log(AuditEventBuilder.command_rejected(
            command=command,
            inputs=inputs,
            correlation_id=correlation_id,
        ))

    def log_ledger_cleared(
        self,
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.ledger_cleared(
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    def log_snapshot_loaded(
        self,
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.snapshot_loaded(
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    def log_snapshot_saved(
        self,
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.snapshot_saved(
            participant_count=participant_count,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed snapshot load, save or clear."""
        self.log(AuditEventBuilder.snapshot_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this when a ledger session starts and pass it to every
    event that session produces.
    """
    return uuid4()
