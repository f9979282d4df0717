"""
Audit Models for Payment Splitter

Every command applied to the ledger and every storage outcome is
recorded as an audit event. This provides:
1. Traceability of balance changes
2. Debugging information when saves or loads fail
3. A history the user can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from payment_splitter.models.ledger import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger commands
    PARTICIPANT_ADDED = "participant_added"
    EXPENSE_ADDED = "expense_added"
    PAYMENT_RECORDED = "payment_recorded"
    BALANCE_SETTLED = "balance_settled"
    SETTLEMENT_UNDONE = "settlement_undone"
    COMMAND_REJECTED = "command_rejected"
    LEDGER_CLEARED = "ledger_cleared"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"
    SNAPSHOT_SAVE_FAILED = "snapshot_save_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every command or storage call creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'participant', 'expense', 'ledger')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one ledger session)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id is not None else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.participant_added(participant_id, name, correlation_id)
        event = AuditEventBuilder.balance_settled(participant_id, previous, correlation_id)
    """

    @staticmethod
    def participant_added(
        participant_id: int,
        name: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTICIPANT_ADDED,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description=f"Participant added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        expense_id: int,
        amount: Decimal,
        participant_ids: list[int],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense of {amount} split between {len(participant_ids)} participants",
            details={
                "amount": str(amount),
                "participant_ids": participant_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_recorded(
        participant_id: int,
        amount: Decimal,
        new_balance: Decimal,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description=f"Payment of {amount} recorded",
            details={
                "amount": str(amount),
                "new_balance": str(new_balance),
            },
            is_user_action=True,
        )

    @staticmethod
    def balance_settled(
        participant_id: int,
        previous_balance: Decimal,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_SETTLED,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description="Balance settled",
            details={"previous_balance": str(previous_balance)},
            is_user_action=True,
        )

    @staticmethod
    def settlement_undone(
        participant_id: int,
        restored_balance: Decimal,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_UNDONE,
            entity_type="participant",
            entity_id=participant_id,
            correlation_id=correlation_id,
            description="Last settlement undone",
            details={"restored_balance": str(restored_balance)},
            is_user_action=True,
        )

    @staticmethod
    def command_rejected(
        command: str,
        inputs: dict[str, Any],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Command ignored: {command}",
            details={"command": command, "inputs": inputs},
            is_user_action=True,
        )

    @staticmethod
    def ledger_cleared(
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            correlation_id=correlation_id,
            description="All ledger data cleared",
            details={
                "participant_count": participant_count,
                "expense_count": expense_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def snapshot_loaded(
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Loaded {participant_count} participants and {expense_count} expenses",
            details={
                "participant_count": participant_count,
                "expense_count": expense_count,
            },
        )

    @staticmethod
    def snapshot_saved(
        participant_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Saved {participant_count} participants and {expense_count} expenses",
            details={
                "participant_count": participant_count,
                "expense_count": expense_count,
            },
        )

    @staticmethod
    def snapshot_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        event_type = (
            AuditEventType.SNAPSHOT_LOAD_FAILED
            if operation == "load"
            else AuditEventType.SNAPSHOT_SAVE_FAILED
        )
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Snapshot {operation} failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
