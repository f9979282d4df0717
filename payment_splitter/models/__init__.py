"""
Data Models Package

This package contains all Pydantic models used in the Payment Splitter system.
All data flowing through the system must conform to these schemas.
"""

from payment_splitter.models.ledger import (
    Expense,
    LedgerSnapshot,
    Participant,
    SettlementRecord,
    utcnow,
)
from payment_splitter.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Expense",
    "LedgerSnapshot",
    "Participant",
    "SettlementRecord",
    "utcnow",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
