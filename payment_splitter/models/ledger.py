"""
Core Ledger Models for Payment Splitter

These models describe everything the ledger keeps in memory and
everything that gets written to a snapshot store.

DESIGN DECISION: Money is a Decimal everywhere.
Division results are kept at full context precision; rounding to
two places happens only when an amount is displayed.

Serialized field names follow the stored key-value layout
(`selectedUsers`, `date`) so existing saved data can still be loaded.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Participant(BaseModel):
    """
    A person taking part in shared expenses.

    Balance is positive when the participant owes money to the group.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(
        ...,
        description="Unique participant identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Amount owed to the group (negative if the group owes them)"
    )


class Expense(BaseModel):
    """
    A shared expense, split evenly among the selected participants.

    Expenses are immutable once recorded.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(
        ...,
        description="Unique expense identifier"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Total amount of the expense"
    )
    description: str = Field(
        default="",
        description="Free text description, may be empty"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        alias="date",
        description="When the expense was recorded"
    )
    participant_ids: tuple[int, ...] = Field(
        ...,
        min_length=1,
        alias="selectedUsers",
        description="Participants sharing this expense"
    )

    @field_validator("participant_ids")
    @classmethod
    def drop_duplicate_ids(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Keep the first occurrence of each participant id."""
        return tuple(dict.fromkeys(v))

    @property
    def share(self) -> Decimal:
        """Amount charged to each participant."""
        return self.amount / len(self.participant_ids)


class SettlementRecord(BaseModel):
    """
    Undo entry written when a participant's balance is settled.

    Records are session-only and never persisted.
    """
    model_config = ConfigDict(frozen=True)

    participant_id: int
    previous_balance: Decimal
    settled_at: datetime = Field(default_factory=utcnow)


class LedgerSnapshot(BaseModel):
    """
    Persistable state of a ledger: participants and expenses.

    The settlement undo log is deliberately not part of a snapshot.
    """
    participants: list[Participant] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.participants and not self.expenses

    def participant_records(self) -> list[dict]:
        """Participants as flat JSON-compatible records."""
        return [p.model_dump(mode="json") for p in self.participants]

    def expense_records(self) -> list[dict]:
        """Expenses as flat JSON-compatible records (stored key names)."""
        return [e.model_dump(mode="json", by_alias=True) for e in self.expenses]
