"""
Tests for Payment Splitter

Test strategy:
1. Unit tests for individual components (models, parsing, ledger)
2. Integration tests for the session (with in-memory storage)
3. No real API calls in tests (spreadsheets are faked)
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from payment_splitter.models.ledger import (
    Expense,
    LedgerSnapshot,
    Participant,
    SettlementRecord,
)
from payment_splitter.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestLedgerModels:
    """Tests for ledger Pydantic models."""

    def test_participant_creation(self):
        """Test Participant defaults to a zero balance."""
        participant = Participant(id=1, name="Alice")
        assert participant.name == "Alice"
        assert participant.balance == Decimal("0")

    def test_participant_strips_whitespace(self):
        """Test that whitespace is stripped from participant name."""
        participant = Participant(id=1, name="  Alice  ")
        assert participant.name == "Alice"

    def test_participant_rejects_blank_name(self):
        """Test that a whitespace-only name is rejected."""
        with pytest.raises(ValueError):
            Participant(id=1, name="   ")

    def test_expense_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            Expense(id=1, amount=Decimal("0"), participant_ids=[1])
        with pytest.raises(ValueError):
            Expense(id=1, amount=Decimal("-5"), participant_ids=[1])

    def test_expense_requires_participants(self):
        """Test that an expense needs at least one participant."""
        with pytest.raises(ValueError):
            Expense(id=1, amount=Decimal("10"), participant_ids=[])

    def test_expense_drops_duplicate_participants(self):
        """Test that repeated ids are collapsed, keeping order."""
        expense = Expense(id=1, amount=Decimal("10"), participant_ids=[3, 1, 3])
        assert expense.participant_ids == (3, 1)

    def test_expense_share(self):
        """Test per-person share is amount divided by participant count."""
        expense = Expense(id=1, amount=Decimal("90"), participant_ids=[1, 2, 3])
        assert expense.share == Decimal("30")

    def test_expense_accepts_stored_key_names(self):
        """Test loading an expense record with the stored key names."""
        expense = Expense.model_validate({
            "id": 7,
            "amount": 12.5,
            "date": "2024-03-01T10:00:00+00:00",
            "description": "taxi",
            "selectedUsers": [1, 2],
        })
        assert expense.amount == Decimal("12.5")
        assert expense.participant_ids == (1, 2)
        assert expense.created_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)

    def test_expense_is_immutable(self):
        """Test that a recorded expense cannot be modified."""
        expense = Expense(id=1, amount=Decimal("10"), participant_ids=[1])
        with pytest.raises(ValueError):
            expense.amount = Decimal("20")

    def test_expense_participants_are_immutable(self):
        """Test that the participant selection cannot be changed in place."""
        expense = Expense(id=1, amount=Decimal("10"), participant_ids=[1])
        with pytest.raises(AttributeError):
            expense.participant_ids.append(2)
        assert expense.model_dump(mode="json", by_alias=True)["selectedUsers"] == [1]

    def test_settlement_record_creation(self):
        """Test SettlementRecord keeps the previous balance."""
        record = SettlementRecord(participant_id=1, previous_balance=Decimal("50"))
        assert record.previous_balance == Decimal("50")
        assert record.settled_at.tzinfo is not None


class TestLedgerSnapshot:
    """Tests for snapshot records."""

    def test_empty_snapshot(self):
        assert LedgerSnapshot().is_empty is True

    def test_expense_records_use_stored_key_names(self):
        """Test expense records are flat and keep precise amounts as text."""
        snapshot = LedgerSnapshot(
            participants=[Participant(id=1, name="Alice", balance=Decimal("33.3333"))],
            expenses=[Expense(id=2, amount=Decimal("100"), participant_ids=[1])],
        )
        users = snapshot.participant_records()
        expenses = snapshot.expense_records()

        assert users == [{"id": 1, "name": "Alice", "balance": "33.3333"}]
        assert set(expenses[0]) == {"id", "amount", "date", "description", "selectedUsers"}
        assert expenses[0]["amount"] == "100"
        assert expenses[0]["selectedUsers"] == [1]


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.PARTICIPANT_ADDED,
            description="Participant added",
        )
        assert event.event_type == AuditEventType.PARTICIPANT_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Expense added",
            entity_id=42,
            details={"amount": "100"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_added"
        assert log_dict["entity_id"] == 42
        assert log_dict["details"]["amount"] == "100"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.BALANCE_SETTLED,
            description="Balance settled",
            entity_id=5,
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "balance_settled"
        assert row[5] == "5"
        assert row[10] == "True"

    def test_builder_balance_settled(self):
        """Test AuditEventBuilder.balance_settled."""
        event = AuditEventBuilder.balance_settled(
            participant_id=3,
            previous_balance=Decimal("50"),
        )
        assert event.event_type == AuditEventType.BALANCE_SETTLED
        assert event.entity_id == 3
        assert event.details["previous_balance"] == "50"
        assert event.is_user_action is True

    def test_builder_command_rejected_is_warning(self):
        """Test rejected commands are logged as warnings."""
        event = AuditEventBuilder.command_rejected(
            command="add_participant",
            inputs={"name": "''"},
        )
        assert event.event_type == AuditEventType.COMMAND_REJECTED
        assert event.severity == AuditSeverity.WARNING

    def test_builder_snapshot_failed(self):
        """Test load and save failures map to their own event types."""
        load = AuditEventBuilder.snapshot_failed("load", "boom")
        save = AuditEventBuilder.snapshot_failed("save", "boom")
        assert load.event_type == AuditEventType.SNAPSHOT_LOAD_FAILED
        assert save.event_type == AuditEventType.SNAPSHOT_SAVE_FAILED
        assert load.severity == AuditSeverity.ERROR
        assert load.error_message == "boom"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
