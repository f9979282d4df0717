"""
Tests for the ledger accounting core.

Covers balance accounting for expenses, payments, settlements and undo,
plus the rule that invalid commands change nothing.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from payment_splitter.ledger import LedgerCore
from payment_splitter.models.ledger import (
    Expense,
    LedgerSnapshot,
    Participant,
    SettlementRecord,
)


FIXED_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
TOLERANCE = Decimal("1e-20")


@pytest.fixture
def ledger():
    return LedgerCore(clock=lambda: FIXED_TIME)


@pytest.fixture
def pair(ledger):
    """Ledger with participants A and B, both at zero."""
    a = ledger.add_participant("A")
    b = ledger.add_participant("B")
    return ledger, a, b


def balances(ledger: LedgerCore) -> dict[int, Decimal]:
    return {p.id: p.balance for p in ledger.participants}


class TestAddParticipant:
    """Tests for adding participants."""

    def test_adds_with_zero_balance(self, ledger):
        participant = ledger.add_participant("Alice")
        assert participant is not None
        assert participant.balance == Decimal("0")
        assert ledger.participants == [participant]

    def test_trims_name(self, ledger):
        assert ledger.add_participant("  Alice  ").name == "Alice"

    @pytest.mark.parametrize("name", ["", "   ", None, 42])
    def test_blank_or_non_text_name_is_noop(self, ledger, name):
        assert ledger.add_participant(name) is None
        assert ledger.participants == []

    def test_ids_are_unique_and_increasing(self, ledger):
        """Test ids stay unique even when the clock does not move."""
        ids = [ledger.add_participant(f"P{i}").id for i in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    def test_ids_follow_clock_in_milliseconds(self, ledger):
        participant = ledger.add_participant("Alice")
        assert participant.id == int(FIXED_TIME.timestamp() * 1000)

    def test_participants_are_copies(self, ledger):
        """Test that editing a listed participant does not touch the ledger."""
        participant = ledger.add_participant("Alice")
        listed = ledger.participants[0]
        listed.balance = Decimal("99")
        assert participant.balance == Decimal("0")
        assert ledger.total_balance() == Decimal("0")


class TestAddExpense:
    """Tests for recording and splitting expenses."""

    def test_even_split(self, pair):
        ledger, a, b = pair
        expense = ledger.add_expense(100, "lunch", [a.id, b.id])

        assert expense is not None
        assert expense.description == "lunch"
        assert expense.created_at == FIXED_TIME
        assert a.balance == Decimal("50")
        assert b.balance == Decimal("50")
        assert ledger.expenses == [expense]

    def test_deltas_sum_to_amount(self, ledger):
        """Test no amount leaks when the split does not divide evenly."""
        people = [ledger.add_participant(name) for name in ("A", "B", "C")]
        ledger.add_expense("100", "", [p.id for p in people])

        total = sum(p.balance for p in people)
        assert abs(total - Decimal("100")) < TOLERANCE

    def test_shares_are_not_rounded(self, ledger):
        people = [ledger.add_participant(name) for name in ("A", "B", "C")]
        ledger.add_expense(10, "", [p.id for p in people])
        assert people[0].balance != Decimal("3.33")
        assert people[0].balance == Decimal(10) / 3

    def test_unselected_participants_unchanged(self, ledger):
        a = ledger.add_participant("A")
        b = ledger.add_participant("B")
        c = ledger.add_participant("C")
        ledger.add_expense(30, "taxi", [a.id, b.id])

        assert a.balance == Decimal("15")
        assert b.balance == Decimal("15")
        assert c.balance == Decimal("0")

    def test_duplicate_ids_counted_once(self, pair):
        ledger, a, b = pair
        expense = ledger.add_expense(100, "", [a.id, a.id, b.id])
        assert expense.participant_ids == (a.id, b.id)
        assert a.balance == Decimal("50")

    def test_accumulates_across_expenses(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        ledger.add_expense(20, "", [a.id])
        assert a.balance == Decimal("70")
        assert b.balance == Decimal("50")
        assert ledger.total_expenses() == Decimal("120")
        assert ledger.total_balance() == Decimal("120")

    def test_non_text_description_stored_empty(self, pair):
        ledger, a, _ = pair
        assert ledger.add_expense(10, None, [a.id]).description == ""

    @pytest.mark.parametrize(
        "amount",
        ["", "abc", "0", "-10", 0, -1, "nan", "inf", float("nan"), None, True],
    )
    def test_invalid_amount_is_noop(self, pair, amount):
        ledger, a, b = pair
        assert ledger.add_expense(amount, "x", [a.id, b.id]) is None
        assert ledger.expenses == []
        assert balances(ledger) == {a.id: 0, b.id: 0}

    def test_empty_selection_is_noop(self, pair):
        ledger, _, _ = pair
        assert ledger.add_expense(100, "x", []) is None
        assert ledger.expenses == []

    def test_unknown_participant_is_noop(self, pair):
        """Test an unknown id rejects the whole expense."""
        ledger, a, _ = pair
        assert ledger.add_expense(100, "x", [a.id, 999]) is None
        assert ledger.expenses == []
        assert a.balance == Decimal("0")


class TestRecordPayment:
    """Tests for payments against a balance."""

    def test_payment_reduces_balance(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        assert ledger.record_payment(a.id, "20") is True
        assert a.balance == Decimal("30")

    def test_payment_of_full_balance(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        assert ledger.record_payment(a.id, 50) is True
        assert a.balance == Decimal("0")

    def test_payment_exceeding_balance_is_noop(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        assert ledger.record_payment(a.id, "50.01") is False
        assert a.balance == Decimal("50")

    def test_payment_with_zero_balance_is_noop(self, pair):
        ledger, a, _ = pair
        assert ledger.record_payment(a.id, 1) is False
        assert a.balance == Decimal("0")

    @pytest.mark.parametrize("amount", ["", "abc", "0", "-5", 0, -5])
    def test_invalid_amount_is_noop(self, pair, amount):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        assert ledger.record_payment(a.id, amount) is False
        assert a.balance == Decimal("50")

    def test_unknown_participant_is_noop(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        assert ledger.record_payment(999, 10) is False
        assert balances(ledger) == {a.id: 50, b.id: 50}

    def test_uses_pending_input_and_clears_it(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        ledger.set_payment_input(a.id, "15")

        assert ledger.record_payment(a.id) is True
        assert a.balance == Decimal("35")
        assert a.id not in ledger.payment_inputs

    def test_rejected_payment_keeps_pending_input(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        ledger.set_payment_input(a.id, "500")

        assert ledger.record_payment(a.id) is False
        assert ledger.payment_inputs[a.id] == "500"

    def test_no_pending_input_is_noop(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        assert ledger.record_payment(a.id) is False


class TestSettlement:
    """Tests for settle and undo."""

    def test_settle_zeroes_balance_and_records_previous(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])

        record = ledger.settle(b.id)
        assert b.balance == Decimal("0")
        assert record.participant_id == b.id
        assert record.previous_balance == Decimal("50")
        assert record.settled_at == FIXED_TIME
        assert ledger.undo_log == [record]

    def test_settle_clears_pending_payment_input(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        ledger.set_payment_input(b.id, "10")

        ledger.settle(b.id)
        assert b.id not in ledger.payment_inputs

    def test_settle_unknown_participant_is_noop(self, pair):
        ledger, _, _ = pair
        assert ledger.settle(999) is None
        assert ledger.undo_log == []

    def test_settle_then_undo_restores_exactly(self, ledger):
        people = [ledger.add_participant(name) for name in ("A", "B", "C")]
        ledger.add_expense(100, "", [p.id for p in people])
        before = people[1].balance

        ledger.settle(people[1].id)
        ledger.undo_last_settlement()

        assert people[1].balance == before
        assert ledger.undo_log == []
        assert ledger.can_undo is False

    def test_undo_is_lifo(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        ledger.add_expense(10, "", [a.id])

        ledger.settle(a.id)
        ledger.settle(b.id)

        first = ledger.undo_last_settlement()
        assert first.participant_id == b.id
        assert b.balance == Decimal("50")
        assert a.balance == Decimal("0")

        second = ledger.undo_last_settlement()
        assert second.participant_id == a.id
        assert a.balance == Decimal("60")

    def test_undo_with_empty_log_is_noop(self, pair):
        ledger, a, _ = pair
        assert ledger.undo_last_settlement() is None
        assert a.balance == Decimal("0")

    def test_undo_pops_stale_record(self, pair):
        """Test a record for a missing participant is discarded, not stuck."""
        ledger, a, _ = pair
        ledger.add_expense(100, "", [a.id])
        ledger.settle(a.id)
        # Participants are never removed individually, so plant a stale record
        ledger._undo_log.insert(
            0, SettlementRecord(participant_id=999, previous_balance=Decimal("7"))
        )

        assert ledger.undo_last_settlement().participant_id == a.id
        assert a.balance == Decimal("100")
        assert ledger.undo_last_settlement() is None
        assert ledger.undo_log == []


class TestLunchScenario:
    """End-to-end scenario for two participants."""

    def test_lunch_payment_settle_undo(self, pair):
        ledger, a, b = pair

        ledger.add_expense(100, "lunch", [a.id, b.id])
        assert a.balance == Decimal("50")
        assert b.balance == Decimal("50")

        ledger.record_payment(a.id, 20)
        assert a.balance == Decimal("30")

        ledger.settle(b.id)
        assert b.balance == Decimal("0")
        assert len(ledger.undo_log) == 1
        assert ledger.undo_log[0].participant_id == b.id
        assert ledger.undo_log[0].previous_balance == Decimal("50")

        ledger.undo_last_settlement()
        assert b.balance == Decimal("50")
        assert ledger.undo_log == []


class TestSnapshotAndReset:
    """Tests for snapshot export, restore and full reset."""

    def test_snapshot_excludes_undo_log(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        ledger.settle(a.id)

        snapshot = ledger.snapshot()
        assert [p.id for p in snapshot.participants] == [a.id, b.id]
        assert len(snapshot.expenses) == 1
        assert "undo_log" not in snapshot.model_dump()

    def test_snapshot_is_a_copy(self, pair):
        ledger, a, b = pair
        snapshot = ledger.snapshot()
        ledger.add_expense(100, "", [a.id, b.id])
        assert snapshot.participants[0].balance == Decimal("0")

    def test_from_snapshot_continues_ids(self):
        snapshot = LedgerSnapshot(
            participants=[Participant(id=10**15, name="A")],
            expenses=[Expense(id=10**15 + 1, amount=Decimal("5"), participant_ids=[10**15])],
        )
        ledger = LedgerCore.from_snapshot(snapshot, clock=lambda: FIXED_TIME)
        assert ledger.undo_log == []
        assert ledger.add_participant("B").id == 10**15 + 2

    def test_restore_keeps_instance_and_drops_history(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        snapshot = ledger.snapshot()
        ledger.settle(a.id)
        ledger.set_payment_input(b.id, "5")

        ledger.restore(snapshot)
        assert ledger.get_participant(a.id).balance == Decimal("50")
        assert ledger.undo_log == []
        assert ledger.payment_inputs == {}

    def test_clear_all(self, pair):
        ledger, a, b = pair
        ledger.add_expense(100, "", [a.id, b.id])
        ledger.settle(a.id)
        ledger.set_payment_input(b.id, "1")

        ledger.clear_all()
        assert ledger.participants == []
        assert ledger.expenses == []
        assert ledger.undo_log == []
        assert ledger.payment_inputs == {}
