"""
Ledger Accounting Core

Owns the participants, the expenses, the settlement undo log and
the pending payment inputs, and applies the commands that move
balances:

- add_expense      increases the balances of the selected participants
- record_payment   decreases one balance, never below zero
- settle           zeroes one balance and remembers the old value
- undo             restores the most recently settled balance

IMPORTANT: Commands never raise on bad input. An input that cannot be
used turns the command into a no-op, signalled only by the return value.

The core knows nothing about storage or logging. Callers own the
instance and decide when to persist it.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from payment_splitter.models.ledger import (
    Expense,
    LedgerSnapshot,
    Participant,
    SettlementRecord,
    utcnow,
)
from payment_splitter.validation.inputs import (
    clean_name,
    parse_amount,
    parse_participant_ids,
)


class LedgerCore:
    """
    In-memory expense-splitting ledger.

    Ids are millisecond timestamps, bumped when needed so they stay
    strictly increasing and unique across participants and expenses.
    """

    def __init__(
        self,
        participants: Optional[Iterable[Participant]] = None,
        expenses: Optional[Iterable[Expense]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the ledger.

        Args:
            participants: Existing participants (copied, not shared)
            expenses: Existing expenses
            clock: Source of timestamps, defaults to UTC now
        """
        self._participants: list[Participant] = [
            p.model_copy() for p in participants or []
        ]
        self._expenses: list[Expense] = list(expenses or [])
        self._undo_log: list[SettlementRecord] = []
        self._payment_inputs: dict[int, str] = {}
        self._clock = clock or utcnow
        self._last_id = max(
            [p.id for p in self._participants] + [e.id for e in self._expenses],
            default=0,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "LedgerCore":
        """Build a ledger from a stored snapshot. The undo log starts empty."""
        return cls(
            participants=snapshot.participants,
            expenses=snapshot.expenses,
            clock=clock,
        )

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """
        Replace the ledger contents with a snapshot, in place.

        Undo history and pending payment inputs belong to the replaced
        state and are dropped.
        """
        self._participants = [p.model_copy() for p in snapshot.participants]
        self._expenses = list(snapshot.expenses)
        self._undo_log.clear()
        self._payment_inputs.clear()
        self._last_id = max(
            [self._last_id]
            + [p.id for p in self._participants]
            + [e.id for e in self._expenses]
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def participants(self) -> list[Participant]:
        """Copies of the participants. Balances change only through commands."""
        return [p.model_copy() for p in self._participants]

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses)

    @property
    def undo_log(self) -> list[SettlementRecord]:
        """Settlement records, oldest first."""
        return list(self._undo_log)

    @property
    def payment_inputs(self) -> dict[int, str]:
        return dict(self._payment_inputs)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_log)

    def get_participant(self, participant_id: int) -> Optional[Participant]:
        for participant in self._participants:
            if participant.id == participant_id:
                return participant
        return None

    def total_balance(self) -> Decimal:
        return sum((p.balance for p in self._participants), Decimal("0"))

    def total_expenses(self) -> Decimal:
        return sum((e.amount for e in self._expenses), Decimal("0"))

    def snapshot(self) -> LedgerSnapshot:
        """Copy of the persistable state (participants and expenses)."""
        return LedgerSnapshot(
            participants=[p.model_copy() for p in self._participants],
            expenses=list(self._expenses),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def add_participant(self, name: Any) -> Optional[Participant]:
        """
        Add a participant with a zero balance.

        Returns:
            The new participant, or None if the name is blank
        """
        cleaned = clean_name(name)
        if cleaned is None:
            return None

        participant = Participant(id=self._next_id(), name=cleaned)
        self._participants.append(participant)
        return participant

    def add_expense(
        self,
        amount: Any,
        description: Any,
        participant_ids: Any,
    ) -> Optional[Expense]:
        """
        Record an expense and split it evenly among participants.

        Each selected participant's balance grows by amount / count.
        No rounding is applied to the shares.

        Returns:
            The new expense, or None if the amount is not positive, the
            selection is empty, or it names an unknown participant
        """
        parsed_amount = parse_amount(amount)
        ids = parse_participant_ids(participant_ids)
        if parsed_amount is None or ids is None:
            return None

        known_ids = {p.id for p in self._participants}
        if any(pid not in known_ids for pid in ids):
            return None

        expense = Expense(
            id=self._next_id(),
            amount=parsed_amount,
            description=description if isinstance(description, str) else "",
            created_at=self._clock(),
            participant_ids=ids,
        )
        per_person = expense.share

        self._expenses.append(expense)
        for participant in self._participants:
            if participant.id in ids:
                participant.balance += per_person
        return expense

    def set_payment_input(self, participant_id: int, value: Any) -> None:
        """Remember the unsubmitted payment text for a participant."""
        if value is None or value == "":
            self._payment_inputs.pop(participant_id, None)
        else:
            self._payment_inputs[participant_id] = str(value)

    def record_payment(self, participant_id: int, amount: Any = None) -> bool:
        """
        Reduce a participant's balance by a payment.

        When amount is omitted the pending payment input is used.
        The payment must be positive and must not exceed the balance.

        Returns:
            True if the balance changed
        """
        raw = amount if amount is not None else self._payment_inputs.get(participant_id)
        parsed_amount = parse_amount(raw)
        if parsed_amount is None:
            return False

        participant = self.get_participant(participant_id)
        if participant is None or participant.balance <= 0:
            return False
        if parsed_amount > participant.balance:
            return False

        participant.balance -= parsed_amount
        self._payment_inputs.pop(participant_id, None)
        return True

    def settle(self, participant_id: int) -> Optional[SettlementRecord]:
        """
        Zero a participant's balance, keeping the old value for undo.

        Confirmation is the caller's responsibility.

        Returns:
            The pushed settlement record, or None for an unknown participant
        """
        participant = self.get_participant(participant_id)
        if participant is None:
            return None

        record = SettlementRecord(
            participant_id=participant.id,
            previous_balance=participant.balance,
            settled_at=self._clock(),
        )
        self._undo_log.append(record)
        participant.balance = Decimal("0")
        self._payment_inputs.pop(participant_id, None)
        return record

    def undo_last_settlement(self) -> Optional[SettlementRecord]:
        """
        Restore the balance captured by the most recent settlement.

        The record is popped even if its participant is gone, so a stale
        entry can never block older ones.

        Returns:
            The applied record, or None if nothing was restored
        """
        if not self._undo_log:
            return None

        record = self._undo_log.pop()
        participant = self.get_participant(record.participant_id)
        if participant is None:
            return None

        participant.balance = record.previous_balance
        return record

    def clear_all(self) -> None:
        """Full reset. Confirmation is the caller's responsibility."""
        self._participants.clear()
        self._expenses.clear()
        self._undo_log.clear()
        self._payment_inputs.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _next_id(self) -> int:
        candidate = int(self._clock().timestamp() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return self._last_id
