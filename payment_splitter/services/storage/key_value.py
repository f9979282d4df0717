"""
Key-Value Snapshot Encoding

Ledger data is kept in a text key-value layout: one key holding the
participants as a JSON array, one key holding the expenses. Any store
that can get, set and remove text values by key can hold a snapshot.

Subclasses only provide the three primitive operations.
"""

from abc import abstractmethod
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from payment_splitter.models.ledger import Expense, LedgerSnapshot, Participant
from payment_splitter.services.storage.interface import (
    CorruptSnapshotError,
    SnapshotStoreInterface,
)


DEFAULT_USERS_KEY = "users"
DEFAULT_EXPENSES_KEY = "expenses"

_participants_adapter = TypeAdapter(list[Participant])
_expenses_adapter = TypeAdapter(list[Expense])


class KeyValueSnapshotStore(SnapshotStoreInterface):
    """
    Snapshot store over a text key-value backend.

    Participants and expenses live under independent keys, each
    holding a JSON array of flat records.
    """

    def __init__(
        self,
        users_key: str = DEFAULT_USERS_KEY,
        expenses_key: str = DEFAULT_EXPENSES_KEY,
    ):
        self.users_key = users_key
        self.expenses_key = expenses_key

    @abstractmethod
    def _get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def _set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def _remove_item(self, key: str) -> None:
        pass

    def encode(self, snapshot: LedgerSnapshot) -> dict[str, str]:
        """Encode a snapshot as {key: json_text}."""
        return {
            self.users_key: _participants_adapter.dump_json(
                snapshot.participants
            ).decode("utf-8"),
            self.expenses_key: _expenses_adapter.dump_json(
                snapshot.expenses, by_alias=True
            ).decode("utf-8"),
        }

    def decode(
        self,
        users_text: Optional[str],
        expenses_text: Optional[str],
    ) -> LedgerSnapshot:
        """
        Decode stored text values into a snapshot.

        A missing key decodes to an empty collection.

        Raises:
            CorruptSnapshotError: If either value is not valid data
        """
        try:
            participants = (
                _participants_adapter.validate_json(users_text)
                if users_text else []
            )
            expenses = (
                _expenses_adapter.validate_json(expenses_text)
                if expenses_text else []
            )
        except ValidationError as e:
            raise CorruptSnapshotError(f"Stored ledger data is corrupt: {e}")

        return LedgerSnapshot(participants=participants, expenses=expenses)

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        users_text = self._get_item(self.users_key)
        expenses_text = self._get_item(self.expenses_key)
        if users_text is None and expenses_text is None:
            return None
        return self.decode(users_text, expenses_text)

    def save_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        for key, value in self.encode(snapshot).items():
            self._set_item(key, value)
        return True

    def clear(self) -> None:
        self._remove_item(self.users_key)
        self._remove_item(self.expenses_key)
