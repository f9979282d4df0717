"""
JSON File Storage Implementation

A local file standing in for the browser key-value store: the file is a
JSON object whose values are the JSON text stored under each key.

Writes go to a temporary file that replaces the original, so a crash
mid-write never leaves a half-written ledger behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from payment_splitter.models.ledger import LedgerSnapshot
from payment_splitter.services.storage.interface import (
    CorruptSnapshotError,
    StorageError,
)
from payment_splitter.services.storage.key_value import (
    DEFAULT_EXPENSES_KEY,
    DEFAULT_USERS_KEY,
    KeyValueSnapshotStore,
)


class JsonFileSnapshotStore(KeyValueSnapshotStore):
    """Key-value snapshot store backed by a single JSON file."""

    def __init__(
        self,
        path: Union[str, Path],
        users_key: str = DEFAULT_USERS_KEY,
        expenses_key: str = DEFAULT_EXPENSES_KEY,
    ):
        super().__init__(users_key=users_key, expenses_key=expenses_key)
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        """Read the whole key-value file. A missing file is an empty store."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read {self.path}: {e}")

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptSnapshotError(f"Storage file {self.path} is not valid JSON: {e}")

        if not isinstance(data, dict) or not all(
            isinstance(value, str) for value in data.values()
        ):
            raise CorruptSnapshotError(
                f"Storage file {self.path} does not hold a key-value object"
            )
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        """Atomically replace the key-value file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}")

    def _get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def _set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        data = self._read_all()
        users_text = data.get(self.users_key)
        expenses_text = data.get(self.expenses_key)
        if users_text is None and expenses_text is None:
            return None
        return self.decode(users_text, expenses_text)

    def save_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        # Unrelated keys in the file are preserved
        try:
            data = self._read_all()
        except CorruptSnapshotError:
            data = {}
        data.update(self.encode(snapshot))
        self._write_all(data)
        return True

    def clear(self) -> None:
        try:
            data = self._read_all()
        except CorruptSnapshotError:
            data = {}
        data.pop(self.users_key, None)
        data.pop(self.expenses_key, None)
        self._write_all(data)
