"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. The group can look at balances directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- A save rewrites both sheets (fine for a household-sized ledger)
- No transactions (a failed save may leave one sheet newer than the other)

The implementation follows the abstract interface, so the ledger
and the session never know which backend they are talking to.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

import gspread
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from payment_splitter.config import GoogleSheetsSettings, get_settings
from payment_splitter.models.audit import AuditEvent, AuditEventType, AuditSeverity
from payment_splitter.models.ledger import Expense, LedgerSnapshot, Participant
from payment_splitter.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CorruptSnapshotError,
    SnapshotStoreInterface,
    StorageError,
)


# Column mappings, same field names as the key-value layout
USER_COLUMNS = ["id", "name", "balance"]
EXPENSE_COLUMNS = ["id", "amount", "date", "description", "selectedUsers"]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_users_sheet(self) -> gspread.Worksheet:
        """Get or create the Users worksheet."""
        return self._get_or_create_sheet(
            self._settings.users_sheet_name, USER_COLUMNS, rows=200
        )

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create_sheet(
            self._settings.expenses_sheet_name, EXPENSE_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsSnapshotStore(SnapshotStoreInterface):
    """
    Google Sheets implementation of snapshot storage.

    One participant per row on the Users sheet, one expense per row
    on the Expenses sheet. Selected participant ids are JSON-encoded.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @property
    def client(self) -> GoogleSheetsClient:
        return self._client

    @staticmethod
    def _participant_to_row(participant: Participant) -> list:
        return [str(participant.id), participant.name, str(participant.balance)]

    @staticmethod
    def _expense_to_row(expense: Expense) -> list:
        return [
            str(expense.id),
            str(expense.amount),
            expense.created_at.isoformat(),
            expense.description,
            json.dumps(expense.participant_ids),
        ]

    @staticmethod
    def _row_to_participant(row: list) -> Participant:
        return Participant(
            id=int(row[0]),
            name=row[1],
            balance=Decimal(row[2]) if len(row) > 2 and row[2] else Decimal("0"),
        )

    @staticmethod
    def _row_to_expense(row: list) -> Expense:
        # Handle missing trailing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Expense(
            id=int(safe_get(0)),
            amount=Decimal(safe_get(1)),
            created_at=datetime.fromisoformat(safe_get(2)),
            description=safe_get(3),
            participant_ids=json.loads(safe_get(4, "[]")),
        )

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        """Read both sheets. Empty sheets mean nothing was stored."""
        try:
            user_rows = self._client.get_users_sheet().get_all_values()[1:]
            expense_rows = self._client.get_expenses_sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read ledger sheets: {e}")

        user_rows = [row for row in user_rows if row and row[0]]
        expense_rows = [row for row in expense_rows if row and row[0]]
        if not user_rows and not expense_rows:
            return None

        try:
            participants = [self._row_to_participant(row) for row in user_rows]
            expenses = [self._row_to_expense(row) for row in expense_rows]
        except (ValueError, IndexError, InvalidOperation) as e:
            raise CorruptSnapshotError(f"Ledger sheets hold invalid data: {e}")

        return LedgerSnapshot(participants=participants, expenses=expenses)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _replace_rows(
        self,
        sheet: gspread.Worksheet,
        columns: list[str],
        rows: list[list],
    ) -> None:
        # Overwrite from the top, then clear only the leftover tail
        values = [columns] + rows
        existing = len(sheet.get_all_values())
        if len(values) > sheet.row_count:
            sheet.add_rows(len(values) - sheet.row_count)
        sheet.update(range_name="A1", values=values, value_input_option="RAW")
        if existing > len(values):
            last_cell = rowcol_to_a1(existing, len(columns))
            sheet.batch_clear([f"A{len(values) + 1}:{last_cell}"])

    def save_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        """Rewrite both sheets with the snapshot contents."""
        try:
            self._replace_rows(
                self._client.get_users_sheet(),
                USER_COLUMNS,
                [self._participant_to_row(p) for p in snapshot.participants],
            )
            self._replace_rows(
                self._client.get_expenses_sheet(),
                EXPENSE_COLUMNS,
                [self._expense_to_row(e) for e in snapshot.expenses],
            )
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save ledger: {e}")

    def clear(self) -> None:
        """Remove all rows except the headers."""
        try:
            self._replace_rows(self._client.get_users_sheet(), USER_COLUMNS, [])
            self._replace_rows(self._client.get_expenses_sheet(), EXPENSE_COLUMNS, [])
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear ledger: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit storage.

    Events are appended as rows. Never modified or deleted.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3, "info")),
            entity_type=safe_get(4) or None,
            entity_id=int(safe_get(5)) if safe_get(5) else None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception:
            # Audit logging should not break the main flow; the caller logs locally
            return False

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first. Unreadable rows are skipped."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
