"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the persistent storage backend because:
1. Users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions: concurrent writers to the same sheet can race
- Limited query capabilities (we filter in Python)

Transport retries live here, not in the ledger engine.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from personal_ledger.config import GoogleSheetsSettings, get_settings
from personal_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from personal_ledger.models.entry import (
    Entry,
    EntryFilter,
    EntryStatus,
    EntryType,
    User,
)
from personal_ledger.services.storage.filtering import filter_entries, sum_values
from personal_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    EntryRepository,
    NotFoundError,
    StorageError,
    UserDirectory,
)

logger = structlog.get_logger(__name__)


# Column mappings for Entries sheet
ENTRY_COLUMNS = [
    "id",
    "description",
    "month",
    "year",
    "value",
    "type",
    "status",
    "owner_id",
    "owner_email",
    "registered_at",
]

# Column mappings for Users sheet
USER_COLUMNS = [
    "id",
    "email",
    "name",
]

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
]


def _is_transport_error(exc: BaseException) -> bool:
    """API and network failures, raw or wrapped in a StorageError."""
    cause = exc.__cause__ if isinstance(exc, StorageError) else exc
    return isinstance(cause, (gspread.exceptions.APIError, OSError))


_write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception(_is_transport_error),
    reraise=True,
)


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _optional_int(value: str) -> Optional[int]:
    return int(value) if value else None


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

    def get_entries_sheet(self) -> gspread.Worksheet:
        """Get or create the Entries worksheet."""
        return self._get_or_create_sheet(
            self._settings.entries_sheet_name, ENTRY_COLUMNS, rows=1000
        )

    def get_users_sheet(self) -> gspread.Worksheet:
        """Get or create the Users worksheet."""
        return self._get_or_create_sheet(
            self._settings.users_sheet_name, USER_COLUMNS, rows=100
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsEntryRepository(EntryRepository):
    """
    Google Sheets implementation of entry storage.

    Entries are stored one per row. Ids are assigned as the highest
    stored id plus one.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _entry_to_row(self, entry: Entry) -> list:
        """Convert an Entry to a spreadsheet row."""
        return [
            str(entry.id) if entry.id is not None else "",
            entry.description or "",
            str(entry.month) if entry.month is not None else "",
            str(entry.year) if entry.year is not None else "",
            str(entry.value) if entry.value is not None else "",
            entry.type.value if entry.type else "",
            entry.status.value if entry.status else "",
            str(entry.owner_id) if entry.owner_id is not None else "",
            (entry.owner.email or "") if entry.owner else "",
            entry.registered_at.isoformat() if entry.registered_at else "",
        ]

    def _row_to_entry(self, row: list) -> Entry:
        """Convert a spreadsheet row to an Entry."""
        owner_id = _optional_int(_cell(row, 7))
        owner_email = _cell(row, 8) or None
        owner = None
        if owner_id is not None or owner_email:
            owner = User(id=owner_id, email=owner_email)

        return Entry(
            id=_optional_int(_cell(row, 0)),
            description=_cell(row, 1) or None,
            month=_optional_int(_cell(row, 2)),
            year=_optional_int(_cell(row, 3)),
            value=Decimal(_cell(row, 4)) if _cell(row, 4) else None,
            type=EntryType(_cell(row, 5)) if _cell(row, 5) else None,
            status=EntryStatus(_cell(row, 6)) if _cell(row, 6) else None,
            owner=owner,
            registered_at=(
                datetime.fromisoformat(_cell(row, 9)) if _cell(row, 9) else None
            ),
        )

    def _load_rows(self) -> list[list]:
        sheet = self._client.get_entries_sheet()
        return sheet.get_all_values()[1:]  # Skip header

    def _load_entries(self) -> list[Entry]:
        entries = []
        for row in self._load_rows():
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                entries.append(self._row_to_entry(row))
            except (ValueError, ArithmeticError) as e:
                logger.error("malformed_entry_row", row_id=row[0], error=str(e))
                raise StorageError(f"Malformed entry row {row[0]}: {e!r}") from e
        return entries

    @_write_retry
    def insert(self, entry: Entry) -> Entry:
        """Append a new entry row and assign its id."""
        try:
            sheet = self._client.get_entries_sheet()
            ids = [
                int(row[0]) for row in sheet.get_all_values()[1:]
                if row and row[0].isdigit()
            ]
            stored = entry.model_copy(deep=True)
            stored.id = max(ids, default=0) + 1
            sheet.append_row(self._entry_to_row(stored), value_input_option="RAW")
            return stored
        except Exception as e:
            raise StorageError(f"Failed to insert entry: {e}") from e

    @_write_retry
    def update(self, entry: Entry) -> Entry:
        """Overwrite the row holding this entry's id."""
        try:
            sheet = self._client.get_entries_sheet()
            all_rows = sheet.get_all_values()

            # Row 1 is the header
            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == str(entry.id):
                    stored = entry.model_copy(deep=True)
                    existing_registration = _cell(row, 9)
                    if existing_registration:
                        stored.registered_at = datetime.fromisoformat(
                            existing_registration
                        )
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._entry_to_row(stored)],
                    )
                    return stored

            raise NotFoundError(f"Entry not found: {entry.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update entry: {e}") from e

    @_write_retry
    def delete(self, entry: Entry) -> None:
        """Delete the row holding this entry's id, if any."""
        try:
            sheet = self._client.get_entries_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == str(entry.id):
                    sheet.delete_rows(idx)
                    return
        except Exception as e:
            raise StorageError(f"Failed to delete entry: {e}") from e

    def find_by_id(self, entry_id: int) -> Optional[Entry]:
        try:
            for row in self._load_rows():
                if row and row[0] == str(entry_id):
                    return self._row_to_entry(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get entry: {e}") from e

    def find_by_example(self, template: EntryFilter) -> list[Entry]:
        try:
            return filter_entries(self._load_entries(), template)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to search entries: {e}") from e

    def sum_by_owner_and_type(
        self,
        owner_id: int,
        entry_type: EntryType,
    ) -> Decimal:
        try:
            return sum_values(self._load_entries(), owner_id, entry_type)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to sum entries: {e}") from e


class GoogleSheetsUserDirectory(UserDirectory):
    """Read-only user lookups over the Users worksheet."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _load_users(self) -> list[User]:
        try:
            sheet = self._client.get_users_sheet()
            rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to read users: {e}") from e

        return [
            User(
                id=int(_cell(row, 0)),
                email=_cell(row, 1) or None,
                name=_cell(row, 2) or None,
            )
            for row in rows
            if row and _cell(row, 0).isdigit()
        ]

    def exists(self, user_id: int) -> bool:
        return self.find_by_id(user_id) is not None

    def find_by_id(self, user_id: int) -> Optional[User]:
        for user in self._load_users():
            if user.id == user_id:
                return user
        return None

    def find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._load_users():
            if user.email and user.email.lower() == wanted:
                return user
        return None


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            entity_type=_cell(row, 4) or None,
            entity_id=_cell(row, 5) or None,
            correlation_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            description=_cell(row, 7),
            details=json.loads(_cell(row, 8)) if _cell(row, 8) else {},
            error_message=_cell(row, 9) or None,
        )

    def _load_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue
        return events

    @_write_retry
    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        sheet = self._client.get_audit_sheet()
        sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._load_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._load_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._load_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
