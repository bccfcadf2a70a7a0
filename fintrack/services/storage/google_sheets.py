"""
Google Sheets Row Store Implementation

DESIGN DECISION: Google Sheets is used as the hosted backend because:
1. Users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for personal finances)
- No transactions; every mutation is a single sheet request
- Limited query capabilities (SelectQuery is evaluated in Python)

Each collection is one worksheet whose first row holds the column names.
Only the connection handshake is retried. Failed reads and writes surface
immediately so the user decides whether to try again.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from fintrack.config import get_settings
from fintrack.models.audit import AuditEvent, AuditEventType, AuditSeverity
from fintrack.services.storage.interface import (
    OWNER_COLUMN,
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    PermissionDeniedError,
    RowStoreInterface,
    SelectQuery,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings per collection
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "amount",
    "description",
    "date",
    "type",
    "category_id",
    "created_at",
]

CATEGORY_COLUMNS = [
    "id",
    "user_id",
    "name",
    "icon",
    "color",
    "type",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

COLLECTION_COLUMNS = {
    "transactions": TRANSACTION_COLUMNS,
    "categories": CATEGORY_COLUMNS,
}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and maps collection names to worksheets.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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

    def sheet_name_for(self, collection: str) -> str:
        names = {
            "transactions": self._settings.transactions_sheet_name,
            "categories": self._settings.categories_sheet_name,
        }
        return names.get(collection, collection)

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        return self._get_or_create(
            self.sheet_name_for(collection),
            COLLECTION_COLUMNS.get(collection, ["id", OWNER_COLUMN]),
            rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
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


def _storage_error(message: str, error: Exception) -> StorageError:
    """Wrap a backend failure. A 403 from the Sheets API means access was refused."""
    if isinstance(error, gspread.exceptions.APIError) and error.response.status_code == 403:
        return PermissionDeniedError(f"{message}: {error}")
    return StorageError(f"{message}: {error}")


class GoogleSheetsRowStore(RowStoreInterface):
    """
    Google Sheets implementation of the row store.

    Rows are read in full and the SelectQuery is evaluated in Python.
    All cell values come back as strings.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read(self, collection: str) -> tuple[list[str], list[tuple[int, dict]]]:
        """Return (header, [(sheet_row_number, row_dict), ...]) for a collection."""
        sheet = self._client.get_collection_sheet(collection)
        values = sheet.get_all_values()
        if not values:
            return list(COLLECTION_COLUMNS.get(collection, [])), []

        header = values[0]
        rows = []
        for idx, raw in enumerate(values[1:], start=2):  # Row 1 is the header
            padded = raw + [""] * (len(header) - len(raw))
            row = dict(zip(header, padded))
            if row.get("id"):  # Skip empty rows
                rows.append((idx, row))
        return header, rows

    def _find(self, collection: str, row_id: str, owner_id: str) -> tuple[list[str], Optional[int], Optional[dict]]:
        header, rows = self._read(collection)
        for idx, row in rows:
            if row.get("id") == str(row_id) and row.get(OWNER_COLUMN) == str(owner_id):
                return header, idx, row
        return header, None, None

    async def select(self, query: SelectQuery) -> list[dict]:
        """Read a collection and evaluate the query over it."""
        try:
            _, rows = self._read(query.collection)
            related = {
                join.collection: [row for _, row in self._read(join.collection)[1]]
                for join in query.joins
            }
            result = query.apply([row for _, row in rows], related)
            logger.debug("sheets_select", query=query.describe(), result_count=len(result))
            return result
        except StorageError:
            raise
        except Exception as e:
            raise _storage_error(f"Failed to read {query.collection}", e)

    async def insert(self, collection: str, values: dict) -> dict:
        """Append one row to the collection's worksheet."""
        try:
            sheet = self._client.get_collection_sheet(collection)
            header, _ = self._read(collection)
            row = {k: "" if v is None else str(v) for k, v in values.items()}
            row.setdefault("id", str(uuid4()))
            row.setdefault("created_at", datetime.utcnow().isoformat())
            sheet.append_row(
                [row.get(column, "") for column in header],
                value_input_option="RAW",
            )
            return row
        except StorageError:
            raise
        except Exception as e:
            raise _storage_error(f"Failed to insert into {collection}", e)

    async def update(
        self,
        collection: str,
        row_id: str,
        values: dict,
        owner_id: str,
    ) -> dict:
        """Rewrite one row with a single range update."""
        try:
            header, idx, row = self._find(collection, row_id, owner_id)
            if idx is None:
                raise NotFoundError(f"{collection} row not found: {row_id}")

            for key, value in values.items():
                if key != "id":
                    row[key] = "" if value is None else str(value)

            sheet = self._client.get_collection_sheet(collection)
            sheet.update(
                range_name=f"A{idx}",
                values=[[row.get(column, "") for column in header]],
                value_input_option="RAW",
            )
            return row
        except StorageError:
            raise
        except Exception as e:
            raise _storage_error(f"Failed to update {collection} row {row_id}", e)

    async def delete(self, collection: str, row_id: str, owner_id: str) -> bool:
        """Delete one row by ID."""
        try:
            _, idx, _ = self._find(collection, row_id, owner_id)
            if idx is None:
                return False

            sheet = self._client.get_collection_sheet(collection)
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise _storage_error(f"Failed to delete {collection} row {row_id}", e)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
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
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            user_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning("audit_append_failed", error=str(e), event_id=str(event.event_id))
            return False

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, KeyError) as e:
                logger.warning("audit_row_unreadable", error=str(e), event_id=row[0])
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [
                event for event in self._read_events()
                if event.correlation_id == correlation_id
            ]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events()
            # Sort newest first
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
