"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is kept as a storage backend because:
1. Non-technical users can see (and back up) their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

LAYOUT:
- Ledger sheet: one row per user. The ledger is stored as a JSON document
  split across cells, since a single cell holds at most 50,000 characters.
- Audit sheet: one row per audit event, append-only.

TRADEOFFS:
- Every save rewrites the user's whole row (whole-collection replace)
- No transactions (a save is a single row update, which is atomic enough
  for one user editing one ledger)
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import GoogleSheetsSettings, get_settings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.ledger import LedgerState
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Characters per ledger cell, below the 50,000 Sheets limit
CHUNK_SIZE = 45000

# Column mappings for Ledger sheet (chunk columns follow)
LEDGER_COLUMNS = [
    "user_id",
    "updated_at",
    "chunk_count",
]

# Column mappings for Audit sheet
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


def split_document(document: str, size: Optional[int] = None) -> list[str]:
    """Split a serialized ledger into cell-sized pieces (at least one)."""
    size = size or CHUNK_SIZE
    return [document[i:i + size] for i in range(0, len(document), size)] or [""]


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

    def _get_or_create(self, title: str, header: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=max(len(header), 26),
            )
            sheet.append_row(header)
        return sheet

    def get_ledger_sheet(self) -> gspread.Worksheet:
        """Get or create the Ledger worksheet."""
        return self._get_or_create(self._settings.ledger_sheet_name, LEDGER_COLUMNS, 100)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        # More rows for audit log
        return self._get_or_create(self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000)


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    Each user's LedgerState is serialized to JSON and written to one row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(all_rows: list[list[str]], user_id: str) -> Optional[int]:
        """1-based sheet row index for a user, skipping the header."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == user_id:
                return idx
        return None

    @staticmethod
    def _state_to_row(user_id: str, state: LedgerState) -> list[str]:
        chunks = split_document(state.model_dump_json())
        return [
            user_id,
            (state.last_updated or datetime.now(timezone.utc)).isoformat(),
            str(len(chunks)),
            *chunks,
        ]

    @staticmethod
    def _row_to_state(row: list[str]) -> LedgerState:
        try:
            count = int(row[2]) if len(row) > 2 and row[2] else 0
        except ValueError:
            raise StorageError(f"Corrupt chunk count for user {row[0]}")
        document = "".join(row[3:3 + count])
        if not document:
            return LedgerState()
        try:
            return LedgerState.model_validate_json(document)
        except ValidationError as e:
            raise StorageError(f"Stored ledger for {row[0]} is malformed: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def load_ledger(self, user_id: str) -> LedgerState:
        """Load a user's ledger (empty for an unknown user)."""
        try:
            all_rows = self._client.get_ledger_sheet().get_all_values()
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to read ledger: {e}")

        idx = self._find_row(all_rows, user_id)
        if idx is None:
            return LedgerState()
        return self._row_to_state(all_rows[idx - 1])

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_ledger(self, user_id: str, state: LedgerState) -> bool:
        """Replace a user's row with the full serialized ledger."""
        stored = state.model_copy(update={"last_updated": datetime.now(timezone.utc)})
        row = self._state_to_row(user_id, stored)
        try:
            sheet = self._client.get_ledger_sheet()
            idx = self._find_row(sheet.get_all_values(), user_id)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                # Clear stale chunks from a previously longer document
                sheet.batch_clear([f"{idx}:{idx}"])
                sheet.update(
                    range_name=f"A{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
            return True
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to save ledger: {e}")

    async def delete_ledger(self, user_id: str) -> bool:
        try:
            sheet = self._client.get_ledger_sheet()
            idx = self._find_row(sheet.get_all_values(), user_id)
            if idx is None:
                raise NotFoundError(f"No ledger stored for user: {user_id}")
            sheet.delete_rows(idx)
            return True
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to delete ledger: {e}")


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

    def _read_events(self) -> list[AuditEvent]:
        try:
            all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        except gspread.exceptions.APIError as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError) as e:
                logger.warning("audit_row_skipped", event_id=row[0], error=str(e))
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are logged, not raised."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except (gspread.exceptions.APIError, StorageError) as e:
            # Audit logging should not break the main flow
            logger.warning(
                "audit_append_failed",
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        events = [
            e for e in self._read_events()
            if user_id is None or e.user_id == user_id
        ]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
