"""
Google Sheets ledger client.

Reads go straight to the Sheets values API with an API key. Writes go
through the chapter's deployed Apps Script web app, which finds the row by
case-insensitive name and adds the submitted hours (or appends a new row).

API docs: https://developers.google.com/sheets/api/reference/rest/v4/spreadsheets.values/get
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from ..config import Settings
from ..constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_SHEET_NAME, LEDGER_RANGE_COLUMNS
from ..errors import ConfigurationError, LedgerUnavailableError, LedgerWriteError
from ..models.member import MemberRecord
from .store import LedgerStore

logger = logging.getLogger(__name__)

APPS_SCRIPT_PLACEHOLDER = "YOUR_SCRIPT_ID_HERE"


class SheetsLedgerClient(LedgerStore):
    """
    Ledger store backed by a Google Sheet.

    Row 1 is the header: Name | Grade | Inducted | Summer Hours |
    Chapter Hours | Other Hours | Total Hours.
    """

    BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

    def __init__(
        self,
        spreadsheet_id: Optional[str],
        api_key: Optional[str],
        sheet_name: str = DEFAULT_SHEET_NAME,
        apps_script_url: Optional[str] = None,
        timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Sheets client.

        Args:
            spreadsheet_id: Ledger spreadsheet ID
            api_key: Sheets API key (read access)
            sheet_name: Tab holding the ledger
            apps_script_url: Deployed web app that performs writes
            timeout: Request timeout in seconds
            session: requests session (tests inject a mock here)
        """
        self.spreadsheet_id = spreadsheet_id
        self.api_key = api_key
        self.sheet_name = sheet_name
        self.apps_script_url = apps_script_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetsLedgerClient":
        return cls(
            spreadsheet_id=settings.spreadsheet_id,
            api_key=settings.sheets_api_key,
            sheet_name=settings.sheet_name,
            apps_script_url=settings.apps_script_url,
        )

    @property
    def is_write_enabled(self) -> bool:
        """True when an Apps Script URL has been configured."""
        return bool(self.apps_script_url) and APPS_SCRIPT_PLACEHOLDER not in self.apps_script_url

    @property
    def range_url(self) -> str:
        sheet_range = quote(f"{self.sheet_name}!{LEDGER_RANGE_COLUMNS}", safe="")
        return f"{self.BASE_URL}/{self.spreadsheet_id}/values/{sheet_range}"

    def read_rows(self) -> list[list[Any]]:
        """Fetch the raw ledger rows, header included.

        Raises:
            ConfigurationError: if the spreadsheet ID or API key is missing
            LedgerUnavailableError: on network failure or non-2xx response
        """
        if not self.spreadsheet_id or not self.api_key:
            raise ConfigurationError("Ledger reads need GOOGLE_SHEETS_API_KEY and NHS_SPREADSHEET_ID")

        try:
            response = self.session.get(self.range_url, params={"key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Ledger read failed: {e}")
            raise LedgerUnavailableError("Could not reach the ledger") from e

        if not response.ok:
            logger.error(f"Ledger read returned HTTP {response.status_code}: {response.text[:200]}")
            raise LedgerUnavailableError(
                f"Failed to fetch members (HTTP {response.status_code})", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise LedgerUnavailableError("Ledger returned a non-JSON body") from e
        return data.get("values") or []

    def read_records(self) -> list[MemberRecord]:
        """Parse ledger rows: header skipped, rows without a name dropped."""
        rows = self.read_rows()
        records = []
        # Row 1 is the header; data starts on sheet row 2
        for row_number, row in enumerate(rows[1:], start=2):
            record = MemberRecord.from_row(row, row_number=row_number)
            if record.name:
                records.append(record)
        logger.debug(f"Read {len(records)} members from ledger ({len(rows)} rows incl. header)")
        return records

    def submit(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Send an additive update to the Apps Script endpoint.

        Raises:
            ConfigurationError: if no Apps Script URL is configured
            LedgerUnavailableError: on network failure or non-2xx response
            LedgerWriteError: if the endpoint answers but reports failure
        """
        if not self.is_write_enabled:
            raise ConfigurationError(
                "Ledger writes are not configured. Set NHS_APPS_SCRIPT_URL to the deployed Apps Script web app."
            )

        params = {"action": "submit", "data": json.dumps(payload)}
        try:
            response = self.session.get(self.apps_script_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Ledger write failed for {payload.get('name')}: {e}")
            raise LedgerUnavailableError("Failed to submit") from e

        if not response.ok:
            logger.error(f"Ledger write returned HTTP {response.status_code}")
            raise LedgerUnavailableError(
                f"Failed to submit (HTTP {response.status_code})", status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise LedgerWriteError(f"Ledger endpoint returned a non-JSON response: {response.text[:100]!r}") from e

        if not isinstance(body, dict) or body.get("success") is not True:
            error = body.get("error") if isinstance(body, dict) else None
            raise LedgerWriteError(f"Ledger endpoint reported failure: {error or body}")
        return body

    def apply_update(self, payload: dict[str, Any], merged: MemberRecord) -> None:
        # The endpoint merges server-side; the optimistic record is not sent
        self.submit(payload)
