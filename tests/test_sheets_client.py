"""Tests for the Google Sheets ledger client (HTTP session mocked)."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from nhs_hours.config import Settings
from nhs_hours.errors import ConfigurationError, LedgerUnavailableError, LedgerWriteError
from nhs_hours.ledger.client import SheetsLedgerClient

SCRIPT_URL = "https://script.google.com/macros/s/abc/exec"

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _response(body=None, ok=True, status_code=200, text=""):
    response = MagicMock(ok=ok, status_code=status_code, text=text)
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def _client(response=None, side_effect=None, **kwargs) -> SheetsLedgerClient:
    session = MagicMock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    params = {"spreadsheet_id": "sheet123", "api_key": "key", "apps_script_url": SCRIPT_URL}
    params.update(kwargs)
    return SheetsLedgerClient(session=session, **params)


# ─── Reads ────────────────────────────────────────────────────────────────────


class TestRead:
    """Values API reads."""

    def test_range_url_is_encoded(self):
        assert _client().range_url.endswith("/sheet123/values/Sheet1%21A%3AG")

    def test_records_parsed(self):
        values = [
            ["Name", "Grade", "Inducted", "Summer Hours", "Chapter Hours", "Other Hours", "Total Hours"],
            ["Jane Doe", "Junior", "Yes", "2", "3", "", "5"],
            ["", "Senior", "No"],
            ["Ann Lee", "Senior"],
        ]
        client = _client(_response({"values": values}))
        records = client.read_records()

        assert [r.name for r in records] == ["Jane Doe", "Ann Lee"]
        assert records[0].row_number == 2
        assert records[0].other_hours == 0
        assert records[1].row_number == 4
        client.session.get.assert_called_once()
        assert client.session.get.call_args.kwargs["params"] == {"key": "key"}

    def test_missing_values_is_empty(self):
        assert _client(_response({})).read_records() == []

    def test_header_only_is_empty(self):
        assert _client(_response({"values": [["Name"]]})).read_records() == []

    def test_http_error(self):
        client = _client(_response(ok=False, status_code=403, text="forbidden"))
        with pytest.raises(LedgerUnavailableError) as exc:
            client.read_records()
        assert exc.value.status_code == 403
        assert "HTTP 403" in str(exc.value)
        assert LedgerUnavailableError.RETRY_HINT in str(exc.value)

    def test_connection_error(self):
        client = _client(side_effect=requests.ConnectionError("offline"))
        with pytest.raises(LedgerUnavailableError):
            client.read_records()

    def test_non_json_body(self):
        with pytest.raises(LedgerUnavailableError):
            _client(_response(ValueError("not json"))).read_records()

    def test_missing_credentials(self):
        client = _client(api_key=None)
        with pytest.raises(ConfigurationError):
            client.read_rows()
        client.session.get.assert_not_called()


# ─── Writes ───────────────────────────────────────────────────────────────────


class TestSubmit:
    """Apps Script writes."""

    PAYLOAD = {"name": "Jane Doe", "grade": "Junior", "inducted": "No", "chapterHours": 2}

    def test_success(self):
        client = _client(_response({"success": True}))
        assert client.submit(self.PAYLOAD) == {"success": True}
        call = client.session.get.call_args
        assert call.args[0] == SCRIPT_URL
        assert call.kwargs["params"]["action"] == "submit"
        assert json.loads(call.kwargs["params"]["data"]) == self.PAYLOAD

    def test_reported_failure(self):
        client = _client(_response({"success": False, "error": "Sheet locked"}))
        with pytest.raises(LedgerWriteError, match="Sheet locked"):
            client.submit(self.PAYLOAD)

    def test_non_json_response(self):
        client = _client(_response(ValueError("html"), text="<html>"))
        with pytest.raises(LedgerWriteError):
            client.submit(self.PAYLOAD)

    def test_http_error(self):
        client = _client(_response(ok=False, status_code=500))
        with pytest.raises(LedgerUnavailableError) as exc:
            client.submit(self.PAYLOAD)
        assert exc.value.status_code == 500

    def test_network_error(self):
        client = _client(side_effect=requests.Timeout("slow"))
        with pytest.raises(LedgerUnavailableError):
            client.submit(self.PAYLOAD)

    def test_not_configured(self):
        client = _client(apps_script_url=None)
        assert not client.is_write_enabled
        with pytest.raises(ConfigurationError):
            client.submit(self.PAYLOAD)
        client.session.get.assert_not_called()

    def test_placeholder_url_disabled(self):
        client = _client(apps_script_url="https://script.google.com/macros/s/YOUR_SCRIPT_ID_HERE/exec")
        assert not client.is_write_enabled

    def test_from_settings(self):
        settings = Settings(sheets_api_key="k", spreadsheet_id="s", sheet_name="Members", apps_script_url=SCRIPT_URL)
        client = SheetsLedgerClient.from_settings(settings)
        assert client.sheet_name == "Members"
        assert client.is_write_enabled
        assert "Members%21A%3AG" in client.range_url
