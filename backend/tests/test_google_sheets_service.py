"""
Tests for the Google Sheets reader
"""

import asyncio
import json
import threading
import pytest
import httplib2
from unittest.mock import Mock, patch
from googleapiclient.errors import HttpError

from app.config import SheetsConfig
from app.core.exceptions import CredentialsError, SpreadsheetAccessError
from app.services.google_sheets_service import GoogleSheetsService, load_service_account_credentials


METADATA = {
    "properties": {"title": "Sales"},
    "sheets": [
        {"properties": {"title": "Summary", "index": 1, "sheetId": 7}},
        {"properties": {"title": "Daily", "index": 0, "sheetId": 0}},
    ],
}

VALUES = {
    "'Daily'": {"values": [["Date", "Visits", "Sales"], ["2024-01-01", "10"], [], ["", ""], ["2024-01-02", "12", "3"]]},
    "'Summary'": {"values": [["Total", "15"]]},
}


class TestGoogleSheetsService:
    """Test spreadsheet fetching and normalization"""

    @pytest.fixture
    def api(self):
        """Mocked Sheets v4 resource"""
        api = Mock()
        spreadsheets = api.spreadsheets.return_value
        spreadsheets.get.return_value.execute.return_value = METADATA

        def values_get(spreadsheetId, range, valueRenderOption):
            request = Mock()
            request.execute.return_value = VALUES[range]
            return request

        spreadsheets.values.return_value.get.side_effect = values_get
        return api

    @pytest.fixture
    def sheets_service(self, api):
        with patch('app.services.google_sheets_service.build', return_value=api):
            yield GoogleSheetsService(Mock())

    @pytest.mark.asyncio
    async def test_fetch_all_sheets_in_tab_order(self, sheets_service):
        """Sheets come back ordered by index with empty rows dropped and rows padded"""
        document = await sheets_service.fetch("1ABC123")

        assert document.spreadsheet_id == "1ABC123"
        assert document.title == "Sales"
        assert [s.title for s in document.sheets] == ["Daily", "Summary"]

        daily = document.sheets[0]
        assert daily.row_count == 3
        assert daily.column_count == 3
        assert daily.values == [
            ["Date", "Visits", "Sales"],
            ["2024-01-01", "10", ""],
            ["2024-01-02", "12", "3"],
        ]

    @pytest.mark.asyncio
    async def test_fetch_is_not_cached(self, sheets_service, api):
        """Every fetch goes back to the API"""
        await sheets_service.fetch("1ABC123")
        await sheets_service.fetch("1ABC123")

        assert api.spreadsheets.return_value.get.call_count == 2

    @pytest.mark.asyncio
    async def test_fetch_accepts_url(self, sheets_service, api):
        """A full sheet URL resolves to its ID"""
        await sheets_service.fetch("https://docs.google.com/spreadsheets/d/1ABC123/edit#gid=0")

        api.spreadsheets.return_value.get.assert_called_with(
            spreadsheetId="1ABC123",
            fields="properties.title,sheets.properties"
        )

    @pytest.mark.asyncio
    async def test_http_error_raises_access_error(self, sheets_service, api):
        """API errors surface as SpreadsheetAccessError"""
        error = HttpError(httplib2.Response({"status": "404"}), b"Requested entity was not found.")
        api.spreadsheets.return_value.get.return_value.execute.side_effect = error

        with pytest.raises(SpreadsheetAccessError) as exc_info:
            await sheets_service.fetch("missing")

        assert "404" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error_raises_access_error(self, sheets_service, api):
        """Transport failures surface as SpreadsheetAccessError"""
        api.spreadsheets.return_value.get.return_value.execute.side_effect = (
            httplib2.ServerNotFoundError("Unable to find the server at sheets.googleapis.com")
        )

        with pytest.raises(SpreadsheetAccessError):
            await sheets_service.fetch("1ABC123")

    @pytest.mark.asyncio
    async def test_invalid_id_does_not_call_api(self, sheets_service, api):
        """Garbage IDs are rejected before any request"""
        with pytest.raises(SpreadsheetAccessError):
            await sheets_service.fetch("not a sheet id!")

        api.spreadsheets.return_value.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_blocked_fetch_does_not_block_the_event_loop(self, sheets_service, api):
        """A hung API call runs in a worker thread while other fetches complete"""
        gate = threading.Event()

        def get(spreadsheetId, fields):
            request = Mock()

            def execute():
                if spreadsheetId == "slow":
                    gate.wait(timeout=5)
                return METADATA

            request.execute.side_effect = execute
            return request

        api.spreadsheets.return_value.get.side_effect = get

        slow = asyncio.create_task(sheets_service.fetch("slow"))
        document = await asyncio.wait_for(sheets_service.fetch("fast"), timeout=2)

        assert document.spreadsheet_id == "fast"
        assert not slow.done()

        gate.set()
        assert (await slow).spreadsheet_id == "slow"

    def test_extract_sheet_id(self, sheets_service):
        """Test sheet ID extraction from URLs and bare IDs"""
        assert sheets_service.extract_sheet_id("https://docs.google.com/spreadsheets/d/1ABC123/edit") == "1ABC123"
        assert sheets_service.extract_sheet_id("https://docs.google.com/spreadsheets/d/1XYZ789/edit#gid=0") == "1XYZ789"
        assert sheets_service.extract_sheet_id("  1XYZ-789_a  ") == "1XYZ-789_a"
        assert sheets_service.extract_sheet_id("https://example.com/not-a-sheet") is None
        assert sheets_service.extract_sheet_id("") is None


class TestServiceAccountCredentials:
    """Test credential loading at startup"""

    def test_missing_file_is_fatal(self, tmp_path):
        config = SheetsConfig(credentials_file=str(tmp_path / "missing.json"))

        with pytest.raises(CredentialsError):
            load_service_account_credentials(config)

    def test_invalid_inline_json_is_fatal(self):
        config = SheetsConfig(credentials_file="unused.json", credentials_json="{not json")

        with pytest.raises(CredentialsError):
            load_service_account_credentials(config)

    def test_incomplete_key_is_fatal(self, tmp_path):
        path = tmp_path / "google-credentials.json"
        path.write_text(json.dumps({"client_email": "bot@example.iam.gserviceaccount.com"}))

        with pytest.raises(CredentialsError):
            load_service_account_credentials(SheetsConfig(credentials_file=str(path)))

    def test_loads_file_with_spreadsheet_scope(self, tmp_path):
        info = {"client_email": "bot@example.iam.gserviceaccount.com", "private_key": "key"}
        path = tmp_path / "google-credentials.json"
        path.write_text(json.dumps(info))
        credentials = Mock(service_account_email=info["client_email"])

        with patch(
            'app.services.google_sheets_service.service_account.Credentials.from_service_account_info',
            return_value=credentials
        ) as from_info:
            result = load_service_account_credentials(SheetsConfig(credentials_file=str(path)))

        assert result is credentials
        from_info.assert_called_once_with(
            info, scopes=["https://www.googleapis.com/auth/spreadsheets"]
        )
