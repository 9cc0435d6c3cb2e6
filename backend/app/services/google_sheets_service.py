"""
Google Sheets Service - Read every sheet of a spreadsheet with a service account
"""

import asyncio
import json
import logging
import re
from typing import Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.config import SheetsConfig
from app.core.exceptions import CredentialsError, SpreadsheetAccessError
from app.models.spreadsheet import SheetTable, SpreadsheetDocument

logger = logging.getLogger(__name__)

_REMOTE_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def load_service_account_credentials(config: SheetsConfig) -> service_account.Credentials:
    """
    Build service account credentials from inline JSON or the credentials file

    Args:
        config: Sheets configuration

    Returns:
        Scoped service account credentials

    Raises:
        CredentialsError: if the file cannot be read or is not a service account key
    """
    try:
        if config.credentials_json:
            info = json.loads(config.credentials_json)
            source = "GOOGLE_CREDENTIALS_JSON"
        else:
            with open(config.credentials_file, "r", encoding="utf-8") as f:
                info = json.load(f)
            source = config.credentials_file

        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=list(config.scopes)
        )
    except (OSError, ValueError, KeyError) as e:
        raise CredentialsError(f"Unable to load Google service account credentials: {e}") from e

    logger.info(f"Loaded service account {credentials.service_account_email} from {source}")
    return credentials


def _quote_sheet_title(title: str) -> str:
    """A1 notation range covering a whole sheet"""
    return "'" + title.replace("'", "''") + "'"


class GoogleSheetsService:
    """Service for reading spreadsheets through the Google Sheets API"""

    def __init__(self, credentials):
        """Initialize with credentials loaded once at startup"""
        self.credentials = credentials
        self.sheets_service = build('sheets', 'v4', credentials=credentials, cache_discovery=False)

    def extract_sheet_id(self, value: str) -> Optional[str]:
        """
        Extract spreadsheet ID from a Google Sheets URL or a bare ID

        Args:
            value: Google Sheets URL or spreadsheet ID

        Returns:
            Spreadsheet ID or None
        """
        value = (value or "").strip()
        match = re.search(r'/spreadsheets/d/([a-zA-Z0-9-_]+)', value)
        if match:
            return match.group(1)
        if re.fullmatch(r'[a-zA-Z0-9-_]+', value):
            return value
        return None

    def _get_metadata(self, sheet_id: str) -> Dict:
        metadata = self.sheets_service.spreadsheets().get(
            spreadsheetId=sheet_id,
            fields="properties.title,sheets.properties"
        ).execute()

        return {
            'title': metadata.get('properties', {}).get('title', ''),
            'sheets': [
                {
                    'title': sheet['properties']['title'],
                    'index': sheet['properties'].get('index', 0),
                }
                for sheet in metadata.get('sheets', [])
            ]
        }

    def _get_values(self, sheet_id: str, sheet_title: str) -> List[List]:
        result = self.sheets_service.spreadsheets().values().get(
            spreadsheetId=sheet_id,
            range=_quote_sheet_title(sheet_title),
            valueRenderOption='FORMATTED_VALUE'
        ).execute()
        return result.get('values', [])

    def _fetch(self, sheet_id: str) -> SpreadsheetDocument:
        metadata = self._get_metadata(sheet_id)
        sheets = sorted(metadata['sheets'], key=lambda s: s['index'])

        tables = []
        for sheet in sheets:
            values = self._get_values(sheet_id, sheet['title'])
            tables.append(SheetTable.from_values(sheet['title'], values))

        return SpreadsheetDocument(
            spreadsheet_id=sheet_id,
            title=metadata['title'],
            sheets=tables
        )

    async def fetch(self, spreadsheet_id: str) -> SpreadsheetDocument:
        """
        Load every sheet of a spreadsheet. Always hits the API, nothing is cached.

        Args:
            spreadsheet_id: Spreadsheet ID or URL

        Returns:
            SpreadsheetDocument with one SheetTable per tab

        Raises:
            SpreadsheetAccessError: on invalid ID, auth, HTTP or network failure
        """
        sheet_id = self.extract_sheet_id(spreadsheet_id)
        if not sheet_id:
            raise SpreadsheetAccessError(f"Invalid spreadsheet ID: {spreadsheet_id!r}")

        try:
            # googleapiclient is blocking; keep the event loop free for other sessions
            document = await asyncio.to_thread(self._fetch, sheet_id)
        except HttpError as e:
            logger.error(f"Error fetching spreadsheet {sheet_id}: {e}")
            raise SpreadsheetAccessError(
                f"Google Sheets API returned {e.resp.status} for spreadsheet {sheet_id}"
            ) from e
        except _REMOTE_ERRORS as e:
            logger.error(f"Error fetching spreadsheet {sheet_id}: {e}")
            raise SpreadsheetAccessError(f"Unable to reach Google Sheets: {e}") from e
        except (KeyError, TypeError) as e:
            logger.error(f"Malformed response for spreadsheet {sheet_id}: {e}")
            raise SpreadsheetAccessError(f"Malformed sheet data for spreadsheet {sheet_id}") from e

        logger.info(
            f"Fetched spreadsheet {sheet_id} ({len(document.sheets)} sheets, "
            f"{sum(s.row_count for s in document.sheets)} rows)"
        )
        return document
