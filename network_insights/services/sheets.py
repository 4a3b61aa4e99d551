"""
Google Sheets client for the licensee base.

The spreadsheet is the system of record: one header row followed by one row
per licensee. This module only reads it; field normalization happens in
network_insights.services.normalization.

Authentication uses a service account JSON file (GOOGLE_APPLICATION_CREDENTIALS)
with the read-only spreadsheets scope.

Usage:
    client = SheetsClient.from_settings(get_settings())
    rows = client.fetch_rows()   # [{"Codigo": "1001", "Nome": "...", ...}, ...]
"""

import logging
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google_auth_httplib2 import AuthorizedHttp
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from network_insights.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ['https://www.googleapis.com/auth/spreadsheets.readonly']


class DataSourceUnavailableError(Exception):
    """
    The spreadsheet could not be read.

    Raised for missing configuration, authentication failures, HTTP errors and
    timeouts. The condition is retryable; callers must not substitute
    placeholder data.
    """


def get_sheets_service(settings: Optional[Settings] = None):
    """
    Create and return a Google Sheets API service instance.

    Requests time out after settings.sheets_timeout_seconds.

    Returns:
        googleapiclient.discovery.Resource: Sheets API v4 service object

    Raises:
        ValueError: If GOOGLE_APPLICATION_CREDENTIALS is not configured
        google.auth.exceptions.GoogleAuthError: If the credentials are invalid
    """
    settings = settings or get_settings()

    if not settings.google_application_credentials:
        raise ValueError(
            "GOOGLE_APPLICATION_CREDENTIALS environment variable not configured. "
            "Please set it to the path of your service account JSON file."
        )

    credentials = service_account.Credentials.from_service_account_file(
        settings.google_application_credentials,
        scopes=SHEETS_SCOPES
    )

    # Per-request socket timeout
    http = AuthorizedHttp(
        credentials,
        http=httplib2.Http(timeout=settings.sheets_timeout_seconds),
    )

    return build('sheets', 'v4', http=http, cache_discovery=False)


def rows_to_dicts(values: List[List[Any]]) -> List[Dict[str, Any]]:
    """
    Turn a values grid into one dict per data row, keyed by the header row.

    The Sheets API omits trailing empty cells, so short rows are padded with
    empty strings. Cells beyond the header width are ignored. Fully blank
    rows are skipped.
    """
    if not values:
        return []

    headers = [str(header).strip() for header in values[0]]
    width = len(headers)

    rows = []
    for raw in values[1:]:
        padded = list(raw[:width]) + [''] * (width - len(raw))
        if all(str(cell).strip() == '' for cell in padded):
            continue
        rows.append(dict(zip(headers, padded)))
    return rows


class SheetsClient:
    """
    Reads raw licensee rows from one spreadsheet range.

    Args:
        spreadsheet_id: Target spreadsheet
        range_name: A1 range whose first row is the header row
        service: Optional pre-built Sheets service (tests inject a mock)
        settings: Settings used to build the service lazily
    """

    def __init__(
        self,
        spreadsheet_id: Optional[str],
        range_name: str = 'A1:AQ',
        service=None,
        settings: Optional[Settings] = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.range_name = range_name
        self._service = service
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetsClient":
        return cls(
            spreadsheet_id=settings.google_sheets_spreadsheet_id,
            range_name=settings.google_sheets_range,
            settings=settings,
        )

    def _get_service(self):
        if self._service is None:
            self._service = get_sheets_service(self._settings)
        return self._service

    def fetch_rows(self) -> List[Dict[str, Any]]:
        """
        Fetch all rows of the configured range.

        Returns:
            One dict per data row. An empty spreadsheet yields an empty list.

        Raises:
            DataSourceUnavailableError: If the spreadsheet cannot be read
        """
        if not self.spreadsheet_id:
            raise DataSourceUnavailableError(
                "GOOGLE_SHEETS_SPREADSHEET_ID not configured"
            )

        try:
            service = self._get_service()
            response = service.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=self.range_name,
            ).execute()
        except (HttpError, GoogleAuthError, OSError, ValueError) as e:
            logger.error(f"Failed to read spreadsheet {self.spreadsheet_id}: {e}")
            raise DataSourceUnavailableError(f"Spreadsheet read failed: {e}") from e

        rows = rows_to_dicts(response.get('values', []))
        logger.info(f"Fetched {len(rows)} rows from Google Sheets")
        return rows
