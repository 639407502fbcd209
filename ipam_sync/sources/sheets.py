"""Google Sheets sources and the public-sheet reader.

Two adapters:
- PublicSheetSource: "anyone with the link" sheets, read through the
  public sheet-fetch endpoint
- OAuthSheetSource: private sheets, read through the private-sheet service
  with the caller's credentials forwarded

The module also holds the reader behind the public endpoint: the sheet's
CSV export, falling back to the Sheets v4 values API when an API key is set.
"""
import csv
import io
import logging
import re
from typing import Any, Optional

import requests

from ipam_sync.config import settings
from ipam_sync.core.errors import AuthExpired, FetchError, SheetNotAccessible
from ipam_sync.sources.base import HTTPSource

logger = logging.getLogger(__name__)

SPREADSHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
DEFAULT_RANGE = "A:Z"
DEFAULT_SHEET = "Sheet1"

CSV_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/export?format=csv&gid=0"
VALUES_API_URL = "https://sheets.googleapis.com/v4/spreadsheets/{spreadsheet_id}/values/{sheet}!{range}"


def extract_spreadsheet_id(url: Optional[str]) -> Optional[str]:
    """Pull the spreadsheet id out of a docs.google.com URL."""
    if not url:
        return None
    match = SPREADSHEET_ID_RE.search(url)
    return match.group(1) if match else None


def rows_to_records(rows: list[list[Any]]) -> list[dict[str, Any]]:
    """Turn a header row plus value rows into records; short rows pad with ''."""
    if not rows:
        return []

    headers = [str(h).strip() for h in rows[0]]
    records = []
    for row in rows[1:]:
        records.append({
            header: (row[i] if i < len(row) and row[i] is not None else "")
            for i, header in enumerate(headers)
            if header
        })
    return records


def parse_csv_records(text: str) -> list[dict[str, str]]:
    """Parse CSV text with a header row; rows with the wrong width are dropped."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    reader = csv.reader(io.StringIO("\n".join(lines)))
    rows = list(reader)
    headers = [h.strip() for h in rows[0]]

    records = []
    for values in rows[1:]:
        if len(values) != len(headers):
            continue
        records.append({h: v.strip() for h, v in zip(headers, values)})
    return records


def read_public_sheet(
    spreadsheet_url: str,
    sheet_name: str = DEFAULT_SHEET,
    range_notation: str = DEFAULT_RANGE,
    session: Optional[requests.Session] = None,
    timeout: Optional[int] = None,
) -> tuple[str, list[dict], str]:
    """Read a link-shared sheet.

    Returns:
        (spreadsheet_id, records, method) where method is 'csv' or 'api'

    Raises:
        FetchError: the URL is not a sheets URL or the download failed
        SheetNotAccessible: the sheet is not shared and the API fallback failed
    """
    spreadsheet_id = extract_spreadsheet_id(spreadsheet_url)
    if not spreadsheet_id:
        raise FetchError("Not a valid Google Sheets URL")

    http = session or requests
    timeout = timeout or settings.SOURCE_TIMEOUT_SECONDS

    try:
        response = http.get(CSV_EXPORT_URL.format(spreadsheet_id=spreadsheet_id), timeout=timeout)
        if response.ok:
            return spreadsheet_id, parse_csv_records(response.text), "csv"

        if settings.GOOGLE_API_KEY:
            api_response = http.get(
                VALUES_API_URL.format(
                    spreadsheet_id=spreadsheet_id,
                    sheet=sheet_name or DEFAULT_SHEET,
                    range=range_notation or DEFAULT_RANGE,
                ),
                params={"key": settings.GOOGLE_API_KEY},
                timeout=timeout,
            )
            if api_response.ok:
                values = api_response.json().get("values", [])
                return spreadsheet_id, rows_to_records(values), "api"
    except requests.RequestException as e:
        raise FetchError(f"Failed to download spreadsheet: {e}") from e

    raise SheetNotAccessible(
        "Spreadsheet is not accessible. Check its sharing settings.",
        {"details": "Share the spreadsheet with 'Anyone with the link'."},
    )


class PublicSheetSource(HTTPSource):
    """
    Source for link-shared Google Sheets.

    Config:
    {
        "spreadsheet_url": "https://docs.google.com/spreadsheets/d/<id>/edit",
        "sheet_name": "Sheet1",
        "range_notation": "A:Z",
        "service_url": "http://localhost:5000",
        "forward_headers": {"Authorization": "Bearer ..."}
    }
    """

    endpoint = "/api/google-sheets/fetch"

    def __init__(self, config: dict):
        super().__init__(config)
        self.spreadsheet_url = config.get("spreadsheet_url") or config.get("api_url", "")
        self.sheet_name = config.get("sheet_name") or DEFAULT_SHEET
        self.range_notation = config.get("range_notation") or DEFAULT_RANGE
        self.service_url = (config.get("service_url") or settings.SHEETS_SERVICE_URL).rstrip("/")
        self.forward_headers = dict(config.get("forward_headers") or {})

    def _payload(self) -> dict:
        return {
            "spreadsheetUrl": self.spreadsheet_url,
            "sheetName": self.sheet_name,
            "range": self.range_notation,
        }

    def _post(self) -> requests.Response:
        url = f"{self.service_url}{self.endpoint}"
        try:
            return self.session.post(
                url,
                json=self._payload(),
                headers=self.forward_headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Sheet service {url} unreachable: {e}")
            raise FetchError(f"Google Sheets fetch failed: {e}") from e

    def _records(self, response: requests.Response) -> list[dict]:
        try:
            body = response.json()
        except ValueError as e:
            raise FetchError("Google Sheets fetch failed: response is not JSON") from e

        data = body.get("data") if isinstance(body, dict) else None
        if data is None:
            return []
        if not isinstance(data, list):
            raise FetchError("Google Sheets fetch failed: 'data' is not an array")
        return data

    def fetch_records(self) -> list[dict]:
        response = self._post()
        if not response.ok:
            raise FetchError(f"Google Sheets fetch failed: {self._error_text(response)}")
        return self._records(response)


class OAuthSheetSource(PublicSheetSource):
    """
    Source for private Google Sheets read with the user's Google account.

    Config:
    {
        "spreadsheet_id": "<id>",            # else parsed from api_url
        "api_url": "https://docs.google.com/spreadsheets/d/<id>/edit",
        "sheet_name": "",                    # empty: first sheet
        "range_notation": "A:Z",
        "service_url": "http://sheets-reader:3000",
        "forward_headers": {"Authorization": "...", "Cookie": "..."}
    }
    """

    endpoint = "/api/google-sheets/private"

    def __init__(self, config: dict):
        super().__init__(config)
        self.sheet_name = config.get("sheet_name") or ""
        self.spreadsheet_id = (
            config.get("spreadsheet_id")
            or extract_spreadsheet_id(config.get("api_url"))
            or extract_spreadsheet_id(config.get("spreadsheet_url"))
        )

    def _payload(self) -> dict:
        return {
            "spreadsheetId": self.spreadsheet_id,
            "sheetName": self.sheet_name,
            "range": self.range_notation,
        }

    def fetch_records(self) -> list[dict]:
        if not self.spreadsheet_id:
            raise FetchError("Google Sheets ID is not configured")

        response = self._post()
        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if isinstance(body, dict) and (
                body.get("code") == AuthExpired.error_code or body.get("requireReauth")
            ):
                raise AuthExpired(body.get("error") or AuthExpired().message)
            raise FetchError(f"Google Sheets fetch failed: {self._error_text(response)}")

        return self._records(response)
