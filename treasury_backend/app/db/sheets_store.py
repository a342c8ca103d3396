"""
Google Sheets row store.

Stores one payment per spreadsheet row via the Sheets v4 REST API. Row 1
holds the column headers, so data position N lives on sheet row N + 1.

The spreadsheet handle (spreadsheet id and sheet id) is resolved once by
initialize() and reused by every later call on the same store instance.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from treasury_backend.app.core.exceptions import StoreError
from treasury_backend.app.core.reliability import CircuitBreaker, CircuitOpenError
from treasury_backend.app.db.row_codec import COLUMNS, LAST_COLUMN
from treasury_backend.app.db.row_store import Row, RowStore

logger = logging.getLogger("treasury.sheets")

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
DRIVE_FILES_API = "https://www.googleapis.com/drive/v3/files"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"


class GoogleSheetsRowStore(RowStore):
    """RowStore backed by a single sheet of a Google spreadsheet."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        spreadsheet_name: str,
        sheet_name: str = "Payments",
        spreadsheet_id: Optional[str] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.client = client
        self.spreadsheet_name = spreadsheet_name
        self.sheet_name = sheet_name
        self.spreadsheet_id = spreadsheet_id
        self.breaker = breaker or CircuitBreaker(name="google-sheets")
        self._sheet_id: Optional[int] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings) -> "GoogleSheetsRowStore":
        if not settings.google_access_token:
            raise StoreError("Google Sheets access token is not configured")

        client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {settings.google_access_token}"},
            timeout=settings.sheets_timeout_seconds,
        )
        return cls(
            client,
            spreadsheet_name=settings.spreadsheet_name,
            sheet_name=settings.sheet_name,
            spreadsheet_id=settings.spreadsheet_id,
            breaker=CircuitBreaker(
                failure_threshold=settings.store_failure_threshold,
                reset_timeout=settings.store_reset_timeout,
                name="google-sheets",
            ),
        )

    @property
    def is_initialized(self) -> bool:
        return self.spreadsheet_id is not None and self._sheet_id is not None

    async def initialize(self) -> None:
        """
        Resolve the spreadsheet handle.

        Uses the configured spreadsheet id if any, otherwise searches Drive by
        name, otherwise creates the spreadsheet with a header row.
        """
        async with self._lock:
            if self.is_initialized:
                return

            if self.spreadsheet_id is None:
                self.spreadsheet_id = await self._find_spreadsheet()

            if self.spreadsheet_id is None:
                await self._create_spreadsheet()
                logger.info("Created spreadsheet %s", self.spreadsheet_id)
            else:
                self._sheet_id = await self._resolve_sheet_id()
                logger.info("Using spreadsheet %s (sheet %s)", self.spreadsheet_id, self._sheet_id)

    async def close(self) -> None:
        await self.client.aclose()

    # Rows

    async def list_rows(self) -> List[Row]:
        await self._ensure_initialized()
        data = await self._request("GET", self._values_url(f"{self.sheet_name}!A2:{LAST_COLUMN}"))
        rows = data.get("values", [])
        if not isinstance(rows, list):
            raise StoreError("Unexpected response shape from Google Sheets", details={"values": type(rows).__name__})
        return rows

    async def append_row(self, row: Row) -> None:
        await self._ensure_initialized()
        await self._request(
            "POST",
            self._values_url(f"{self.sheet_name}!A:{LAST_COLUMN}") + ":append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": [row]},
        )

    async def update_row(self, position: int, row: Row) -> None:
        await self._ensure_initialized()
        sheet_row = position + 1
        await self._request(
            "PUT",
            self._values_url(f"{self.sheet_name}!A{sheet_row}:{LAST_COLUMN}{sheet_row}"),
            params={"valueInputOption": "RAW"},
            json={"values": [row]},
        )

    async def delete_row(self, position: int) -> None:
        await self._ensure_initialized()
        # Zero-based, end-exclusive index of sheet row position + 1
        await self._request(
            "POST",
            f"{SHEETS_API}/{self.spreadsheet_id}:batchUpdate",
            json={
                "requests": [{
                    "deleteDimension": {
                        "range": {
                            "sheetId": self._sheet_id,
                            "dimension": "ROWS",
                            "startIndex": position,
                            "endIndex": position + 1,
                        }
                    }
                }]
            },
        )

    # Handle resolution

    async def _ensure_initialized(self) -> None:
        if not self.is_initialized:
            await self.initialize()

    async def _find_spreadsheet(self) -> Optional[str]:
        name = self.spreadsheet_name.replace("'", "\\'")
        data = await self._request(
            "GET",
            DRIVE_FILES_API,
            params={
                "q": f"name='{name}' and mimeType='{SPREADSHEET_MIME_TYPE}' and trashed=false",
                "fields": "files(id, name)",
                "spaces": "drive",
            },
        )
        files = data.get("files") or []
        return files[0]["id"] if files else None

    async def _create_spreadsheet(self) -> None:
        data = await self._request(
            "POST",
            SHEETS_API,
            json={
                "properties": {"title": self.spreadsheet_name},
                "sheets": [{"properties": {"title": self.sheet_name}}],
            },
        )
        try:
            spreadsheet_id = data["spreadsheetId"]
            sheet_id = data["sheets"][0]["properties"]["sheetId"]
        except (KeyError, IndexError, TypeError) as exc:
            raise StoreError("Unexpected response creating spreadsheet") from exc

        await self._request(
            "PUT",
            f"{SHEETS_API}/{spreadsheet_id}/values/{self.sheet_name}!A1:{LAST_COLUMN}1",
            params={"valueInputOption": "RAW"},
            json={"values": [COLUMNS]},
        )
        self.spreadsheet_id = spreadsheet_id
        self._sheet_id = sheet_id

    async def _resolve_sheet_id(self) -> int:
        data = await self._request(
            "GET",
            f"{SHEETS_API}/{self.spreadsheet_id}",
            params={"fields": "sheets.properties"},
        )
        for sheet in data.get("sheets", []):
            properties = sheet.get("properties", {})
            if properties.get("title") == self.sheet_name:
                return properties["sheetId"]
        raise StoreError(
            f"Sheet '{self.sheet_name}' not found in spreadsheet",
            details={"spreadsheet_id": self.spreadsheet_id}
        )

    # Transport

    def _values_url(self, cell_range: str) -> str:
        return f"{SHEETS_API}/{self.spreadsheet_id}/values/{cell_range}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        async def send() -> Dict[str, Any]:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json() if response.content else {}

        try:
            return await self.breaker.call(send)
        except CircuitOpenError as exc:
            raise StoreError("Google Sheets store is temporarily unavailable") from exc
        except httpx.HTTPStatusError as exc:
            raise StoreError(
                f"Google Sheets request failed with status {exc.response.status_code}",
                details={"method": method, "url": str(exc.request.url)}
            ) from exc
        except httpx.HTTPError as exc:
            raise StoreError("Google Sheets request failed", details={"method": method, "reason": str(exc)}) from exc
        except ValueError as exc:
            raise StoreError("Google Sheets returned a non-JSON response") from exc
