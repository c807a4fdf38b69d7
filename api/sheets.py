"""
Pantry Inventory - Google Sheets store

Each category (Breakfast, Lunch, ...) is one tab of the spreadsheet:

    A: item name   B: quantity   E2:E7: last-updated year, month, day,
                                        hour, minute, second
    Row 1 is the header; items start on row 2.

Cells are addressed by 1-based (row, column) the way the spreadsheet
itself numbers them. The store holds no locks and caches nothing: every
call goes to the Sheets API.
"""

import logging
from typing import Any, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build


logger = logging.getLogger(__name__)


# ============================================================
# SHEET LAYOUT
# ============================================================

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

FIRST_DATA_ROW = 2
NAME_COLUMN = 1
QUANTITY_COLUMN = 2

# Year, month, day, hour, minute, second stacked in E2:E7
TIMESTAMP_COLUMN = 5
TIMESTAMP_FIRST_ROW = 2
TIMESTAMP_CELLS = 6


def col_letter(column: int) -> str:
    """Convert a 1-based column number to its letter (1 -> A, 27 -> AA)"""
    letters = ''
    while column > 0:
        column, remainder = divmod(column - 1, 26)
        letters = chr(ord('A') + remainder) + letters
    return letters


def quote_title(title: str) -> str:
    """Quote a sheet title for A1 notation"""
    return "'" + title.replace("'", "''") + "'"


def a1_range(title: str, row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> str:
    """A1 range for a rectangle starting at (row, col)"""
    start = f"{col_letter(col)}{row}"
    end = f"{col_letter(col + num_cols - 1)}{row + num_rows - 1}"
    if start == end:
        return f"{quote_title(title)}!{start}"
    return f"{quote_title(title)}!{start}:{end}"


# ============================================================
# WORKSHEET
# ============================================================

class Worksheet:
    """One tab of the spreadsheet"""

    def __init__(self, store: 'GoogleSheetsStore', title: str):
        self.store = store
        self.title = title

    def last_row(self) -> int:
        """
        Last row holding any value in any column.

        The Sheets API trims trailing empty rows, so the row count of the
        whole-tab read is the last populated row. Re-read on every call.
        """
        result = self.store.values().get(
            spreadsheetId=self.store.spreadsheet_id,
            range=quote_title(self.title),
            majorDimension='ROWS'
        ).execute()
        return len(result.get('values', []))

    def read_range(self, row: int, col: int, num_rows: int, num_cols: int) -> list[list[Any]]:
        """
        Read a rectangle of cells.

        Returns:
            num_rows lists of num_cols values, padded with '' where the API
            omits trailing empty cells
        """
        result = self.store.values().get(
            spreadsheetId=self.store.spreadsheet_id,
            range=a1_range(self.title, row, col, num_rows, num_cols),
            majorDimension='ROWS',
            valueRenderOption='UNFORMATTED_VALUE'
        ).execute()

        rows = result.get('values', [])
        padded = []
        for i in range(num_rows):
            cells = list(rows[i]) if i < len(rows) else []
            cells.extend([''] * (num_cols - len(cells)))
            padded.append(cells[:num_cols])
        return padded

    def write_cell(self, row: int, col: int, value: Any) -> None:
        """Overwrite a single cell"""
        self.store.values().update(
            spreadsheetId=self.store.spreadsheet_id,
            range=a1_range(self.title, row, col),
            valueInputOption='RAW',
            body={'values': [[value]]}
        ).execute()


# ============================================================
# STORE
# ============================================================

class GoogleSheetsStore:
    """
    Spreadsheet-backed tabular store.

    Usage:
        store = GoogleSheetsStore(config.spreadsheet_id, config.credentials_info())
        sheet = store.get_worksheet('Breakfast')
        if sheet:
            rows = sheet.read_range(2, 1, sheet.last_row() - 1, 2)
    """

    def __init__(
        self,
        spreadsheet_id: str,
        credentials_info: Optional[dict] = None,
        service=None
    ):
        self.spreadsheet_id = spreadsheet_id
        self._credentials_info = credentials_info
        self._service = service

    @property
    def service(self):
        """Lazy-load the Google Sheets service"""
        if self._service is None:
            creds = service_account.Credentials.from_service_account_info(
                self._credentials_info or {},
                scopes=SCOPES
            )
            self._service = build('sheets', 'v4', credentials=creds, cache_discovery=False)
        return self._service

    def values(self):
        return self.service.spreadsheets().values()

    def sheet_titles(self) -> list[str]:
        """Titles of all tabs in the spreadsheet"""
        spreadsheet = self.service.spreadsheets().get(
            spreadsheetId=self.spreadsheet_id,
            fields='sheets.properties.title'
        ).execute()
        return [
            sheet.get('properties', {}).get('title', '')
            for sheet in spreadsheet.get('sheets', [])
        ]

    def get_worksheet(self, name: str) -> Optional[Worksheet]:
        """Look a tab up by exact title; None when it does not exist"""
        if name in self.sheet_titles():
            return Worksheet(self, name)
        logger.debug("Sheet %r not found in %s", name, self.spreadsheet_id)
        return None
