"""
Inventory service - read and update category sheets

Consistency is best effort. Reads are not atomic across the timestamp and
the item rows, and an update's row-bound check is not atomic with the write
that follows it. Concurrent writers race; the last write to a cell wins.
No lock or transaction is taken around either operation.
"""

import json
import logging
import math
from typing import Any, Union

from .errors import (
    BadRequest,
    InvalidRange,
    NotFound,
    MISSING_PARAMS_MESSAGE,
    PARSE_ERROR_MESSAGE,
)
from .models import (
    InventoryRecord,
    InventorySnapshot,
    coerce_int,
    render_timestamp,
)
from .sheets import (
    FIRST_DATA_ROW,
    NAME_COLUMN,
    QUANTITY_COLUMN,
    TIMESTAMP_CELLS,
    TIMESTAMP_COLUMN,
    TIMESTAMP_FIRST_ROW,
)


logger = logging.getLogger(__name__)


# ============================================================
# PAYLOAD PARSING
# ============================================================

def _parse_row(value: Any):
    """Row number as int, or None if it is not an integer"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _parse_quantity(value: Any):
    """Finite number, or None"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if isinstance(number, float):
        if math.isnan(number) or math.isinf(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def parse_update_payload(payload: Union[bytes, str, dict]) -> tuple[str, int, Any]:
    """
    Validate an update-quantity payload.

    Args:
        payload: raw JSON body or an already decoded object with
            sheetName, row and newQuantity

    Returns:
        (sheet_name, row, new_quantity)

    Raises:
        BadRequest: body is not a JSON object, or a field is missing or
            has the wrong type
    """
    if isinstance(payload, (bytes, str)):
        try:
            payload = json.loads(payload)
        except (ValueError, UnicodeDecodeError):
            raise BadRequest(PARSE_ERROR_MESSAGE)
    if not isinstance(payload, dict):
        raise BadRequest(PARSE_ERROR_MESSAGE)

    sheet_name = payload.get('sheetName')
    row = _parse_row(payload.get('row'))
    new_quantity = _parse_quantity(payload.get('newQuantity'))

    if not isinstance(sheet_name, str) or not sheet_name or row is None or new_quantity is None:
        raise BadRequest(MISSING_PARAMS_MESSAGE)

    return sheet_name, row, new_quantity


# ============================================================
# SERVICE
# ============================================================

class InventoryService:
    """
    Read/update operations over a tabular store.

    The store only needs get_worksheet(name) returning an object with
    last_row(), read_range(row, col, num_rows, num_cols) and
    write_cell(row, col, value), or None for an unknown sheet.
    """

    def __init__(self, store):
        self.store = store

    def _worksheet(self, sheet_name: str):
        worksheet = self.store.get_worksheet(sheet_name)
        if worksheet is None:
            raise NotFound(sheet_name)
        return worksheet

    def _read_timestamp(self, worksheet):
        """Rendered last-updated timestamp, or None if it cannot be read"""
        try:
            cells = worksheet.read_range(TIMESTAMP_FIRST_ROW, TIMESTAMP_COLUMN, TIMESTAMP_CELLS, 1)
            parts = [coerce_int(row[0] if row else '') for row in cells]
            parts.extend([0] * (TIMESTAMP_CELLS - len(parts)))
            return render_timestamp(*parts[:TIMESTAMP_CELLS])
        except Exception:
            # Degrade to updated_at=None; inventory rows are still returned
            logger.warning("Could not read timestamp of sheet %r", worksheet.title, exc_info=True)
            return None

    def list_inventory(self, sheet_name: str) -> InventorySnapshot:
        """
        Read every item of a category plus its last-updated timestamp.

        Rows with a blank name are skipped. Each record keeps its original
        sheet row so it can be passed back to update_quantity.

        Raises:
            BadRequest: sheet_name is empty
            NotFound: the sheet does not exist
        """
        if not sheet_name:
            raise BadRequest(MISSING_PARAMS_MESSAGE)

        worksheet = self._worksheet(sheet_name)
        updated_at = self._read_timestamp(worksheet)

        last_row = worksheet.last_row()
        if last_row < FIRST_DATA_ROW:
            return InventorySnapshot(data=[], updated_at=updated_at)

        rows = worksheet.read_range(
            FIRST_DATA_ROW, NAME_COLUMN,
            last_row - FIRST_DATA_ROW + 1, QUANTITY_COLUMN - NAME_COLUMN + 1
        )

        records = []
        for offset, cells in enumerate(rows):
            record = InventoryRecord.from_row(FIRST_DATA_ROW + offset, cells)
            if record is not None:
                records.append(record)

        return InventorySnapshot(data=records, updated_at=updated_at)

    def update_quantity(self, payload: Union[bytes, str, dict]) -> dict:
        """
        Overwrite the quantity of one item row.

        Validation runs before any write: payload shape, sheet existence,
        then 2 <= row <= the sheet's current last row.

        Raises:
            BadRequest: unparsable body or missing/malformed fields
            NotFound: the sheet does not exist
            InvalidRange: row is the header or past the last row
        """
        sheet_name, row, new_quantity = parse_update_payload(payload)

        worksheet = self._worksheet(sheet_name)
        if row < FIRST_DATA_ROW or row > worksheet.last_row():
            raise InvalidRange(row)

        worksheet.write_cell(row, QUANTITY_COLUMN, new_quantity)
        logger.info("Set %s row %s quantity to %s", sheet_name, row, new_quantity)

        return {
            'success': True,
            'message': f'Updated {sheet_name} row {row} quantity to {new_quantity}'
        }
