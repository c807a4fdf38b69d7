"""
Inventory data model

Rows of a category sheet map to InventoryRecord objects. A record is
addressed only by its 1-based sheet row: inserting or deleting rows in the
sheet silently shifts every row below, so clients must re-read the sheet
before each write. There is no stable item ID.
"""

import math
from dataclasses import dataclass, field, asdict
from typing import Optional, Union


Number = Union[int, float]


# ============================================================
# COERCION
# ============================================================

def _to_float(value) -> Optional[float]:
    """Parse a cell value as a finite float, or None"""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).replace(',', '').strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_int(value) -> int:
    """Coerce a cell to an int; empty or non-numeric cells become 0"""
    number = _to_float(value)
    if number is None:
        return 0
    return int(number)


def coerce_quantity(value) -> Number:
    """Coerce a quantity cell to a number, defaulting to 0"""
    number = _to_float(value)
    if number is None:
        return 0
    if number.is_integer():
        return int(number)
    return number


def render_timestamp(year: int, month: int, day: int,
                     hour: int, minute: int, second: int) -> str:
    """
    Render six timestamp components as YYYY-MM-DDTHH:MM:SS.

    Never validates the values: all zeros give "0-00-00T00:00:00" and a
    month of 13 renders as "13".
    """
    return (
        f"{year}-{month:02d}-{day:02d}"
        f"T{hour:02d}:{minute:02d}:{second:02d}"
    )


# ============================================================
# DATA CLASSES
# ============================================================

@dataclass
class InventoryRecord:
    """One item row of a category sheet"""
    row: int
    name: str
    quantity: Number = 0

    @classmethod
    def from_row(cls, row_number: int, cells: list) -> Optional['InventoryRecord']:
        """
        Build a record from the (name, quantity) cells of a sheet row.

        Returns None when the name cell is blank; such rows are skipped,
        not reported as placeholders.
        """
        raw_name = cells[0] if cells else ''
        name = '' if raw_name is None else str(raw_name).strip()
        if not name:
            return None

        raw_quantity = cells[1] if len(cells) > 1 else ''
        return cls(row=row_number, name=name, quantity=coerce_quantity(raw_quantity))


@dataclass
class InventorySnapshot:
    """Result of a fresh read of one category sheet"""
    data: list[InventoryRecord] = field(default_factory=list)
    updated_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'data': [asdict(record) for record in self.data],
            'updated_at': self.updated_at
        }
