"""Pytest configuration and fixtures."""

import pytest


class FakeWorksheet:
    """In-memory stand-in for a spreadsheet tab, addressed by 1-based (row, col)"""

    def __init__(self, title, cells=None, fail_timestamp=False):
        self.title = title
        self.cells = dict(cells or {})
        self.fail_timestamp = fail_timestamp
        self.writes = []

    def last_row(self):
        rows = [row for (row, _), value in self.cells.items() if value not in ('', None)]
        return max(rows, default=0)

    def read_range(self, row, col, num_rows, num_cols):
        if self.fail_timestamp and col == 5:
            raise RuntimeError("timestamp range is protected")
        return [
            [self.cells.get((r, c), '') for c in range(col, col + num_cols)]
            for r in range(row, row + num_rows)
        ]

    def write_cell(self, row, col, value):
        self.writes.append((row, col, value))
        self.cells[(row, col)] = value


class FakeStore:
    """Tabular store holding FakeWorksheets by title"""

    def __init__(self, *worksheets):
        self.worksheets = {sheet.title: sheet for sheet in worksheets}

    def get_worksheet(self, name):
        return self.worksheets.get(name)

    def all_writes(self):
        return [w for sheet in self.worksheets.values() for w in sheet.writes]


def make_sheet(title, items=(), timestamp=None, **kwargs):
    """
    Build a category sheet: header on row 1, (name, quantity) items from
    row 2, timestamp components in E2:E7.
    """
    cells = {(1, 1): 'Item', (1, 2): 'Quantity'}
    for offset, (name, quantity) in enumerate(items):
        cells[(2 + offset, 1)] = name
        cells[(2 + offset, 2)] = quantity
    if timestamp is not None:
        for offset, value in enumerate(timestamp):
            cells[(2 + offset, 5)] = value
    return FakeWorksheet(title, cells, **kwargs)


@pytest.fixture
def breakfast_sheet():
    """Breakfast sheet: Eggs, a blank-name row and Milk, updated 2024-03-05 09:30"""
    return make_sheet(
        'Breakfast',
        items=[('Eggs', 12), ('', 5), ('Milk', 3)],
        timestamp=[2024, 3, 5, 9, 30, 0]
    )


@pytest.fixture
def store(breakfast_sheet):
    return FakeStore(breakfast_sheet)


@pytest.fixture
def service(store):
    from api.service import InventoryService

    return InventoryService(store)
