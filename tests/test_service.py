"""Tests for the inventory service read and update operations."""

import json

import pytest

from api.errors import BadRequest, InvalidRange, NotFound
from api.service import InventoryService, parse_update_payload
from conftest import FakeStore, make_sheet


class TestListInventory:
    """list_inventory: rows, blank-name filtering, timestamp."""

    def test_breakfast_example(self, service):
        snapshot = service.list_inventory("Breakfast")

        assert snapshot.to_dict() == {
            "data": [
                {"row": 2, "name": "Eggs", "quantity": 12},
                {"row": 4, "name": "Milk", "quantity": 3},
            ],
            "updated_at": "2024-03-05T09:30:00",
        }

    def test_blank_name_rows_never_appear(self):
        sheet = make_sheet("Snacks", items=[("   ", 99), ("Chips", 1), ("", 0), (None, 7)])
        snapshot = InventoryService(FakeStore(sheet)).list_inventory("Snacks")

        assert [(r.row, r.name) for r in snapshot.data] == [(3, "Chips")]

    def test_rows_keep_original_sheet_row(self):
        sheet = make_sheet("Pantry", items=[("", 1), ("", 2), ("Rice", 3)])
        snapshot = InventoryService(FakeStore(sheet)).list_inventory("Pantry")

        assert snapshot.data[0].row == 4

    def test_empty_sheet_returns_empty_data(self):
        sheet = make_sheet("Dinner")
        snapshot = InventoryService(FakeStore(sheet)).list_inventory("Dinner")

        assert snapshot.data == []
        assert snapshot.updated_at == "0-00-00T00:00:00"

    def test_timestamp_only_sheet_returns_empty_data(self):
        sheet = make_sheet("Dinner", timestamp=[2024, 1, 1, 0, 0, 0])
        snapshot = InventoryService(FakeStore(sheet)).list_inventory("Dinner")

        assert snapshot.data == []
        assert snapshot.updated_at == "2024-01-01T00:00:00"

    def test_unparsable_quantity_defaults_to_zero(self):
        sheet = make_sheet("Snacks", items=[("Nuts", "a few"), ("Figs", "")])
        snapshot = InventoryService(FakeStore(sheet)).list_inventory("Snacks")

        assert [r.quantity for r in snapshot.data] == [0, 0]

    def test_partial_timestamp_cells_default_to_zero(self):
        sheet = make_sheet("Snacks", items=[("Nuts", 1)], timestamp=[2024, "x", 5])
        snapshot = InventoryService(FakeStore(sheet)).list_inventory("Snacks")

        assert snapshot.updated_at == "2024-00-05T00:00:00"

    def test_timestamp_failure_degrades_to_none(self, caplog):
        sheet = make_sheet("Snacks", items=[("Nuts", 1)], fail_timestamp=True)
        snapshot = InventoryService(FakeStore(sheet)).list_inventory("Snacks")

        assert snapshot.updated_at is None
        assert [r.name for r in snapshot.data] == ["Nuts"]
        assert "Could not read timestamp" in caplog.text

    def test_unknown_sheet_is_not_found(self, service):
        with pytest.raises(NotFound) as exc_info:
            service.list_inventory("Lunch")

        assert exc_info.value.message == 'sheet "Lunch" not found'
        assert exc_info.value.kind == "not_found"

    def test_empty_sheet_name_is_bad_request(self, service):
        with pytest.raises(BadRequest):
            service.list_inventory("")


class TestUpdateQuantity:
    """update_quantity: validation order and the single-cell write."""

    def test_update_writes_quantity_cell(self, service, breakfast_sheet):
        result = service.update_quantity(
            json.dumps({"sheetName": "Breakfast", "row": 4, "newQuantity": 7})
        )

        assert result["success"] is True
        for part in ("Breakfast", "4", "7"):
            assert part in result["message"]
        assert breakfast_sheet.writes == [(4, 2, 7)]
        assert service.list_inventory("Breakfast").data[1].quantity == 7

    def test_update_accepts_decoded_payload(self, service, breakfast_sheet):
        service.update_quantity({"sheetName": "Breakfast", "row": 2, "newQuantity": 0})

        assert breakfast_sheet.writes == [(2, 2, 0)]

    def test_update_coerces_numeric_strings(self, service, breakfast_sheet):
        result = service.update_quantity({"sheetName": "Breakfast", "row": "2", "newQuantity": "2.5"})

        assert breakfast_sheet.writes == [(2, 2, 2.5)]
        assert "2.5" in result["message"]

    def test_header_row_is_rejected(self, service, breakfast_sheet):
        with pytest.raises(InvalidRange) as exc_info:
            service.update_quantity({"sheetName": "Breakfast", "row": 1, "newQuantity": 3})

        assert isinstance(exc_info.value, BadRequest)
        assert exc_info.value.message == "invalid row 1"
        assert breakfast_sheet.writes == []

    def test_row_past_last_row_is_rejected(self, service, breakfast_sheet):
        last_row = breakfast_sheet.last_row()

        with pytest.raises(InvalidRange):
            service.update_quantity({"sheetName": "Breakfast", "row": last_row + 1, "newQuantity": 3})

        assert breakfast_sheet.writes == []

    def test_row_bound_is_read_at_write_time(self, service, breakfast_sheet):
        breakfast_sheet.cells[(20, 1)] = "Tea"

        service.update_quantity({"sheetName": "Breakfast", "row": 20, "newQuantity": 1})

        assert breakfast_sheet.writes == [(20, 2, 1)]

    def test_unknown_sheet_writes_nothing(self, service, store):
        with pytest.raises(NotFound):
            service.update_quantity({"sheetName": "Lunch", "row": 2, "newQuantity": 1})

        assert store.all_writes() == []

    def test_missing_sheet_checked_before_row(self, service):
        with pytest.raises(NotFound):
            service.update_quantity({"sheetName": "Lunch", "row": 1, "newQuantity": 1})

    def test_concurrent_writes_last_one_wins(self, service, breakfast_sheet):
        service.update_quantity({"sheetName": "Breakfast", "row": 2, "newQuantity": 10})
        service.update_quantity({"sheetName": "Breakfast", "row": 2, "newQuantity": 11})

        assert breakfast_sheet.cells[(2, 2)] == 11


class TestParseUpdatePayload:
    """Payload validation, first failure wins."""

    @pytest.mark.parametrize("body", [b"{not json", "", b"\xff\xfe", "[1, 2]", "42", "null"])
    def test_unparsable_body(self, body):
        with pytest.raises(BadRequest) as exc_info:
            parse_update_payload(body)

        assert exc_info.value.message == "cannot parse request body"

    @pytest.mark.parametrize("payload", [
        {"row": 2, "newQuantity": 1},
        {"sheetName": "", "row": 2, "newQuantity": 1},
        {"sheetName": 5, "row": 2, "newQuantity": 1},
        {"sheetName": "Breakfast", "newQuantity": 1},
        {"sheetName": "Breakfast", "row": 2.5, "newQuantity": 1},
        {"sheetName": "Breakfast", "row": True, "newQuantity": 1},
        {"sheetName": "Breakfast", "row": 2},
        {"sheetName": "Breakfast", "row": 2, "newQuantity": None},
        {"sheetName": "Breakfast", "row": 2, "newQuantity": "seven"},
        {"sheetName": "Breakfast", "row": 2, "newQuantity": "NaN"},
        {"sheetName": "Breakfast", "row": 2, "newQuantity": "inf"},
        {"sheetName": "Breakfast", "row": 2, "newQuantity": False},
    ])
    def test_missing_or_malformed_parameters(self, payload):
        with pytest.raises(BadRequest) as exc_info:
            parse_update_payload(payload)

        assert exc_info.value.message.startswith("missing or malformed parameters")
        assert exc_info.value.kind == "bad_request"

    def test_valid_payload(self):
        assert parse_update_payload('{"sheetName": "Breakfast", "row": 3.0, "newQuantity": 4}') == (
            "Breakfast", 3, 4
        )
