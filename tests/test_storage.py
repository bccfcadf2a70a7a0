"""
Tests for the row stores.

The Google Sheets store runs against a mocked client; no real API calls.
"""

from unittest.mock import MagicMock

import gspread
import pytest

from fintrack.services.storage import (
    GoogleSheetsRowStore,
    InMemoryRowStore,
    NotFoundError,
    PermissionDeniedError,
    SelectQuery,
    StorageError,
)

from tests.conftest import OTHER_USER_ID, USER_ID, seed


class TestSelectQuery:
    """Tests for query evaluation."""

    def test_builder_methods_do_not_mutate(self):
        base = SelectQuery(collection="transactions")
        narrowed = base.eq("type", "income")
        assert base.predicates == ()
        assert len(narrowed.predicates) == 1

    def test_missing_values_never_match(self):
        query = SelectQuery(collection="t").gte("date", "2024-01-01")
        assert query.matches({"date": ""}) is False
        assert query.matches({}) is False
        assert query.matches({"date": "2024-01-02"}) is True

    def test_descending_order_puts_blank_values_last(self):
        rows = [{"id": "a", "date": ""}, {"id": "b", "date": "2024-01-01"}, {"id": "c", "date": "2024-02-01"}]
        result = SelectQuery(collection="t").order("date", descending=True).apply(rows, {})
        assert [r["id"] for r in result] == ["c", "b", "a"]

    def test_ties_keep_storage_order(self):
        rows = [{"id": str(i), "date": "2024-01-01"} for i in range(5)]
        result = SelectQuery(collection="t").order("date", descending=True).apply(rows, {})
        assert [r["id"] for r in result] == ["0", "1", "2", "3", "4"]

    def test_join_with_dangling_reference(self):
        rows = [{"id": "t1", "category_id": "missing"}]
        query = SelectQuery(collection="t").join("categories", "category_id", ("name",))
        result = query.apply(rows, {"categories": [{"id": "c1", "name": "Food"}]})
        assert result[0]["categories"] is None

    def test_describe(self):
        query = SelectQuery(collection="t").eq("user_id", "u").order("date", descending=True)
        assert query.describe() == "t | user_id eq u | order date desc"


class TestInMemoryRowStore:
    """Tests for the in-memory backend."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id(self):
        store = InMemoryRowStore()
        row = await store.insert("transactions", {"user_id": USER_ID, "amount": "1"})
        assert row["id"]
        assert store.rows("transactions")[0]["id"] == row["id"]
        assert store.calls == [("insert", "transactions")]

    @pytest.mark.asyncio
    async def test_update_replaces_fields_but_not_id(self):
        store = InMemoryRowStore(seed())
        updated = await store.update(
            "transactions", "tx-2", {"id": "hijack", "amount": "130.00"}, owner_id=USER_ID
        )
        assert updated["id"] == "tx-2"
        assert updated["amount"] == "130.00"

    @pytest.mark.asyncio
    async def test_update_is_owner_scoped(self):
        store = InMemoryRowStore(seed())
        with pytest.raises(NotFoundError):
            await store.update("transactions", "tx-2", {"amount": "1"}, owner_id=OTHER_USER_ID)

    @pytest.mark.asyncio
    async def test_delete(self):
        store = InMemoryRowStore(seed())
        assert await store.delete("transactions", "tx-2", owner_id=USER_ID) is True
        assert await store.delete("transactions", "tx-2", owner_id=USER_ID) is False
        assert await store.delete("transactions", "tx-9", owner_id=USER_ID) is False
        assert "tx-9" in {r["id"] for r in store.rows("transactions")}


def make_sheets_store(values: list[list[str]]):
    """GoogleSheetsRowStore over a single mocked worksheet."""
    sheet = MagicMock()
    sheet.get_all_values.return_value = values
    client = MagicMock()
    client.get_collection_sheet.return_value = sheet
    return GoogleSheetsRowStore(client), sheet


HEADER = ["id", "user_id", "amount", "description", "date", "type", "category_id", "created_at"]


def api_error(status: int, message: str) -> gspread.exceptions.APIError:
    """An APIError as gspread raises it for a failed HTTP response."""
    response = MagicMock()
    response.status_code = status
    response.json.return_value = {"error": {"code": status, "message": message, "status": "ERROR"}}
    return gspread.exceptions.APIError(response)


class TestGoogleSheetsRowStore:
    """Tests for the Sheets backend with a mocked client."""

    @pytest.mark.asyncio
    async def test_select_evaluates_query(self):
        store, _ = make_sheets_store([
            HEADER,
            ["tx-1", USER_ID, "10", "", "2024-01-01", "income", "", ""],
            ["tx-2", OTHER_USER_ID, "20", "", "2024-01-02", "income", "", ""],
            ["", "", "", "", "", "", "", ""],
        ])
        rows = await store.select(SelectQuery(collection="transactions").eq("user_id", USER_ID))
        assert [r["id"] for r in rows] == ["tx-1"]

    @pytest.mark.asyncio
    async def test_insert_appends_in_header_order(self):
        store, sheet = make_sheets_store([HEADER])
        row = await store.insert("transactions", {"user_id": USER_ID, "amount": "5.00", "type": "expense"})

        appended = sheet.append_row.call_args.args[0]
        assert appended[0] == row["id"]
        assert appended[1] == USER_ID
        assert appended[2] == "5.00"

    @pytest.mark.asyncio
    async def test_update_rewrites_matching_row(self):
        store, sheet = make_sheets_store([
            HEADER,
            ["tx-1", USER_ID, "10", "", "2024-01-01", "income", "", ""],
        ])
        await store.update("transactions", "tx-1", {"amount": "11"}, owner_id=USER_ID)

        kwargs = sheet.update.call_args.kwargs
        assert kwargs["range_name"] == "A2"
        assert kwargs["values"][0][2] == "11"

    @pytest.mark.asyncio
    async def test_update_other_owner_not_found(self):
        store, sheet = make_sheets_store([
            HEADER,
            ["tx-1", USER_ID, "10", "", "2024-01-01", "income", "", ""],
        ])
        with pytest.raises(NotFoundError):
            await store.update("transactions", "tx-1", {"amount": "11"}, owner_id=OTHER_USER_ID)
        sheet.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_removes_sheet_row(self):
        store, sheet = make_sheets_store([
            HEADER,
            ["tx-1", USER_ID, "10", "", "2024-01-01", "income", "", ""],
            ["tx-2", USER_ID, "20", "", "2024-01-02", "income", "", ""],
        ])
        assert await store.delete("transactions", "tx-2", owner_id=USER_ID) is True
        sheet.delete_rows.assert_called_once_with(3)

    @pytest.mark.asyncio
    async def test_backend_failure_becomes_storage_error(self):
        store, sheet = make_sheets_store([HEADER])
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError, match="quota exceeded"):
            await store.select(SelectQuery(collection="transactions"))

    @pytest.mark.asyncio
    async def test_forbidden_read_is_permission_denied(self):
        store, sheet = make_sheets_store([HEADER])
        sheet.get_all_values.side_effect = api_error(403, "The caller does not have permission")
        with pytest.raises(PermissionDeniedError, match="does not have permission"):
            await store.select(SelectQuery(collection="transactions"))

    @pytest.mark.asyncio
    async def test_forbidden_write_is_permission_denied(self):
        store, sheet = make_sheets_store([HEADER])
        sheet.append_row.side_effect = api_error(403, "The caller does not have permission")
        with pytest.raises(PermissionDeniedError):
            await store.insert("transactions", {"user_id": USER_ID, "amount": "10"})

    @pytest.mark.asyncio
    async def test_other_api_errors_stay_generic(self):
        store, sheet = make_sheets_store([HEADER])
        sheet.get_all_values.side_effect = api_error(500, "Internal error")
        with pytest.raises(StorageError) as exc_info:
            await store.select(SelectQuery(collection="transactions"))
        assert not isinstance(exc_info.value, PermissionDeniedError)
