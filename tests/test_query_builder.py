"""Tests for filter-to-query mapping and transaction reads."""

from datetime import date

import pytest

from fintrack.models import FilterState, TransactionType
from fintrack.queries import (
    CATEGORIES,
    DEFAULT_CATEGORIES,
    TRANSACTIONS,
    CategoryDirectory,
    TransactionQueryBuilder,
    TransactionQueryExecutor,
)
from fintrack.services.storage import InMemoryRowStore, PredicateOp, StorageError

from tests.conftest import USER_ID, seed


class TestTransactionQueryBuilder:
    """Tests for TransactionQueryBuilder.build()."""

    def test_empty_filters_only_scope_owner(self, user):
        """An empty filter adds no predicate beyond the owner."""
        query = TransactionQueryBuilder().build(FilterState(), user)

        assert query.collection == TRANSACTIONS
        assert len(query.predicates) == 1
        owner = query.predicates[0]
        assert (owner.column, owner.op, owner.value) == ("user_id", PredicateOp.EQ, USER_ID)
        assert query.order_by[0].column == "date"
        assert query.order_by[0].descending is True
        assert query.joins[0].collection == CATEGORIES
        assert query.joins[0].columns == ("name", "icon", "color")

    def test_each_field_adds_its_predicate(self, user):
        filters = FilterState(
            date_from=date(2024, 3, 1),
            date_to=date(2024, 3, 31),
            category_id="cat-food",
            type=TransactionType.EXPENSE,
        )
        query = TransactionQueryBuilder().build(filters, user)

        assert query.predicate_for("date", PredicateOp.GTE).value == "2024-03-01"
        assert query.predicate_for("date", PredicateOp.LTE).value == "2024-03-31"
        assert query.predicate_for("category_id", PredicateOp.EQ).value == "cat-food"
        assert query.predicate_for("type", PredicateOp.EQ).value == "expense"
        assert query.predicate_for("user_id", PredicateOp.EQ).value == USER_ID

    def test_only_upper_bound(self, user):
        query = TransactionQueryBuilder().build(FilterState(date_to=date(2024, 2, 29)), user)
        assert query.predicate_for("date", PredicateOp.GTE) is None
        assert query.predicate_for("date", PredicateOp.LTE).value == "2024-02-29"

    def test_build_is_deterministic(self, user):
        filters = FilterState(type=TransactionType.INCOME, category_id="cat-salary")
        builder = TransactionQueryBuilder()
        assert builder.build(filters, user) == builder.build(filters, user)


class TestTransactionQueryExecutor:
    """Tests for reads against the in-memory store."""

    @pytest.mark.asyncio
    async def test_empty_filters_return_full_owner_set(self, user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        transactions = await executor.fetch(FilterState(), user)

        assert {t.id for t in transactions} == {"tx-1", "tx-2", "tx-3", "tx-4", "tx-5"}
        assert all(t.user_id == USER_ID for t in transactions)

    @pytest.mark.asyncio
    async def test_newest_first(self, user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        transactions = await executor.fetch(FilterState(), user)

        dates = [t.date for t in transactions]
        assert dates == sorted(dates, reverse=True)

    @pytest.mark.asyncio
    async def test_every_result_satisfies_filters(self, user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        filters = FilterState(
            date_from=date(2024, 3, 1),
            date_to=date(2024, 3, 31),
            type=TransactionType.EXPENSE,
        )
        transactions = await executor.fetch(filters, user)

        assert [t.id for t in transactions] == ["tx-3", "tx-2"]
        for t in transactions:
            assert date(2024, 3, 1) <= t.date <= date(2024, 3, 31)
            assert t.type == TransactionType.EXPENSE

    @pytest.mark.asyncio
    async def test_date_bounds_are_inclusive(self, user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        filters = FilterState(date_from=date(2024, 3, 5), date_to=date(2024, 3, 5))
        transactions = await executor.fetch(filters, user)
        assert [t.id for t in transactions] == ["tx-2"]

    @pytest.mark.asyncio
    async def test_same_filters_same_result(self, user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        filters = FilterState(category_id="cat-food")
        first = await executor.fetch(filters, user)
        second = await executor.fetch(filters, user)
        assert first == second

    @pytest.mark.asyncio
    async def test_inverted_range_matches_nothing(self, user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        filters = FilterState(date_from=date(2024, 3, 31), date_to=date(2024, 3, 1))
        assert await executor.fetch(filters, user) == []

    @pytest.mark.asyncio
    async def test_category_is_joined(self, user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        transactions = await executor.fetch(FilterState(category_id="cat-salary"), user)
        assert transactions[0].category.name == "Salary"
        assert transactions[0].category.icon == "Briefcase"

    @pytest.mark.asyncio
    async def test_other_users_rows_never_returned(self, other_user):
        executor = TransactionQueryExecutor(InMemoryRowStore(seed()))
        transactions = await executor.fetch(FilterState(), other_user)
        assert [t.id for t in transactions] == ["tx-9"]

    @pytest.mark.asyncio
    async def test_unreadable_row_is_skipped(self, user):
        collections = seed()
        collections[TRANSACTIONS].append(
            {"id": "tx-broken", "user_id": USER_ID, "amount": "1", "date": "not a date", "type": "income"}
        )
        executor = TransactionQueryExecutor(InMemoryRowStore(collections))
        transactions = await executor.fetch(FilterState(), user)
        assert "tx-broken" not in {t.id for t in transactions}
        assert len(transactions) == 5

    @pytest.mark.asyncio
    async def test_storage_error_propagates(self, user, store):
        store.fail_selects = True
        with pytest.raises(StorageError):
            await TransactionQueryExecutor(store).fetch(FilterState(), user)


class TestCategoryDirectory:
    """Tests for category reads and seeding."""

    @pytest.mark.asyncio
    async def test_list_by_type_ordered_by_name(self, user):
        directory = CategoryDirectory(InMemoryRowStore(seed()))
        income = await directory.list_categories(user, type=TransactionType.INCOME)
        assert [c.name for c in income] == ["Freelance", "Salary"]

    @pytest.mark.asyncio
    async def test_get_category_is_owner_scoped(self, user):
        directory = CategoryDirectory(InMemoryRowStore(seed()))
        assert (await directory.get_category(user, "cat-food")).name == "Food"
        assert await directory.get_category(user, "cat-other-food") is None

    @pytest.mark.asyncio
    async def test_seed_defaults_only_once(self, user):
        store = InMemoryRowStore()
        directory = CategoryDirectory(store)

        first = await directory.seed_defaults(user)
        second = await directory.seed_defaults(user)

        assert len(first) == len(DEFAULT_CATEGORIES)
        assert [c.id for c in second] == [c.id for c in first]
        assert sum(1 for op, _ in store.calls if op == "insert") == len(DEFAULT_CATEGORIES)
