"""
Transaction Query Builder

Turns a FilterState into a SelectQuery and runs it against the row store.

The mapping is deterministic:
- Always: owner == current user, newest date first, category joined for display
- Only for non-empty filter fields: date range, category, type

An empty filter field imposes no constraint, so an empty FilterState
returns the owner's full transaction set.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from fintrack.models.finance import FilterState, Transaction, UserIdentity
from fintrack.services.storage import OWNER_COLUMN, RowStoreInterface, SelectQuery


TRANSACTIONS = "transactions"
CATEGORIES = "categories"
CATEGORY_DISPLAY_COLUMNS = ("name", "icon", "color")


logger = structlog.get_logger(__name__)


class TransactionQueryBuilder:
    """Maps a FilterState to a read predicate scoped to one owner."""

    def build(self, filters: FilterState, user: UserIdentity) -> SelectQuery:
        query = (
            SelectQuery(collection=TRANSACTIONS)
            .join(CATEGORIES, foreign_key="category_id", columns=CATEGORY_DISPLAY_COLUMNS)
            .eq(OWNER_COLUMN, user.id)
            .order("date", descending=True)
        )

        if filters.date_from:
            query = query.gte("date", filters.date_from.isoformat())
        if filters.date_to:
            query = query.lte("date", filters.date_to.isoformat())
        if filters.category_id:
            query = query.eq("category_id", filters.category_id)
        if filters.type:
            query = query.eq("type", filters.type.value)

        return query


class TransactionQueryExecutor:
    """
    Issues transaction reads.

    Never mutates anything. Storage failures propagate as StorageError so
    the caller can keep its previous view; no partial list is returned.
    """

    def __init__(
        self,
        storage: RowStoreInterface,
        builder: Optional[TransactionQueryBuilder] = None,
    ):
        self._storage = storage
        self._builder = builder or TransactionQueryBuilder()

    async def fetch(self, filters: FilterState, user: UserIdentity) -> list[Transaction]:
        query = self._builder.build(filters, user)
        rows = await self._storage.select(query)

        transactions = []
        for row in rows:
            try:
                transactions.append(Transaction.from_row(row))
            except (ValidationError, KeyError) as e:
                # Amount problems never land here; they are kept as raw text
                logger.warning(
                    "transaction_row_unreadable",
                    row_id=str(row.get("id")),
                    error=str(e),
                )

        logger.debug("transactions_fetched", query=query.describe(), count=len(transactions))
        return transactions
