"""Query building, category lookup and aggregation."""

from fintrack.queries.aggregation import income_share, savings_rate, summarize
from fintrack.queries.builder import (
    CATEGORIES,
    TRANSACTIONS,
    TransactionQueryBuilder,
    TransactionQueryExecutor,
)
from fintrack.queries.categories import DEFAULT_CATEGORIES, CategoryDirectory

__all__ = [
    "CATEGORIES",
    "DEFAULT_CATEGORIES",
    "TRANSACTIONS",
    "CategoryDirectory",
    "TransactionQueryBuilder",
    "TransactionQueryExecutor",
    "income_share",
    "savings_rate",
    "summarize",
]
