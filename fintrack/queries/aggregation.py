"""
Aggregation Engine

Turns an already-filtered transaction set into a Summary. This is a pure
function of its input: no storage access, no ordering dependency.

    total_income  = sum of amounts where type == income
    total_expense = sum of amounts where type == expense
    balance       = total_income - total_expense

All arithmetic is Decimal, so balance is exact.

A transaction whose amount cannot be read as a number contributes zero and
is listed in Summary.malformed_transaction_ids. One bad record never aborts
the aggregation, but it is always logged.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

import structlog

from fintrack.models.finance import Summary, Transaction, TransactionType


ONE_DECIMAL = Decimal("0.1")
HUNDRED = Decimal("100")


logger = structlog.get_logger(__name__)


def summarize(transactions: Iterable[Transaction]) -> Summary:
    """Compute income, expense and balance from scratch."""
    total_income = Decimal("0")
    total_expense = Decimal("0")
    income_count = 0
    expense_count = 0
    malformed: list[str] = []

    for transaction in transactions:
        amount = transaction.amount_value
        if amount is None:
            malformed.append(transaction.id)
            amount = Decimal("0")

        if transaction.type == TransactionType.INCOME:
            total_income += amount
            income_count += 1
        else:
            total_expense += amount
            expense_count += 1

    if malformed:
        logger.warning(
            "malformed_amounts_counted_as_zero",
            count=len(malformed),
            transaction_ids=malformed,
        )

    return Summary(
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
        income_count=income_count,
        expense_count=expense_count,
        malformed_transaction_ids=tuple(malformed),
    )


def _percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    return (numerator / denominator * HUNDRED).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def savings_rate(summary: Summary) -> Decimal:
    """
    Balance as a percentage of income, one decimal place.

    Zero when there is no income.
    """
    if summary.total_income > 0:
        return _percent(summary.balance, summary.total_income)
    return Decimal("0.0")


def income_share(summary: Summary) -> Decimal:
    """
    Balance-card percentage: balance / (income or 1), one decimal place.

    A zero income is replaced by 1 rather than treated as undefined, so with
    no income this is the balance itself times 100.
    """
    denominator = summary.total_income or Decimal("1")
    return _percent(summary.balance, denominator)
