"""
Display formatting for the dashboard.

Pure functions from models to display strings, so the Streamlit page only
lays things out. Currency symbol, separators and the date pattern come from
AppSettings.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel

from fintrack.config import AppSettings, get_settings
from fintrack.models.finance import Summary, Transaction, TransactionType
from fintrack.presentation.icons import resolve_icon
from fintrack.queries.aggregation import income_share, savings_rate


CENTS = Decimal("0.01")


class SummaryCard(BaseModel):
    """One of the four summary cards."""
    key: str
    title: str
    value: str
    caption: str
    tone: str  # positive | negative | neutral
    icon: str


class TransactionRowView(BaseModel):
    """Everything the list needs to draw one transaction."""
    id: str
    title: str
    category_name: str
    icon: str
    color: Optional[str] = None
    date_text: str
    amount_text: str
    tone: str
    is_malformed: bool = False


def _settings(settings: Optional[AppSettings]) -> AppSettings:
    return settings or get_settings().app


def format_currency(amount: Decimal, settings: Optional[AppSettings] = None) -> str:
    """Format an amount like 'R$ 1.234,56' (negative: '-R$ 60,00')."""
    settings = _settings(settings)
    quantized = Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    digits = f"{abs(quantized):,.2f}"
    digits = (
        digits.replace(",", "\0")
        .replace(".", settings.decimal_separator)
        .replace("\0", settings.thousands_separator)
    )
    sign = "-" if quantized < 0 else ""
    return f"{sign}{settings.currency_symbol} {digits}"


def format_percentage(value: Decimal) -> str:
    return f"{value:.1f}%"


def format_date(value: date, settings: Optional[AppSettings] = None) -> str:
    return value.strftime(_settings(settings).date_format)


def format_signed_amount(transaction: Transaction, settings: Optional[AppSettings] = None) -> str:
    """
    '+R$ 100,00' for income, '-R$ 40,00' for expense.

    A malformed amount is shown as stored, flagged, and never formatted.
    """
    value = transaction.amount_value
    if value is None:
        raw = transaction.amount if transaction.amount else "(empty)"
        return f"{raw} (invalid amount)"
    sign = "+" if transaction.type == TransactionType.INCOME else "-"
    return f"{sign}{format_currency(value, settings)}"


def transaction_title(transaction: Transaction) -> str:
    """Description, or the category name when there is none."""
    if transaction.description:
        return transaction.description
    if transaction.category:
        return transaction.category.name
    return "Uncategorized"


def build_transaction_row(
    transaction: Transaction,
    settings: Optional[AppSettings] = None,
) -> TransactionRowView:
    category = transaction.category
    return TransactionRowView(
        id=transaction.id,
        title=transaction_title(transaction),
        category_name=category.name if category else "Uncategorized",
        icon=resolve_icon(category.icon if category else None),
        color=category.color if category else None,
        date_text=format_date(transaction.date, settings),
        amount_text=format_signed_amount(transaction, settings),
        tone="positive" if transaction.type == TransactionType.INCOME else "negative",
        is_malformed=transaction.is_malformed,
    )


def build_summary_cards(
    summary: Summary,
    settings: Optional[AppSettings] = None,
) -> list[SummaryCard]:
    """Balance, income, expenses and savings-rate cards, in display order."""
    balance_positive = summary.balance >= 0
    share = income_share(summary)

    return [
        SummaryCard(
            key="balance",
            title="Balance",
            value=format_currency(summary.balance, settings),
            caption=f"{'+' if balance_positive else ''}{format_percentage(share)} of total income",
            tone="positive" if balance_positive else "negative",
            icon="👛",
        ),
        SummaryCard(
            key="income",
            title="Income",
            value=format_currency(summary.total_income, settings),
            caption=f"{summary.income_count} transactions",
            tone="positive",
            icon="📈",
        ),
        SummaryCard(
            key="expenses",
            title="Expenses",
            value=format_currency(summary.total_expense, settings),
            caption=f"{summary.expense_count} transactions",
            tone="negative",
            icon="📉",
        ),
        SummaryCard(
            key="savings_rate",
            title="Savings rate",
            value=format_percentage(savings_rate(summary)),
            caption="Of total income",
            tone="neutral",
            icon="💲",
        ),
    ]
