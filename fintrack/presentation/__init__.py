"""Presentation helpers shared by the Streamlit page."""

from fintrack.presentation.formatting import (
    SummaryCard,
    TransactionRowView,
    build_summary_cards,
    build_transaction_row,
    format_currency,
    format_date,
    format_percentage,
    format_signed_amount,
    transaction_title,
)
from fintrack.presentation.icons import ICON_GLYPHS, CategoryIcon, resolve_icon

__all__ = [
    "ICON_GLYPHS",
    "CategoryIcon",
    "SummaryCard",
    "TransactionRowView",
    "build_summary_cards",
    "build_transaction_row",
    "format_currency",
    "format_date",
    "format_percentage",
    "format_signed_amount",
    "resolve_icon",
    "transaction_title",
]
