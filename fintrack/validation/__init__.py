"""Transaction form validation."""

from fintrack.validation.validator import (
    TransactionValidationError,
    TransactionValidator,
    parse_amount_text,
)

__all__ = [
    "TransactionValidationError",
    "TransactionValidator",
    "parse_amount_text",
]
