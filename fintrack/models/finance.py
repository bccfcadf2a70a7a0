"""
Core Data Models for the Finance Tracker

These models define the schemas for all data flowing between the row store,
the dashboard view model and the presentation layer. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Convert cleanly to and from store rows

DESIGN DECISION: Amounts are stored unsigned. The sign of a transaction is
derived from its type when displaying or aggregating, never persisted.

Rows coming back from the store are plain dicts with ISO dates and amounts
as text or numbers. A fetched amount that cannot be read as a number is kept
as raw text so the record can still be shown; aggregation treats it as zero.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    Categories carry a type too; a transaction may only reference a
    category of the same type.
    """
    INCOME = "income"
    EXPENSE = "expense"


class NotificationSeverity(str, Enum):
    """Severity of a user-facing notification."""
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


# Amounts stay below 10**15 so totals fit the 28-digit decimal context in cents.
MAX_AMOUNT_DIGITS = 15


def amount_too_large(amount: Decimal) -> bool:
    """True when the amount has MAX_AMOUNT_DIGITS or more integer digits."""
    return amount != 0 and amount.adjusted() >= MAX_AMOUNT_DIGITS


def coerce_amount(value: Any) -> Optional[Decimal]:
    """
    Read a stored amount as a finite Decimal.

    Returns None when the value cannot be read as a number
    (empty, non-numeric text, NaN, infinity, booleans) or is too large
    to be shown in cents.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        candidate = value
    else:
        try:
            candidate = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not candidate.is_finite() or amount_too_large(candidate):
        return None
    return candidate


# =============================================================================
# IDENTITY
# =============================================================================

class UserIdentity(BaseModel):
    """The authenticated owner all transactions and categories belong to."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1, description="Opaque user identifier")
    display_name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=320)

    @property
    def greeting_name(self) -> str:
        return self.display_name or "User"


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryRef(BaseModel):
    """
    Display projection of a category joined onto a transaction at read time.

    This is not a stored relation, just the fields the list needs.
    """
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None


class Category(BaseModel):
    """A user-owned category from the category directory."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = Field(
        default=None,
        description="Icon identifier, resolved through the presentation icon table"
    )
    color: Optional[str] = Field(
        default=None,
        description="Display colour hint, e.g. '#16a34a'"
    )
    type: TransactionType
    user_id: str = Field(..., min_length=1)

    @property
    def ref(self) -> CategoryRef:
        return CategoryRef(name=self.name, icon=self.icon, color=self.color)

    @classmethod
    def from_row(cls, row: dict) -> "Category":
        return cls(
            id=str(row["id"]),
            name=row["name"],
            icon=row.get("icon") or None,
            color=row.get("color") or None,
            type=row["type"],
            user_id=str(row["user_id"]),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon or "",
            "color": self.color or "",
            "type": self.type.value,
            "user_id": self.user_id,
        }


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A transaction as fetched from the store, enriched with its category.

    `amount` is a Decimal when the stored value is a usable number and the
    raw text otherwise. Use `amount_value` for arithmetic.
    """

    id: str = Field(..., min_length=1)
    amount: Union[Decimal, str]
    description: Optional[str] = None
    date: date
    type: TransactionType
    category_id: str = ""
    user_id: str = ""
    category: Optional[CategoryRef] = None

    @field_validator('amount', mode='before')
    @classmethod
    def keep_raw_text_when_malformed(cls, v: Any) -> Union[Decimal, str]:
        """Numeric values become Decimal; anything else is kept verbatim."""
        coerced = coerce_amount(v)
        if coerced is None:
            return "" if v is None else str(v)
        return coerced

    @property
    def amount_value(self) -> Optional[Decimal]:
        """Numeric amount, or None if the stored value is malformed."""
        return self.amount if isinstance(self.amount, Decimal) else None

    @property
    def is_malformed(self) -> bool:
        return self.amount_value is None

    @property
    def signed_amount(self) -> Optional[Decimal]:
        value = self.amount_value
        if value is None:
            return None
        return value if self.type == TransactionType.INCOME else -value

    @classmethod
    def from_row(cls, row: dict) -> "Transaction":
        """Build a Transaction from a store row with an optional joined category."""
        joined = row.get("categories")
        return cls(
            id=str(row["id"]),
            amount=row.get("amount"),
            description=row.get("description") or None,
            date=row["date"],
            type=row["type"],
            category_id=str(row.get("category_id") or ""),
            user_id=str(row.get("user_id") or ""),
            category=CategoryRef(**joined) if joined else None,
        )


class TransactionDraft(BaseModel):
    """
    A validated create/update payload.

    Only the validator builds these; anything reaching the store has
    already passed amount parsing and category checks.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Unsigned amount")
    ]
    description: Optional[str] = Field(default=None, max_length=500)
    transaction_date: date
    type: TransactionType
    category_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)

    def to_row(self) -> dict:
        """Row values for insert/update. Dates travel as ISO strings."""
        return {
            "amount": str(self.amount.copy_abs()),  # "-0" is stored as "0"
            "description": self.description or "",
            "date": self.transaction_date.isoformat(),
            "type": self.type.value,
            "category_id": self.category_id,
            "user_id": self.user_id,
        }


class TransactionFormData(BaseModel):
    """
    Editable state of the create/edit form.

    Everything is kept as the user typed it; parsing happens in the
    validator when the form is submitted.
    """

    amount_text: str = ""
    description: str = ""
    transaction_date: Optional[date] = Field(default_factory=date.today)
    type: TransactionType = TransactionType.EXPENSE
    category_id: str = ""

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionFormData":
        """Prefill the form from an existing transaction (edit mode)."""
        return cls(
            amount_text=str(transaction.amount),
            description=transaction.description or "",
            transaction_date=transaction.date,
            type=transaction.type,
            category_id=transaction.category_id,
        )

    def with_type(self, new_type: TransactionType) -> "TransactionFormData":
        """Switch type; the chosen category no longer applies, so it is cleared."""
        if new_type == self.type:
            return self
        return self.model_copy(update={"type": new_type, "category_id": ""})


# =============================================================================
# FILTERS AND SUMMARY
# =============================================================================

class FilterState(BaseModel):
    """
    The active query predicate over transactions.

    Every field is optional; an empty value imposes no constraint.
    Instances are immutable, use `updated()` to derive a new one.
    """
    model_config = ConfigDict(frozen=True)

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    category_id: Optional[str] = None
    type: Optional[TransactionType] = None

    @field_validator('date_from', 'date_to', 'category_id', 'type', mode='before')
    @classmethod
    def empty_means_unconstrained(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def cleared(cls) -> "FilterState":
        return cls()

    def updated(self, **changes: Any) -> "FilterState":
        """Return a copy with the given fields replaced (validated again)."""
        return type(self).model_validate({**self.model_dump(), **changes})

    @property
    def is_active(self) -> bool:
        return any(
            value is not None
            for value in (self.date_from, self.date_to, self.category_id, self.type)
        )

    @property
    def has_inverted_range(self) -> bool:
        """Both dates set with the start after the end. Such a filter matches nothing."""
        return (
            self.date_from is not None
            and self.date_to is not None
            and self.date_from > self.date_to
        )


class Summary(BaseModel):
    """
    Aggregate figures for one transaction set.

    Derived and never persisted; recomputed from scratch whenever
    the transaction set changes.
    """
    model_config = ConfigDict(frozen=True)

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    income_count: int = Field(default=0, ge=0)
    expense_count: int = Field(default=0, ge=0)
    malformed_transaction_ids: tuple[str, ...] = ()


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in the transaction form."""

    field: str = Field(
        ...,
        description="Form field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'category_mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage form validation.

    Stage 1: Schema validation (parsing, required fields)
    Stage 2: Semantic validation (category type, plausibility)
    """

    validated_at: datetime = Field(default_factory=datetime.utcnow)

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)

    # Warnings don't block but should be shown
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class Notification(BaseModel):
    """A transient, dismissible message shown to the user."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    title: str
    message: str
    severity: NotificationSeverity = NotificationSeverity.INFO
