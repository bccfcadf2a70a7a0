"""
Two-Stage Transaction Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Amount text parses as a finite, unsigned decimal below 10**15 with at most
  2 places
- Category and date are present
- Description length

STAGE 2 - SEMANTIC VALIDATION:
- The chosen category exists and has the same type as the transaction
- Unusually large amounts (warning)
- Dates far in the future (warning)

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes input. An amount like "abc" is
an error that blocks submission; it is not turned into zero. Nothing that
fails validation reaches the store.
"""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional

from fintrack.config import AppSettings, get_settings
from fintrack.models.finance import (
    MAX_AMOUNT_DIGITS,
    Category,
    TransactionDraft,
    TransactionFormData,
    UserIdentity,
    ValidationIssue,
    ValidationResult,
    amount_too_large,
)


MAX_DESCRIPTION_LENGTH = 500


class TransactionValidationError(ValueError):
    """The form cannot be submitted. Carries the full validation result."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.errors)
        super().__init__(messages or "Transaction form is invalid")


def parse_amount_text(text: str) -> Decimal:
    """
    Parse user-entered amount text.

    Accepts '10.50' and '10,50'. Raises ValueError for anything that is
    not a finite number.
    """
    cleaned = (text or "").strip().replace(" ", "")
    if "," in cleaned and "." not in cleaned:
        cleaned = cleaned.replace(",", ".")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Not a number: {text!r}")
    if not value.is_finite():
        raise ValueError(f"Not a finite number: {text!r}")
    return value


class TransactionValidator:
    """
    Validates the create/edit form before anything is sent to the store.

    Stage 1: Schema validation (parsing, presence)
    Stage 2: Semantic validation (needs the user's categories)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        form: TransactionFormData,
    ) -> tuple[bool, list[ValidationIssue], Optional[Decimal]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues, parsed_amount)
        """
        issues = []
        amount = None

        if not form.amount_text.strip():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            try:
                amount = parse_amount_text(form.amount_text)
            except ValueError:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"'{form.amount_text}' is not a valid amount",
                    severity="error",
                    suggested_fix="Enter a number such as 125.90",
                ))

        if amount is not None:
            if amount.is_signed():
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount cannot be negative",
                    severity="error",
                    suggested_fix="Enter the amount without a sign and choose income or expense",
                ))
            elif amount_too_large(amount):
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message=f"Amount must have fewer than {MAX_AMOUNT_DIGITS} digits before the decimal point",
                    severity="error",
                ))
            elif amount.as_tuple().exponent < -2:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="Amount can have at most 2 decimal places",
                    severity="error",
                ))

        if not form.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Please choose a category",
                severity="error",
            ))

        if form.transaction_date is None:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))

        if len(form.description) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is limited to {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, amount

    def _validate_semantic(
        self,
        form: TransactionFormData,
        amount: Decimal,
        categories: Optional[list[Category]],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        `categories` is the user's category list. When it is None the
        category checks are skipped.
        """
        issues = []

        if categories is not None:
            category = next((c for c in categories if c.id == form.category_id), None)
            if category is None:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="unknown_category",
                    message="The selected category no longer exists",
                    severity="error",
                    suggested_fix="Choose another category",
                ))
            elif category.type != form.type:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="category_mismatch",
                    message=(
                        f"Category '{category.name}' is for {category.type.value}, "
                        f"not {form.type.value}"
                    ),
                    severity="error",
                    suggested_fix=f"Choose a {form.type.value} category",
                ))

        if amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="zero_amount",
                message="Amount is zero",
                severity="warning",
            ))
        elif amount > Decimal(str(self._settings.max_transaction_amount)):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount {amount} is unusually large",
                severity="warning",
                suggested_fix="Double-check the number of digits",
            ))

        tolerance = timedelta(days=self._settings.future_date_tolerance_days)
        if form.transaction_date > date.today() + tolerance:
            issues.append(ValidationIssue(
                field="transaction_date",
                issue_type="future_date",
                message=f"Date {form.transaction_date.isoformat()} is in the future",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        form: TransactionFormData,
        categories: Optional[list[Category]] = None,
    ) -> ValidationResult:
        """
        Run full two-stage validation.

        Args:
            form: The form as the user filled it in
            categories: The user's categories, for existence/type checks

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues, amount = self._validate_schema(form)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(form, amount, categories)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def to_draft(
        self,
        form: TransactionFormData,
        user: UserIdentity,
        categories: Optional[list[Category]] = None,
    ) -> TransactionDraft:
        """
        Validate and build the store payload.

        Raises:
            TransactionValidationError: If any error-level issue was found
        """
        result = self.validate(form, categories)
        if not result.is_valid:
            raise TransactionValidationError(result)

        return TransactionDraft(
            amount=parse_amount_text(form.amount_text),
            description=form.description.strip() or None,
            transaction_date=form.transaction_date,
            type=form.type,
            category_id=form.category_id,
            user_id=user.id,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Generate a short summary of validation results for the form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
