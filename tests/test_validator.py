"""Tests for the two-stage form validator."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from fintrack.models import Category, TransactionDraft, TransactionFormData, TransactionType
from fintrack.validation import (
    TransactionValidationError,
    TransactionValidator,
    parse_amount_text,
)

from tests.conftest import category_rows


@pytest.fixture
def validator(app_settings):
    return TransactionValidator(app_settings)


@pytest.fixture
def categories():
    return [Category.from_row(row) for row in category_rows()]


def expense_form(**overrides) -> TransactionFormData:
    values = {
        "amount_text": "120.50",
        "description": "Groceries",
        "transaction_date": date(2024, 3, 5),
        "type": TransactionType.EXPENSE,
        "category_id": "cat-food",
    }
    values.update(overrides)
    return TransactionFormData(**values)


class TestParseAmountText:
    """Tests for amount parsing."""

    def test_dot_and_comma_decimals(self):
        assert parse_amount_text("10.50") == Decimal("10.50")
        assert parse_amount_text("10,50") == Decimal("10.50")
        assert parse_amount_text(" 7 ") == Decimal("7")

    @pytest.mark.parametrize("text", ["abc", "", "NaN", "inf", "1.2.3"])
    def test_rejects_non_numbers(self, text):
        with pytest.raises(ValueError):
            parse_amount_text(text)


class TestSchemaValidation:
    """Tests for stage 1."""

    def test_valid_form(self, validator, categories):
        result = validator.validate(expense_form(), categories)
        assert result.is_valid is True
        assert result.issues == []

    def test_non_numeric_amount_is_rejected(self, validator):
        """'abc' is an error, never a silent zero."""
        result = validator.validate(expense_form(amount_text="abc"))
        assert result.is_valid is False
        assert result.schema_valid is False
        assert result.errors[0].field == "amount"
        assert result.errors[0].issue_type == "invalid_format"

    def test_missing_amount(self, validator):
        result = validator.validate(expense_form(amount_text="  "))
        assert result.errors[0].issue_type == "missing"

    def test_negative_amount(self, validator):
        result = validator.validate(expense_form(amount_text="-5"))
        assert result.errors[0].issue_type == "invalid_value"

    def test_too_many_decimal_places(self, validator):
        result = validator.validate(expense_form(amount_text="1.999"))
        assert result.is_valid is False

    @pytest.mark.parametrize("text", ["-0", "-0.00"])
    def test_signed_zero_is_rejected(self, validator, text):
        result = validator.validate(expense_form(amount_text=text))
        assert result.is_valid is False
        assert result.errors[0].message == "Amount cannot be negative"

    @pytest.mark.parametrize("text", ["1e30", "1" * 29, "1000000000000000"])
    def test_amount_too_large_is_rejected(self, validator, text):
        """Amounts that cannot be shown in cents never pass as a warning."""
        result = validator.validate(expense_form(amount_text=text))
        assert result.is_valid is False
        assert result.errors[0].field == "amount"
        assert result.errors[0].issue_type == "invalid_value"

    def test_largest_amount_only_warns(self, validator, categories):
        result = validator.validate(expense_form(amount_text="999999999999999.99"), categories)
        assert result.is_valid is True
        assert result.warnings == ["Amount 999999999999999.99 is unusually large"]

    def test_missing_category_and_date(self, validator):
        result = validator.validate(expense_form(category_id="", transaction_date=None))
        fields = {issue.field for issue in result.errors}
        assert fields == {"category_id", "transaction_date"}

    def test_semantic_stage_skipped_after_schema_failure(self, validator, categories):
        result = validator.validate(expense_form(amount_text="abc", category_id="cat-salary"), categories)
        assert result.semantic_valid is False
        assert all(issue.issue_type != "category_mismatch" for issue in result.issues)


class TestSemanticValidation:
    """Tests for stage 2."""

    def test_category_type_must_match(self, validator, categories):
        result = validator.validate(expense_form(category_id="cat-salary"), categories)
        assert result.is_valid is False
        assert result.errors[0].issue_type == "category_mismatch"

    def test_unknown_category(self, validator, categories):
        result = validator.validate(expense_form(category_id="cat-gone"), categories)
        assert result.errors[0].issue_type == "unknown_category"

    def test_other_users_category_is_unknown(self, validator, categories):
        own = [c for c in categories if c.user_id == "user-1"]
        result = validator.validate(expense_form(category_id="cat-other-food"), own)
        assert result.errors[0].issue_type == "unknown_category"

    def test_warnings_do_not_block(self, validator, categories):
        future = date.today() + timedelta(days=30)
        result = validator.validate(
            expense_form(amount_text="2000000", transaction_date=future), categories
        )
        assert result.is_valid is True
        assert len(result.warnings) == 2

    def test_zero_amount_warns(self, validator, categories):
        result = validator.validate(expense_form(amount_text="0"), categories)
        assert result.is_valid is True
        assert result.warnings == ["Amount is zero"]


class TestToDraft:
    """Tests for building the store payload."""

    def test_builds_draft(self, validator, categories, user):
        draft = validator.to_draft(expense_form(amount_text="120,50", description="  "), user, categories)
        assert draft.amount == Decimal("120.50")
        assert draft.description is None
        assert draft.user_id == user.id
        assert draft.to_row()["date"] == "2024-03-05"

    def test_signed_zero_is_stored_unsigned(self, user):
        draft = TransactionDraft(
            amount=Decimal("-0"),
            transaction_date=date(2024, 3, 5),
            type=TransactionType.EXPENSE,
            category_id="cat-food",
            user_id=user.id,
        )
        assert draft.to_row()["amount"] == "0"

    def test_raises_with_result(self, validator, user):
        with pytest.raises(TransactionValidationError) as exc_info:
            validator.to_draft(expense_form(amount_text="abc"), user)
        assert exc_info.value.result.has_errors is True
        assert "not a valid amount" in str(exc_info.value)

    def test_user_friendly_summary(self, validator):
        result = validator.validate(expense_form(amount_text="abc"))
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("Please fix the following:")
        assert "'abc' is not a valid amount" in summary
