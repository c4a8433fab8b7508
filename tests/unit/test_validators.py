"""Unit tests for input validators."""

import pytest
from datetime import date, datetime, timezone, timedelta
from decimal import Decimal
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from shared.enums import BudgetPeriod, Category, PaymentMethod
from shared.exceptions import ValidationError
from shared.validators import (
    validate_amount,
    validate_budget_amount,
    validate_category,
    validate_date,
    validate_payment_method,
    validate_period,
    validate_tags,
    validate_threshold
)


class TestAmountValidation:
    """Test cases for amount validators."""

    def test_expense_amount_must_be_positive(self):
        with pytest.raises(ValidationError, match="greater than 0"):
            validate_amount(0)
        with pytest.raises(ValidationError):
            validate_amount(-10)

    def test_expense_amount_returns_decimal(self):
        assert validate_amount(45.67) == Decimal('45.67')
        assert validate_amount('12') == Decimal('12')

    def test_amount_rejects_more_than_two_decimals(self):
        with pytest.raises(ValidationError, match="2 decimal places"):
            validate_amount('1.005')

    def test_amount_rejects_garbage(self):
        for value in ['abc', None, 'nan', True]:
            with pytest.raises(ValidationError):
                validate_amount(value)

    def test_budget_amount_allows_zero(self):
        assert validate_budget_amount(0) == Decimal('0')

    def test_budget_amount_rejects_negative(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            validate_budget_amount(-1)


class TestEnumValidation:
    """Test cases for category, payment method and period validators."""

    def test_category_is_shared_enum(self):
        assert validate_category('Food & Dining') is Category.FOOD_AND_DINING
        assert validate_category(Category.TRAVEL) is Category.TRAVEL

    def test_unknown_category(self):
        with pytest.raises(ValidationError, match="Invalid category"):
            validate_category('Yachts')

    def test_missing_category(self):
        with pytest.raises(ValidationError, match="Category is required"):
            validate_category('')

    def test_payment_method(self):
        assert validate_payment_method('Credit Card') is PaymentMethod.CREDIT_CARD
        with pytest.raises(ValidationError):
            validate_payment_method('Cheque')

    def test_period_is_case_insensitive(self):
        assert validate_period('Weekly') is BudgetPeriod.WEEKLY
        assert validate_period('yearly') is BudgetPeriod.YEARLY

    def test_unknown_period(self):
        with pytest.raises(ValidationError, match="Invalid period"):
            validate_period('daily')


class TestThresholdValidation:
    """Test cases for alert threshold validation."""

    def test_bounds_are_inclusive(self):
        assert validate_threshold(0) == Decimal('0')
        assert validate_threshold(100) == Decimal('100')
        assert validate_threshold('82.5') == Decimal('82.5')

    def test_out_of_range(self):
        with pytest.raises(ValidationError, match="between 0 and 100"):
            validate_threshold(101)
        with pytest.raises(ValidationError, match="between 0 and 100"):
            validate_threshold(-1)

    def test_not_a_number(self):
        with pytest.raises(ValidationError, match="must be a number"):
            validate_threshold('high')


class TestDateValidation:
    """Test cases for date normalization."""

    def test_plain_date(self):
        assert validate_date('2024-01-15') == '2024-01-15'
        assert validate_date(date(2024, 1, 15)) == '2024-01-15'

    def test_timestamp_is_normalized_to_utc(self):
        value = datetime(2024, 1, 15, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
        assert validate_date(value) == '2024-01-16T01:30:00Z'
        assert validate_date('2024-01-15T10:00:00Z') == '2024-01-15T10:00:00Z'

    def test_naive_datetime_is_utc(self):
        assert validate_date(datetime(2024, 1, 15, 8, 0)) == '2024-01-15T08:00:00Z'

    def test_invalid_date(self):
        with pytest.raises(ValidationError, match="Invalid date format"):
            validate_date('15/01/2024')


class TestTagValidation:
    """Test cases for tags."""

    def test_tags_drop_blanks(self):
        assert validate_tags([' rent ', '', '  ']) == ['rent']
        assert validate_tags(None) == []


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
