"""Validation utilities for the budget tracker application."""

from typing import Any, List, Optional
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from .enums import Category, PaymentMethod, BudgetPeriod
from .exceptions import ValidationError


VALID_CATEGORIES = [category.value for category in Category]

VALID_PAYMENT_METHODS = [method.value for method in PaymentMethod]

VALID_PERIODS = [period.value for period in BudgetPeriod]

MAX_AMOUNT = Decimal('999999.99')


def _to_decimal(value: Any, field_name: str) -> Decimal:
    """Convert a numeric input to a finite Decimal."""
    if value is None:
        raise ValidationError(f"{field_name} is required")

    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name.lower()} format")

    try:
        decimal_value = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field_name.lower()} format")

    if not decimal_value.is_finite():
        raise ValidationError(f"Invalid {field_name.lower()} format")

    return decimal_value


def validate_amount(amount: Any) -> Decimal:
    """
    Validate an expense amount.

    Args:
        amount: Amount to validate

    Returns:
        Validated amount as Decimal

    Raises:
        ValidationError: If amount is invalid
    """
    decimal_amount = _to_decimal(amount, "Amount")

    if decimal_amount <= 0:
        raise ValidationError("Amount must be greater than 0")

    return _check_money(decimal_amount)


def validate_budget_amount(amount: Any) -> Decimal:
    """
    Validate a budget limit. Unlike expenses, a zero limit is allowed.

    Args:
        amount: Limit to validate

    Returns:
        Validated limit as Decimal

    Raises:
        ValidationError: If the limit is negative or malformed
    """
    decimal_amount = _to_decimal(amount, "Amount")

    if decimal_amount < 0:
        raise ValidationError("Budget amount cannot be negative")

    return _check_money(decimal_amount)


def _check_money(decimal_amount: Decimal) -> Decimal:
    if decimal_amount > MAX_AMOUNT:
        raise ValidationError("Amount is too large")

    # Ensure at most 2 decimal places
    if decimal_amount.as_tuple().exponent < -2:
        raise ValidationError("Amount can have at most 2 decimal places")

    return decimal_amount


def format_timestamp(value: datetime) -> str:
    """Format a datetime as a UTC ISO-8601 string (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def validate_date(value: Any) -> str:
    """
    Validate a date or timestamp.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` strings and ISO 8601
    timestamps. Dates come back as ``YYYY-MM-DD``, timestamps as UTC
    ``YYYY-MM-DDTHH:MM:SSZ``; both sort lexicographically in time order.

    Args:
        value: Date to validate

    Returns:
        Normalized date string

    Raises:
        ValidationError: If date is invalid
    """
    if not value:
        raise ValidationError("Date is required")

    if isinstance(value, datetime):
        return format_timestamp(value)

    if isinstance(value, date):
        return value.isoformat()

    if not isinstance(value, str):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")

    value = value.strip()

    try:
        return datetime.strptime(value, '%Y-%m-%d').date().isoformat()
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")

    return format_timestamp(parsed)


def validate_category(category: Any) -> Category:
    """
    Validate spending category.

    Args:
        category: Category to validate

    Returns:
        Validated category

    Raises:
        ValidationError: If category is invalid
    """
    if not category:
        raise ValidationError("Category is required")

    try:
        return Category(category)
    except ValueError:
        raise ValidationError(
            f"Invalid category. Must be one of: {', '.join(VALID_CATEGORIES)}"
        )


def validate_payment_method(payment_method: Any) -> PaymentMethod:
    """Validate payment method."""
    if not payment_method:
        raise ValidationError("Payment method is required")

    try:
        return PaymentMethod(payment_method)
    except ValueError:
        raise ValidationError(
            f"Invalid payment method. Must be one of: {', '.join(VALID_PAYMENT_METHODS)}"
        )


def validate_period(period: Any) -> BudgetPeriod:
    """
    Validate budget period.

    Args:
        period: Period to validate

    Returns:
        Validated period

    Raises:
        ValidationError: If period is invalid
    """
    if not period:
        raise ValidationError("Period is required")

    if isinstance(period, BudgetPeriod):
        return period

    if not isinstance(period, str):
        raise ValidationError(
            f"Invalid period. Must be one of: {', '.join(VALID_PERIODS)}"
        )

    try:
        return BudgetPeriod(period.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid period. Must be one of: {', '.join(VALID_PERIODS)}"
        )


def validate_threshold(threshold: Any) -> Decimal:
    """
    Validate alert threshold percentage.

    Args:
        threshold: Threshold value to validate

    Returns:
        Validated threshold

    Raises:
        ValidationError: If threshold is invalid
    """
    try:
        threshold = _to_decimal(threshold, "Threshold")
    except ValidationError:
        raise ValidationError("Threshold must be a number")

    if threshold < 0 or threshold > 100:
        raise ValidationError("Threshold must be between 0 and 100")

    return threshold


def validate_tags(tags: Optional[List[Any]]) -> List[str]:
    """Validate expense tags, dropping blanks."""
    if tags is None:
        return []

    if not isinstance(tags, (list, tuple)):
        raise ValidationError("Tags must be a list")

    return [sanitize_string(tag, max_length=50) for tag in tags if str(tag).strip()]


def sanitize_string(value: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize string input.

    Args:
        value: String to sanitize
        max_length: Optional maximum length

    Returns:
        Sanitized string

    Raises:
        ValidationError: If string is invalid
    """
    if not isinstance(value, str):
        raise ValidationError("Value must be a string")

    # Remove leading/trailing whitespace
    value = value.strip()

    if max_length and len(value) > max_length:
        raise ValidationError(f"Value exceeds maximum length of {max_length}")

    return value
