"""Period window resolution for budgets."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from shared.enums import BudgetPeriod
from shared.validators import validate_period


@dataclass(frozen=True)
class PeriodWindow:
    """Half-open UTC interval ``[start, end)``."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= _as_utc(instant) < self.end


def _as_utc(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def resolve_period_window(period: Any, reference: Optional[datetime] = None) -> PeriodWindow:
    """
    Resolve the current window of a budget period.

    Weeks start on Monday. Naive references are treated as UTC and ``None``
    means now.

    Args:
        period: Budget period (weekly/monthly/yearly)
        reference: Instant the window must contain

    Returns:
        The window containing ``reference``

    Raises:
        ValidationError: If period is invalid
    """
    period = validate_period(period)
    reference = _as_utc(reference) if reference is not None else datetime.now(timezone.utc)
    midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == BudgetPeriod.WEEKLY:
        start = midnight - timedelta(days=midnight.weekday())
        end = start + timedelta(days=7)
    elif period == BudgetPeriod.MONTHLY:
        start = midnight.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
    else:
        start = midnight.replace(month=1, day=1)
        end = start.replace(year=start.year + 1)

    return PeriodWindow(start=start, end=end)
