"""Unit tests for period window resolution."""

import pytest
from datetime import date, datetime, timezone, timedelta
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from budgets.periods import PeriodWindow, resolve_period_window
from shared.exceptions import ValidationError


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestResolvePeriodWindow:
    """Test cases for resolve_period_window."""

    def test_monthly_window(self):
        window = resolve_period_window('monthly', utc(2024, 3, 15, 12, 30))

        assert window.start == utc(2024, 3, 1)
        assert window.end == utc(2024, 4, 1)

    def test_monthly_window_rolls_over_year(self):
        window = resolve_period_window('monthly', utc(2024, 12, 31, 23, 59, 59))

        assert window.start == utc(2024, 12, 1)
        assert window.end == utc(2025, 1, 1)

    def test_monthly_window_in_february_of_leap_year(self):
        window = resolve_period_window('monthly', utc(2024, 2, 29))

        assert window.start == utc(2024, 2, 1)
        assert window.end == utc(2024, 3, 1)

    def test_weekly_window_starts_on_monday(self):
        # 2024-03-14 is a Thursday
        window = resolve_period_window('weekly', utc(2024, 3, 14, 9, 0))

        assert window.start == utc(2024, 3, 11)
        assert window.end == utc(2024, 3, 18)

    def test_weekly_window_on_sunday_belongs_to_previous_monday(self):
        window = resolve_period_window('weekly', utc(2024, 3, 17, 23, 0))

        assert window.start == utc(2024, 3, 11)

    def test_weekly_window_across_month_boundary(self):
        window = resolve_period_window('weekly', utc(2024, 5, 1))

        assert window.start == utc(2024, 4, 29)
        assert window.end == utc(2024, 5, 6)

    def test_yearly_window(self):
        window = resolve_period_window('yearly', utc(2024, 7, 4, 18, 0))

        assert window.start == utc(2024, 1, 1)
        assert window.end == utc(2025, 1, 1)

    def test_naive_reference_is_utc(self):
        window = resolve_period_window('monthly', datetime(2024, 3, 31, 23, 0))

        assert window.start == utc(2024, 3, 1)

    def test_aware_reference_is_converted_to_utc(self):
        # 2024-03-31 22:00 at UTC-3 is already April in UTC
        reference = datetime(2024, 3, 31, 22, 0, tzinfo=timezone(timedelta(hours=-3)))

        window = resolve_period_window('monthly', reference)

        assert window.start == utc(2024, 4, 1)

    def test_date_reference(self):
        window = resolve_period_window('yearly', date(2023, 6, 1))

        assert window.start == utc(2023, 1, 1)

    def test_defaults_to_now(self):
        window = resolve_period_window('weekly')

        assert window.contains(datetime.now(timezone.utc))

    def test_invalid_period(self):
        with pytest.raises(ValidationError):
            resolve_period_window('fortnightly', utc(2024, 1, 1))

    def test_pure_function(self):
        reference = utc(2024, 3, 15)

        assert resolve_period_window('monthly', reference) == resolve_period_window('monthly', reference)


class TestPeriodWindow:
    """Test cases for the half-open window."""

    def test_contains_is_half_open(self):
        window = PeriodWindow(start=utc(2024, 3, 1), end=utc(2024, 4, 1))

        assert window.contains(utc(2024, 3, 1))
        assert window.contains(utc(2024, 3, 31, 23, 59, 59))
        assert not window.contains(utc(2024, 4, 1))
        assert not window.contains(utc(2024, 2, 29, 23, 59, 59))


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
