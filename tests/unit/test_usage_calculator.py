"""Unit tests for budget usage calculation."""

import pytest
from unittest.mock import Mock
from datetime import datetime, timezone
from decimal import Decimal
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from budgets.models import Budget
from budgets.usage import UsageCalculator, usage_percentage
from shared.enums import BudgetPeriod, Category
from shared.exceptions import StorageError

REFERENCE = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_budget(**overrides):
    data = {
        'user_id': 'user123',
        'budget_id': 'budget123',
        'category': Category.FOOD_AND_DINING,
        'amount': Decimal('1000'),
        'period': BudgetPeriod.MONTHLY,
        'alert_threshold': Decimal('80'),
        'start_date': '2024-01-01',
        'created_at': '2024-01-01T00:00:00Z',
        'updated_at': '2024-01-01T00:00:00Z'
    }
    data.update(overrides)
    return Budget(**data)


class TestUsageCalculator:
    """Test cases for UsageCalculator."""

    @pytest.fixture
    def ledger(self):
        ledger = Mock()
        ledger.sum_amount.return_value = Decimal('0')
        return ledger

    @pytest.fixture
    def calculator(self, ledger):
        return UsageCalculator(ledger)

    def test_warning_scenario(self, calculator, ledger):
        """850 of 1000 at an 80% threshold."""
        ledger.sum_amount.return_value = Decimal('850')

        usage = calculator.calculate(make_budget(), REFERENCE)

        assert usage.total_spent == Decimal('850.00')
        assert usage.usage_percentage == Decimal('85.00')
        assert usage.remaining_budget == Decimal('150.00')
        assert usage.is_over_budget is False
        assert usage.alert_triggered is True

    def test_over_budget_scenario(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('1200')

        usage = calculator.calculate(make_budget(), REFERENCE)

        assert usage.usage_percentage == Decimal('120.00')
        assert usage.remaining_budget == Decimal('0.00')
        assert usage.is_over_budget is True
        assert usage.alert_triggered is True

    def test_spending_exactly_the_limit_is_not_over_budget(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('1000')

        usage = calculator.calculate(make_budget(), REFERENCE)

        assert usage.is_over_budget is False
        assert usage.usage_percentage == Decimal('100.00')
        assert usage.remaining_budget == Decimal('0.00')

    def test_zero_limit_with_no_spending(self, calculator, ledger):
        usage = calculator.calculate(make_budget(amount=Decimal('0')), REFERENCE)

        assert usage.usage_percentage == Decimal('0')
        assert usage.remaining_budget == Decimal('0')
        assert usage.is_over_budget is False

    def test_zero_limit_with_spending(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('5')

        usage = calculator.calculate(make_budget(amount=Decimal('0')), REFERENCE)

        assert usage.usage_percentage == Decimal('100')
        assert usage.is_over_budget is True

    def test_no_expenses_yields_zero_not_none(self, calculator, ledger):
        ledger.sum_amount.return_value = None

        usage = calculator.calculate(make_budget(), REFERENCE)

        assert usage.total_spent == Decimal('0')
        assert usage.usage_percentage == Decimal('0')
        assert usage.remaining_budget == Decimal('1000.00')
        assert usage.alert_triggered is False

    def test_percentage_rounds_half_up(self, calculator, ledger):
        # 1.01 / 8 * 100 == 12.625
        ledger.sum_amount.return_value = Decimal('1.01')

        usage = calculator.calculate(make_budget(amount=Decimal('8')), REFERENCE)

        assert usage.usage_percentage == Decimal('12.63')

    def test_zero_threshold_triggers_on_first_cent(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('0.01')

        usage = calculator.calculate(make_budget(alert_threshold=Decimal('0')), REFERENCE)

        assert usage.alert_triggered is True

    def test_threshold_boundary_triggers(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('800')

        usage = calculator.calculate(make_budget(), REFERENCE)

        assert usage.usage_percentage == Decimal('80.00')
        assert usage.alert_triggered is True

    def test_below_threshold(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('799.94')

        usage = calculator.calculate(make_budget(), REFERENCE)

        assert usage.usage_percentage == Decimal('79.99')
        assert usage.alert_triggered is False

    def test_percentage_rounding_up_to_threshold_triggers(self, calculator, ledger):
        # 79.999% rounds to 80.00%
        ledger.sum_amount.return_value = Decimal('799.99')

        usage = calculator.calculate(make_budget(), REFERENCE)

        assert usage.usage_percentage == Decimal('80.00')
        assert usage.alert_triggered is True

    def test_percentage_uses_unrounded_spending(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('0.125')

        usage = calculator.calculate(make_budget(amount=Decimal('1')), REFERENCE)

        assert usage.total_spent == Decimal('0.13')
        assert usage.usage_percentage == Decimal('12.50')
        assert usage.remaining_budget == Decimal('0.88')

    def test_queries_ledger_with_period_window(self, calculator, ledger):
        usage = calculator.calculate(make_budget(period=BudgetPeriod.WEEKLY), REFERENCE)

        user_id, category, window = ledger.sum_amount.call_args[0]
        assert user_id == 'user123'
        assert category == Category.FOOD_AND_DINING
        assert window.start == datetime(2024, 3, 11, tzinfo=timezone.utc)
        assert window.end == datetime(2024, 3, 18, tzinfo=timezone.utc)
        assert usage.window_start == window.start
        assert usage.window_end == window.end

    def test_idempotent(self, calculator, ledger):
        ledger.sum_amount.return_value = Decimal('321.45')
        budget = make_budget()

        assert calculator.calculate(budget, REFERENCE) == calculator.calculate(budget, REFERENCE)

    def test_ledger_errors_propagate(self, calculator, ledger):
        ledger.sum_amount.side_effect = StorageError("Failed to query items")

        with pytest.raises(StorageError, match="Failed to query items"):
            calculator.calculate(make_budget(), REFERENCE)

        assert ledger.sum_amount.call_count == 1


class TestUsagePercentage:
    """Test cases for the usage_percentage helper."""

    def test_matches_rounded_ratio(self):
        assert usage_percentage(Decimal('1'), Decimal('3')) == Decimal('33.33')
        assert usage_percentage(Decimal('2'), Decimal('3')) == Decimal('66.67')

    def test_zero_limit(self):
        assert usage_percentage(Decimal('0'), Decimal('0')) == Decimal('0')
        assert usage_percentage(Decimal('0.01'), Decimal('0')) == Decimal('100')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
