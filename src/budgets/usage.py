"""Budget usage calculation."""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from budgets.models import Budget, UsageSnapshot
from budgets.periods import resolve_period_window

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
HUNDRED = Decimal('100')
ZERO = Decimal('0')


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def usage_percentage(total_spent: Decimal, limit: Decimal) -> Decimal:
    """
    Percentage of ``limit`` consumed by ``total_spent``, rounded half-up.

    A zero limit is fully used by any spending and unused otherwise.
    """
    if limit == 0:
        return round_money(HUNDRED if total_spent > 0 else ZERO)
    return round_money(total_spent / limit * HUNDRED)


class UsageCalculator:
    """Computes how much of a budget has been spent in its current period."""

    def __init__(self, ledger):
        """
        Initialize usage calculator.

        Args:
            ledger: Expense ledger exposing ``sum_amount(user_id, category, date_range)``
        """
        self.ledger = ledger

    def calculate(self, budget: Budget, reference: Optional[datetime] = None) -> UsageSnapshot:
        """
        Calculate usage for a budget over the period window containing ``reference``.

        Args:
            budget: Budget to evaluate
            reference: Evaluation instant (default: now)

        Returns:
            Usage snapshot

        Raises:
            StorageError: Propagated from the ledger
        """
        window = resolve_period_window(budget.period, reference)

        spent = self.ledger.sum_amount(budget.user_id, budget.category, window)
        spent = Decimal(str(spent)) if spent is not None else ZERO
        total_spent = round_money(spent)

        # Ratios use the unrounded sum; only reported amounts are rounded
        percentage = usage_percentage(spent, budget.amount)

        snapshot = UsageSnapshot(
            total_spent=total_spent,
            usage_percentage=percentage,
            remaining_budget=round_money(max(ZERO, budget.amount - spent)),
            is_over_budget=spent > budget.amount,
            alert_triggered=percentage >= budget.alert_threshold,
            window_start=window.start,
            window_end=window.end
        )

        logger.debug(
            f"Budget {budget.budget_id}: spent {total_spent} of {budget.amount} "
            f"({percentage}%) between {window.start.date()} and {window.end.date()}"
        )
        return snapshot
