"""Budget alert evaluation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging

from shared.enums import AlertSeverity
from budgets.models import Alert, Budget, UsageSnapshot
from budgets.usage import HUNDRED, UsageCalculator

logger = logging.getLogger(__name__)


def severity_for(usage_percentage: Decimal, threshold: Decimal) -> Optional[AlertSeverity]:
    """Classify usage: critical at or past 100%, warning at or past the threshold."""
    if usage_percentage >= HUNDRED:
        return AlertSeverity.CRITICAL
    if usage_percentage >= threshold:
        return AlertSeverity.WARNING
    return None


def format_percentage(value: Decimal) -> str:
    """Render a percentage without trailing zeros, e.g. 85.00 -> '85', 85.50 -> '85.5'."""
    return f"{value.normalize():f}"


def build_alert(budget: Budget, usage: UsageSnapshot) -> Alert:
    """Build the alert record for a budget whose usage triggered it."""
    return Alert(
        budget_id=budget.budget_id,
        category=budget.category,
        budget_amount=budget.amount,
        total_spent=usage.total_spent,
        usage_percentage=usage.usage_percentage,
        threshold=budget.alert_threshold,
        message=(
            f"You've used {format_percentage(usage.usage_percentage)}% "
            f"of your {budget.category.value} budget"
        ),
        severity=severity_for(usage.usage_percentage, budget.alert_threshold)
    )


class AlertEvaluator:
    """Scans a user's budgets and reports the ones past their alert threshold."""

    def __init__(self, registry, calculator: UsageCalculator):
        """
        Initialize alert evaluator.

        Args:
            registry: Budget registry exposing ``list_active_budgets``
            calculator: Usage calculator
        """
        self.registry = registry
        self.calculator = calculator

    def check_alerts(self, user_id: str, reference: Optional[datetime] = None) -> List[Alert]:
        """
        Check all active, notification-enabled budgets for alerts.

        Budgets are evaluated in registry order (category ascending) and the
        first failure aborts the whole evaluation.

        Args:
            user_id: User ID
            reference: Evaluation instant (default: now)

        Returns:
            Alerts in registry order, empty if nothing triggered
        """
        budgets = self.registry.list_active_budgets(user_id, notifications_enabled=True)

        alerts = []
        for budget in budgets:
            usage = self.calculator.calculate(budget, reference)
            if usage.alert_triggered:
                alerts.append(build_alert(budget, usage))

        logger.info(f"Checked {len(budgets)} budgets for user {user_id}: {len(alerts)} alerts")
        return alerts
