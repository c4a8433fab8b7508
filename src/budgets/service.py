"""Budget service for managing budgets, usage and alerts."""

import uuid
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging
from pydantic import ValidationError as PydanticValidationError

from shared.config import default_alert_threshold
from shared.enums import PaymentMethod
from shared.validators import (
    format_timestamp,
    validate_budget_amount,
    validate_category,
    validate_date,
    validate_period,
    validate_threshold
)
from shared.exceptions import DuplicateBudgetError, NotFoundError, ValidationError
from budgets.alerts import AlertEvaluator, build_alert
from budgets.models import (
    Alert,
    Budget,
    BudgetDetails,
    BudgetWithUsage,
    NotificationSettings,
    RecordedExpense,
    UsageSnapshot
)
from budgets.periods import resolve_period_window
from budgets.repository import BudgetRepository
from budgets.usage import ZERO, UsageCalculator, round_money
from expenses.ledger import ExpenseLedger

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {'amount', 'category', 'period', 'alert_threshold', 'end_date', 'notifications'}

RECENT_EXPENSES_LIMIT = 10


def validate_notifications(notifications: Optional[Dict[str, Any]]) -> NotificationSettings:
    """
    Validate notification preferences.

    Raises:
        ValidationError: If the settings are malformed
    """
    if notifications is None:
        return NotificationSettings()

    if isinstance(notifications, NotificationSettings):
        return notifications

    if not isinstance(notifications, dict):
        raise ValidationError("Notifications must be an object")

    try:
        return NotificationSettings.model_validate(notifications, strict=True)
    except PydanticValidationError:
        raise ValidationError("Notification settings must be true or false")


class BudgetService:
    """Service for managing budgets."""

    def __init__(
        self,
        repository: Optional[BudgetRepository] = None,
        ledger: Optional[ExpenseLedger] = None
    ):
        """Initialize budget service."""
        self.repository = repository or BudgetRepository()
        self.ledger = ledger or ExpenseLedger()
        self.calculator = UsageCalculator(self.ledger)
        self.evaluator = AlertEvaluator(self.repository, self.calculator)

    def create_budget(
        self,
        user_id: str,
        category: Any,
        amount: Any,
        period: Any = 'monthly',
        alert_threshold: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        notifications: Optional[Dict[str, Any]] = None
    ) -> Budget:
        """
        Create a new budget.

        Args:
            user_id: User ID
            category: Budget category
            amount: Budget limit
            period: Budget period (weekly/monthly/yearly)
            alert_threshold: Alert threshold percentage (default: DEFAULT_ALERT_THRESHOLD)
            start_date: Optional start date (default: today)
            end_date: Optional end date
            notifications: Optional notification preferences

        Returns:
            Created budget

        Raises:
            ValidationError: If validation fails
            DuplicateBudgetError: If an active budget already exists for the category
        """
        category = validate_category(category)
        amount = validate_budget_amount(amount)
        period = validate_period(period)
        if alert_threshold is None:
            alert_threshold = default_alert_threshold()
        alert_threshold = validate_threshold(alert_threshold)
        notification_settings = validate_notifications(notifications)

        now = datetime.utcnow()
        start_date = validate_date(start_date) if start_date else now.date().isoformat()
        end_date = validate_date(end_date) if end_date else None

        if self.repository.find_active_budget(user_id, category):
            raise DuplicateBudgetError(
                f"Budget already exists for category {category.value}"
            )

        budget = Budget(
            user_id=user_id,
            budget_id=str(uuid.uuid4()),
            category=category,
            amount=amount,
            period=period,
            alert_threshold=alert_threshold,
            start_date=start_date,
            end_date=end_date,
            notifications=notification_settings,
            created_at=format_timestamp(now),
            updated_at=format_timestamp(now)
        )

        self.repository.create_budget(budget)

        logger.info(f"Created budget {budget.budget_id} for category {category.value}")
        return budget

    def get_budget(self, user_id: str, budget_id: str) -> Budget:
        """
        Get budget by ID.

        Raises:
            NotFoundError: If budget not found or not owned by the user
        """
        budget = self.repository.get_budget(user_id, budget_id)

        if not budget:
            raise NotFoundError("Budget not found")

        return budget

    def list_budgets(
        self,
        user_id: str,
        active_only: bool = True,
        reference: Optional[datetime] = None
    ) -> List[BudgetWithUsage]:
        """
        List budgets for a user with their current usage.

        Args:
            user_id: User ID
            active_only: Only return active budgets
            reference: Evaluation instant (default: now)

        Returns:
            Budgets sorted by category, each with a usage snapshot
        """
        budgets = self.repository.list_budgets(user_id, active_only=active_only)

        return [
            BudgetWithUsage(budget=budget, usage=self.calculator.calculate(budget, reference))
            for budget in budgets
        ]

    def update_budget(
        self,
        user_id: str,
        budget_id: str,
        updates: Dict[str, Any]
    ) -> Budget:
        """
        Update budget.

        Args:
            user_id: User ID
            budget_id: Budget ID
            updates: Fields to update

        Returns:
            Updated budget

        Raises:
            NotFoundError: If budget not found
            ValidationError: If validation fails
            DuplicateBudgetError: If moving an active budget onto a taken category
        """
        if not updates:
            raise ValidationError("No updates provided")

        unknown = sorted(set(updates) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

        budget = self.get_budget(user_id, budget_id)
        updates = dict(updates)

        if 'amount' in updates:
            updates['amount'] = validate_budget_amount(updates['amount'])

        if 'period' in updates:
            updates['period'] = validate_period(updates['period'])

        if 'alert_threshold' in updates:
            updates['alert_threshold'] = validate_threshold(updates['alert_threshold'])

        if 'end_date' in updates and updates['end_date'] is not None:
            updates['end_date'] = validate_date(updates['end_date'])

        if 'notifications' in updates:
            updates['notifications'] = validate_notifications(updates['notifications']).model_dump()

        if 'category' in updates:
            updates['category'] = validate_category(updates['category'])
            if budget.is_active and updates['category'] != budget.category:
                updated_budget = self.repository.change_category(budget, updates)
                logger.info(f"Moved budget {budget_id} to category {updates['category'].value}")
                return updated_budget

        updated_budget = self.repository.update_budget(user_id, budget_id, updates)

        logger.info(f"Updated budget {budget_id}")
        return updated_budget

    def deactivate_budget(self, user_id: str, budget_id: str) -> Budget:
        """
        Delete budget (mark as deactivated).

        Calling it again on a deactivated budget retries releasing its
        category reservation.

        Raises:
            NotFoundError: If budget not found
        """
        budget = self.get_budget(user_id, budget_id)

        if not budget.is_active:
            self.repository.release_reservation(budget)
            return budget

        deactivated = self.repository.deactivate_budget(budget)

        logger.info(f"Deactivated budget {budget_id}")
        return deactivated

    def get_usage(
        self,
        user_id: str,
        budget_id: str,
        reference: Optional[datetime] = None
    ) -> UsageSnapshot:
        """
        Get current usage for a budget.

        Raises:
            NotFoundError: If budget not found or not owned by the user
        """
        budget = self.get_budget(user_id, budget_id)
        return self.calculator.calculate(budget, reference)

    def check_alerts(
        self,
        user_id: str,
        reference: Optional[datetime] = None
    ) -> List[Alert]:
        """
        Check all budgets for alerts.

        Args:
            user_id: User ID
            reference: Evaluation instant (default: now)

        Returns:
            Alerts for active, notification-enabled budgets past their threshold
        """
        return self.evaluator.check_alerts(user_id, reference)

    def get_budget_details(
        self,
        user_id: str,
        budget_id: str,
        reference: Optional[datetime] = None
    ) -> BudgetDetails:
        """
        Get a budget with detailed usage.

        Besides the usage snapshot this counts and averages the expenses in
        the current period window and lists the latest expenses in the
        budget's category.

        Raises:
            NotFoundError: If budget not found or not owned by the user
        """
        budget = self.get_budget(user_id, budget_id)
        usage = self.calculator.calculate(budget, reference)

        window = resolve_period_window(budget.period, reference)
        expenses = self.ledger.expenses_in_range(user_id, budget.category, window)

        expense_count = len(expenses)
        if expense_count:
            average_expense = round_money(sum(e.amount for e in expenses) / expense_count)
        else:
            average_expense = ZERO

        return BudgetDetails(
            budget=budget,
            usage=usage,
            expense_count=expense_count,
            average_expense=average_expense,
            recent_expenses=self.ledger.recent_expenses(
                user_id, budget.category, limit=RECENT_EXPENSES_LIMIT
            )
        )

    def record_expense(
        self,
        user_id: str,
        title: str,
        amount: Any,
        category: Any,
        date: Any = None,
        payment_method: Any = PaymentMethod.CASH,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        reference: Optional[datetime] = None
    ) -> RecordedExpense:
        """
        Add an expense and check the budget for its category.

        Args:
            user_id: User ID
            title: Short title
            amount: Positive amount
            category: Expense category
            date: Expense date or timestamp (default: now)
            payment_method: Payment method (default: Cash)
            description: Optional description
            tags: Optional tags
            reference: Evaluation instant for the budget check (default: now)

        Returns:
            The expense, with an alert when the category's active budget is
            past its threshold
        """
        expense = self.ledger.add_expense(
            user_id=user_id,
            title=title,
            amount=amount,
            category=category,
            date=date,
            payment_method=payment_method,
            description=description,
            tags=tags
        )

        budget = self.repository.find_active_budget(user_id, expense.category)
        if not budget:
            return RecordedExpense(expense=expense)

        usage = self.calculator.calculate(budget, reference)
        if not usage.alert_triggered:
            return RecordedExpense(expense=expense)

        alert = build_alert(budget, usage)
        logger.info(f"Expense {expense.expense_id} raised alert on budget {budget.budget_id}")
        return RecordedExpense(expense=expense, budget_alert=alert)
