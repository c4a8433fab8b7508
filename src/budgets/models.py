"""Budget data models."""

from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from shared.enums import AlertSeverity, BudgetPeriod, BudgetStatus, Category
from expenses.models import Expense


class NotificationSettings(BaseModel):
    """Per-budget notification preferences."""

    enabled: bool = True
    email: bool = False
    push: bool = True


class Budget(BaseModel):
    """Budget model."""

    user_id: str
    budget_id: str
    category: Category
    amount: Decimal = Field(..., ge=0, description="Spending limit for one period")
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    alert_threshold: Decimal = Field(Decimal('80'), ge=0, le=100)
    start_date: str
    end_date: Optional[str] = None
    status: BudgetStatus = BudgetStatus.ACTIVE
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    created_at: str
    updated_at: str

    @property
    def is_active(self) -> bool:
        return self.status == BudgetStatus.ACTIVE


class UsageSnapshot(BaseModel):
    """Spending against a budget over its current period window. Never persisted."""

    total_spent: Decimal
    usage_percentage: Decimal
    remaining_budget: Decimal
    is_over_budget: bool
    alert_triggered: bool
    window_start: datetime
    window_end: datetime


class BudgetWithUsage(BaseModel):
    """A budget paired with its current usage."""

    budget: Budget
    usage: UsageSnapshot


class Alert(BaseModel):
    """Budget alert model."""

    budget_id: str
    category: Category
    budget_amount: Decimal
    total_spent: Decimal
    usage_percentage: Decimal
    threshold: Decimal
    message: str
    severity: AlertSeverity


class BudgetDetails(BaseModel):
    """A budget with its usage, window statistics and latest expenses."""

    budget: Budget
    usage: UsageSnapshot
    expense_count: int
    average_expense: Decimal
    recent_expenses: List[Expense] = Field(default_factory=list)


class RecordedExpense(BaseModel):
    """An expense just added, plus the alert it raised on its category's budget."""

    expense: Expense
    budget_alert: Optional[Alert] = None
