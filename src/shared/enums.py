"""Enumerations shared by budgets and expenses."""

from enum import Enum


class Category(str, Enum):
    """Spending category, used by both expenses and budgets."""

    FOOD_AND_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    INSURANCE = "Insurance"
    TRAVEL = "Travel"
    PERSONAL_CARE = "Personal Care"
    GIFTS = "Gifts"
    SUBSCRIPTIONS = "Subscriptions"
    OTHER = "Other"


class PaymentMethod(str, Enum):
    """How an expense was paid."""

    CASH = "Cash"
    CREDIT_CARD = "Credit Card"
    DEBIT_CARD = "Debit Card"
    BANK_TRANSFER = "Bank Transfer"
    DIGITAL_WALLET = "Digital Wallet"
    OTHER = "Other"


class BudgetPeriod(str, Enum):
    """Length of the window a budget limit applies to."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetStatus(str, Enum):
    """Budget lifecycle state. Deactivated budgets are kept, never deleted."""

    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class AlertSeverity(str, Enum):
    """Severity of a budget alert."""

    WARNING = "warning"  # threshold <= usage < 100%
    CRITICAL = "critical"  # usage >= 100%
