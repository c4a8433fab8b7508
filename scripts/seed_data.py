#!/usr/bin/env python3
"""
Seed data script for trying out the budget tracker.
Creates sample expenses and budgets for a user, then prints the resulting
budget usage and alerts.
"""

import os
import sys
from datetime import datetime, timedelta
import random

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from shared.config import budgets_table_name, configure_logging, expenses_table_name
from shared.exceptions import DuplicateBudgetError
from shared.validators import VALID_CATEGORIES, VALID_PAYMENT_METHODS
from budgets.service import BudgetService
from expenses.ledger import ExpenseLedger

TITLES = {
    'Food & Dining': ['Starbucks', 'Chipotle', 'Local Restaurant', 'Pizza Night'],
    'Transportation': ['Uber', 'Shell Gas', 'Parking Garage', 'Metro Pass'],
    'Shopping': ['Amazon', 'Best Buy', 'Nike Store', 'H&M'],
    'Entertainment': ['Movie Theater', 'Concert Ticket', 'Gaming Store'],
    'Utilities': ['Electric Company', 'Water Utility', 'Internet Provider'],
    'Healthcare': ['Pharmacy', 'Dental Clinic', 'Doctor Office'],
    'Travel': ['Hotel', 'Airbnb', 'Airline', 'Rental Car'],
    'Subscriptions': ['Netflix', 'Spotify', 'Cloud Storage'],
    'Other': ['Miscellaneous Store']
}

SAMPLE_BUDGETS = [
    {'category': 'Food & Dining', 'amount': 500, 'period': 'monthly'},
    {'category': 'Transportation', 'amount': 60, 'period': 'weekly'},
    {'category': 'Shopping', 'amount': 300, 'period': 'monthly', 'alert_threshold': 90},
    {'category': 'Entertainment', 'amount': 150, 'period': 'monthly'},
    {'category': 'Travel', 'amount': 3000, 'period': 'yearly'}
]


def seed_expenses(ledger, user_id, num_expenses=50):
    """Seed sample expenses dated within the last 60 days."""
    print(f"Creating {num_expenses} sample expenses...")

    expenses = []
    for _ in range(num_expenses):
        category = random.choice(VALID_CATEGORIES)
        date = datetime.utcnow() - timedelta(days=random.randint(0, 60))

        expense = ledger.add_expense(
            user_id=user_id,
            title=random.choice(TITLES.get(category, TITLES['Other'])),
            amount=f"{random.uniform(5.0, 200.0):.2f}",
            category=category,
            date=date.strftime('%Y-%m-%d'),
            payment_method=random.choice(VALID_PAYMENT_METHODS)
        )
        expenses.append(expense)

    print(f"Created {len(expenses)} expenses")
    return expenses


def seed_budgets(budget_service, user_id):
    """Seed sample budgets, skipping categories that already have one."""
    print(f"Creating {len(SAMPLE_BUDGETS)} sample budgets...")

    budgets = []
    for budget_data in SAMPLE_BUDGETS:
        try:
            budgets.append(budget_service.create_budget(user_id=user_id, **budget_data))
        except DuplicateBudgetError as e:
            print(f"  Skipped: {e.message}")

    print(f"Created {len(budgets)} budgets")
    return budgets


def main():
    """Main function."""
    configure_logging()

    print("=" * 50)
    print("Budget Tracker - Seed Data Script")
    print("=" * 50)

    print("\nTable names:")
    print(f"  budgets: {budgets_table_name()}")
    print(f"  expenses: {expenses_table_name()}")

    user_id = input("\nEnter user ID to seed data for: ").strip()
    if not user_id:
        print("Error: User ID is required")
        sys.exit(1)

    num_expenses = input("Enter number of expenses to create (default: 50): ").strip()
    num_expenses = int(num_expenses) if num_expenses else 50

    ledger = ExpenseLedger()
    budget_service = BudgetService(ledger=ledger)

    print("\nSeeding expenses...")
    expenses = seed_expenses(ledger, user_id, num_expenses)

    print("\nSeeding budgets...")
    budgets = seed_budgets(budget_service, user_id)

    print("\nCurrent usage:")
    for entry in budget_service.list_budgets(user_id):
        usage = entry.usage
        print(
            f"  {entry.budget.category.value}: {usage.total_spent} / {entry.budget.amount} "
            f"({usage.usage_percentage}%), remaining {usage.remaining_budget}"
        )

    print("\nAlerts:")
    alerts = budget_service.check_alerts(user_id)
    for alert in alerts:
        print(f"  [{alert.severity.value}] {alert.message}")
    if not alerts:
        print("  none")

    print("\n" + "=" * 50)
    print("Data seeding complete!")
    print("=" * 50)
    print(f"\nCreated:")
    print(f"  - {len(expenses)} expenses")
    print(f"  - {len(budgets)} budgets")
    print(f"\nFor user: {user_id}")


if __name__ == '__main__':
    main()
