"""Expense ledger: records expenses and answers aggregation queries."""

import uuid
from typing import Dict, Any, List, Optional, Tuple
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from collections import defaultdict
import logging
from boto3.dynamodb.conditions import Key, Attr

from shared.config import expenses_table_name
from shared.dynamodb import DynamoDBClient
from shared.enums import PaymentMethod
from shared.validators import (
    format_timestamp,
    validate_amount,
    validate_category,
    validate_date,
    validate_payment_method,
    validate_tags,
    sanitize_string
)
from shared.exceptions import ConflictError, NotFoundError, ValidationError
from expenses.models import CategoryTotal, Expense, ExpenseSummary

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')

UPDATABLE_FIELDS = {'title', 'amount', 'category', 'date', 'payment_method', 'description', 'tags'}


def range_key(value: datetime) -> str:
    """Render a range boundary in the same sortable form expense dates use."""
    if value.time() == time(0, 0) and value.utcoffset() in (None, timedelta(0)):
        return value.date().isoformat()
    return format_timestamp(value)


def inclusive_end(end_date: str) -> str:
    """Widen a date-only end bound so timestamps on that day still match."""
    if len(end_date) == 10:
        return f"{end_date}T23:59:59Z"
    return end_date


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def current_month(today: Optional[date] = None) -> Tuple[str, str]:
    """First and last day (inclusive) of the UTC calendar month containing ``today``."""
    today = today or datetime.utcnow().date()
    first = today.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first.isoformat(), (next_first - timedelta(days=1)).isoformat()


class ExpenseLedger:
    """Service for recording and querying expenses."""

    def __init__(self, expenses_table: Optional[DynamoDBClient] = None):
        """Initialize the ledger, defaulting to the table named by EXPENSES_TABLE."""
        self.expenses_table = expenses_table or DynamoDBClient(expenses_table_name())

    def add_expense(
        self,
        user_id: str,
        title: str,
        amount: Any,
        category: Any,
        date: Any = None,
        payment_method: Any = PaymentMethod.CASH,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Expense:
        """
        Record a new expense.

        Args:
            user_id: User ID
            title: Short title
            amount: Positive amount, at most 2 decimal places
            category: Expense category
            date: Expense date or timestamp (default: now, UTC)
            payment_method: Payment method (default: Cash)
            description: Optional description
            tags: Optional tags

        Returns:
            Created expense

        Raises:
            ValidationError: If validation fails
        """
        now = format_timestamp(datetime.utcnow())

        expense = Expense(
            user_id=user_id,
            expense_id=str(uuid.uuid4()),
            title=sanitize_string(title, max_length=100),
            amount=validate_amount(amount),
            category=validate_category(category),
            date=validate_date(date) if date else now,
            payment_method=validate_payment_method(payment_method),
            description=sanitize_string(description, max_length=500) if description else None,
            tags=validate_tags(tags),
            created_at=now,
            updated_at=now
        )

        self.expenses_table.put_item(expense.model_dump(exclude_none=True))

        logger.info(f"Added expense {expense.expense_id} for user {user_id}")
        return expense

    def get_expense(self, user_id: str, expense_id: str) -> Expense:
        """
        Get expense by ID.

        Raises:
            NotFoundError: If expense not found
        """
        item = self.expenses_table.get_item({
            'user_id': user_id,
            'expense_id': expense_id
        })

        if not item:
            raise NotFoundError("Expense not found")

        return Expense.model_validate(item)

    def list_expenses(
        self,
        user_id: str,
        category: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 50,
        last_evaluated_key: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        List expenses for a user with optional filters, most recent first.

        Args:
            user_id: User ID
            category: Optional category filter
            start_date: Optional start date (inclusive)
            end_date: Optional end date (inclusive)
            limit: Maximum number of results
            last_evaluated_key: Pagination key

        Returns:
            Dictionary with expenses and pagination key
        """
        if start_date:
            start_date = validate_date(start_date)
        if end_date:
            end_date = inclusive_end(validate_date(end_date))

        if category:
            result = self._query_by_category(
                user_id, validate_category(category).value, start_date, end_date,
                limit, last_evaluated_key
            )
        elif start_date or end_date:
            result = self._query_by_date_range(
                user_id, start_date, end_date, limit, last_evaluated_key
            )
        else:
            result = self.expenses_table.query(
                key_condition_expression=Key('user_id').eq(user_id),
                limit=limit,
                scan_forward=False,
                exclusive_start_key=last_evaluated_key
            )

        expenses = [Expense.model_validate(item) for item in result['items']]

        return {
            'expenses': expenses,
            'count': len(expenses),
            'last_evaluated_key': result['last_evaluated_key']
        }

    def _query_by_category(
        self,
        user_id: str,
        category: str,
        start_date: Optional[str],
        end_date: Optional[str],
        limit: int,
        last_evaluated_key: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Query expenses by category."""
        key_condition = Key('user_id').eq(user_id) & Key('category').eq(category)

        filter_expr = None
        if start_date and end_date:
            filter_expr = Attr('date').between(start_date, end_date)
        elif start_date:
            filter_expr = Attr('date').gte(start_date)
        elif end_date:
            filter_expr = Attr('date').lte(end_date)

        return self.expenses_table.query(
            key_condition_expression=key_condition,
            filter_expression=filter_expr,
            index_name='user-category-index',
            limit=limit,
            scan_forward=False,
            exclusive_start_key=last_evaluated_key
        )

    def _query_by_date_range(
        self,
        user_id: str,
        start_date: Optional[str],
        end_date: Optional[str],
        limit: int,
        last_evaluated_key: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Query expenses by date range."""
        if start_date and end_date:
            key_condition = Key('user_id').eq(user_id) & Key('date').between(start_date, end_date)
        elif start_date:
            key_condition = Key('user_id').eq(user_id) & Key('date').gte(start_date)
        else:
            key_condition = Key('user_id').eq(user_id) & Key('date').lte(end_date)

        return self.expenses_table.query(
            key_condition_expression=key_condition,
            index_name='user-date-index',
            limit=limit,
            scan_forward=False,
            exclusive_start_key=last_evaluated_key
        )

    def update_expense(
        self,
        user_id: str,
        expense_id: str,
        updates: Dict[str, Any]
    ) -> Expense:
        """
        Update expense.

        Args:
            user_id: User ID
            expense_id: Expense ID
            updates: Fields to update

        Returns:
            Updated expense

        Raises:
            NotFoundError: If expense not found
            ValidationError: If validation fails
        """
        if not updates:
            raise ValidationError("No updates provided")

        unknown = sorted(set(updates) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

        updates = dict(updates)

        if 'title' in updates:
            updates['title'] = sanitize_string(updates['title'], max_length=100)
            if not updates['title']:
                raise ValidationError("Title is required")

        if 'amount' in updates:
            updates['amount'] = validate_amount(updates['amount'])

        if 'category' in updates:
            updates['category'] = validate_category(updates['category'])

        if 'date' in updates:
            updates['date'] = validate_date(updates['date'])

        if 'payment_method' in updates:
            updates['payment_method'] = validate_payment_method(updates['payment_method'])

        if 'description' in updates and updates['description'] is not None:
            updates['description'] = sanitize_string(updates['description'], max_length=500)

        if 'tags' in updates:
            updates['tags'] = validate_tags(updates['tags'])

        update_parts = []
        expr_values = {}
        expr_names = {}

        for key, value in updates.items():
            update_parts.append(f"#{key} = :{key}")
            expr_names[f'#{key}'] = key
            expr_values[f':{key}'] = value

        update_parts.append("#updated_at = :updated_at")
        expr_names['#updated_at'] = 'updated_at'
        expr_values[':updated_at'] = format_timestamp(datetime.utcnow())

        try:
            item = self.expenses_table.update_item(
                key={'user_id': user_id, 'expense_id': expense_id},
                update_expression="SET " + ", ".join(update_parts),
                expression_values=expr_values,
                expression_names=expr_names,
                condition_expression="attribute_exists(expense_id)"
            )
        except ConflictError:
            raise NotFoundError("Expense not found")

        logger.info(f"Updated expense {expense_id}")
        return Expense.model_validate(item)

    def delete_expense(self, user_id: str, expense_id: str) -> None:
        """
        Delete expense.

        Raises:
            NotFoundError: If expense not found
        """
        self.get_expense(user_id, expense_id)

        self.expenses_table.delete_item({
            'user_id': user_id,
            'expense_id': expense_id
        })

        logger.info(f"Deleted expense {expense_id}")

    def sum_amount(self, user_id: str, category: Any, date_range: Any) -> Decimal:
        """
        Sum expense amounts for a user and category within a date range.

        Args:
            user_id: User ID
            category: Expense category
            date_range: Object with ``start`` and ``end`` datetimes; the
                range is half-open, ``start <= date < end``

        Returns:
            Total amount, ``Decimal('0')`` when nothing matches

        Raises:
            StorageError: If the query fails
        """
        items = self._items_in_range(user_id, category, date_range)

        return sum((Decimal(str(item.get('amount', 0))) for item in items), Decimal('0'))

    def expenses_in_range(self, user_id: str, category: Any, date_range: Any) -> List[Expense]:
        """List a category's expenses within a half-open date range."""
        items = self._items_in_range(user_id, category, date_range)
        return [Expense.model_validate(item) for item in items]

    def recent_expenses(self, user_id: str, category: Any, limit: int = 10) -> List[Expense]:
        """Most recent expenses in a category, newest first."""
        category = validate_category(category)

        items = self.expenses_table.query_all(
            key_condition_expression=(
                Key('user_id').eq(user_id) & Key('category').eq(category.value)
            ),
            index_name='user-category-index'
        )

        expenses = [Expense.model_validate(item) for item in items]
        expenses.sort(key=lambda expense: expense.date, reverse=True)
        return expenses[:limit]

    def _items_in_range(self, user_id: str, category: Any, date_range: Any) -> List[Dict[str, Any]]:
        category = validate_category(category)

        return self.expenses_table.query_all(
            key_condition_expression=(
                Key('user_id').eq(user_id) & Key('category').eq(category.value)
            ),
            filter_expression=(
                Attr('date').gte(range_key(date_range.start))
                & Attr('date').lt(range_key(date_range.end))
            ),
            index_name='user-category-index'
        )

    def get_summary(
        self,
        user_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> ExpenseSummary:
        """
        Get expense summary statistics.

        Args:
            user_id: User ID
            start_date: Optional start date (YYYY-MM-DD)
            end_date: Optional end date (YYYY-MM-DD)

        Returns:
            Totals overall and per category, categories ordered by total
            descending
        """
        # If no dates provided, use the current calendar month
        if not start_date and not end_date:
            start_date, end_date = current_month()

        expenses = []
        last_key = None

        while True:
            result = self.list_expenses(
                user_id=user_id,
                start_date=start_date,
                end_date=end_date,
                limit=100,
                last_evaluated_key=last_key
            )

            expenses.extend(result['expenses'])
            last_key = result.get('last_evaluated_key')

            if not last_key:
                break

        total_amount = Decimal('0')
        by_category = defaultdict(Decimal)
        counts = defaultdict(int)

        for expense in expenses:
            total_amount += expense.amount
            by_category[expense.category] += expense.amount
            counts[expense.category] += 1

        expense_count = len(expenses)
        average_expense = total_amount / expense_count if expense_count > 0 else Decimal('0')
        amounts = [expense.amount for expense in expenses]

        category_stats = sorted(
            (
                CategoryTotal(category=category, total=round_cents(total), count=counts[category])
                for category, total in by_category.items()
            ),
            key=lambda stat: (-stat.total, stat.category.value)
        )

        return ExpenseSummary(
            total_amount=round_cents(total_amount),
            expense_count=expense_count,
            average_expense=round_cents(average_expense),
            min_expense=min(amounts, default=Decimal('0')),
            max_expense=max(amounts, default=Decimal('0')),
            by_category={stat.category.value: stat.total for stat in category_stats},
            category_stats=category_stats,
            start_date=start_date,
            end_date=end_date
        )
