"""Budget registry backed by DynamoDB.

Budgets live in the budgets table keyed by ``(user_id, budget_id)``. Next to
them, each active budget owns a guard item keyed ``(user_id,
"ACTIVE#<category>")``. The guard is written with ``attribute_not_exists``,
so two concurrent creations for the same category cannot both succeed.
Guards record their ``owner_budget_id``; releases are conditional on it, and
a guard left behind by a failed release is reclaimed on the next reservation
once its owner is deactivated.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import logging
from boto3.dynamodb.conditions import Key, Attr

from shared.config import budgets_table_name
from shared.dynamodb import DynamoDBClient
from shared.enums import BudgetStatus, Category
from shared.exceptions import ConflictError, DuplicateBudgetError, NotFoundError, StorageError
from shared.validators import format_timestamp
from budgets.models import Budget

logger = logging.getLogger(__name__)

RECORD_BUDGET = 'budget'
RECORD_GUARD = 'guard'
GUARD_PREFIX = 'ACTIVE#'


def guard_key(category: Category) -> str:
    return f"{GUARD_PREFIX}{Category(category).value}"


class BudgetRepository:
    """Data access layer for budgets."""

    def __init__(self, budgets_table: Optional[DynamoDBClient] = None):
        """Initialize the registry, defaulting to the table named by BUDGETS_TABLE."""
        self.budgets_table = budgets_table or DynamoDBClient(budgets_table_name())

    # ── READ ──────────────────────────────────────────────

    def get_budget(self, user_id: str, budget_id: str) -> Optional[Budget]:
        """Fetch a single budget scoped to a user, or None."""
        item = self.budgets_table.get_item({
            'user_id': user_id,
            'budget_id': budget_id
        })

        if not item or item.get('record_type') != RECORD_BUDGET:
            return None

        return Budget.model_validate(item)

    def list_budgets(self, user_id: str, active_only: bool = False) -> List[Budget]:
        """
        List a user's budgets sorted by category ascending.

        Args:
            user_id: User ID
            active_only: Drop deactivated budgets

        Returns:
            Budgets ordered by category name
        """
        filter_expr = Attr('record_type').eq(RECORD_BUDGET)
        if active_only:
            filter_expr = filter_expr & Attr('status').eq(BudgetStatus.ACTIVE.value)

        items = self.budgets_table.query_all(
            key_condition_expression=Key('user_id').eq(user_id),
            filter_expression=filter_expr
        )

        budgets = [Budget.model_validate(item) for item in items]
        return sorted(budgets, key=lambda budget: (budget.category.value, budget.created_at))

    def list_active_budgets(
        self,
        user_id: str,
        notifications_enabled: Optional[bool] = None
    ) -> List[Budget]:
        """
        List active budgets, sorted by category ascending.

        Args:
            user_id: User ID
            notifications_enabled: When given, keep only budgets whose
                notification flag matches

        Returns:
            Active budgets ordered by category name
        """
        budgets = self.list_budgets(user_id, active_only=True)

        if notifications_enabled is not None:
            budgets = [
                budget for budget in budgets
                if budget.notifications.enabled == notifications_enabled
            ]

        return budgets

    def find_active_budget(self, user_id: str, category: Category) -> Optional[Budget]:
        """Return the user's active budget for a category, if any."""
        for budget in self.list_budgets(user_id, active_only=True):
            if budget.category == category:
                return budget
        return None

    # ── WRITE ─────────────────────────────────────────────

    def create_budget(self, budget: Budget) -> Budget:
        """
        Persist a new active budget, reserving its category first.

        Raises:
            DuplicateBudgetError: If the category is already reserved
            StorageError: If the write fails
        """
        self._reserve(budget.user_id, budget.category, budget.budget_id)

        try:
            self.budgets_table.put_item(self._to_item(budget))
        except StorageError:
            self._release(budget.user_id, budget.category, budget.budget_id)
            raise

        return budget

    def update_budget(self, user_id: str, budget_id: str, updates: Dict[str, Any]) -> Budget:
        """
        Update budget fields in place.

        Args:
            user_id: User ID
            budget_id: Budget ID
            updates: Already-validated fields to set

        Returns:
            Updated budget

        Raises:
            NotFoundError: If budget not found
        """
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
            item = self.budgets_table.update_item(
                key={'user_id': user_id, 'budget_id': budget_id},
                update_expression="SET " + ", ".join(update_parts),
                expression_values=expr_values,
                expression_names=expr_names,
                condition_expression="attribute_exists(budget_id)"
            )
        except ConflictError:
            raise NotFoundError("Budget not found")

        return Budget.model_validate(item)

    def change_category(self, budget: Budget, updates: Dict[str, Any]) -> Budget:
        """
        Update an active budget whose category changes.

        The new category is reserved before the update and the old one is
        released only once the update has been written.

        Raises:
            DuplicateBudgetError: If the new category is already reserved
            NotFoundError: If budget not found
            StorageError: If the write fails
        """
        new_category = updates['category']
        self._reserve(budget.user_id, new_category, budget.budget_id)

        try:
            updated = self.update_budget(budget.user_id, budget.budget_id, updates)
        except (NotFoundError, StorageError):
            self._release(budget.user_id, new_category, budget.budget_id)
            raise

        self._release(budget.user_id, budget.category, budget.budget_id)
        return updated

    def deactivate_budget(self, budget: Budget) -> Budget:
        """Flip a budget to deactivated and release its category."""
        updated = self.update_budget(
            budget.user_id,
            budget.budget_id,
            {'status': BudgetStatus.DEACTIVATED}
        )
        self.release_reservation(budget)
        return updated

    def release_reservation(self, budget: Budget) -> None:
        """Drop the guard for the budget's category if the budget still owns it."""
        self._release(budget.user_id, budget.category, budget.budget_id)

    def _reserve(self, user_id: str, category: Category, budget_id: str) -> None:
        guard = {
            'user_id': user_id,
            'budget_id': guard_key(category),
            'record_type': RECORD_GUARD,
            'category': category,
            'owner_budget_id': budget_id
        }

        try:
            self.budgets_table.put_item(
                guard,
                condition_expression=Attr('budget_id').not_exists()
            )
            return
        except ConflictError:
            condition = self._reclaim_condition(user_id, category)

        if condition is None:
            raise DuplicateBudgetError(
                f"Budget already exists for category {Category(category).value}"
            )

        try:
            self.budgets_table.put_item(guard, condition_expression=condition)
        except ConflictError:
            raise DuplicateBudgetError(
                f"Budget already exists for category {Category(category).value}"
            )

        logger.warning(f"Reclaimed stale reservation for {Category(category).value} (user {user_id})")

    def _reclaim_condition(self, user_id: str, category: Category) -> Optional[Any]:
        """
        Condition under which an existing guard may be overwritten, or None.

        A guard is stale once its owner is deactivated. A guard whose owner
        does not exist yet belongs to a creation still in flight, and one whose
        active owner holds another category may belong to a category change
        still in flight; both are left alone.
        """
        item = self.budgets_table.get_item({
            'user_id': user_id,
            'budget_id': guard_key(category)
        })

        if not item:
            return Attr('budget_id').not_exists()

        owner = self.get_budget(user_id, item.get('owner_budget_id'))
        if owner is None or owner.is_active:
            return None

        return Attr('owner_budget_id').eq(owner.budget_id)

    def _release(self, user_id: str, category: Category, budget_id: str) -> None:
        try:
            self.budgets_table.delete_item(
                {'user_id': user_id, 'budget_id': guard_key(category)},
                condition_expression=Attr('owner_budget_id').eq(budget_id)
            )
        except ConflictError:
            # Already gone, or reclaimed by another budget
            logger.debug(f"No reservation on {Category(category).value} held by budget {budget_id}")

    @staticmethod
    def _to_item(budget: Budget) -> Dict[str, Any]:
        item = budget.model_dump(exclude_none=True)
        item['record_type'] = RECORD_BUDGET
        return item
