"""Expense data models."""

from typing import Optional, List, Dict
from decimal import Decimal
from pydantic import BaseModel, Field

from shared.enums import Category, PaymentMethod


class Expense(BaseModel):
    """Expense model. Read-only as far as budget evaluation is concerned."""

    user_id: str
    expense_id: str
    title: str
    amount: Decimal
    category: Category
    date: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    description: Optional[str] = None
    tags: List[str] = []
    created_at: str
    updated_at: str


class CategoryTotal(BaseModel):
    """Spending in one category."""

    category: Category
    total: Decimal
    count: int


class ExpenseSummary(BaseModel):
    """Expense summary model."""

    total_amount: Decimal
    expense_count: int
    average_expense: Decimal
    min_expense: Decimal = Decimal('0')
    max_expense: Decimal = Decimal('0')
    by_category: Dict[str, Decimal] = Field(default_factory=dict)
    category_stats: List[CategoryTotal] = Field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
