"""
models/budget.py
----------------
Domain model for per-category spending limits.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from models.transaction import check_category, is_number
from utils.errors import ValidationError

BUDGET_PERIODS = ("weekly", "monthly", "yearly")


@dataclass
class Budget:
    """
    A spending limit for one category over a repeating period.

    Attributes:
        user_id: Owner of the budget.
        category: Expense category the limit applies to (exact match).
        limit_amount: Maximum spend for one period. Zero is allowed.
        period: 'weekly', 'monthly' or 'yearly'.
        start_date: Date the budget was started.
        id: Database primary key (None for new records).
    """
    user_id: str
    category: str
    limit_amount: float
    period: str
    start_date: date
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def validate(self) -> None:
        if self.period not in BUDGET_PERIODS:
            raise ValidationError(f"Invalid budget period: {self.period!r}")
        check_category(self.category)
        if not is_number(self.limit_amount):
            raise ValidationError(f"Budget limit must be a number, got {self.limit_amount!r}")
        if self.limit_amount < 0:
            raise ValidationError("Budget limit cannot be negative")
        if not isinstance(self.start_date, date):
            raise ValidationError(f"Budget start date must be a date, got {self.start_date!r}")
