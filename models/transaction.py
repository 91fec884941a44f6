"""
models/transaction.py
---------------------
Domain model for financial transactions (expenses and income).
"""

import numbers
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from config import DEFAULT_CURRENCY
from utils.errors import ValidationError

TRANSACTION_TYPES = ("income", "expense")


def is_number(value) -> bool:
    """Ints, floats and ``Decimal`` (what psycopg2 returns for NUMERIC); never bools."""
    return isinstance(value, (numbers.Real, Decimal)) and not isinstance(value, bool)


def check_amount(amount, label: str = "Amount") -> None:
    """Reject non-numeric, boolean and non-positive amounts."""
    if not is_number(amount):
        raise ValidationError(f"{label} must be a number, got {amount!r}")
    if amount <= 0:
        raise ValidationError(f"{label} must be greater than 0")


def check_user_id(user_id) -> None:
    if user_id is None or (isinstance(user_id, str) and not user_id.strip()):
        raise ValidationError("User ID is required")


def check_category(category) -> None:
    """Categories are free text; only a missing or blank one is rejected."""
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("Category is required")


@dataclass
class Transaction:
    """
    Represents a single financial transaction.

    Attributes:
        user_id: Owner of the transaction.
        type: Either 'expense' or 'income'.
        amount: Positive transaction amount.
        category: Free-text category label, matched literally.
        date: Date of the transaction.
        description: Optional human-readable note.
        currency: ISO currency code.
        id: Database primary key (None for new records).
        created_at: Timestamp when the record was created.
    """
    user_id: str
    type: str  # 'expense' | 'income'
    amount: float
    category: str
    date: date
    description: Optional[str] = None
    currency: str = DEFAULT_CURRENCY
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_expense(self) -> bool:
        """Returns True if this is an expense transaction."""
        return self.type == "expense"

    def is_income(self) -> bool:
        """Returns True if this is an income transaction."""
        return self.type == "income"

    def validate(self) -> None:
        """
        Check the record before it is aggregated over.

        Raises:
            ValidationError: On an unknown type, a non-positive amount,
                a missing category or a date that is not a ``date``.
        """
        if self.type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid transaction type: {self.type!r}")
        check_amount(self.amount)
        check_category(self.category)
        if not isinstance(self.date, date) or isinstance(self.date, datetime):
            raise ValidationError(f"Transaction date must be a date, got {self.date!r}")

    def __str__(self) -> str:
        sign = "-" if self.is_expense() else "+"
        return f"{sign}{self.amount:.2f} {self.currency} | {self.category} | {self.date}"
