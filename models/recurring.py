"""
models/recurring.py
-------------------
Domain model for recurring transaction definitions and the result of
processing one occurrence.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from models.transaction import TRANSACTION_TYPES, Transaction, check_amount, check_category
from utils.errors import ValidationError

FREQUENCIES = ("daily", "weekly", "biweekly", "monthly", "quarterly", "yearly")

_FREQUENCY_LABELS = {
    "daily": "Daily",
    "weekly": "Weekly",
    "biweekly": "Bi-weekly",
    "monthly": "Monthly",
    "quarterly": "Quarterly",
    "yearly": "Yearly",
}


def format_frequency(frequency: str) -> str:
    """Display label for a frequency; unknown values are shown as stored."""
    return _FREQUENCY_LABELS.get(frequency, frequency)


@dataclass
class RecurringTransaction:
    """
    A template for a transaction that materializes on a schedule.

    Attributes:
        user_id: Owner of the definition.
        type: 'income' or 'expense'.
        category: Category copied onto every materialized transaction.
        amount: Amount copied onto every materialized transaction.
        frequency: One of FREQUENCIES.
        start_date: First scheduled date.
        next_occurrence_date: The date the definition is next due.
        end_date: Optional last allowed occurrence date.
        last_processed_date: Date of the most recent materialized occurrence.
        is_active: False once the schedule has run past end_date or was paused.
        description: Optional note copied onto materialized transactions.
        notification_enabled: Whether a reminder should precede each occurrence.
        notification_days_before: Reminder lead time in days.
        id: Database primary key (None for new records).
        created_at: Timestamp when the record was created.
    """
    user_id: str
    type: str  # 'income' | 'expense'
    category: str
    amount: float
    frequency: str
    start_date: date
    next_occurrence_date: date
    end_date: Optional[date] = None
    last_processed_date: Optional[date] = None
    is_active: bool = True
    description: Optional[str] = None
    notification_enabled: bool = True
    notification_days_before: int = 1
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def validate(self) -> None:
        """
        Raises:
            ValidationError: If any field would make the schedule undefined.
        """
        if self.type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid transaction type: {self.type!r}")
        if self.frequency not in FREQUENCIES:
            raise ValidationError(f"Invalid frequency: {self.frequency!r}")
        check_amount(self.amount)
        check_category(self.category)
        for label in ("start_date", "next_occurrence_date"):
            if not isinstance(getattr(self, label), date):
                raise ValidationError(f"{label} must be a date")
        if self.end_date is not None:
            if not isinstance(self.end_date, date):
                raise ValidationError("end_date must be a date")
            if self.end_date < self.start_date:
                raise ValidationError("end_date cannot be before start_date")
        lead = self.notification_days_before
        if isinstance(lead, bool) or not isinstance(lead, int) or lead < 0:
            raise ValidationError(
                f"notification_days_before must be a non-negative whole number, got {lead!r}"
            )

    def __str__(self) -> str:
        status = "✅" if self.is_active else "❌"
        return (
            f"{status} {self.category}: {self.amount:.2f} ({format_frequency(self.frequency)}) "
            f"- Next: {self.next_occurrence_date}"
        )


@dataclass(frozen=True)
class ProcessedOccurrence:
    """The output of processing one due occurrence; nothing here is persisted yet."""
    transaction: Transaction
    definition: RecurringTransaction
