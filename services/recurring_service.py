"""
services/recurring_service.py
------------------------------
Scheduling logic for recurring transactions: stepping a date by a frequency,
finding due definitions and turning one due occurrence into a transaction
plus the advanced definition.

The module-level functions are pure. RecurringService persists their output
and guarantees an occurrence is recorded at most once.
"""

from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Optional

import psycopg2
from dateutil.relativedelta import relativedelta

from models.recurring import ProcessedOccurrence, RecurringTransaction
from models.result import ServiceResult
from models.transaction import Transaction, check_user_id
from repositories.recurring_repo import RecurringRepository
from utils.dates import parse_date
from utils.errors import NotFoundError, StoreError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

# relativedelta clamps to the last valid day of the target month:
# Jan 31 + 1 month -> Feb 28 (or 29), Feb 29 + 1 year -> Feb 28.
_STEPS = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(days=7),
    "biweekly": relativedelta(days=14),
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "yearly": relativedelta(years=1),
}


# ── DATE ARITHMETIC ───────────────────────────────────────

def calculate_next_occurrence(current: date, frequency: str) -> date:
    """
    Step ``current`` forward by one period of ``frequency``.

    Calendar-month steps clamp to the end of a shorter month. Since every
    step starts from the previous occurrence, a clamped day stays clamped
    (Jan 31 -> Feb 28 -> Mar 28).

    Raises:
        ValidationError: For an unknown frequency.
    """
    step = _STEPS.get(frequency)
    if step is None:
        raise ValidationError(f"Invalid frequency: {frequency!r}")
    return current + step


def is_due(definition: RecurringTransaction, today: date) -> bool:
    """True iff the definition is active and its next occurrence has arrived."""
    return definition.is_active and definition.next_occurrence_date <= today


def due_items(definitions: Iterable[RecurringTransaction], today: date) -> list[RecurringTransaction]:
    """The due subset, soonest occurrence first."""
    return sorted(
        (d for d in definitions if is_due(d, today)),
        key=lambda d: d.next_occurrence_date,
    )


def reminders_due(definitions: Iterable[RecurringTransaction], today: date) -> list[RecurringTransaction]:
    """
    Definitions whose reminder window has opened: active, notifications on,
    and today is at most ``notification_days_before`` days before the next
    occurrence (overdue ones included).

    Raises:
        ValidationError: If a definition's lead time or dates are unusable.
    """
    opened = []
    for d in definitions:
        if not (d.is_active and d.notification_enabled):
            continue
        d.validate()
        if d.next_occurrence_date - timedelta(days=d.notification_days_before) <= today:
            opened.append(d)
    return sorted(opened, key=lambda d: d.next_occurrence_date)


# ── STATE TRANSITIONS ─────────────────────────────────────

def build_definition(
    user_id: str,
    type: str,
    category: str,
    amount: float,
    frequency: str,
    start_date,
    description: Optional[str] = None,
    end_date=None,
    notification_enabled: bool = True,
    notification_days_before: int = 1,
) -> ServiceResult:
    """
    Validate input and build a new, active definition whose first
    occurrence is ``start_date``.

    Returns:
        ServiceResult with an unsaved RecurringTransaction.
    """
    try:
        check_user_id(user_id)
        start = parse_date(start_date, "start date")
        end = parse_date(end_date, "end date") if end_date is not None else None
        definition = RecurringTransaction(
            user_id=user_id,
            type=type,
            category=category.strip() if isinstance(category, str) else category,
            amount=amount,
            frequency=frequency,
            start_date=start,
            next_occurrence_date=start,
            end_date=end,
            description=description or None,
            notification_enabled=notification_enabled,
            notification_days_before=notification_days_before,
        )
        definition.validate()
    except ValidationError as e:
        return ServiceResult.failure(e)
    return ServiceResult.success(definition)


def process(definition: RecurringTransaction) -> ServiceResult:
    """
    Materialize the definition's current occurrence.

    Builds the transaction dated at ``next_occurrence_date`` and a copy of
    the definition advanced by one step. If the stepped date is past
    ``end_date`` the copy is deactivated; otherwise ``is_active`` is carried
    over unchanged. The input is not modified and nothing is persisted, so
    calling this twice on the same definition yields the same occurrence
    twice: duplicate protection belongs to whoever stores the result.

    Returns:
        ServiceResult with a ProcessedOccurrence.
    """
    try:
        definition.validate()
    except ValidationError as e:
        return ServiceResult.failure(e)

    occurred_on = definition.next_occurrence_date
    transaction = Transaction(
        user_id=definition.user_id,
        type=definition.type,
        amount=definition.amount,
        category=definition.category,
        date=occurred_on,
        description=definition.description or f"Recurring: {definition.category}",
    )

    candidate_next = calculate_next_occurrence(occurred_on, definition.frequency)
    expired = definition.end_date is not None and candidate_next > definition.end_date

    updated = replace(
        definition,
        next_occurrence_date=candidate_next,
        last_processed_date=occurred_on,
        is_active=False if expired else definition.is_active,
    )
    return ServiceResult.success(ProcessedOccurrence(transaction=transaction, definition=updated))


# ── STORE-BACKED SERVICE ──────────────────────────────────

class RecurringService:
    """
    Handles stored recurring definitions.

    Responsibilities:
        - Create, list, pause/resume and delete definitions.
        - Process due occurrences, recording each one exactly once.
    """

    def __init__(self, recurring_repo: Optional[RecurringRepository] = None):
        self.repo = recurring_repo or RecurringRepository()

    def create_definition(self, user_id: str, type: str, category: str, amount: float,
                          frequency: str, start_date, **options) -> ServiceResult:
        """
        Validate and save a new recurring definition.

        Args:
            options: description, end_date, notification_enabled,
                notification_days_before.
        """
        built = build_definition(user_id, type, category, amount, frequency, start_date, **options)
        if not built.ok:
            return built
        try:
            saved = self.repo.add(built.data)
        except psycopg2.Error as e:
            return ServiceResult.failure(StoreError.from_exception(e, "create recurring transaction"))
        return ServiceResult.success(saved)

    def list_definitions(self, user_id: str, active_only: bool = True) -> ServiceResult:
        try:
            check_user_id(user_id)
        except ValidationError as e:
            return ServiceResult.failure(e)
        try:
            return ServiceResult.success(self.repo.get_all(user_id, active_only=active_only))
        except psycopg2.Error as e:
            logger.error(f"Recurring fetch failed for user {user_id}: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch recurring transactions"))

    def set_active(self, recurring_id: str, user_id: str, active: bool) -> ServiceResult:
        """Pause or resume a definition."""
        try:
            updated = self.repo.set_active(recurring_id, user_id, active)
        except psycopg2.Error as e:
            return ServiceResult.failure(StoreError.from_exception(e, "update recurring transaction"))
        if not updated:
            return ServiceResult.failure(NotFoundError(f"Recurring transaction #{recurring_id} not found"))
        return ServiceResult.success(True)

    def delete_definition(self, recurring_id: str, user_id: str) -> ServiceResult:
        try:
            deleted = self.repo.delete(recurring_id, user_id)
        except psycopg2.Error as e:
            return ServiceResult.failure(StoreError.from_exception(e, "delete recurring transaction"))
        if not deleted:
            return ServiceResult.failure(NotFoundError(f"Recurring transaction #{recurring_id} not found"))
        return ServiceResult.success(True)

    def get_reminders(self, user_id: str, today: Optional[date] = None) -> ServiceResult:
        """Definitions a reminder should currently be shown for."""
        listed = self.list_definitions(user_id, active_only=True)
        if not listed.ok:
            return listed
        try:
            return ServiceResult.success(reminders_due(listed.data, today or date.today()))
        except ValidationError as e:
            logger.error(f"Reminder check failed for user {user_id}: {e.message}")
            return ServiceResult.failure(e)

    def process_due(self, user_id: str, today: Optional[date] = None) -> ServiceResult:
        """
        Materialize every due occurrence for a user, catching up missed
        periods one step at a time.

        Each step is written with RecurringRepository.record_occurrence, which
        only succeeds if the stored next_occurrence_date still equals the one
        processed. A step that loses that race is skipped, so overlapping runs
        never create the same occurrence twice.

        Returns:
            ServiceResult with the list of ProcessedOccurrence actually recorded.
        """
        today = today or date.today()
        listed = self.list_definitions(user_id, active_only=True)
        if not listed.ok:
            return listed

        recorded: list[ProcessedOccurrence] = []
        for definition in due_items(listed.data, today):
            current = definition
            while is_due(current, today):
                outcome = process(current)
                if not outcome.ok:
                    logger.error(f"Recurring #{current.id} is invalid: {outcome.error.message}")
                    return ServiceResult.failure(outcome.error)

                try:
                    won = self.repo.record_occurrence(outcome.data, current.next_occurrence_date)
                except psycopg2.Error as e:
                    return ServiceResult.failure(
                        StoreError.from_exception(e, f"record recurring #{current.id}")
                    )
                if not won:
                    logger.warning(
                        f"Recurring #{current.id} occurrence {current.next_occurrence_date} "
                        f"was already processed; skipping"
                    )
                    break

                recorded.append(outcome.data)
                current = outcome.data.definition

        logger.info(f"Processed {len(recorded)} recurring occurrence(s) for user {user_id}")
        return ServiceResult.success(recorded)
