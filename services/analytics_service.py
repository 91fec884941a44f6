"""
services/analytics_service.py
-----------------------------
Aggregations over transaction records: income vs expense totals, per-category
breakdowns and time-bucketed trends.

The module-level functions are pure: they take already-fetched transactions
and return a ServiceResult. AnalyticsService wraps them with a repository so
callers can ask by user and date range.
"""

from datetime import date
from typing import Iterable, Optional

import psycopg2

from models.analytics import CategoryAnalysis, IncomeVsExpense, TimeTrend
from models.result import ServiceResult
from models.transaction import TRANSACTION_TYPES, Transaction, check_user_id
from repositories.transaction_repo import TransactionRepository
from utils.dates import month_start, parse_date, week_start, year_start
from utils.errors import StoreError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

_BUCKETS = {
    "day": lambda d: d,
    "week": week_start,
    "month": month_start,
    "year": year_start,
}
TREND_GROUPINGS = tuple(_BUCKETS)


def validate_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Materialize and validate the input.

    Raises:
        ValidationError: For the first invalid record.
    """
    if transactions is None:
        raise ValidationError("Transactions are required")
    items = list(transactions)
    for tx in items:
        if not isinstance(tx, Transaction):
            raise ValidationError(f"Expected a Transaction, got {type(tx).__name__}")
        tx.validate()
    return items


# ── PURE AGGREGATIONS ─────────────────────────────────────

def get_income_vs_expense(transactions: Iterable[Transaction]) -> ServiceResult:
    """
    Sum amounts and counts by type.

    Returns:
        ServiceResult with an IncomeVsExpense; all zeros for empty input.
    """
    try:
        items = validate_transactions(transactions)
    except ValidationError as e:
        return ServiceResult.failure(e)

    income = expense = 0.0
    income_count = expense_count = 0
    for tx in items:
        if tx.is_income():
            income += float(tx.amount)
            income_count += 1
        else:
            expense += float(tx.amount)
            expense_count += 1

    return ServiceResult.success(IncomeVsExpense(
        income=income,
        expense=expense,
        net=income - expense,
        income_count=income_count,
        expense_count=expense_count,
    ))


def get_category_analysis(transactions: Iterable[Transaction]) -> ServiceResult:
    """
    Group transactions by their exact category string.

    Percentages are shares of the grand total of all amounts (income and
    expense added together), so they sum to 100 for any non-empty input.

    Returns:
        ServiceResult with a list of CategoryAnalysis, largest total first.
    """
    try:
        items = validate_transactions(transactions)
    except ValidationError as e:
        return ServiceResult.failure(e)

    # category -> [income_amount, expense_amount, count]; dicts keep insertion order
    groups: dict[str, list] = {}
    grand_total = 0.0
    for tx in items:
        bucket = groups.setdefault(tx.category, [0.0, 0.0, 0])
        if tx.is_income():
            bucket[0] += float(tx.amount)
        else:
            bucket[1] += float(tx.amount)
        bucket[2] += 1
        grand_total += float(tx.amount)

    result = []
    for category, (income_amount, expense_amount, count) in groups.items():
        total = income_amount + expense_amount
        if income_amount > 0 and expense_amount == 0:
            cat_type = "income"
        elif expense_amount > 0 and income_amount == 0:
            cat_type = "expense"
        else:
            cat_type = "mixed"

        result.append(CategoryAnalysis(
            category=category,
            total_amount=total,
            transaction_count=count,
            percentage=(total / grand_total * 100) if grand_total > 0 else 0.0,
            type=cat_type,
            income_amount=income_amount,
            expense_amount=expense_amount,
        ))

    result.sort(key=lambda c: c.total_amount, reverse=True)
    return ServiceResult.success(result)


def get_time_trends(transactions: Iterable[Transaction], group_by: str = "day") -> ServiceResult:
    """
    Roll transactions up into date buckets.

    Buckets: 'day' is the transaction date itself, 'week' the Sunday on or
    before it, 'month' the first of its month, 'year' the first of January.
    Empty buckets are omitted.

    Returns:
        ServiceResult with a list of TimeTrend sorted by bucket date.
    """
    bucket_of = _BUCKETS.get(group_by)
    if bucket_of is None:
        return ServiceResult.failure(ValidationError(f"Invalid grouping: {group_by!r}"))
    try:
        items = validate_transactions(transactions)
    except ValidationError as e:
        return ServiceResult.failure(e)

    buckets: dict[date, list] = {}
    for tx in items:
        entry = buckets.setdefault(bucket_of(tx.date), [0.0, 0.0, 0])
        if tx.is_income():
            entry[0] += float(tx.amount)
        else:
            entry[1] += float(tx.amount)
        entry[2] += 1

    result = [
        TimeTrend(date=key, income=inc, expense=exp, net=inc - exp, transaction_count=count)
        for key, (inc, exp, count) in sorted(buckets.items())
    ]
    logger.debug(f"Bucketed {len(items)} transactions into {len(result)} '{group_by}' buckets")
    return ServiceResult.success(result)


# ── STORE-BACKED SERVICE ──────────────────────────────────

class AnalyticsService:
    """
    Fetches a user's transactions for a date range and aggregates them.

    The repository is injected; it defaults to the PostgreSQL one.
    """

    def __init__(self, transaction_repo: Optional[TransactionRepository] = None):
        self.transaction_repo = transaction_repo or TransactionRepository()

    def get_income_vs_expense(self, user_id: str, start, end) -> ServiceResult:
        fetched = self._fetch(user_id, start, end)
        if not fetched.ok:
            return fetched
        return get_income_vs_expense(fetched.data)

    def get_category_analysis(self, user_id: str, start, end,
                              tx_type: Optional[str] = None) -> ServiceResult:
        """
        Args:
            tx_type: Optional 'income' or 'expense' to analyse one side only.
        """
        if tx_type is not None and tx_type not in TRANSACTION_TYPES:
            return ServiceResult.failure(ValidationError(f"Invalid transaction type: {tx_type!r}"))
        fetched = self._fetch(user_id, start, end, tx_type=tx_type)
        if not fetched.ok:
            return fetched
        return get_category_analysis(fetched.data)

    def get_time_trends(self, user_id: str, start, end, group_by: str = "day") -> ServiceResult:
        if group_by not in TREND_GROUPINGS:
            return ServiceResult.failure(ValidationError(f"Invalid grouping: {group_by!r}"))
        fetched = self._fetch(user_id, start, end)
        if not fetched.ok:
            return fetched
        return get_time_trends(fetched.data, group_by)

    def _fetch(self, user_id: str, start, end, tx_type: Optional[str] = None) -> ServiceResult:
        """Validate the query and load the matching transactions."""
        try:
            check_user_id(user_id)
            start_d = parse_date(start, "start date")
            end_d = parse_date(end, "end date")
            if start_d > end_d:
                raise ValidationError(f"Start date {start_d} is after end date {end_d}")
        except ValidationError as e:
            return ServiceResult.failure(e)

        try:
            rows = self.transaction_repo.get_by_date_range(user_id, start_d, end_d, tx_type=tx_type)
        except psycopg2.Error as e:
            logger.error(f"Transaction fetch failed for user {user_id}: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch transactions"))
        return ServiceResult.success(rows)
