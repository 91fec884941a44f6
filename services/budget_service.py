"""
services/budget_service.py
---------------------------
Budget utilization: how much of each category limit has been spent in the
budget's current window, and whether that is under, near or over the limit.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

import psycopg2

from models.analytics import BudgetPerformance
from models.budget import BUDGET_PERIODS, Budget
from models.result import ServiceResult
from models.transaction import Transaction, check_user_id
from repositories.budget_repo import BudgetRepository
from repositories.transaction_repo import TransactionRepository
from services.analytics_service import validate_transactions
from utils.dates import month_start, year_start
from utils.errors import NotFoundError, StoreError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

NEAR_THRESHOLD = 80.0
OVER_THRESHOLD = 100.0


def evaluation_window(period: str, today: date) -> tuple[date, date]:
    """
    Return the inclusive (start, end) dates a budget is measured over.

    Windows are anchored to ``today`` rather than to the budget's start date:
    weekly is the trailing window from seven days ago, monthly starts on the
    first of the current month and yearly on the first of January.

    Raises:
        ValidationError: For an unknown period.
    """
    if period == "weekly":
        return today - timedelta(days=7), today
    if period == "monthly":
        return month_start(today), today
    if period == "yearly":
        return year_start(today), today
    raise ValidationError(f"Invalid budget period: {period!r}")


def budget_status(percentage_used: float) -> str:
    """'over' from 100%, 'near' from 80%, otherwise 'under'. Both bounds inclusive."""
    if percentage_used >= OVER_THRESHOLD:
        return "over"
    if percentage_used >= NEAR_THRESHOLD:
        return "near"
    return "under"


def _performance(budget: Budget, transactions: list[Transaction], today: date) -> BudgetPerformance:
    start, end = evaluation_window(budget.period, today)
    spent = sum(
        float(tx.amount)
        for tx in transactions
        if tx.is_expense() and tx.category == budget.category and start <= tx.date <= end
    )
    limit = float(budget.limit_amount)
    pct = (spent / limit * 100) if limit > 0 else 0.0
    return BudgetPerformance(
        budget_id=budget.id,
        category=budget.category,
        budget_amount=limit,
        spent_amount=spent,
        remaining_amount=limit - spent,
        percentage_used=pct,
        status=budget_status(pct),
        period=budget.period,
    )


def evaluate(budget: Budget, transactions: Iterable[Transaction],
             today: Optional[date] = None) -> ServiceResult:
    """
    Compute spent/remaining amounts and status for one budget.

    Only expense transactions in the budget's exact category and inside its
    evaluation window count, so callers may pass a wider set than needed.

    Args:
        budget: The budget definition.
        transactions: Candidate transactions.
        today: Evaluation date (defaults to the current date).

    Returns:
        ServiceResult with a BudgetPerformance.
    """
    try:
        budget.validate()
        items = validate_transactions(transactions)
    except ValidationError as e:
        return ServiceResult.failure(e)
    return ServiceResult.success(_performance(budget, items, today or date.today()))


def evaluate_all(budgets: Iterable[Budget], transactions: Iterable[Transaction],
                 today: Optional[date] = None) -> ServiceResult:
    """
    Evaluate every budget against the same transaction set.

    Returns:
        ServiceResult with a list of BudgetPerformance, highest
        percentage_used first.
    """
    if budgets is None:
        return ServiceResult.failure(ValidationError("Budgets are required"))
    today = today or date.today()
    try:
        budget_list = list(budgets)
        for b in budget_list:
            b.validate()
        items = validate_transactions(transactions)
    except ValidationError as e:
        return ServiceResult.failure(e)

    result = [_performance(b, items, today) for b in budget_list]
    result.sort(key=lambda p: p.percentage_used, reverse=True)
    return ServiceResult.success(result)


class BudgetService:
    """Loads budgets and their spending from the store and evaluates them."""

    def __init__(self, budget_repo: Optional[BudgetRepository] = None,
                 transaction_repo: Optional[TransactionRepository] = None):
        self.budget_repo = budget_repo or BudgetRepository()
        self.transaction_repo = transaction_repo or TransactionRepository()

    def get_budget_performance(self, user_id: str, period: Optional[str] = None,
                               today: Optional[date] = None) -> ServiceResult:
        """
        Evaluate all of a user's budgets, optionally only those of one period.

        Returns:
            ServiceResult with a list of BudgetPerformance sorted by
            percentage_used descending.
        """
        try:
            check_user_id(user_id)
            if period is not None and period not in BUDGET_PERIODS:
                raise ValidationError(f"Invalid budget period: {period!r}")
        except ValidationError as e:
            return ServiceResult.failure(e)

        today = today or date.today()
        try:
            budgets = self.budget_repo.get_all(user_id, period=period)
        except psycopg2.Error as e:
            logger.error(f"Budget fetch failed for user {user_id}: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch budgets"))

        spending = self._fetch_spending(user_id, budgets, today)
        if not spending.ok:
            return spending
        return evaluate_all(budgets, spending.data, today)

    def get_performance_for(self, user_id: str, budget_id: str,
                            today: Optional[date] = None) -> ServiceResult:
        """Evaluate a single budget by ID."""
        try:
            check_user_id(user_id)
        except ValidationError as e:
            return ServiceResult.failure(e)

        today = today or date.today()
        try:
            budget = self.budget_repo.get_by_id(budget_id, user_id)
        except psycopg2.Error as e:
            logger.error(f"Budget #{budget_id} fetch failed: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch budget"))
        if budget is None:
            return ServiceResult.failure(NotFoundError(f"Budget #{budget_id} not found"))

        spending = self._fetch_spending(user_id, [budget], today)
        if not spending.ok:
            return spending
        return evaluate(budget, spending.data, today)

    def _fetch_spending(self, user_id: str, budgets: list[Budget], today: date) -> ServiceResult:
        """
        Load expense transactions once per category, over the widest window
        any of that category's budgets needs.
        """
        transactions: list[Transaction] = []
        try:
            earliest: dict[str, date] = {}
            for budget in budgets:
                start, _ = evaluation_window(budget.period, today)
                if budget.category not in earliest or start < earliest[budget.category]:
                    earliest[budget.category] = start
            for category, start in earliest.items():
                transactions.extend(self.transaction_repo.get_by_date_range(
                    user_id, start, today, tx_type="expense", category=category,
                ))
        except ValidationError as e:
            return ServiceResult.failure(e)
        except psycopg2.Error as e:
            logger.error(f"Spending fetch failed for user {user_id}: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch budget transactions"))
        return ServiceResult.success(transactions)
