"""
services/report_service.py
---------------------------
Runs saved report definitions by dispatching them to the analytics and
budget functions, and manages the stored definitions themselves.
"""

from datetime import date
from typing import Iterable, Optional

import psycopg2

from models.budget import Budget
from models.report import REPORT_TYPES, CustomReportDefinition
from models.result import ServiceResult
from models.transaction import Transaction, check_user_id
from repositories.budget_repo import BudgetRepository
from repositories.report_repo import ReportRepository
from repositories.transaction_repo import TransactionRepository
from services.analytics_service import (
    get_category_analysis,
    get_income_vs_expense,
    get_time_trends,
    validate_transactions,
)
from services.budget_service import evaluate_all, evaluation_window
from utils.errors import NotFoundError, StoreError, UnsupportedReportType, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


def execute(report: CustomReportDefinition, transactions: Iterable[Transaction],
            budgets: Optional[Iterable[Budget]] = None,
            today: Optional[date] = None) -> ServiceResult:
    """
    Compute the result of a report definition.

    Dispatch:
        income_expense -> get_income_vs_expense
        category       -> get_category_analysis
        trend          -> get_time_trends (grouping, default 'day')
        budget         -> evaluate_all over ``budgets``

    For non-budget reports the transactions are first narrowed to the
    report's date range and filters. Budget reports measure each budget over
    its own evaluation window instead.

    Returns:
        ServiceResult whose data depends on the report type. Unknown types
        yield an UnsupportedReportType error.
    """
    if report.report_type not in REPORT_TYPES:
        return ServiceResult.failure(UnsupportedReportType(report.report_type))
    try:
        report.validate()
        items = validate_transactions(transactions)
    except ValidationError as e:
        return ServiceResult.failure(e)

    if report.report_type == "budget":
        if budgets is None:
            return ServiceResult.failure(ValidationError("Budgets are required for a budget report"))
        return evaluate_all(budgets, items, today)

    selected = [
        tx for tx in items
        if report.date_range.contains(tx.date) and report.filters.matches(tx)
    ]
    logger.debug(f"Report '{report.name}': {len(selected)} of {len(items)} transactions selected")

    if report.report_type == "income_expense":
        return get_income_vs_expense(selected)
    if report.report_type == "category":
        return get_category_analysis(selected)
    return get_time_trends(selected, report.grouping or "day")


class ReportService:
    """Saved report definitions: create, list, delete and run."""

    def __init__(self, report_repo: Optional[ReportRepository] = None,
                 transaction_repo: Optional[TransactionRepository] = None,
                 budget_repo: Optional[BudgetRepository] = None):
        self.report_repo = report_repo or ReportRepository()
        self.transaction_repo = transaction_repo or TransactionRepository()
        self.budget_repo = budget_repo or BudgetRepository()

    def create_report(self, user_id: str, report: CustomReportDefinition) -> ServiceResult:
        """Validate and save a report definition for ``user_id``."""
        try:
            check_user_id(user_id)
            if report.report_type not in REPORT_TYPES:
                raise ValidationError(f"Invalid report type: {report.report_type!r}")
            report.validate()
        except ValidationError as e:
            return ServiceResult.failure(e)

        report.user_id = user_id
        try:
            return ServiceResult.success(self.report_repo.add(report))
        except psycopg2.Error as e:
            logger.error(f"Saving report for user {user_id} failed: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "create report"))

    def list_reports(self, user_id: str) -> ServiceResult:
        try:
            check_user_id(user_id)
            return ServiceResult.success(self.report_repo.get_all(user_id))
        except ValidationError as e:
            return ServiceResult.failure(e)
        except psycopg2.Error as e:
            logger.error(f"Report fetch failed for user {user_id}: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch reports"))

    def get_report(self, user_id: str, report_id: str) -> ServiceResult:
        try:
            check_user_id(user_id)
            report = self.report_repo.get_by_id(report_id, user_id)
        except ValidationError as e:
            return ServiceResult.failure(e)
        except psycopg2.Error as e:
            logger.error(f"Report #{report_id} fetch failed: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch report"))
        if report is None:
            return ServiceResult.failure(NotFoundError(f"Report #{report_id} not found"))
        return ServiceResult.success(report)

    def delete_report(self, user_id: str, report_id: str) -> ServiceResult:
        if not report_id:
            return ServiceResult.failure(ValidationError("Report ID is required"))
        try:
            deleted = self.report_repo.delete(report_id, user_id)
        except psycopg2.Error as e:
            return ServiceResult.failure(StoreError.from_exception(e, "delete report"))
        if not deleted:
            return ServiceResult.failure(NotFoundError(f"Report #{report_id} not found"))
        return ServiceResult.success(True)

    def run_report(self, user_id: str, report_id: str, today: Optional[date] = None) -> ServiceResult:
        """Load a saved report, fetch the records it needs and execute it."""
        loaded = self.get_report(user_id, report_id)
        if not loaded.ok:
            return loaded
        return self.run_definition(user_id, loaded.data, today)

    def run_definition(self, user_id: str, report: CustomReportDefinition,
                       today: Optional[date] = None) -> ServiceResult:
        """Fetch the records ``report`` needs and execute it."""
        if report.report_type not in REPORT_TYPES:
            return ServiceResult.failure(UnsupportedReportType(report.report_type))
        try:
            check_user_id(user_id)
            report.validate()
        except ValidationError as e:
            return ServiceResult.failure(e)

        today = today or date.today()
        budgets = None
        try:
            if report.report_type == "budget":
                budgets = self.budget_repo.get_all(user_id)
                starts = [evaluation_window(b.period, today)[0] for b in budgets]
                transactions = self.transaction_repo.get_by_date_range(
                    user_id, min(starts), today, tx_type="expense",
                ) if starts else []
            else:
                transactions = self.transaction_repo.get_by_date_range(
                    user_id, report.date_range.start, report.date_range.end,
                )
        except ValidationError as e:
            return ServiceResult.failure(e)
        except psycopg2.Error as e:
            logger.error(f"Fetch for report '{report.name}' failed: {e}")
            return ServiceResult.failure(StoreError.from_exception(e, "fetch report data"))

        return execute(report, transactions, budgets, today)
