from dataclasses import replace
from datetime import date

import psycopg2
import pytest

from models.budget import Budget
from models.recurring import RecurringTransaction
from models.transaction import Transaction

USER = "user-1"


def make_tx(type_, amount, category="Food", day=date(2025, 1, 15), user_id=USER, **kw):
    return Transaction(user_id=user_id, type=type_, amount=amount, category=category, date=day, **kw)


def make_budget(category="Food", limit=500.0, period="monthly", budget_id="b1",
                start_date=date(2025, 1, 1)):
    return Budget(
        user_id=USER, category=category, limit_amount=limit, period=period,
        start_date=start_date, id=budget_id,
    )


def make_recurring(frequency="monthly", start=date(2025, 1, 1), next_date=None, rec_id="r1", **kw):
    fields = dict(
        user_id=USER, type="expense", category="Rent", amount=800.0,
        frequency=frequency, start_date=start,
        next_occurrence_date=next_date or start, id=rec_id,
    )
    fields.update(kw)
    return RecurringTransaction(**fields)


class FakeTransactionRepository:
    def __init__(self, transactions=(), error=None):
        self.transactions = list(transactions)
        self.error = error
        self.calls = []

    def get_by_date_range(self, user_id, start, end, tx_type=None, category=None):
        self.calls.append((user_id, start, end, tx_type, category))
        if self.error:
            raise self.error
        return [
            t for t in self.transactions
            if t.user_id == user_id and start <= t.date <= end
            and (tx_type is None or t.type == tx_type)
            and (category is None or t.category == category)
        ]


class FakeBudgetRepository:
    def __init__(self, budgets=(), error=None):
        self.budgets = list(budgets)
        self.error = error

    def get_all(self, user_id, period=None):
        if self.error:
            raise self.error
        return [b for b in self.budgets if b.user_id == user_id and (period is None or b.period == period)]

    def get_by_id(self, budget_id, user_id):
        if self.error:
            raise self.error
        return next((b for b in self.budgets if b.id == budget_id and b.user_id == user_id), None)


class FakeRecurringRepository:
    """Keeps its own copies of the definitions and applies the same CAS rule as the SQL."""

    def __init__(self, definitions=(), error=None):
        self.rows = {d.id: replace(d) for d in definitions}
        self.transactions = []
        self.error = error

    def add(self, definition):
        if self.error:
            raise self.error
        definition.id = definition.id or f"r{len(self.rows) + 1}"
        self.rows[definition.id] = replace(definition)
        return definition

    def get_all(self, user_id, active_only=True):
        if self.error:
            raise self.error
        return [
            replace(d) for d in sorted(self.rows.values(), key=lambda d: d.next_occurrence_date)
            if d.user_id == user_id and (d.is_active or not active_only)
        ]

    def get_by_id(self, recurring_id, user_id):
        row = self.rows.get(recurring_id)
        return replace(row) if row and row.user_id == user_id else None

    def record_occurrence(self, occurrence, expected_next):
        if self.error:
            raise self.error
        stored = self.rows.get(occurrence.definition.id)
        if stored is None or not stored.is_active or stored.next_occurrence_date != expected_next:
            return False
        self.rows[stored.id] = replace(occurrence.definition)
        self.transactions.append(occurrence.transaction)
        return True

    def set_active(self, recurring_id, user_id, active):
        row = self.rows.get(recurring_id)
        if not row or row.user_id != user_id:
            return False
        row.is_active = active
        return True

    def delete(self, recurring_id, user_id):
        row = self.rows.get(recurring_id)
        if not row or row.user_id != user_id:
            return False
        del self.rows[recurring_id]
        return True


class FakeReportRepository:
    def __init__(self, reports=(), error=None):
        self.reports = {r.id: r for r in reports}
        self.error = error

    def add(self, report):
        if self.error:
            raise self.error
        report.id = report.id or f"rep{len(self.reports) + 1}"
        self.reports[report.id] = report
        return report

    def get_all(self, user_id):
        if self.error:
            raise self.error
        return [r for r in self.reports.values() if r.user_id == user_id]

    def get_by_id(self, report_id, user_id):
        if self.error:
            raise self.error
        r = self.reports.get(report_id)
        return r if r and r.user_id == user_id else None

    def delete(self, report_id, user_id):
        r = self.reports.get(report_id)
        if not r or r.user_id != user_id:
            return False
        del self.reports[report_id]
        return True


@pytest.fixture
def store_down():
    return psycopg2.OperationalError("could not connect to server")
