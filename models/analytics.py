"""
models/analytics.py
-------------------
Derived aggregates. They are computed from transactions and budgets and are
never persisted.

Attributes use snake_case; ``to_dict()`` returns the camelCase field names
that API consumers depend on.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class IncomeVsExpense:
    income: float = 0.0
    expense: float = 0.0
    net: float = 0.0
    income_count: int = 0
    expense_count: int = 0

    def to_dict(self) -> dict:
        return {
            "income": self.income,
            "expense": self.expense,
            "net": self.net,
            "incomeCount": self.income_count,
            "expenseCount": self.expense_count,
        }


@dataclass(frozen=True)
class CategoryAnalysis:
    category: str
    total_amount: float
    transaction_count: int
    percentage: float
    type: str  # 'income' | 'expense' | 'mixed'
    income_amount: float
    expense_amount: float

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "totalAmount": self.total_amount,
            "transactionCount": self.transaction_count,
            "percentage": self.percentage,
            "type": self.type,
            "incomeAmount": self.income_amount,
            "expenseAmount": self.expense_amount,
        }


@dataclass(frozen=True)
class TimeTrend:
    date: date  # bucket key
    income: float
    expense: float
    net: float
    transaction_count: int

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "income": self.income,
            "expense": self.expense,
            "net": self.net,
            "transactionCount": self.transaction_count,
        }


@dataclass(frozen=True)
class BudgetPerformance:
    budget_id: Optional[str]
    category: str
    budget_amount: float
    spent_amount: float
    remaining_amount: float
    percentage_used: float
    status: str  # 'under' | 'near' | 'over'
    period: str

    def to_dict(self) -> dict:
        return {
            "budgetId": self.budget_id,
            "category": self.category,
            "budgetAmount": self.budget_amount,
            "spentAmount": self.spent_amount,
            "remainingAmount": self.remaining_amount,
            "percentageUsed": self.percentage_used,
            "status": self.status,
            "period": self.period,
        }
