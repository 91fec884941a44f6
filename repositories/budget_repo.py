"""
repositories/budget_repo.py
-----------------------------
Data access layer for category budgets.
"""

from typing import Optional

from db.connection import get_connection, release_connection
from models.budget import Budget
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, user_id, category, limit_amount, period, start_date, created_at"


class BudgetRepository:
    """Read access to the budgets table."""

    def get_all(self, user_id: str, period: Optional[str] = None) -> list[Budget]:
        """
        Get all budgets for a user.

        Args:
            user_id: Owner of the budgets.
            period: Optional filter ('weekly', 'monthly' or 'yearly').
        """
        sql = f"SELECT {_COLUMNS} FROM budgets WHERE user_id = %s"
        params: list = [user_id]
        if period:
            sql += " AND period = %s"
            params.append(period)
        sql += " ORDER BY created_at DESC;"

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_budget(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_by_id(self, budget_id: str, user_id: str) -> Optional[Budget]:
        """Fetch a single budget, scoped to its owner."""
        sql = f"SELECT {_COLUMNS} FROM budgets WHERE id = %s AND user_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (budget_id, user_id))
                row = cur.fetchone()
                return self._row_to_budget(row) if row else None
        finally:
            release_connection(conn)

    @staticmethod
    def _row_to_budget(row: tuple) -> Budget:
        return Budget(
            id=str(row[0]),
            user_id=str(row[1]),
            category=row[2],
            limit_amount=float(row[3]),
            period=row[4],
            start_date=row[5],
            created_at=row[6],
        )
