"""
repositories/transaction_repo.py
--------------------------------
Data access layer for income/expense transactions.
All SQL queries related to the `transactions` table live here.
"""

from datetime import date
from typing import Optional

from db.connection import get_connection, release_connection
from models.transaction import Transaction
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, user_id, type, amount, currency, category, description, date, created_at"


class TransactionRepository:
    """Read access to the transactions table."""

    def get_by_date_range(
        self,
        user_id: str,
        start: date,
        end: date,
        tx_type: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[Transaction]:
        """
        Fetch all transactions for a user within a date range.

        Args:
            user_id: Owner of the transactions.
            start: Start date (inclusive).
            end: End date (inclusive).
            tx_type: Optional filter ('expense' or 'income').
            category: Optional exact category filter.

        Returns:
            List of Transaction objects ordered by date ascending.
        """
        sql = f"SELECT {_COLUMNS} FROM transactions WHERE user_id = %s AND date BETWEEN %s AND %s"
        params: list = [user_id, start, end]
        if tx_type:
            sql += " AND type = %s"
            params.append(tx_type)
        if category is not None:
            sql += " AND category = %s"
            params.append(category)
        sql += " ORDER BY date ASC, created_at ASC;"

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_transaction(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_transaction(row: tuple) -> Transaction:
        """Convert a database row tuple to a Transaction domain object."""
        return Transaction(
            id=str(row[0]),
            user_id=str(row[1]),
            type=row[2],
            amount=float(row[3]),
            currency=row[4],
            category=row[5],
            description=row[6],
            date=row[7],
            created_at=row[8],
        )
