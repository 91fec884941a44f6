"""
repositories/recurring_repo.py
-------------------------------
Data access layer for recurring transaction definitions.
All SQL queries related to the `recurring_transactions` table live here.
"""

from datetime import date
from typing import Optional

from db.connection import get_connection, release_connection
from models.recurring import ProcessedOccurrence, RecurringTransaction
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "id, user_id, type, category, amount, description, frequency, start_date, end_date, "
    "next_occurrence_date, last_processed_date, is_active, notification_enabled, "
    "notification_days_before, created_at"
)


class RecurringRepository:
    """Repository for CRUD operations on the recurring_transactions table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, definition: RecurringTransaction) -> RecurringTransaction:
        """
        Insert a new recurring definition.

        Returns:
            The same object with its `id` and `created_at` populated.
        """
        sql = """
            INSERT INTO recurring_transactions
                (user_id, type, category, amount, description, frequency, start_date, end_date,
                 next_occurrence_date, is_active, notification_enabled, notification_days_before)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    definition.user_id, definition.type, definition.category,
                    definition.amount, definition.description, definition.frequency,
                    definition.start_date, definition.end_date,
                    definition.next_occurrence_date, definition.is_active,
                    definition.notification_enabled, definition.notification_days_before,
                ))
                row = cur.fetchone()
                definition.id = str(row[0])
                definition.created_at = row[1]
            conn.commit()
            logger.info(f"Added recurring {definition.frequency} '{definition.category}' #{definition.id}")
            return definition
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to add recurring transaction: {e}")
            raise
        finally:
            release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get_all(self, user_id: str, active_only: bool = True) -> list[RecurringTransaction]:
        """
        Get recurring definitions for a user, soonest first.

        Args:
            user_id: Owner of the definitions.
            active_only: If True, only return active definitions.
        """
        sql = f"SELECT {_COLUMNS} FROM recurring_transactions WHERE user_id = %s"
        if active_only:
            sql += " AND is_active = TRUE"
        sql += " ORDER BY next_occurrence_date ASC;"

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (user_id,))
                return [self._row_to_definition(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_by_id(self, recurring_id: str, user_id: str) -> Optional[RecurringTransaction]:
        """Fetch a single definition by ID, scoped to its owner."""
        sql = f"SELECT {_COLUMNS} FROM recurring_transactions WHERE id = %s AND user_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (recurring_id, user_id))
                row = cur.fetchone()
                return self._row_to_definition(row) if row else None
        finally:
            release_connection(conn)

    # ── UPDATE ────────────────────────────────────────────

    def record_occurrence(self, occurrence: ProcessedOccurrence, expected_next: date) -> bool:
        """
        Persist one processed occurrence atomically.

        The definition is advanced first with a compare-and-swap on
        ``next_occurrence_date``; the materialized transaction is inserted
        only if that update matched, and both happen in one DB transaction.

        Args:
            occurrence: Output of recurring_service.process().
            expected_next: The next_occurrence_date the caller processed.

        Returns:
            True if this call recorded the occurrence, False if another
            worker had already advanced the definition.
        """
        updated = occurrence.definition
        tx = occurrence.transaction
        advance_sql = """
            UPDATE recurring_transactions
            SET next_occurrence_date = %s, last_processed_date = %s,
                is_active = %s, updated_at = NOW()
            WHERE id = %s AND next_occurrence_date = %s AND is_active = TRUE;
        """
        insert_sql = """
            INSERT INTO transactions (user_id, type, amount, currency, category, description, date)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(advance_sql, (
                    updated.next_occurrence_date, updated.last_processed_date,
                    updated.is_active, updated.id, expected_next,
                ))
                if cur.rowcount == 0:
                    conn.rollback()
                    return False
                cur.execute(insert_sql, (
                    tx.user_id, tx.type, tx.amount, tx.currency,
                    tx.category, tx.description, tx.date,
                ))
                row = cur.fetchone()
                tx.id = str(row[0])
                tx.created_at = row[1]
            conn.commit()
            logger.info(
                f"Recorded recurring #{updated.id} occurrence {tx.date} as transaction #{tx.id}"
            )
            return True
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to record occurrence for recurring #{updated.id}: {e}")
            raise
        finally:
            release_connection(conn)

    def set_active(self, recurring_id: str, user_id: str, active: bool) -> bool:
        """Enable or disable a recurring definition."""
        sql = """
            UPDATE recurring_transactions SET is_active = %s, updated_at = NOW()
            WHERE id = %s AND user_id = %s;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (active, recurring_id, user_id))
                updated = cur.rowcount > 0
            conn.commit()
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to toggle recurring #{recurring_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete(self, recurring_id: str, user_id: str) -> bool:
        """Delete a recurring definition by ID, scoped to its owner."""
        sql = "DELETE FROM recurring_transactions WHERE id = %s AND user_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (recurring_id, user_id))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted recurring transaction #{recurring_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete recurring #{recurring_id}: {e}")
            raise
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_definition(row: tuple) -> RecurringTransaction:
        """Convert a database row tuple to a RecurringTransaction domain object."""
        return RecurringTransaction(
            id=str(row[0]),
            user_id=str(row[1]),
            type=row[2],
            category=row[3],
            amount=float(row[4]),
            description=row[5],
            frequency=row[6],
            start_date=row[7],
            end_date=row[8],
            next_occurrence_date=row[9],
            last_processed_date=row[10],
            is_active=row[11],
            notification_enabled=row[12],
            notification_days_before=row[13],
            created_at=row[14],
        )
