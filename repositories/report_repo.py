"""
repositories/report_repo.py
----------------------------
Data access layer for saved report definitions (`reports` table).
Date range and filters are stored as JSONB.
"""

from typing import Optional

from psycopg2 import extras

from db.connection import get_connection, release_connection
from models.report import CustomReportDefinition, DateRange, ReportFilters
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, user_id, name, description, report_type, date_range, filters, grouping, created_at"


class ReportRepository:
    """Repository for create/read/delete on the reports table."""

    def add(self, report: CustomReportDefinition) -> CustomReportDefinition:
        """
        Insert a report definition.

        Returns:
            The same object with its `id` and `created_at` populated.
        """
        sql = """
            INSERT INTO reports (user_id, name, description, report_type, date_range, filters, grouping)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    report.user_id, report.name, report.description, report.report_type,
                    extras.Json(report.date_range.to_dict()),
                    extras.Json(report.filters.to_dict()),
                    report.grouping,
                ))
                row = cur.fetchone()
                report.id = str(row[0])
                report.created_at = row[1]
            conn.commit()
            logger.info(f"Saved {report.report_type} report '{report.name}' #{report.id}")
            return report
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to save report: {e}")
            raise
        finally:
            release_connection(conn)

    def get_all(self, user_id: str) -> list[CustomReportDefinition]:
        """Get a user's reports, newest first."""
        sql = f"SELECT {_COLUMNS} FROM reports WHERE user_id = %s ORDER BY created_at DESC;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (user_id,))
                return [self._row_to_report(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def get_by_id(self, report_id: str, user_id: str) -> Optional[CustomReportDefinition]:
        sql = f"SELECT {_COLUMNS} FROM reports WHERE id = %s AND user_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (report_id, user_id))
                row = cur.fetchone()
                return self._row_to_report(row) if row else None
        finally:
            release_connection(conn)

    def delete(self, report_id: str, user_id: str) -> bool:
        """Delete a report by ID, scoped to its owner."""
        sql = "DELETE FROM reports WHERE id = %s AND user_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (report_id, user_id))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted report #{report_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete report #{report_id}: {e}")
            raise
        finally:
            release_connection(conn)

    @staticmethod
    def _row_to_report(row: tuple) -> CustomReportDefinition:
        """Convert a row to a definition. psycopg2 decodes JSONB columns into dicts."""
        return CustomReportDefinition(
            id=str(row[0]),
            user_id=str(row[1]),
            name=row[2],
            description=row[3],
            report_type=row[4],
            date_range=DateRange.from_dict(row[5]),
            filters=ReportFilters.from_dict(row[6]),
            grouping=row[7],
            created_at=row[8],
        )
