"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of report results.
"""

import io

import pandas as pd

from utils.logger import get_logger

logger = get_logger(__name__)


class ExportService:
    """Turns report aggregates into downloadable CSV and Excel files."""

    @staticmethod
    def to_frame(result) -> pd.DataFrame:
        """
        Build a DataFrame from a report result.

        Args:
            result: A single aggregate or a list of aggregates; each must
                provide ``to_dict()``.
        """
        rows = result if isinstance(result, list) else [result]
        return pd.DataFrame([r.to_dict() for r in rows])

    def to_csv(self, result) -> io.BytesIO:
        """
        Export a report result as CSV.

        Returns:
            A BytesIO buffer containing the CSV data.
        """
        df = self.to_frame(result)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} rows as CSV")
        return buffer

    def to_excel(self, result, sheet_name: str = "Report") -> io.BytesIO:
        """
        Export a report result as an Excel (.xlsx) workbook.

        List results get a second "Summary" sheet with the column totals of
        every numeric column.

        Returns:
            A BytesIO buffer containing the Excel data.
        """
        df = self.to_frame(result)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)

            if isinstance(result, list) and not df.empty:
                numeric = df.select_dtypes(include="number")
                summary = numeric.sum().reset_index()
                summary.columns = ["Column", "Total"]
                summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} rows as Excel")
        return buffer
