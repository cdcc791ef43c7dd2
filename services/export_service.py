"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of the expense ledger.
"""

import io
from typing import Sequence

import pandas as pd

from config import DATE_DISPLAY_FORMAT
from models.expense import Expense
from services.metrics_service import ranked_categories
from utils.exceptions import ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

CSV_COLUMNS = ["Date", "Category", "Title", "Amount", "Description"]


def _quoted(value: str) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def _number(value: float) -> str:
    """Whole amounts without a trailing '.0'."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


class ExportService:
    """Turns ledger records into downloadable CSV and Excel files."""

    def __init__(self, date_format: str = DATE_DISPLAY_FORMAT):
        self.date_format = date_format

    def _frame(self, records: Sequence[Expense]) -> pd.DataFrame:
        if not records:
            raise ValidationError("expenses", "You have no expenses to export.")
        data = [
            {
                "Date": e.date.strftime(self.date_format),
                "Category": e.category,
                "Title": e.title,
                "Amount": e.amount,
                "Description": e.notes or "",
            }
            for e in records
        ]
        return pd.DataFrame(data, columns=CSV_COLUMNS)

    def to_csv(self, records: Sequence[Expense]) -> io.BytesIO:
        """
        Export records as CSV.

        The header row is unquoted. In data rows the date and amount are
        bare; category, title and description are always quoted.

        Returns:
            A BytesIO buffer containing UTF-8 (with BOM) CSV data.

        Raises:
            ValidationError: If there is nothing to export.
        """
        df = self._frame(records)
        lines = [",".join(CSV_COLUMNS)]
        for row in df.itertuples(index=False):
            lines.append(",".join([
                row.Date,
                _quoted(row.Category),
                _quoted(row.Title),
                _number(row.Amount),
                _quoted(row.Description),
            ]))
        text = "\n".join(lines) + "\n"
        buffer = io.BytesIO(text.encode("utf-8-sig"))
        logger.info(f"Exported {len(df)} expenses as CSV")
        return buffer

    def to_excel(self, records: Sequence[Expense]) -> io.BytesIO:
        """
        Export records as an Excel (.xlsx) workbook with a category summary sheet.

        Raises:
            ValidationError: If there is nothing to export.
        """
        df = self._frame(records)
        summary = pd.DataFrame(
            [
                {"Category": s.category, "Total": s.amount, "Percent": round(s.percent, 1)}
                for s in ranked_categories(records)
            ],
            columns=["Category", "Total", "Percent"],
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Expenses", index=False)
            summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} expenses as Excel")
        return buffer
