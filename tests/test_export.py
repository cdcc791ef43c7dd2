import csv
import io
from datetime import date

import pandas as pd
import pytest

from conftest import make_expense
from services.chart_service import ChartService
from services.export_service import ExportService
from utils.exceptions import ValidationError


@pytest.fixture
def records():
    return [
        make_expense(18500.5, category="Steel", day=date(2024, 2, 10), title="TMT bars, 12mm",
                     notes='delivered "late"'),
        make_expense(42000, category="Cement", day=date(2024, 1, 5), title="OPC cement"),
    ]


def test_csv_header_and_rows(records):
    raw = ExportService().to_csv(records).getvalue()

    assert raw.startswith(b"\xef\xbb\xbf")
    text = raw.decode("utf-8-sig")
    header, *body = text.splitlines()
    assert header == "Date,Category,Title,Amount,Description"

    assert body == [
        '10/02/2024,"Steel","TMT bars, 12mm",18500.5,"delivered ""late"""',
        '05/01/2024,"Cement","OPC cement",42000,""',
    ]

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[1] == ["10/02/2024", "Steel", "TMT bars, 12mm", "18500.5", 'delivered "late"']


def test_csv_empty_ledger_refused():
    with pytest.raises(ValidationError) as exc:
        ExportService().to_csv([])
    assert str(exc.value) == "You have no expenses to export."


def test_excel_has_expenses_and_summary(records):
    buffer = ExportService().to_excel(records)

    sheets = pd.read_excel(buffer, sheet_name=None)

    assert set(sheets) == {"Expenses", "Summary"}
    assert list(sheets["Expenses"].columns) == ["Date", "Category", "Title", "Amount", "Description"]
    summary = sheets["Summary"]
    assert list(summary["Category"]) == ["Cement", "Steel"]
    assert summary["Total"].sum() == pytest.approx(60500.5)


def test_excel_empty_ledger_refused():
    with pytest.raises(ValidationError):
        ExportService().to_excel([])


def test_category_pie_renders_png(records):
    buffer = ChartService().category_pie(records)
    assert buffer.getvalue()[:8] == b"\x89PNG\r\n\x1a\n"


def test_category_pie_without_expenses():
    assert ChartService().category_pie([]) is None
