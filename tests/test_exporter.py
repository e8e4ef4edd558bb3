import csv
from decimal import Decimal

import openpyxl
import pytest

from stocktracker.exporter import CSV_FIELDS, export_to_csv, export_to_excel


@pytest.fixture
def view(store, tech):
    store.apply_prices({"AAPL": Decimal("175.30"), "GOOGL": Decimal("118.10")})
    return store.get_portfolio_view(tech)


def test_csv_export(view, tmp_path):
    path = export_to_csv(view, str(tmp_path / "tech.csv"))
    with open(path, newline="") as f:
        rows = list(csv.DictReader(f))

    assert list(rows[0].keys()) == CSV_FIELDS
    assert [r["symbol"] for r in rows] == ["AAPL", "GOOGL"]
    assert rows[0]["market_value"] == "8765.00"
    assert rows[0]["gain_loss"] == "1252.50"
    assert rows[0]["gain_loss_percent"] == "16.67"
    assert rows[1]["gain_loss"] == "-60.00"
    assert rows[1]["purchase_date"] == "2024-01-20"


def test_excel_export(view, tmp_path):
    path = export_to_excel(view, str(tmp_path / "tech.xlsx"))
    wb = openpyxl.load_workbook(path)
    assert wb.sheetnames == ["Summary"]

    ws = wb["Summary"]
    assert ws["A1"].value == "Tech"
    assert ws["A5"].value == "AAPL"
    assert ws["F5"].value == pytest.approx(8765.0)
    assert ws["A7"].value == "TOTAL"
    assert ws["F7"].value == pytest.approx(float(view.summary.total_value))
    assert ws["H7"].value == pytest.approx(1192.5)


def test_empty_portfolio_exports_header_only(store, tmp_path):
    p = store.create_portfolio("Empty")
    path = export_to_csv(store.get_portfolio_view(p.id), str(tmp_path / "e.csv"))
    with open(path) as f:
        assert f.read().strip() == ",".join(CSV_FIELDS)
