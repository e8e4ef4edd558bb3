"""
stocktracker/exporter.py  -  Excel and CSV export of a portfolio view

Both exporters write exactly what the view model holds; money is rounded to
cents only at the file boundary.
"""

import csv
from datetime import datetime
from typing import Optional

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from stocktracker.models import PortfolioView

NAVY      = "16315C"
STEEL     = "2E4F7F"
WHITE     = "FFFFFF"
BAND      = "EEF2F8"
GAIN_INK  = "17703A"
LOSS_INK  = "A8201A"

CSV_FIELDS = ["symbol", "shares", "purchase_price", "purchase_date", "current_price",
              "market_value", "total_cost", "gain_loss", "gain_loss_percent"]

# (header, width, number format)
COLUMNS = [
    ("Symbol",            10, None),
    ("Shares",            12, "#,##0.####"),
    ("Purchase Date",     14, "yyyy-mm-dd"),
    ("Purchase Price",    16, "$#,##0.00"),
    ("Current Price",     16, "$#,##0.00"),
    ("Market Value",      17, "$#,##0.00"),
    ("Cost",              16, "$#,##0.00"),
    ("Gain/Loss",         16, "$#,##0.00;[Red]-$#,##0.00"),
    ("Gain/Loss %",       12, "0.00%;[Red]-0.00%"),
]

_THIN = Side(style="thin", color="C5CAD3")
_GRID = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)


def _timestamped(ext: str) -> str:
    return f"portfolio_{datetime.now():%Y%m%d_%H%M%S}.{ext}"


def _put(ws, row: int, col: int, value, bold=False, colour="000000", fill=None,
         fmt=None, align=None):
    cell = ws.cell(row=row, column=col, value=value)
    cell.font   = Font(name="Calibri", size=10, bold=bold, color=colour)
    cell.border = _GRID
    if fill:
        cell.fill = PatternFill("solid", fgColor=fill)
    if fmt:
        cell.number_format = fmt
    cell.alignment = Alignment(horizontal=align or ("left" if col == 1 else "right"))
    return cell


# ── Public API ────────────────────────────────────────────────────────────────

def export_to_csv(view: PortfolioView, filename: Optional[str] = None) -> str:
    filename = filename or _timestamped("csv")
    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_FIELDS)
        for h in view.holdings:
            writer.writerow([
                h.symbol, h.shares, h.purchase_price, h.purchase_date.isoformat(),
                h.current_price,
                f"{h.market_value:.2f}", f"{h.total_cost:.2f}",
                f"{h.gain_loss:.2f}", f"{h.gain_loss_percent:.2f}",
            ])
    return filename


def export_to_excel(view: PortfolioView, filename: Optional[str] = None) -> str:
    filename = filename or _timestamped("xlsx")
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Summary"
    _write_summary(ws, view)
    wb.save(filename)
    return filename


# ── Summary sheet ─────────────────────────────────────────────────────────────

def _write_summary(ws, view: PortfolioView) -> None:
    last_col = get_column_letter(len(COLUMNS))

    ws.merge_cells(f"A1:{last_col}1")
    title = ws["A1"]
    title.value     = view.name
    title.font      = Font(name="Calibri", size=15, bold=True, color=WHITE)
    title.fill      = PatternFill("solid", fgColor=NAVY)
    title.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[1].height = 28

    ws.merge_cells(f"A2:{last_col}2")
    ws["A2"].value     = f"Exported {datetime.now():%d %b %Y %H:%M}"
    ws["A2"].font      = Font(name="Calibri", size=9, italic=True, color=WHITE)
    ws["A2"].fill      = PatternFill("solid", fgColor=STEEL)
    ws["A2"].alignment = Alignment(horizontal="center")

    for col, (header, width, _) in enumerate(COLUMNS, 1):
        _put(ws, 4, col, header, bold=True, colour=WHITE, fill=NAVY, align="center")
        ws.column_dimensions[get_column_letter(col)].width = width

    row = 5
    for i, h in enumerate(view.holdings):
        band   = BAND if i % 2 == 0 else None
        colour = GAIN_INK if h.gain_loss >= 0 else LOSS_INK
        values = [h.symbol, float(h.shares), h.purchase_date, float(h.purchase_price),
                  float(h.current_price), float(h.market_value), float(h.total_cost),
                  float(h.gain_loss), float(h.gain_loss_percent) / 100]
        for col, (value, (_, _, fmt)) in enumerate(zip(values, COLUMNS), 1):
            _put(ws, row, col, value, fill=band, fmt=fmt,
                 colour=colour if col >= 8 else "000000")
        row += 1

    s = view.summary
    colour = GAIN_INK if s.total_gain_loss >= 0 else LOSS_INK
    totals = {1: "TOTAL", 6: float(s.total_value), 7: float(s.total_cost),
              8: float(s.total_gain_loss), 9: float(s.total_gain_loss_percent) / 100}
    for col, (_, _, fmt) in enumerate(COLUMNS, 1):
        _put(ws, row, col, totals.get(col), bold=True, fill=BAND, fmt=fmt,
             colour=colour if col >= 8 else "000000")

    ws.freeze_panes = "A5"
