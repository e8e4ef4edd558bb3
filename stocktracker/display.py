"""
stocktracker/display.py
=======================
Renders the read-only view model in the terminal using the `rich` library.

Nothing here computes money: every figure comes from a PortfolioView, and
rounding happens only in the formatters below.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from stocktracker.models import PortfolioTotals, PortfolioView

console = Console()

# ── Palette ─────────────────────────────────────────────────────────────────
GAIN   = "green"
LOSS   = "red"
MUTED  = "grey62"
ACCENT = "steel_blue1"
HEAD   = "bold white"


# ── Formatters ───────────────────────────────────────────────────────────────

def _colour(value: Decimal, text: str) -> str:
    if value > 0:  return f"[{GAIN}]{text}[/{GAIN}]"
    if value < 0:  return f"[{LOSS}]{text}[/{LOSS}]"
    return f"[{MUTED}]{text}[/{MUTED}]"

def cur(value: Decimal) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"

def pct(value: Decimal) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"

def qty(value: Decimal) -> str:
    return f"{value.normalize():,f}"

def _arrow(value: Decimal) -> str:
    if value > 0:  return f"[{GAIN}]▲[/{GAIN}]"
    if value < 0:  return f"[{LOSS}]▼[/{LOSS}]"
    return f"[{MUTED}]─[/{MUTED}]"


# ── Portfolio ────────────────────────────────────────────────────────────────

def holdings_table(view: PortfolioView) -> Table:
    table = Table(
        box=box.SIMPLE,
        show_header=True,
        header_style=f"bold {ACCENT}",
        show_edge=False,
        pad_edge=True,
        row_styles=["", "on grey7"],
    )

    table.add_column("",               width=2)
    table.add_column("Symbol",         style=HEAD, min_width=7)
    table.add_column("Shares",         justify="right", min_width=8)
    table.add_column("Purchase",       justify="right", min_width=10, style=MUTED)
    table.add_column("Current",        justify="right", min_width=10)
    table.add_column("Market Value",   justify="right", min_width=13, style=HEAD)
    table.add_column("Gain/Loss",      justify="right", min_width=12)
    table.add_column("Gain/Loss %",    justify="right", min_width=9)
    table.add_column("Bought",         style=MUTED, min_width=11)

    for h in view.holdings:
        table.add_row(
            _arrow(h.gain_loss),
            h.symbol,
            qty(h.shares),
            cur(h.purchase_price),
            cur(h.current_price),
            cur(h.market_value),
            _colour(h.gain_loss, cur(h.gain_loss)),
            _colour(h.gain_loss_percent, pct(h.gain_loss_percent)),
            h.purchase_date.strftime("%b %d, %Y"),
        )
    return table


def print_portfolio(view: PortfolioView) -> None:
    console.print(f"\n  [bold white]{view.name}[/bold white]")
    if view.is_empty:
        console.print(f"\n  [{MUTED}]No holdings. Add your first stock to start "
                      f"tracking this portfolio.[/{MUTED}]\n")
        return
    console.print(holdings_table(view))
    print_totals(view.summary)


def print_totals(totals: PortfolioTotals) -> None:
    gl = totals.total_gain_loss
    parts = [
        f"[{MUTED}]Cost[/{MUTED}]  [white]{cur(totals.total_cost)}[/white]",
        f"[{MUTED}]Value[/{MUTED}]  [bold white]{cur(totals.total_value)}[/bold white]",
        f"[{MUTED}]Gain/Loss[/{MUTED}]  {_colour(gl, cur(gl))}  "
        f"{_colour(totals.total_gain_loss_percent, pct(totals.total_gain_loss_percent))}",
    ]
    console.print("  " + "     ".join(parts) + "\n")


def print_portfolio_list(views: List[PortfolioView], active_id: Optional[str]) -> None:
    table = Table(
        box=box.SIMPLE,
        show_header=True,
        header_style=f"bold {ACCENT}",
        show_edge=False,
        pad_edge=True,
    )
    table.add_column("#",         justify="right", width=3)
    table.add_column("",          width=2)
    table.add_column("Portfolio", style=HEAD, min_width=24)
    table.add_column("Holdings",  justify="right")
    table.add_column("Value",     justify="right", min_width=13)
    table.add_column("Gain/Loss %", justify="right", min_width=9)

    for i, v in enumerate(views, 1):
        marker = f"[{ACCENT}]●[/{ACCENT}]" if v.portfolio_id == active_id else ""
        table.add_row(str(i), marker, v.name, str(len(v.holdings)),
                      cur(v.summary.total_value),
                      _colour(v.summary.total_gain_loss_percent,
                              pct(v.summary.total_gain_loss_percent)))
    console.print(table)


def print_refresh_status(running: bool, source: str, interval: float,
                         last_updated: Optional[datetime],
                         last_error: Optional[str]) -> None:
    state   = f"[{GAIN}]auto every {interval:g}s[/{GAIN}]" if running else f"[{MUTED}]paused[/{MUTED}]"
    updated = last_updated.strftime("%H:%M:%S") if last_updated else "never"
    line = f"  [{MUTED}]Prices[/{MUTED}] {source} · {state} · [{MUTED}]last updated[/{MUTED}] {updated}"
    if last_error:
        line += f"  [yellow]⚠ {last_error}[/yellow]"
    console.print(line)
