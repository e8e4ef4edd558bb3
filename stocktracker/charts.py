"""
stocktracker/charts.py
======================
Matplotlib charts of a portfolio view, saved as PNG files.

Styling is applied per figure through rc_context, so importing this module
leaves the caller's matplotlib settings alone.
"""

from typing import List, Optional

import matplotlib
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import numpy as np

from stocktracker.models import PortfolioView


# ── Style ─────────────────────────────────────────────────────────────────────
INK     = "#d0d4da"
DIM     = "#7a808a"
PAPER   = "#111418"
PANEL   = "#1b1f26"
RULE    = "#2c313a"
UP      = "#3fb27f"
DOWN    = "#e2574c"
COLOURS = ["#4e8fd9", "#3fb27f", "#f0a93b", "#a07ad6", "#e2574c", "#3bb8b0", "#ec6f9c"]

STYLE = {
    "figure.facecolor": PAPER,
    "figure.dpi":       110,
    "axes.facecolor":   PANEL,
    "axes.edgecolor":   RULE,
    "axes.labelcolor":  DIM,
    "axes.titlecolor":  INK,
    "axes.titlesize":   12,
    "axes.grid":        True,
    "grid.color":       RULE,
    "xtick.color":      DIM,
    "ytick.color":      DIM,
    "legend.facecolor": PANEL,
    "legend.edgecolor": RULE,
    "text.color":       INK,
}


def _savefig(fig: plt.Figure, filename: str, show: bool) -> str:
    fig.tight_layout()
    fig.savefig(filename, bbox_inches="tight", facecolor=PAPER)
    if show and matplotlib.get_backend().lower() != "agg":
        plt.show()
    plt.close(fig)
    return filename


# ── Allocation ────────────────────────────────────────────────────────────────

def allocation_chart(view: PortfolioView, filename: str = "portfolio_allocation.png",
                     show: bool = False) -> Optional[str]:
    """Donut of market value per holding. None when nothing has value."""
    held = [h for h in view.holdings if h.market_value > 0]
    if not held:
        return None

    values = [float(h.market_value) for h in held]
    labels = [f"{h.symbol}  ${v:,.0f}" for h, v in zip(held, values)]

    with plt.rc_context(STYLE):
        fig, ax = plt.subplots(figsize=(7, 6))
        wedges, _, pct_labels = ax.pie(
            values,
            colors=[COLOURS[i % len(COLOURS)] for i in range(len(values))],
            autopct=lambda share: f"{share:.1f}%" if share >= 5 else "",
            counterclock=False,
            startangle=90,
            pctdistance=0.8,
            wedgeprops={"width": 0.5, "edgecolor": PAPER, "linewidth": 1.5},
        )
        for t in pct_labels:
            t.set_fontsize(8)

        ax.text(0, 0, f"${float(view.summary.total_value):,.0f}", ha="center", va="center",
                fontsize=13, fontweight="bold")
        ax.legend(wedges, labels, loc="upper center", bbox_to_anchor=(0.5, 0.02),
                  ncol=min(3, len(labels)), fontsize=8)
        ax.set_title(f"{view.name}: Allocation")
        return _savefig(fig, filename, show)


# ── Gain / loss ───────────────────────────────────────────────────────────────

def _annotate(ax, bars, values: List[float], fmt: str) -> None:
    offset = max(abs(v) for v in values) * 0.02 or 0.1
    for bar, v in zip(bars, values):
        end = bar.get_width()
        ax.text(end + offset if v >= 0 else end - offset,
                bar.get_y() + bar.get_height() / 2,
                fmt.format(v), va="center", ha="left" if v >= 0 else "right", fontsize=8)


def gain_loss_chart(view: PortfolioView, filename: str = "portfolio_gain_loss.png",
                    show: bool = False) -> Optional[str]:
    """Side-by-side bars of absolute and percentage gain per holding."""
    if view.is_empty:
        return None

    symbols = [h.symbol for h in view.holdings]
    panels = [
        ("Gain/Loss ($)", [float(h.gain_loss) for h in view.holdings],
         lambda x, _: f"${x:,.0f}", "${:+,.2f}"),
        ("Gain/Loss (%)", [float(h.gain_loss_percent) for h in view.holdings],
         lambda x, _: f"{x:+.0f}%", "{:+.2f}%"),
    ]
    rows = np.arange(len(symbols))

    with plt.rc_context(STYLE):
        fig, axes = plt.subplots(1, 2, sharey=True,
                                 figsize=(11, max(3.5, 0.6 * len(symbols) + 1.5)))
        for ax, (title, values, tick_fmt, label_fmt) in zip(axes, panels):
            bars = ax.barh(rows, values, height=0.55, zorder=3,
                           color=[UP if v >= 0 else DOWN for v in values])
            ax.axvline(0, color=RULE, linewidth=1)
            ax.set_yticks(rows)
            ax.set_yticklabels(symbols)
            ax.set_title(title)
            ax.xaxis.set_major_formatter(mticker.FuncFormatter(tick_fmt))
            _annotate(ax, bars, values, label_fmt)
        axes[0].invert_yaxis()
        return _savefig(fig, filename, show)
