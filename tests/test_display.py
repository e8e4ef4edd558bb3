from datetime import datetime
from decimal import Decimal

import pytest
from rich.console import Console

from stocktracker import display


@pytest.fixture
def out(monkeypatch):
    console = Console(record=True, width=140, force_terminal=False)
    monkeypatch.setattr(display, "console", console)
    return console


def test_formatters():
    assert display.cur(Decimal("8765")) == "$8,765.00"
    assert display.cur(Decimal("-60")) == "-$60.00"
    assert display.pct(Decimal("16.6722")) == "+16.67%"
    assert display.pct(Decimal("-1.99")) == "-1.99%"
    assert display.qty(Decimal("50.000")) == "50"
    assert display.qty(Decimal("0.5")) == "0.5"


def test_print_portfolio(out, store, tech):
    store.apply_prices({"AAPL": Decimal("175.30")})
    display.print_portfolio(store.get_portfolio_view(tech))
    text = out.export_text()
    assert "Tech" in text
    assert "AAPL" in text and "GOOGL" in text
    assert "$8,765.00" in text
    assert "+16.67%" in text
    assert "Jan 15, 2024" in text


def test_print_empty_portfolio(out, store):
    p = store.create_portfolio("Fresh")
    display.print_portfolio(store.get_portfolio_view(p.id))
    assert "No holdings" in out.export_text()


def test_print_portfolio_list_marks_active(out, store, tech):
    other = store.create_portfolio("Other")
    views = [store.get_portfolio_view(pid) for pid in store.portfolio_ids()]
    display.print_portfolio_list(views, other.id)
    text = out.export_text()
    assert "Tech" in text and "Other" in text
    assert "●" in text


def test_print_refresh_status(out):
    display.print_refresh_status(True, "yahoo", 30, datetime(2024, 3, 1, 9, 30, 5),
                                 "yahoo quote request failed: timeout")
    text = out.export_text()
    assert "auto every 30s" in text
    assert "09:30:05" in text
    assert "request failed" in text

    display.print_refresh_status(False, "simulated", 5, None, None)
    text = out.export_text()
    assert "paused" in text and "never" in text
