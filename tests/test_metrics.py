from datetime import date
from decimal import Decimal

from stocktracker.metrics import holding_metrics, portfolio_totals, portfolio_view
from stocktracker.models import Holding, Portfolio


def _holding(symbol, shares, purchase, current=None):
    return Holding(symbol=symbol, shares=Decimal(str(shares)),
                   purchase_price=Decimal(str(purchase)),
                   purchase_date=date(2024, 1, 15),
                   current_price=None if current is None else Decimal(str(current)))


def test_reference_holding():
    m = holding_metrics(_holding("AAPL", 50, "150.25", "175.30"))
    assert m.market_value == Decimal("8765.00")
    assert m.total_cost == Decimal("7512.50")
    assert m.gain_loss == Decimal("1252.50")
    assert round(m.gain_loss_percent, 2) == Decimal("16.67")


def test_current_price_defaults_to_purchase_price():
    h = _holding("KO", 100, "58.20")
    assert h.current_price == Decimal("58.20")
    m = holding_metrics(h)
    assert m.gain_loss == 0
    assert m.gain_loss_percent == 0


def test_gain_loss_is_value_minus_cost_exactly():
    for shares, purchase, current in [(3, "0.1", "0.2"), ("0.5", "99.99", "1"),
                                      (1000, "42.15", "39.80")]:
        h = _holding("X", shares, purchase, current)
        m = holding_metrics(h)
        assert m.gain_loss == m.market_value - h.shares * h.purchase_price


def test_zero_cost_basis_reports_zero_percent():
    m = holding_metrics(_holding("GIFT", 10, "0", "25"))
    assert m.gain_loss == Decimal("250")
    assert m.gain_loss_percent == 0


def test_loss_is_negative():
    m = holding_metrics(_holding("PFE", 75, "42.15", "39.80"))
    assert m.gain_loss == Decimal("-176.25")
    assert m.gain_loss_percent < 0


def test_portfolio_totals_sum_holdings():
    p = Portfolio(id="p", name="Mixed", holdings=[
        _holding("AAPL", 50, "150.25", "175.30"),
        _holding("GOOGL", 25, "120.50", "138.75"),
        _holding("MSFT", 30, "280.00", "295.50"),
    ])
    t = portfolio_totals(p)
    values = [holding_metrics(h).market_value for h in p.holdings]
    costs = [h.cost_basis for h in p.holdings]
    assert t.total_value == sum(values)
    assert t.total_cost == sum(costs)
    assert t.total_gain_loss == t.total_value - sum(costs)
    assert t.total_value == Decimal("21098.75")
    assert t.total_gain_loss == Decimal("2173.75")


def test_decimal_aggregation_has_no_float_drift():
    p = Portfolio(id="p", name="Pennies",
                  holdings=[_holding(f"S{i}", 1, "0.1", "0.1") for i in range(10)])
    assert portfolio_totals(p).total_value == Decimal("1.0")


def test_empty_portfolio_totals_are_zero():
    t = portfolio_totals(Portfolio(id="p", name="Empty"))
    assert t.total_value == 0
    assert t.total_gain_loss == 0
    assert t.total_gain_loss_percent == 0


def test_view_keeps_display_order_and_recomputes():
    p = Portfolio(id="p", name="Tech", holdings=[
        _holding("MSFT", 1, "10", "10"), _holding("AAPL", 1, "10", "10"),
    ])
    first = portfolio_view(p)
    assert [h.symbol for h in first.holdings] == ["MSFT", "AAPL"]

    p.holdings[0].current_price = Decimal("20")
    second = portfolio_view(p)
    assert first.summary.total_value == Decimal("20")
    assert second.summary.total_value == Decimal("30")
