"""
stocktracker/metrics.py  -  Valuation maths

Pure functions over Holding / Portfolio. Nothing is cached: callers get a
fresh calculation from whatever state they pass in.
"""

from decimal import Decimal

from stocktracker.models import (
    Holding, HoldingMetrics, Portfolio, PortfolioTotals, PortfolioView,
)

ZERO    = Decimal("0")
HUNDRED = Decimal("100")


def gain_loss_percent(gain_loss: Decimal, total_cost: Decimal) -> Decimal:
    # zero cost basis (gifted shares) reports 0% whatever the gain
    return gain_loss / total_cost * HUNDRED if total_cost > 0 else ZERO


def holding_metrics(holding: Holding) -> HoldingMetrics:
    market_value = holding.shares * holding.current_price
    total_cost   = holding.shares * holding.purchase_price
    gain_loss    = market_value - total_cost
    return HoldingMetrics(
        symbol=holding.symbol,
        shares=holding.shares,
        purchase_price=holding.purchase_price,
        purchase_date=holding.purchase_date,
        current_price=holding.current_price,
        market_value=market_value,
        total_cost=total_cost,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent(gain_loss, total_cost),
    )


def portfolio_totals(portfolio: Portfolio) -> PortfolioTotals:
    total_value = total_cost = ZERO
    for h in portfolio.holdings:
        total_value += h.shares * h.current_price
        total_cost  += h.shares * h.purchase_price
    total_gain_loss = total_value - total_cost
    return PortfolioTotals(
        total_value=total_value,
        total_cost=total_cost,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=gain_loss_percent(total_gain_loss, total_cost),
    )


def portfolio_view(portfolio: Portfolio) -> PortfolioView:
    return PortfolioView(
        portfolio_id=portfolio.id,
        name=portfolio.name,
        summary=portfolio_totals(portfolio),
        holdings=tuple(holding_metrics(h) for h in portfolio.holdings),
    )
