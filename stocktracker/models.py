"""
stocktracker/models.py  -  Pure dataclasses, no dependencies on other stocktracker modules.

Holding and Portfolio are the mutable state owned by the store.
HoldingMetrics, PortfolioTotals and PortfolioView are the frozen view model
handed to renderers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import FrozenSet, List, Optional, Tuple


@dataclass
class Holding:
    symbol:         str
    shares:         Decimal
    purchase_price: Decimal
    purchase_date:  date
    current_price:  Optional[Decimal] = None   # starts at purchase_price

    def __post_init__(self):
        if self.current_price is None:
            self.current_price = self.purchase_price

    @property
    def cost_basis(self) -> Decimal:
        """shares x purchase price. Never depends on current_price."""
        return self.shares * self.purchase_price

    @property
    def market_value(self) -> Decimal:
        return self.shares * self.current_price


@dataclass
class Portfolio:
    id:         str
    name:       str
    created_at: datetime                = field(default_factory=datetime.now)
    holdings:   List[Holding]           = field(default_factory=list)

    def get_holding(self, symbol: str) -> Optional[Holding]:
        for h in self.holdings:
            if h.symbol == symbol:
                return h
        return None

    @property
    def symbols(self) -> List[str]:
        return [h.symbol for h in self.holdings]


# ── View model ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HoldingMetrics:
    symbol:            str
    shares:            Decimal
    purchase_price:    Decimal
    purchase_date:     date
    current_price:     Decimal
    market_value:      Decimal
    total_cost:        Decimal
    gain_loss:         Decimal
    gain_loss_percent: Decimal


@dataclass(frozen=True)
class PortfolioTotals:
    total_value:            Decimal
    total_cost:             Decimal
    total_gain_loss:        Decimal
    total_gain_loss_percent: Decimal


@dataclass(frozen=True)
class PortfolioView:
    portfolio_id: str
    name:         str
    summary:      PortfolioTotals
    holdings:     Tuple[HoldingMetrics, ...]

    @property
    def is_empty(self) -> bool:
        return not self.holdings


@dataclass(frozen=True)
class RefreshResult:
    updated_symbols: FrozenSet[str]
    as_of:           datetime

    @property
    def changed(self) -> bool:
        return bool(self.updated_symbols)
