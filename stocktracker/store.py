"""
stocktracker/store.py  -  Canonical portfolio state

PortfolioStore owns every Portfolio and Holding in memory plus the id of the
active portfolio. When a Database is attached, each mutation is written there
first and only mirrored in memory once the write succeeded.

All public methods take the store's lock, so a user mutation and a price
refresh never interleave.
"""

import copy
import logging
import threading
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Set

from stocktracker.db import Database
from stocktracker.errors import (
    DuplicateSymbolError, LastPortfolioError, NotFoundError, ValidationError,
)
from stocktracker.metrics import portfolio_view
from stocktracker.models import Holding, Portfolio, PortfolioView
from stocktracker.validation import (
    normalise_symbol, validate_holding, validate_portfolio_name,
)

log = logging.getLogger(__name__)


class PortfolioStore:
    def __init__(self, db: Optional[Database] = None):
        self._db        = db
        self._lock      = threading.RLock()
        self._portfolios: Dict[str, Portfolio] = {}   # insertion = creation order
        self._active_id: Optional[str] = None
        if self._db is not None:
            self._load()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def _load(self) -> None:
        with self._lock:
            self._portfolios = {p.id: p for p in self._db.get_all_portfolios()}
            self._active_id  = next(iter(self._portfolios), None)
        log.debug("Loaded %d portfolio(s) from %s", len(self._portfolios), self._db.path)

    def _get(self, portfolio_id: str) -> Portfolio:
        portfolio = self._portfolios.get(portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)
        return portfolio

    # ── Reads ─────────────────────────────────────────────────────────────────

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    def get_portfolio(self, portfolio_id: str) -> Portfolio:
        """A deep copy; edits to it never reach the store."""
        with self._lock:
            return copy.deepcopy(self._get(portfolio_id))

    def active_portfolio(self) -> Optional[Portfolio]:
        with self._lock:
            if self._active_id is None:
                return None
            return copy.deepcopy(self._portfolios[self._active_id])

    def all_portfolios(self) -> List[Portfolio]:
        with self._lock:
            return copy.deepcopy(list(self._portfolios.values()))

    def portfolio_ids(self) -> List[str]:
        with self._lock:
            return list(self._portfolios)

    def get_portfolio_view(self, portfolio_id: str) -> PortfolioView:
        with self._lock:
            return portfolio_view(self._get(portfolio_id))

    def all_symbols(self) -> Set[str]:
        """Distinct symbols held across every portfolio."""
        with self._lock:
            return {h.symbol for p in self._portfolios.values() for h in p.holdings}

    def purchase_price_of(self, symbol: str) -> Optional[Decimal]:
        """Purchase price of the first holding of symbol, searching portfolios in order."""
        symbol = normalise_symbol(symbol)
        with self._lock:
            for p in self._portfolios.values():
                h = p.get_holding(symbol)
                if h is not None:
                    return h.purchase_price
        return None

    def __len__(self) -> int:
        return len(self._portfolios)

    # ── Portfolios ────────────────────────────────────────────────────────────

    def create_portfolio(self, name: str) -> Portfolio:
        errors = validate_portfolio_name(name)
        if errors:
            raise ValidationError(errors)
        portfolio = Portfolio(id=str(uuid.uuid4()), name=name.strip(),
                              created_at=datetime.now())
        with self._lock:
            if self._db is not None:
                self._db.insert_portfolio(portfolio)
            self._portfolios[portfolio.id] = portfolio
            self._active_id = portfolio.id
        log.info("Created portfolio '%s'", portfolio.name)
        return copy.deepcopy(portfolio)

    def rename_portfolio(self, portfolio_id: str, new_name: str) -> Portfolio:
        errors = validate_portfolio_name(new_name)
        if errors:
            raise ValidationError(errors)
        new_name = new_name.strip()
        with self._lock:
            portfolio = self._get(portfolio_id)
            if self._db is not None:
                self._db.rename_portfolio(portfolio_id, new_name)
            portfolio.name = new_name
            return copy.deepcopy(portfolio)

    def delete_portfolio(self, portfolio_id: str) -> None:
        with self._lock:
            portfolio = self._get(portfolio_id)
            if len(self._portfolios) == 1:
                raise LastPortfolioError()
            if self._db is not None:
                self._db.delete_portfolio(portfolio_id)
            del self._portfolios[portfolio_id]
            if self._active_id == portfolio_id:
                self._active_id = next(iter(self._portfolios))
        log.info("Deleted portfolio '%s' (%d holding(s))",
                 portfolio.name, len(portfolio.holdings))

    def switch_portfolio(self, portfolio_id: str) -> Portfolio:
        with self._lock:
            portfolio = self._get(portfolio_id)
            self._active_id = portfolio_id
            return copy.deepcopy(portfolio)

    def ensure_default(self, name: str = "My Portfolio") -> Optional[Portfolio]:
        """Seed one empty portfolio on first use. Returns it, or None if state already existed."""
        with self._lock:
            if self._portfolios:
                return None
            return self.create_portfolio(name)

    # ── Holdings ──────────────────────────────────────────────────────────────

    def add_holding(self, portfolio_id: str, symbol: str, shares,
                    purchase_price, purchase_date) -> Holding:
        errors, qty, price, bought = validate_holding(
            symbol, shares, purchase_price, purchase_date)
        if errors:
            raise ValidationError(errors)
        symbol  = normalise_symbol(symbol)
        holding = Holding(symbol=symbol, shares=qty, purchase_price=price,
                          purchase_date=bought)
        with self._lock:
            portfolio = self._get(portfolio_id)
            if portfolio.get_holding(symbol) is not None:
                raise DuplicateSymbolError(symbol, portfolio.name)
            if self._db is not None:
                self._db.insert_holding(portfolio_id, holding)
            portfolio.holdings.append(holding)
        log.info("Added %s x%s @ %s to '%s'", symbol, qty, price, portfolio.name)
        return copy.deepcopy(holding)

    def remove_holding(self, portfolio_id: str, symbol: str) -> Holding:
        symbol = normalise_symbol(symbol)
        with self._lock:
            portfolio = self._get(portfolio_id)
            holding   = portfolio.get_holding(symbol)
            if holding is None:
                raise NotFoundError("Holding", symbol)
            if self._db is not None:
                self._db.delete_holding(portfolio_id, symbol)
            portfolio.holdings.remove(holding)
        log.info("Removed %s from '%s'", symbol, portfolio.name)
        return copy.deepcopy(holding)

    # ── Prices ────────────────────────────────────────────────────────────────

    def apply_prices(self, prices: Mapping[str, Decimal]) -> Set[str]:
        """
        Overwrite current_price on every holding whose symbol is in prices.
        Symbols without a quote are left untouched. Returns the symbols whose
        price actually changed.
        """
        changed: Set[str] = set()
        with self._lock:
            for p in self._portfolios.values():
                for h in p.holdings:
                    new_price = prices.get(h.symbol)
                    if new_price is None:
                        continue
                    if new_price != h.current_price:
                        h.current_price = new_price
                        changed.add(h.symbol)
        return changed
