import threading
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

import pytest

from stocktracker.prices import QuoteSource
from stocktracker.store import PortfolioStore


class FakeQuoteSource(QuoteSource):
    """Returns canned prices, records every call, can fail or block on demand."""

    name = "fake"

    def __init__(self, prices: Optional[Dict[str, object]] = None):
        self.prices = dict(prices or {})
        self.calls: List[List[str]] = []
        self.error: Optional[Exception] = None
        self.entered = threading.Event()
        self.release: Optional[threading.Event] = None
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def get_quotes(self, symbols: Iterable[str]):
        symbols = list(symbols)
        with self._lock:
            self.calls.append(symbols)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.entered.set()
            if self.release is not None:
                self.release.wait(5)
            if self.error is not None:
                raise self.error
            return {s: p for s, p in self.prices.items() if s in symbols}
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def store():
    return PortfolioStore()


@pytest.fixture
def tech(store):
    """Store with one portfolio holding AAPL and GOOGL."""
    p = store.create_portfolio("Tech")
    store.add_holding(p.id, "AAPL", 50, Decimal("150.25"), "2024-01-15")
    store.add_holding(p.id, "GOOGL", 25, Decimal("120.50"), "2024-01-20")
    return p.id


@pytest.fixture
def source():
    return FakeQuoteSource()