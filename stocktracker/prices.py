"""
stocktracker/prices.py  -  Quote sources

Every source implements the same contract: get_quotes(symbols) returns a
{symbol: Decimal} mapping for the symbols it could price and raises on
failure. Symbols missing from the mapping simply had no quote.

  YahooQuoteSource      : one yfinance batch download, latest close
  PublicQuoteSource     : Public.com market-data API with token handshake
  SimulatedQuoteSource  : bounded random walk for demos and tests
"""

import logging
import math
import random
import threading
import time
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd
import requests
import yfinance as yf

from stocktracker.errors import ExternalSourceFailure

log = logging.getLogger(__name__)

PRICE_STEP = Decimal("0.0001")


def _to_price(value) -> Decimal:
    f = float(value)
    if not math.isfinite(f):
        raise ValueError(f"non-finite price {value!r}")
    return Decimal(str(f)).quantize(PRICE_STEP)


class QuoteSource(ABC):
    """Batched price lookup by symbol."""

    name = "quotes"

    @abstractmethod
    def get_quotes(self, symbols: Iterable[str]) -> Dict[str, Decimal]:
        """Return {symbol: price} for every symbol that could be priced."""


# ── Yahoo Finance ─────────────────────────────────────────────────────────────

def _close_from_download(raw: pd.DataFrame, tickers: list) -> pd.DataFrame:
    """
    Extract a clean (date × ticker) Close price DataFrame from yf.download() output.

    yfinance's output format has changed across versions:
      - Old (< 0.2.40)  : flat columns, "Close" is a column or a Series
      - New (>= 0.2.40) : MultiIndex columns, (field, ticker) or (ticker, field)
                          depending on how many tickers were requested
    """
    cols = raw.columns

    if isinstance(cols, pd.MultiIndex):
        level0_vals = set(cols.get_level_values(0))
        level1_vals = set(cols.get_level_values(1))

        if "Close" in level0_vals:
            # (field, ticker)
            close = raw["Close"]
        elif "Close" in level1_vals:
            # (ticker, field)
            close = raw.xs("Close", axis=1, level=1)
        else:
            raise KeyError(
                f"Could not find 'Close' in MultiIndex columns. "
                f"Level 0: {sorted(level0_vals)[:5]}, Level 1: {sorted(level1_vals)[:5]}"
            )

        if isinstance(close, pd.Series):
            close = close.to_frame(name=tickers[0].upper())

    else:
        if "Close" in cols:
            close = raw[["Close"]].copy()
            close.columns = [tickers[0].upper()]
        elif "close" in [c.lower() for c in cols]:
            col = next(c for c in cols if c.lower() == "close")
            close = raw[[col]].copy()
            close.columns = [tickers[0].upper()]
        else:
            close = raw.copy()

    close.columns = [str(c).upper() for c in close.columns]
    return close


class YahooQuoteSource(QuoteSource):
    name = "yahoo"

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def get_quotes(self, symbols: Iterable[str]) -> Dict[str, Decimal]:
        tickers = sorted({s.upper() for s in symbols})
        if not tickers:
            return {}
        try:
            raw = yf.download(tickers, period="2d", progress=False,
                              auto_adjust=True, timeout=self.timeout)
        except Exception as e:
            raise ExternalSourceFailure(f"Yahoo download failed: {e}", e) from e

        if raw is None or raw.empty:
            log.warning("Yahoo returned no data for %s", ", ".join(tickers))
            return {}

        try:
            close = _close_from_download(raw, tickers)
        except KeyError as e:
            raise ExternalSourceFailure(f"Unexpected Yahoo response: {e}", e) from e

        quotes = {}
        for ticker in tickers:
            if ticker in close.columns:
                series = close[ticker].dropna()
                if not series.empty:
                    quotes[ticker] = _to_price(series.iloc[-1])
        return quotes


# ── Public.com ────────────────────────────────────────────────────────────────

PUBLIC_AUTH_URL   = "https://api.public.com/userapiauthservice/personal/access-tokens"
PUBLIC_QUOTES_URL = "https://api.public.com/userapigateway/marketdata/{account_id}/quotes"
TOKEN_VALIDITY_MINUTES = 55
TOKEN_RENEW_MARGIN     = 60   # seconds before expiry a token is renewed


class PublicQuoteSource(QuoteSource):
    """
    The secret key mints short-lived access tokens. The current token is kept
    in memory and renewed shortly before it expires.
    """

    name = "public"

    def __init__(self, api_key: str, account_id: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time):
        self.api_key    = api_key
        self.account_id = account_id
        self.timeout    = timeout
        self._session   = session or requests.Session()
        self._clock     = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._token_lock = threading.Lock()

    def _access_token(self) -> str:
        with self._token_lock:
            if self._token and self._clock() < self._expires_at - TOKEN_RENEW_MARGIN:
                return self._token
            if not self.api_key:
                raise ExternalSourceFailure("PUBLIC_API_KEY is not configured.")
            try:
                resp = self._session.post(
                    PUBLIC_AUTH_URL,
                    json={"secret": self.api_key,
                          "validityInMinutes": TOKEN_VALIDITY_MINUTES},
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                raise ExternalSourceFailure(f"Could not obtain access token: {e}", e) from e

            token = data.get("accessToken")
            if not token:
                raise ExternalSourceFailure("Access token missing from auth response.")
            minutes = data.get("validity_in_minutes") or TOKEN_VALIDITY_MINUTES
            self._token      = token
            self._expires_at = self._clock() + minutes * 60
            log.info("Obtained new Public.com access token")
            return token

    def get_quotes(self, symbols: Iterable[str]) -> Dict[str, Decimal]:
        tickers = sorted({s.upper() for s in symbols})
        if not tickers:
            return {}
        if not self.account_id:
            raise ExternalSourceFailure("PUBLIC_ACCOUNT_ID is not configured.")

        token = self._access_token()
        try:
            resp = self._session.post(
                PUBLIC_QUOTES_URL.format(account_id=self.account_id),
                json={"instruments": [{"symbol": t, "type": "EQUITY"} for t in tickers]},
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ExternalSourceFailure(f"Public.com quote request failed: {e}", e) from e

        quotes = {}
        for quote in data.get("quotes") or []:
            symbol = (quote.get("instrument") or {}).get("symbol")
            try:
                price = _to_price(quote.get("last"))
            except (TypeError, ValueError):
                continue
            if symbol:
                quotes[symbol.upper()] = price
        return quotes


# ── Simulation ────────────────────────────────────────────────────────────────

Band = Tuple[Decimal, Decimal]

VOLATILITY  = 0.02             # max 2% move per call
MIN_MOVE    = Decimal("0.01")  # smaller moves keep the previous price
ANCHOR_BAND = Decimal("0.10")  # unseen symbols wander within ±10% of their anchor


class SimulatedQuoteSource(QuoteSource):
    """
    Random walk stand-in for a live feed. Each call moves every known symbol
    by at most ±2%, clamped to its band. Symbols with neither a band nor an
    anchor price get no quote.
    """

    name = "simulated"

    def __init__(self, bands: Optional[Mapping[str, Band]] = None,
                 start_prices: Optional[Mapping[str, Decimal]] = None,
                 anchor: Optional[Callable[[str], Optional[Decimal]]] = None,
                 rng: Optional[random.Random] = None):
        self._bands: Dict[str, Band] = {
            s: (Decimal(str(lo)), Decimal(str(hi))) for s, (lo, hi) in (bands or {}).items()
        }
        self._last: Dict[str, Decimal] = {
            s: Decimal(str(p)) for s, p in (start_prices or {}).items()
        }
        self._anchor = anchor
        self._rng    = rng or random.Random()
        self._lock   = threading.Lock()
        self.calls   = 0

    def add_symbol(self, symbol: str, base_price: Decimal) -> None:
        base = Decimal(str(base_price))
        with self._lock:
            self._bands.setdefault(symbol, (base * (1 - ANCHOR_BAND),
                                            base * (1 + ANCHOR_BAND)))
            self._last.setdefault(symbol, base)

    def _known(self, symbol: str) -> bool:
        if symbol in self._bands:
            return True
        base = self._anchor(symbol) if self._anchor else None
        if base is None:
            return False
        self.add_symbol(symbol, base)
        return True

    def _step(self, symbol: str) -> Decimal:
        lo, hi = self._bands[symbol]
        last   = self._last.get(symbol, (lo + hi) / 2)
        change = Decimal(str((self._rng.random() - 0.5) * 2 * VOLATILITY))
        new    = min(hi, max(lo, last * (1 + change))).quantize(PRICE_STEP)
        if abs(new - last) > MIN_MOVE:
            last = new
        self._last[symbol] = last
        return last

    def get_quotes(self, symbols: Iterable[str]) -> Dict[str, Decimal]:
        self.calls += 1
        quotes = {}
        for symbol in sorted({s.upper() for s in symbols}):
            if self._known(symbol):
                with self._lock:
                    quotes[symbol] = self._step(symbol)
        return quotes


# ── Factory ───────────────────────────────────────────────────────────────────

def make_quote_source(settings, anchor: Optional[Callable[[str], Optional[Decimal]]] = None,
                      bands: Optional[Mapping[str, Band]] = None,
                      start_prices: Optional[Mapping[str, Decimal]] = None) -> QuoteSource:
    kind = settings.QUOTE_SOURCE
    if kind == "yahoo":
        return YahooQuoteSource(timeout=settings.QUOTE_TIMEOUT)
    if kind == "public":
        return PublicQuoteSource(settings.PUBLIC_API_KEY, settings.PUBLIC_ACCOUNT_ID,
                                 timeout=settings.QUOTE_TIMEOUT)
    if kind == "simulated":
        return SimulatedQuoteSource(bands=bands, start_prices=start_prices, anchor=anchor)
    raise ValueError(f"Unknown quote source '{kind}'")
