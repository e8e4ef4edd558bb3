"""
stocktracker/reconciler.py  -  Merge external quotes into the store

One pass:
  1. collect the distinct symbols across every portfolio
  2. nothing held → no-op, the source is not called
  3. one batched get_quotes() call, bounded by a timeout; while a timed-out
     call is still running no new one is started
  4. validate the whole batch, then overwrite current_price on matching
     holdings under the store lock (missing symbols stay as they are)
  5. notify listeners only if some price actually changed

A failing or malformed batch leaves every price untouched and raises
ExternalSourceFailure. There is no retry here; the next tick is the retry.
"""

import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from stocktracker.errors import ExternalSourceFailure
from stocktracker.models import RefreshResult
from stocktracker.prices import QuoteSource
from stocktracker.store import PortfolioStore
from stocktracker.validation import validate_quote

log = logging.getLogger(__name__)

Listener = Callable[[RefreshResult], None]


class QuoteReconciler:
    def __init__(self, store: PortfolioStore, source: QuoteSource,
                 timeout: Optional[float] = 10.0,
                 clock: Callable[[], datetime] = datetime.now):
        self.store   = store
        self.source  = source
        self.timeout = timeout
        self._clock  = clock
        self._listeners: List[Listener] = []
        self._fetch_lock = threading.Lock()
        self._pending: Optional[Future] = None
        self.last_updated: Optional[datetime] = None
        self.last_error:   Optional[ExternalSourceFailure] = None

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ── Source call ───────────────────────────────────────────────────────────

    @property
    def request_pending(self) -> bool:
        """True while an earlier, timed-out quote request is still running."""
        pending = self._pending
        return pending is not None and not pending.done()

    def _call_source(self, future: Future, symbols: List[str]) -> None:
        try:
            future.set_result(self.source.get_quotes(symbols))
        except Exception as e:
            future.set_exception(e)

    def _fetch(self, symbols: List[str]) -> Dict:
        with self._fetch_lock:
            if self.request_pending:
                raise ExternalSourceFailure("Previous quote request still running")
            if self.timeout is None:
                future = None
            else:
                # daemon thread; interpreter exit never waits on a hung request
                future = Future()
                threading.Thread(target=self._call_source, args=(future, symbols),
                                 name="quote-request", daemon=True).start()
                self._pending = future
        if future is None:
            return self.source.get_quotes(symbols)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as e:
            raise ExternalSourceFailure(
                f"Quote source timed out after {self.timeout:g}s", e) from e

    def _validated(self, raw) -> Dict[str, Decimal]:
        """All-or-nothing: one bad price rejects the whole batch."""
        if not isinstance(raw, dict):
            raise ExternalSourceFailure(
                f"Quote source returned {type(raw).__name__}, expected a mapping")
        prices, bad = {}, []
        for symbol, value in raw.items():
            price = validate_quote(value)
            if price is None:
                bad.append(f"{symbol}={value!r}")
            else:
                prices[str(symbol).upper()] = price
        if bad:
            raise ExternalSourceFailure(f"Malformed quotes: {', '.join(bad)}")
        return prices

    # ── Reconciliation ────────────────────────────────────────────────────────

    def reconcile(self) -> RefreshResult:
        symbols = sorted(self.store.all_symbols())
        if not symbols:
            log.debug("No holdings, skipping quote request")
            return RefreshResult(updated_symbols=frozenset(),
                                 as_of=self.last_updated or self._clock())

        try:
            prices = self._validated(self._fetch(symbols))
        except ExternalSourceFailure as e:
            self.last_error = e
            log.warning("Price refresh failed: %s", e)
            raise
        except Exception as e:
            failure = ExternalSourceFailure(f"{self.source.name} quote request failed: {e}", e)
            self.last_error = failure
            log.warning("Price refresh failed: %s", failure)
            raise failure from e

        requested = set(symbols)
        prices    = {s: p for s, p in prices.items() if s in requested}
        changed   = self.store.apply_prices(prices)
        as_of     = self._clock()
        self.last_updated = as_of
        self.last_error   = None

        missing = requested - set(prices)
        if missing:
            log.debug("No quote for %s", ", ".join(sorted(missing)))

        result = RefreshResult(updated_symbols=frozenset(changed), as_of=as_of)
        if changed:
            log.info("Updated %d symbol(s): %s", len(changed), ", ".join(sorted(changed)))
            for listener in list(self._listeners):
                try:
                    listener(result)
                except Exception:
                    log.exception("Refresh listener %r failed", listener)
        else:
            log.debug("Refresh complete, no price changes")
        return result
