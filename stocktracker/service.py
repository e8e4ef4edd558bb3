"""
stocktracker/service.py  -  Application wiring

PortfolioTracker owns the store, reconciler and scheduler for one running
instance. Build it at startup, call start(), and shutdown() on exit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from stocktracker.config import Settings
from stocktracker.db import Database
from stocktracker.demo import DEMO_BANDS, demo_start_prices, seed_demo
from stocktracker.errors import ExternalSourceFailure, PersistenceFailure
from stocktracker.models import PortfolioView, RefreshResult
from stocktracker.prices import QuoteSource, make_quote_source
from stocktracker.reconciler import Listener, QuoteReconciler
from stocktracker.scheduler import RefreshScheduler
from stocktracker.store import PortfolioStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshStatus:
    running:      bool
    source:       str
    interval:     float
    last_updated: Optional[datetime]
    last_error:   Optional[str]


class PortfolioTracker:
    def __init__(self, store: PortfolioStore, source: QuoteSource,
                 interval: float = 30.0, timeout: Optional[float] = 10.0,
                 db: Optional[Database] = None):
        self.store      = store
        self.source     = source
        self.db         = db
        self.reconciler = QuoteReconciler(store, source, timeout=timeout)
        self.scheduler  = RefreshScheduler(self.reconciler, interval=interval)

    @classmethod
    def from_settings(cls, settings: Settings, demo: bool = False) -> "PortfolioTracker":
        db    = Database(settings.DB_FILE)
        store = PortfolioStore(db)
        if demo:
            seed_demo(store)
        store.ensure_default(settings.DEFAULT_PORTFOLIO_NAME)
        source = make_quote_source(
            settings,
            anchor=store.purchase_price_of,
            bands=DEMO_BANDS if demo else None,
            start_prices=demo_start_prices() if demo else None,
        )
        return cls(store, source,
                   interval=settings.refresh_interval_for_source,
                   timeout=settings.QUOTE_TIMEOUT, db=db)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.scheduler.join(timeout=self.reconciler.timeout)
        if self.db is not None:
            self.db.close()
        log.debug("Tracker shut down")

    # ── Queries / commands ────────────────────────────────────────────────────

    def refresh(self) -> RefreshResult:
        """Run one reconciliation pass now. Raises ExternalSourceFailure."""
        result = self.scheduler.tick(raise_errors=True)
        if result is None:
            raise ExternalSourceFailure("A price refresh is already in progress.")
        return result

    def backup(self, path: Optional[str] = None) -> str:
        """Mirror the database to JSON. Returns the file written."""
        if self.db is None:
            raise PersistenceFailure("No database configured, nothing to back up.")
        return self.db.export_json_backup(path) if path else self.db.export_json_backup()

    def on_refresh(self, listener: Listener) -> None:
        self.reconciler.subscribe(listener)

    def get_portfolio_view(self, portfolio_id: str) -> PortfolioView:
        return self.store.get_portfolio_view(portfolio_id)

    def active_view(self) -> Optional[PortfolioView]:
        active = self.store.active_id
        return self.store.get_portfolio_view(active) if active else None

    def status(self) -> RefreshStatus:
        err = self.reconciler.last_error
        return RefreshStatus(
            running=self.scheduler.running,
            source=self.source.name,
            interval=self.scheduler.interval,
            last_updated=self.reconciler.last_updated,
            last_error=str(err) if err else None,
        )
