"""
stocktracker/scheduler.py  -  Periodic price refresh

States: Stopped → Running → Stopped.

start() runs one pass immediately and then one every `interval` seconds on a
daemon thread. Calling start() while running replaces the old timer, so
there is never more than one. stop() suppresses future ticks and lets an
in-flight pass finish.

Ticks are not reentrant: a tick that finds a previous pass still running is
skipped, so the quote source never sees two overlapping requests.
"""

import logging
import threading
from typing import Optional

from stocktracker.errors import ExternalSourceFailure
from stocktracker.models import RefreshResult
from stocktracker.reconciler import QuoteReconciler

log = logging.getLogger(__name__)


class RefreshScheduler:
    def __init__(self, reconciler: QuoteReconciler, interval: float = 30.0):
        if interval <= 0:
            raise ValueError("Refresh interval must be positive.")
        self.reconciler = reconciler
        self.interval   = interval
        self._pass_lock = threading.Lock()    # held for the duration of one pass
        self._state_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self.ticks   = 0
        self.skipped = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        with self._state_lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        with self._state_lock:
            if self._stop_event is not None:
                self._stop_event.set()   # cancel the previous timer
                log.debug("Restarting refresh scheduler")
            stop = threading.Event()
            self._stop_event = stop
            self._thread = threading.Thread(
                target=self._run, args=(stop,), name="price-refresh", daemon=True)
            self._thread.start()
        log.info("Price refresh every %gs", self.interval)

    def stop(self) -> None:
        with self._state_lock:
            if self._stop_event is None:
                return
            self._stop_event.set()
            self._stop_event = None
        log.info("Price refresh stopped")

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the worker thread to exit (after stop())."""
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self, stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                self.tick()
            except Exception:
                log.exception("Unexpected error during price refresh")
            if stop.wait(self.interval):
                break

    # ── Tick ──────────────────────────────────────────────────────────────────

    def tick(self, raise_errors: bool = False) -> Optional[RefreshResult]:
        """
        One reconciliation pass. Returns None when the pass was skipped
        (previous pass still in flight). A failed pass returns None too,
        unless raise_errors is set.
        """
        if not self._pass_lock.acquire(blocking=False):
            self.skipped += 1
            log.warning("Previous price refresh still running, skipping tick")
            return None
        try:
            self.ticks += 1
            return self.reconciler.reconcile()
        except ExternalSourceFailure:
            # already logged by the reconciler; the next tick retries
            self.failures += 1
            if raise_errors:
                raise
            return None
        finally:
            self._pass_lock.release()
