import threading
import time
from decimal import Decimal

import pytest

from stocktracker.errors import ExternalSourceFailure
from stocktracker.reconciler import QuoteReconciler
from stocktracker.scheduler import RefreshScheduler


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def scheduler(store, tech, source):
    s = RefreshScheduler(QuoteReconciler(store, source, timeout=None), interval=0.05)
    yield s
    s.stop()
    s.join(1)


def test_interval_must_be_positive(store, source):
    with pytest.raises(ValueError):
        RefreshScheduler(QuoteReconciler(store, source), interval=0)


def test_start_runs_immediately_then_repeats(scheduler, source):
    scheduler.interval = 10
    scheduler.start()
    assert _wait_for(lambda: len(source.calls) == 1)
    time.sleep(0.1)
    assert len(source.calls) == 1   # next tick is 10s away

    scheduler.interval = 0.02
    scheduler.start()
    assert _wait_for(lambda: len(source.calls) >= 4)
    assert scheduler.running


def test_stop_halts_ticks_and_is_idempotent(scheduler, source):
    scheduler.start()
    assert _wait_for(lambda: len(source.calls) >= 2)
    scheduler.stop()
    scheduler.join(1)
    calls = len(source.calls)
    time.sleep(0.15)
    assert len(source.calls) == calls
    assert not scheduler.running

    scheduler.stop()
    scheduler.stop()


def test_stop_before_start_is_a_no_op(store, source):
    s = RefreshScheduler(QuoteReconciler(store, source), interval=1)
    s.stop()
    assert not s.running


def test_restart_never_runs_two_timers(scheduler, source):
    scheduler.interval = 0.05
    for _ in range(5):
        scheduler.start()
    time.sleep(0.3)
    scheduler.stop()
    scheduler.join(1)
    assert _wait_for(lambda: not [t for t in threading.enumerate()
                                  if t.name == "price-refresh" and t.is_alive()])
    assert source.max_in_flight == 1


def test_tick_while_previous_in_flight_is_skipped(scheduler, source):
    source.release = threading.Event()
    first = threading.Thread(target=scheduler.tick)
    first.start()
    assert source.entered.wait(2)

    assert scheduler.tick() is None
    assert scheduler.skipped == 1
    assert len(source.calls) == 1
    assert source.max_in_flight == 1

    source.release.set()
    first.join(2)
    assert scheduler.tick() is not None
    assert len(source.calls) == 2


def test_failures_do_not_stop_the_scheduler(scheduler, source, store, tech):
    source.error = RuntimeError("rate limited")
    scheduler.start()
    assert _wait_for(lambda: scheduler.failures >= 2)
    assert scheduler.running

    source.error = None
    source.prices = {"AAPL": Decimal("175.30")}
    assert _wait_for(
        lambda: store.get_portfolio(tech).get_holding("AAPL").current_price == Decimal("175.30"))


def test_tick_can_raise_for_manual_refresh(scheduler, source):
    source.error = RuntimeError("auth failure")
    assert scheduler.tick() is None
    with pytest.raises(ExternalSourceFailure):
        scheduler.tick(raise_errors=True)
    assert scheduler.failures == 2


def test_switching_portfolio_does_not_narrow_refresh(scheduler, store, tech, source):
    other = store.create_portfolio("Other")
    store.add_holding(other.id, "KO", 1, 60, "2024-01-01")
    store.switch_portfolio(other.id)
    scheduler.tick()
    assert sorted(source.calls[-1]) == ["AAPL", "GOOGL", "KO"]


def test_timed_out_request_blocks_new_source_calls(store, tech, source):
    source.release = threading.Event()
    s = RefreshScheduler(QuoteReconciler(store, source, timeout=0.05), interval=60)
    try:
        assert s.tick() is None
        assert s.tick() is None
        assert s.failures == 2
        assert len(source.calls) == 1
        assert source.max_in_flight == 1
        assert s.reconciler.request_pending
        workers = [t for t in threading.enumerate() if t.name == "quote-request"]
        assert workers and all(t.daemon for t in workers)
    finally:
        source.release.set()

    assert _wait_for(lambda: not s.reconciler.request_pending)
    source.prices = {"AAPL": Decimal("175.30")}
    assert s.tick().updated_symbols == {"AAPL"}
    assert len(source.calls) == 2
