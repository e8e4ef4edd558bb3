import logging

from stocktracker import config
from stocktracker.config import Settings
from stocktracker.log import setup_logging


def test_defaults(monkeypatch):
    for key in ("TRACKER_QUOTE_SOURCE", "TRACKER_REFRESH_INTERVAL", "TRACKER_DB_FILE"):
        monkeypatch.delenv(key, raising=False)
    s = Settings(_env_file=None)
    assert s.QUOTE_SOURCE == "yahoo"
    assert s.DB_FILE == "portfolio.db"
    assert s.refresh_interval_for_source == 30.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TRACKER_QUOTE_SOURCE", "simulated")
    monkeypatch.setenv("TRACKER_DEMO_REFRESH_INTERVAL", "2.5")
    monkeypatch.setenv("TRACKER_PUBLIC_ACCOUNT_ID", "ACC1")
    s = Settings(_env_file=None)
    assert s.QUOTE_SOURCE == "simulated"
    assert s.PUBLIC_ACCOUNT_ID == "ACC1"
    assert s.refresh_interval_for_source == 2.5


def test_setup_logging_sets_level():
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("yfinance").level == logging.WARNING
    setup_logging("INFO")
    assert logging.getLogger().level == logging.INFO


def test_bad_environment_only_fails_when_settings_are_built(monkeypatch):
    monkeypatch.setenv("TRACKER_QUOTE_SOURCE", "bogus")
    assert not hasattr(config, "settings")
    s = Settings(_env_file=None, QUOTE_SOURCE="simulated")
    assert s.QUOTE_SOURCE == "simulated"
