from decimal import Decimal

import pytest
from rich.prompt import Confirm, Prompt

from stocktracker.cli import CLI
from stocktracker.db import Database
from stocktracker.service import PortfolioTracker


@pytest.fixture
def tracker(store, tech, source):
    t = PortfolioTracker(store, source, interval=60, timeout=None)
    yield t
    t.shutdown()


@pytest.fixture
def answers(monkeypatch):
    queue = []
    monkeypatch.setattr(Prompt, "ask", lambda *a, **kw: queue.pop(0))
    monkeypatch.setattr(Confirm, "ask", lambda *a, **kw: queue.pop(0))
    return queue


def test_add_holding(tracker, store, tech, answers, capsys):
    answers.extend(["msft", "30", "280.00", "2024-02-01"])
    CLI(tracker).add_holding()
    assert store.get_portfolio(tech).symbols == ["AAPL", "GOOGL", "MSFT"]
    assert "MSFT added" in capsys.readouterr().out


def test_add_holding_error_is_reported(tracker, store, tech, answers, capsys):
    answers.extend(["AAPL", "1", "1", "2024-02-01"])
    CLI(tracker).add_holding()
    assert "already" in capsys.readouterr().out
    assert store.get_portfolio(tech).symbols == ["AAPL", "GOOGL"]


def test_remove_holding_after_confirm(tracker, store, tech, answers):
    answers.extend(["googl", True])
    CLI(tracker).remove_holding()
    assert store.get_portfolio(tech).symbols == ["AAPL"]


def test_switch_and_delete_by_number(tracker, store, tech, answers):
    other = store.create_portfolio("Other")
    cli = CLI(tracker)

    answers.append("1")
    cli.switch_portfolio()
    assert store.active_id == tech

    answers.extend(["2", True])
    cli.delete_portfolio()
    assert store.portfolio_ids() == [tech]
    assert other.id not in store.portfolio_ids()


def test_refresh_prices(tracker, source, capsys):
    source.prices = {"AAPL": Decimal("175.30")}
    CLI(tracker).refresh_prices()
    assert "Updated AAPL" in capsys.readouterr().out

    source.error = ConnectionError("offline")
    CLI(tracker).refresh_prices()
    assert "prices unchanged" in capsys.readouterr().out


def test_run_loop_quits_and_shuts_down(tracker, answers, capsys):
    answers.extend(["x", "1", "q"])
    CLI(tracker).run()
    out = capsys.readouterr().out
    assert "Invalid choice" in out
    assert "Goodbye" in out
    assert not tracker.scheduler.running


def test_export_json_backup(tracker, answers, capsys, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    tracker.db = Database(":memory:")
    answers.append("4")
    CLI(tracker).export_data()
    assert "Backup saved" in capsys.readouterr().out
    assert (tmp_path / "portfolio_data.json").exists()


def test_export_json_backup_without_database(tracker, answers, capsys):
    answers.append("4")
    CLI(tracker).export_data()
    assert "nothing to back up" in capsys.readouterr().out
