"""
stocktracker/db.py  -  SQLite database layer

Design principles:
  - Single file database (portfolio.db), or ":memory:" for tests and demos
  - Decimals are stored as TEXT so cost bases round-trip exactly
  - Holdings cascade with their portfolio (foreign keys ON)
  - Thread-safe via check_same_thread=False plus a lock: the refresh
    scheduler runs on its own thread
  - All SQL uses parameterised queries
  - Any sqlite3 error is re-raised as PersistenceFailure so the store can
    refuse the mutation cleanly

Schema
──────
  portfolios : one row per portfolio (id, name, created_at)
  holdings   : one row per position, FK → portfolios.id, symbol unique per
               portfolio

Current prices are deliberately absent: they live in memory and are
re-derived from the quote source after every start.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import List

from stocktracker.errors import PersistenceFailure
from stocktracker.models import Holding, Portfolio

log = logging.getLogger(__name__)

DB_FILE          = "portfolio.db"
JSON_BACKUP_FILE = "portfolio_data.json"

# ── Schema ────────────────────────────────────────────────────────────────────

_SCHEMA = """
PRAGMA journal_mode = WAL;
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS portfolios (
    id         TEXT PRIMARY KEY,
    name       TEXT NOT NULL CHECK(length(trim(name)) > 0),
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS holdings (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    portfolio_id   TEXT    NOT NULL REFERENCES portfolios(id) ON DELETE CASCADE,
    symbol         TEXT    NOT NULL,
    shares         TEXT    NOT NULL,
    purchase_price TEXT    NOT NULL,
    purchase_date  TEXT    NOT NULL,
    UNIQUE(portfolio_id, symbol)
);

CREATE INDEX IF NOT EXISTS idx_holdings_portfolio ON holdings(portfolio_id);
"""

# ── Connection management ─────────────────────────────────────────────────────

def _connect(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row   # rows behave like dicts
    conn.executescript(_SCHEMA)
    return conn


@contextmanager
def _tx(conn: sqlite3.Connection):
    """Commit on success, roll back on error, surface sqlite errors as PersistenceFailure."""
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        log.error("Database write failed: %s", e)
        raise PersistenceFailure(f"Database write failed: {e}", e) from e
    except Exception:
        conn.rollback()
        raise


# ── Database class ────────────────────────────────────────────────────────────

class Database:
    """
    All reads and writes of portfolios and holdings go through this class.
    The PortfolioStore mirrors every successful write into its in-memory state.
    """

    def __init__(self, path: str = DB_FILE):
        self.path  = path
        self._lock = threading.RLock()
        try:
            self.conn = _connect(path)
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Cannot open database {path}: {e}", e) from e

    # ── Portfolios ────────────────────────────────────────────────────────────

    def get_all_portfolios(self) -> List[Portfolio]:
        """Every portfolio in creation order, holdings in insertion order."""
        with self._lock:
            try:
                rows = self.conn.execute(
                    "SELECT * FROM portfolios ORDER BY created_at, rowid"
                ).fetchall()
                portfolios = []
                for row in rows:
                    h_rows = self.conn.execute(
                        "SELECT * FROM holdings WHERE portfolio_id = ? ORDER BY id",
                        (row["id"],)
                    ).fetchall()
                    portfolios.append(Portfolio(
                        id=row["id"],
                        name=row["name"],
                        created_at=datetime.fromisoformat(row["created_at"]),
                        holdings=[_holding_from_row(h) for h in h_rows],
                    ))
                return portfolios
            except sqlite3.Error as e:
                raise PersistenceFailure(f"Database read failed: {e}", e) from e

    def insert_portfolio(self, portfolio: Portfolio) -> None:
        with self._lock, _tx(self.conn):
            self.conn.execute(
                "INSERT INTO portfolios (id, name, created_at) VALUES (?, ?, ?)",
                (portfolio.id, portfolio.name, portfolio.created_at.isoformat()))

    def rename_portfolio(self, portfolio_id: str, name: str) -> None:
        with self._lock, _tx(self.conn):
            self.conn.execute(
                "UPDATE portfolios SET name = ? WHERE id = ?", (name, portfolio_id))

    def delete_portfolio(self, portfolio_id: str) -> None:
        """Delete portfolio and all its holdings (CASCADE handles holdings)."""
        with self._lock, _tx(self.conn):
            self.conn.execute("DELETE FROM portfolios WHERE id = ?", (portfolio_id,))

    # ── Holdings ──────────────────────────────────────────────────────────────

    def insert_holding(self, portfolio_id: str, holding: Holding) -> int:
        """Insert a holding, return its new row id."""
        with self._lock, _tx(self.conn):
            cur = self.conn.execute("""
                INSERT INTO holdings (portfolio_id, symbol, shares,
                                      purchase_price, purchase_date)
                VALUES (?, ?, ?, ?, ?)
            """, (portfolio_id, holding.symbol, str(holding.shares),
                  str(holding.purchase_price), holding.purchase_date.isoformat()))
        return cur.lastrowid

    def delete_holding(self, portfolio_id: str, symbol: str) -> None:
        with self._lock, _tx(self.conn):
            self.conn.execute(
                "DELETE FROM holdings WHERE portfolio_id = ? AND symbol = ?",
                (portfolio_id, symbol))

    # ── JSON backup ───────────────────────────────────────────────────────────

    def export_json_backup(self, path: str = JSON_BACKUP_FILE) -> str:
        """Write the current database state to a human-readable JSON file."""
        data = [
            {
                "id":         p.id,
                "name":       p.name,
                "created_at": p.created_at.isoformat(),
                "holdings": [
                    {
                        "symbol":         h.symbol,
                        "shares":         str(h.shares),
                        "purchase_price": str(h.purchase_price),
                        "purchase_date":  h.purchase_date.isoformat(),
                    }
                    for h in p.holdings
                ],
            }
            for p in self.get_all_portfolios()
        ]
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        return path

    # ── Stats ─────────────────────────────────────────────────────────────────

    def portfolio_count(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM portfolios").fetchone()[0]

    def holding_count(self) -> int:
        with self._lock:
            return self.conn.execute("SELECT COUNT(*) FROM holdings").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self.conn.close()


def _holding_from_row(row: sqlite3.Row) -> Holding:
    return Holding(
        symbol=row["symbol"],
        shares=Decimal(row["shares"]),
        purchase_price=Decimal(row["purchase_price"]),
        purchase_date=date.fromisoformat(row["purchase_date"]),
    )
