"""
Stock Portfolio Tracker - Main Entry Point
==========================================
Run this file to start the portfolio tracker CLI.
Usage: python main.py [--demo] [--verbose]

  --demo     simulated quotes and two sample portfolios (in-memory database)
  --verbose  debug logging
"""

import sys

from stocktracker.cli import CLI
from stocktracker.config import Settings
from stocktracker.log import setup_logging
from stocktracker.service import PortfolioTracker


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    demo = "--demo" in argv

    overrides = {"QUOTE_SOURCE": "simulated", "DB_FILE": ":memory:"} if demo else {}
    settings  = Settings(**overrides)
    setup_logging("DEBUG" if "--verbose" in argv else settings.LOG_LEVEL)

    tracker = PortfolioTracker.from_settings(settings, demo=demo)
    CLI(tracker).run()


if __name__ == "__main__":
    main()
