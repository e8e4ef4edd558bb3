"""
stocktracker/errors.py  -  Error taxonomy

Every failure the core raises derives from TrackerError so the UI layer can
catch one type, show the message and carry on.
"""

from typing import List, Optional


class TrackerError(Exception):
    """Base class for all recoverable tracker errors."""


class ValidationError(TrackerError):
    """Bad user input. Raised before any state is touched."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input.")


class DuplicateSymbolError(TrackerError):
    def __init__(self, symbol: str, portfolio_name: str):
        self.symbol = symbol
        super().__init__(f"{symbol} is already in '{portfolio_name}'.")


class NotFoundError(TrackerError):
    def __init__(self, what: str, key: str):
        self.what = what
        self.key  = key
        super().__init__(f"{what} '{key}' not found.")


class LastPortfolioError(TrackerError):
    def __init__(self):
        super().__init__("Cannot delete the last remaining portfolio.")


class ExternalSourceFailure(TrackerError):
    """The quote source failed; prices were left untouched."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class PersistenceFailure(TrackerError):
    """The database rejected or could not apply a write."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
