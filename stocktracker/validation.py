"""
stocktracker/validation.py  -  Input validation rules

All validators return a list of error strings (empty = valid).
The store calls validate_*() before it touches any state and raises
ValidationError with the collected messages, so no business rules leak into
the CLI.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

_SYMBOL_RE       = re.compile(r'^[A-Z0-9]{1,6}$')
_MAX_SYMBOL_LEN  = 6
_MAX_NAME_LEN    = 100


def normalise_symbol(symbol) -> str:
    return str(symbol or "").strip().upper()


def to_decimal(value) -> Optional[Decimal]:
    """
    Convert user or API input to Decimal. Floats go through str() so 150.25
    stays 150.25 instead of its binary expansion. Returns None when the value
    is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not d.is_finite():
        return None
    return d


def to_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def validate_symbol(symbol: str) -> List[str]:
    errors = []
    s = normalise_symbol(symbol)
    if not s:
        errors.append("Stock symbol cannot be empty.")
        return errors
    if len(s) > _MAX_SYMBOL_LEN:
        errors.append(f"Symbol '{s}' is too long (max {_MAX_SYMBOL_LEN} characters).")
    elif not _SYMBOL_RE.match(s):
        errors.append(f"Symbol '{s}' contains invalid characters. "
                      f"Only letters and numbers are allowed.")
    return errors


def validate_holding(symbol, shares, purchase_price,
                     purchase_date) -> Tuple[List[str], Optional[Decimal],
                                             Optional[Decimal], Optional[date]]:
    """
    Check every field of a new holding. Returns the errors plus the parsed
    shares, price and date so callers do not convert twice.
    """
    errors = validate_symbol(symbol)

    qty = to_decimal(shares)
    if qty is None:
        errors.append("Shares must be a number.")
    elif qty <= 0:
        errors.append("Shares must be greater than zero.")

    price = to_decimal(purchase_price)
    if price is None:
        errors.append("Purchase price must be a number.")
    elif price < 0:
        errors.append("Purchase price cannot be negative.")

    bought = to_date(purchase_date)
    if purchase_date is None or (isinstance(purchase_date, str) and not purchase_date.strip()):
        errors.append("Purchase date is required.")
    elif bought is None:
        errors.append(f"'{purchase_date}' is not a valid date (expected YYYY-MM-DD).")

    return errors, qty, price, bought


def validate_portfolio_name(name) -> List[str]:
    errors = []
    n = str(name or "").strip()
    if not n:
        errors.append("Please enter a portfolio name.")
    elif len(n) > _MAX_NAME_LEN:
        errors.append(f"Name is too long (max {_MAX_NAME_LEN} characters).")
    return errors


def validate_quote(price) -> Optional[Decimal]:
    """A usable quote is a finite, non-negative number. None otherwise."""
    d = to_decimal(price)
    if d is None or d < 0:
        return None
    return d
