"""
stocktracker/demo.py  -  Sample portfolios for demo mode

Two portfolios with last-known prices and the band each symbol's simulated
price may wander in.
"""

from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from stocktracker.store import PortfolioStore

D = Decimal

DEMO_PORTFOLIOS: List[Tuple[str, List[dict]]] = [
    ("Tech Growth Portfolio", [
        {"symbol": "AAPL",  "shares": 50, "purchase_price": D("150.25"),
         "purchase_date": "2024-01-15", "current_price": D("175.30")},
        {"symbol": "GOOGL", "shares": 25, "purchase_price": D("120.50"),
         "purchase_date": "2024-01-20", "current_price": D("138.75")},
        {"symbol": "MSFT",  "shares": 30, "purchase_price": D("280.00"),
         "purchase_date": "2024-02-01", "current_price": D("295.50")},
    ]),
    ("Dividend Income Portfolio", [
        {"symbol": "KO",  "shares": 100, "purchase_price": D("58.20"),
         "purchase_date": "2024-01-10", "current_price": D("61.45")},
        {"symbol": "JNJ", "shares": 40,  "purchase_price": D("165.80"),
         "purchase_date": "2024-01-25", "current_price": D("172.20")},
        {"symbol": "PFE", "shares": 75,  "purchase_price": D("42.15"),
         "purchase_date": "2024-02-05", "current_price": D("39.80")},
    ]),
]

DEMO_BANDS: Dict[str, Tuple[Decimal, Decimal]] = {
    "AAPL":  (D("170"), D("180")),
    "GOOGL": (D("135"), D("145")),
    "MSFT":  (D("290"), D("300")),
    "KO":    (D("60"),  D("65")),
    "JNJ":   (D("168"), D("175")),
    "PFE":   (D("38"),  D("42")),
}


def demo_start_prices() -> Dict[str, Decimal]:
    return {h["symbol"]: h["current_price"]
            for _, holdings in DEMO_PORTFOLIOS for h in holdings}


def seed_demo(store: PortfolioStore) -> Optional[str]:
    """
    Load the sample portfolios into an empty store and make the first one
    active. Returns its id, or None when the store already had data.
    """
    if len(store):
        return None
    first_id = None
    for name, holdings in DEMO_PORTFOLIOS:
        portfolio = store.create_portfolio(name)
        first_id  = first_id or portfolio.id
        for h in holdings:
            store.add_holding(portfolio.id, h["symbol"], h["shares"],
                              h["purchase_price"], h["purchase_date"])
    store.apply_prices(demo_start_prices())
    store.switch_portfolio(first_id)
    return first_id
