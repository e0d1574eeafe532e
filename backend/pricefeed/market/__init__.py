"""Price side of the feed.

Public API:
    PriceStore      - Thread-safe store of the supported symbols' prices
    SEED_PRICES     - Starting prices for the default symbols
    DEFAULT_SYMBOLS - Default supported symbol set
"""

from .seed_prices import DEFAULT_SYMBOLS, DEFAULT_WALK_BOUND, SEED_PRICES
from .store import PriceStore

__all__ = [
    "PriceStore",
    "SEED_PRICES",
    "DEFAULT_SYMBOLS",
    "DEFAULT_WALK_BOUND",
]
