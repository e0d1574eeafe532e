"""Thread-safe in-memory store of the supported symbols' current prices."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable, Mapping
from threading import Lock

import numpy as np

from .seed_prices import DEFAULT_WALK_BOUND, RANDOM_SEED_RANGE, SEED_PRICES

logger = logging.getLogger(__name__)


class PriceStore:
    """Current price for each supported symbol.

    The symbol set is fixed when the store is created. Only the broadcast
    tick writes (via apply_random_walk); readers get shallow copies.
    """

    def __init__(
        self,
        prices: Mapping[str, float],
        rng: np.random.Generator | None = None,
    ) -> None:
        if not prices:
            raise ValueError("PriceStore needs at least one symbol")
        for symbol, price in prices.items():
            if price < 0:
                raise ValueError(f"Negative seed price for {symbol}: {price}")

        self._symbols: tuple[str, ...] = tuple(prices)
        self._prices: dict[str, float] = {s: round(float(p), 2) for s, p in prices.items()}
        self._rng = rng if rng is not None else np.random.default_rng()
        self._lock = Lock()
        self._version: int = 0  # Bumped once per random walk

    @classmethod
    def from_symbols(
        cls,
        symbols: Iterable[str],
        rng: np.random.Generator | None = None,
    ) -> PriceStore:
        """Build a store seeded from SEED_PRICES.

        Symbols without a seed price start somewhere in RANDOM_SEED_RANGE.
        """
        prices: dict[str, float] = {}
        for symbol in symbols:
            if symbol in prices:
                continue
            seed = SEED_PRICES.get(symbol)
            if seed is None:
                seed = round(random.uniform(*RANDOM_SEED_RANGE), 2)
                logger.info("No seed price for %s, starting at %.2f", symbol, seed)
            prices[symbol] = seed
        return cls(prices, rng=rng)

    # --- Reads ---

    @property
    def symbols(self) -> tuple[str, ...]:
        """Supported symbols in startup order. Never changes."""
        return self._symbols

    def snapshot(self) -> dict[str, float]:
        """Copy of the full symbol -> price mapping."""
        with self._lock:
            return dict(self._prices)

    def get_price(self, symbol: str) -> float | None:
        with self._lock:
            return self._prices.get(symbol)

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and symbol in self._prices

    # --- Writes ---

    def apply_random_walk(self, bound: float = DEFAULT_WALK_BOUND) -> dict[str, float]:
        """Move every price by an independent factor drawn from [-bound, +bound].

        new = old * (1 + factor), rounded to cents. If rounding would carry the
        move past the bound, the price is rounded toward old instead. There is
        no explicit floor; bound < 1 keeps prices from going negative. Returns
        the new snapshot.
        """
        if not 0 <= bound < 1:
            raise ValueError(f"bound must be in [0, 1), got {bound}")

        factors = self._rng.uniform(-bound, bound, size=len(self._symbols))
        with self._lock:
            for symbol, factor in zip(self._symbols, factors):
                self._prices[symbol] = _step_price(self._prices[symbol], float(factor), bound)
            self._version += 1
            return dict(self._prices)


def _step_price(old: float, factor: float, bound: float) -> float:
    """old * (1 + factor) rounded to cents, never moving more than bound * old."""
    exact = old * (1 + factor)
    new = round(exact, 2)
    if abs(new - old) <= bound * old:
        return new
    # Work in whole cents so the result cannot land on the far side of old
    old_cents = round(old * 100)
    exact_cents = old_cents * (1 + factor)
    if factor > 0:
        return math.floor(exact_cents) / 100
    return math.ceil(exact_cents) / 100
