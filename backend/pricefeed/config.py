"""Environment-driven settings for the price feed."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .market.seed_prices import DEFAULT_SYMBOLS, DEFAULT_WALK_BOUND

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FeedSettings:
    """Startup configuration. Fixed for the life of the process.

    - PRICEFEED_SYMBOLS        comma separated, e.g. "GOOG,TSLA" (default: the seed set)
    - PRICEFEED_TICK_INTERVAL  seconds between broadcast ticks (default 1.0)
    - PRICEFEED_WALK_BOUND     max fractional move per tick (default 0.01)
    """

    symbols: tuple[str, ...] = DEFAULT_SYMBOLS
    tick_interval: float = 1.0
    walk_bound: float = DEFAULT_WALK_BOUND

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FeedSettings:
        """Read settings from the environment.

        Bad values are logged and replaced with the default rather than
        stopping startup.
        """
        env = os.environ if environ is None else environ
        return cls(
            symbols=_parse_symbols(env.get("PRICEFEED_SYMBOLS", "")),
            tick_interval=_parse_float(
                env, "PRICEFEED_TICK_INTERVAL", 1.0, lambda v: v > 0
            ),
            walk_bound=_parse_float(
                env, "PRICEFEED_WALK_BOUND", DEFAULT_WALK_BOUND, lambda v: 0 <= v < 1
            ),
        )


def _parse_symbols(raw: str) -> tuple[str, ...]:
    symbols: list[str] = []
    for part in raw.split(","):
        symbol = part.upper().strip()
        if symbol and symbol not in symbols:
            symbols.append(symbol)
    return tuple(symbols) or DEFAULT_SYMBOLS


def _parse_float(env: Mapping[str, str], name: str, default: float, valid) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number, using %s", name, raw, default)
        return default
    if not valid(value):
        logger.warning("Ignoring %s=%r: out of range, using %s", name, raw, default)
        return default
    return value
