"""Seed prices for the supported symbol set."""

# Starting prices for the default supported symbols
SEED_PRICES: dict[str, float] = {
    "GOOG": 2800.00,
    "TSLA": 700.00,
    "AMZN": 3300.00,
    "META": 350.00,
    "NVDA": 900.00,
}

# Default supported set, in the order clients see it on login
DEFAULT_SYMBOLS: tuple[str, ...] = tuple(SEED_PRICES)

# Seed range for configured symbols that have no entry above
RANDOM_SEED_RANGE: tuple[float, float] = (50.0, 300.0)

# Max fractional move per symbol per tick (+/-1%)
DEFAULT_WALK_BOUND = 0.01
