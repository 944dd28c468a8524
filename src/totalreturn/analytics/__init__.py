"""Total-return and descriptive statistics engines."""

from totalreturn.analytics.drip import (
    compute_drip_series,
    round_shares,
    sanitize_bars,
    sanitize_dividends,
    sanitize_splits,
    simulate_symbol,
)
from totalreturn.analytics.stats import (
    DEFAULT_RETURN_WINDOWS,
    LAST_YEAR_WINDOW,
    compute_symbol_stats,
)

__all__ = [
    # DRIP
    "compute_drip_series",
    "round_shares",
    "sanitize_bars",
    "sanitize_dividends",
    "sanitize_splits",
    "simulate_symbol",
    # Stats
    "DEFAULT_RETURN_WINDOWS",
    "LAST_YEAR_WINDOW",
    "compute_symbol_stats",
]
