"""Descriptive statistics over a symbol's daily bars.

Every statistic is first derived as a per-day series aligned with the input
bars (close, intraday variation, N-day trailing returns) and then reduced with
the same set of aggregators. Missing data propagates as ``None`` and never as
zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from totalreturn.types import DailyBar, StatsAgg, StatsBucket, SymbolStats

DEFAULT_RETURN_WINDOWS: tuple[int, ...] = (1, 5, 10, 15, 20, 30, 60, 90)

# Roughly one trading year of daily rows
LAST_YEAR_WINDOW = 255

Series = list[float | None]
Aggregator = Callable[[Sequence[float | None]], float | None]


def _finite_or_none(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return float(value)


def _finite_values(values: Sequence[float | None]) -> np.ndarray:
    return np.array(
        [v for v in values if v is not None and math.isfinite(v)], dtype=np.float64
    )


def window_label(window: int) -> str:
    """Key used for an N-day return in :class:`StatsBucket.returns_from`."""
    return f"d{window}"


# ---------------------------------------------------------------------------
# Per-day series
# ---------------------------------------------------------------------------


def close_series(bars: Sequence[DailyBar]) -> Series:
    """Close of each bar, with non-finite values treated as missing."""
    return [_finite_or_none(bar.close) for bar in bars]


def intraday_variation(bars: Sequence[DailyBar]) -> Series:
    """``(high - low) / close`` for each bar, or None when not computable."""
    out: Series = []
    for bar in bars:
        high = _finite_or_none(bar.high)
        low = _finite_or_none(bar.low)
        close = _finite_or_none(bar.close)
        if high is None or low is None or close is None or close == 0:
            out.append(None)
        else:
            out.append((high - low) / close)
    return out


def return_series(closes: Sequence[float | None], window: int) -> Series:
    """Trailing ``window``-row return ``close[i] / close[i - window] - 1``.

    Entries without a full look-back, or with a missing or zero close on either
    end, are None.
    """
    out: Series = [None] * len(closes)
    for i in range(window, len(closes)):
        current = closes[i]
        past = closes[i - window]
        if current is None or past is None or current == 0 or past == 0:
            continue
        out[i] = current / past - 1
    return out


def last_defined(values: Sequence[float | None]) -> float | None:
    """Most recent non-None value, scanning from the end."""
    for value in reversed(values):
        if value is not None:
            return value
    return None


def tail(values: Sequence[float | None], n: int) -> Series:
    """Last ``n`` entries of ``values``."""
    if n <= 0:
        return []
    return list(values[-n:])


# ---------------------------------------------------------------------------
# Aggregators
# ---------------------------------------------------------------------------


def _mean(xs: np.ndarray) -> float:
    # A constant series averages to exactly its value
    if xs.min() == xs.max():
        return float(xs[0])
    return math.fsum(xs.tolist()) / xs.size


def average(values: Sequence[float | None]) -> float | None:
    """Arithmetic mean of the finite values."""
    xs = _finite_values(values)
    if xs.size == 0:
        return None
    return _mean(xs)


def minimum(values: Sequence[float | None]) -> float | None:
    """Smallest finite value."""
    xs = _finite_values(values)
    if xs.size == 0:
        return None
    return float(np.min(xs))


def maximum(values: Sequence[float | None]) -> float | None:
    """Largest finite value."""
    xs = _finite_values(values)
    if xs.size == 0:
        return None
    return float(np.max(xs))


def population_variance(values: Sequence[float | None]) -> float | None:
    """Mean squared deviation from the mean (divides by N)."""
    xs = _finite_values(values)
    if xs.size == 0:
        return None
    if xs.min() == xs.max():
        return 0.0
    mean = _mean(xs)
    return math.fsum(((xs - mean) ** 2).tolist()) / xs.size


def population_std(values: Sequence[float | None]) -> float | None:
    """Square root of :func:`population_variance`."""
    var = population_variance(values)
    return None if var is None else math.sqrt(var)


# ---------------------------------------------------------------------------
# Buckets
# ---------------------------------------------------------------------------


@dataclass
class _DerivedSeries:
    """Per-day series of one symbol, all the same length as its bars."""

    close: Series
    intraday: Series
    returns: dict[str, Series]

    @classmethod
    def from_bars(
        cls, bars: Sequence[DailyBar], windows: Sequence[int]
    ) -> "_DerivedSeries":
        closes = close_series(bars)
        return cls(
            close=closes,
            intraday=intraday_variation(bars),
            returns={window_label(w): return_series(closes, w) for w in windows},
        )

    def tail(self, n: int) -> "_DerivedSeries":
        return _DerivedSeries(
            close=tail(self.close, n),
            intraday=tail(self.intraday, n),
            returns={k: tail(v, n) for k, v in self.returns.items()},
        )

    def reduce(self, fn: Aggregator) -> StatsBucket:
        return StatsBucket(
            close=fn(self.close),
            intraday_variation=fn(self.intraday),
            returns_from={k: fn(v) for k, v in self.returns.items()},
        )

    def aggregate(self, include_average: bool) -> StatsAgg:
        return StatsAgg(
            average=self.reduce(average) if include_average else None,
            min=self.reduce(minimum),
            max=self.reduce(maximum),
            std=self.reduce(population_std),
            var=self.reduce(population_variance),
        )


def compute_symbol_stats(
    bars: Sequence[DailyBar],
    windows: Sequence[int] = DEFAULT_RETURN_WINDOWS,
    last_year_window: int = LAST_YEAR_WINDOW,
) -> SymbolStats:
    """Compute current, last-year and all-time statistics for one symbol.

    :param bars: Daily bars in ascending date order.
    :param windows: Trailing return windows, in rows.
    :param last_year_window: Rows considered "last year".
    :returns: Statistics; fields are None wherever data is insufficient.
    """
    derived = _DerivedSeries.from_bars(bars, windows)
    return SymbolStats(
        current=derived.reduce(last_defined),
        last_year=derived.tail(last_year_window).aggregate(include_average=True),
        all_time=derived.aggregate(include_average=False),
    )


__all__ = [
    "DEFAULT_RETURN_WINDOWS",
    "LAST_YEAR_WINDOW",
    "window_label",
    "close_series",
    "intraday_variation",
    "return_series",
    "last_defined",
    "tail",
    "average",
    "minimum",
    "maximum",
    "population_variance",
    "population_std",
    "compute_symbol_stats",
]
