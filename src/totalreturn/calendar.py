"""Trading calendar derivation.

The calendar of a basket is the union of every date on which any of its symbols
has a bar, clipped to a requested window.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Sequence, Union

from totalreturn.dates import coerce_date_key, ny_today, to_ny_date_key
from totalreturn.types import CalendarDateKey, DailyBar

DateBound = Union[str, int, float, date, datetime, None]


def _as_series_list(
    bar_series: Sequence[DailyBar] | Sequence[Sequence[DailyBar]],
) -> list[Sequence[DailyBar]]:
    """Accept either one symbol's bars or a list of per-symbol bar lists."""
    if len(bar_series) > 0 and not isinstance(bar_series[0], DailyBar):
        return list(bar_series)  # type: ignore[arg-type]
    return [bar_series]  # type: ignore[list-item]


def build_trading_calendar(
    bar_series: Sequence[DailyBar] | Sequence[Sequence[DailyBar]],
    start: DateBound = None,
    end: DateBound = None,
    today: str | None = None,
) -> list[CalendarDateKey]:
    """Build the ordered trading-date axis for one or more symbols.

    A date belongs to the calendar if any symbol has a bar with a positive
    timestamp on it. Bounds may be date keys, epoch seconds, dates, datetimes or
    date text; unparseable bounds are ignored.

    :param bar_series: One bar sequence, or one bar sequence per symbol.
    :param start: Inclusive lower bound (default: earliest observed date).
    :param end: Inclusive upper bound (default: today in New York).
    :param today: Override for "today" when ``end`` is omitted.
    :returns: Strictly ascending date keys; empty when there are no bars.
    """
    keys: set[CalendarDateKey] = set()
    for series in _as_series_list(bar_series):
        for bar in series:
            ts = bar.epoch_seconds
            if math.isfinite(ts) and ts > 0:
                keys.add(to_ny_date_key(ts))

    if not keys:
        return []

    all_dates = sorted(keys)
    start_key = coerce_date_key(start) or all_dates[0]
    end_key = coerce_date_key(end) or today or ny_today()

    return [d for d in all_dates if start_key <= d <= end_key]


__all__ = ["build_trading_calendar"]
