"""Dividend-reinvested (DRIP) total-return simulation.

Each symbol starts with ``base`` cash fully invested at its first available
close and is walked forward one calendar date at a time. Dividends turn into
cash, the cash is reinvested at the next known open, and splits multiply the
share count. All share-count mutations are rounded to 4 decimals.

Example usage::

    from totalreturn.analytics import compute_drip_series
    from totalreturn.data import YahooDataSource

    source = YahooDataSource()
    history = source.fetch_history("AAPL", "5y")
    output = compute_drip_series([history], base=1000.0, horizon="5y")

    print(output.dates[-1], output.series[0].value[-1])
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Any, Sequence

from totalreturn.calendar import build_trading_calendar
from totalreturn.dates import ny_five_years_ago_boundary, ny_today, to_ny_date_key
from totalreturn.exceptions import InvalidArgumentError
from totalreturn.types import (
    CalendarDateKey,
    DailyBar,
    DividendEvent,
    DripOutput,
    DripPosition,
    DripSeries,
    SplitEvent,
    SymbolHistory,
)

logger = logging.getLogger(__name__)

VALID_HORIZONS = frozenset(["5y", "max"])

SHARE_DECIMALS = 4
_SHARE_SCALE = 10**SHARE_DECIMALS


def round_shares(value: float) -> float:
    """Round a share count half-up to 4 decimal places."""
    return math.floor(value * _SHARE_SCALE + 0.5) / _SHARE_SCALE


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------


def _valid_timestamp(ts: float) -> bool:
    return math.isfinite(ts) and ts > 0


def _finite_or_missing(value: float | None) -> bool:
    return value is None or math.isfinite(value)


def sanitize_bars(bars: Sequence[DailyBar]) -> list[DailyBar]:
    """Drop bars with an unusable timestamp or a non-finite price field."""
    kept = [
        bar
        for bar in bars
        if _valid_timestamp(bar.epoch_seconds)
        and all(
            _finite_or_missing(v)
            for v in (bar.open, bar.high, bar.low, bar.close, bar.volume, bar.adj_close)
        )
    ]
    if len(kept) != len(bars):
        logger.debug("Dropped %d malformed bars", len(bars) - len(kept))
    return kept


def sanitize_splits(splits: Sequence[SplitEvent]) -> list[SplitEvent]:
    """Drop splits with an unusable timestamp or a non-positive ratio."""
    kept = [
        s
        for s in splits
        if _valid_timestamp(s.epoch_seconds) and math.isfinite(s.ratio) and s.ratio > 0
    ]
    if len(kept) != len(splits):
        logger.debug("Dropped %d malformed splits", len(splits) - len(kept))
    return kept


def sanitize_dividends(dividends: Sequence[DividendEvent]) -> list[DividendEvent]:
    """Drop dividends with an unusable timestamp or a non-positive amount."""
    kept = [
        d
        for d in dividends
        if _valid_timestamp(d.epoch_seconds)
        and math.isfinite(d.amount)
        and d.amount > 0
    ]
    if len(kept) != len(dividends):
        logger.debug("Dropped %d malformed dividends", len(dividends) - len(kept))
    return kept


# ---------------------------------------------------------------------------
# Date-keyed lookups
# ---------------------------------------------------------------------------


def bars_by_date(bars: Sequence[DailyBar]) -> dict[CalendarDateKey, DailyBar]:
    """Index bars by New York date, keeping one bar per date.

    A later duplicate replaces an earlier one only when the earlier bar has no
    close and the later one does.
    """
    by_date: dict[CalendarDateKey, DailyBar] = {}
    for bar in bars:
        key = to_ny_date_key(bar.epoch_seconds)
        previous = by_date.get(key)
        if previous is None or (previous.close is None and bar.close is not None):
            by_date[key] = bar
    return by_date


def splits_by_date(splits: Sequence[SplitEvent]) -> dict[CalendarDateKey, list[float]]:
    """Split ratios grouped by New York date, in input order."""
    by_date: dict[CalendarDateKey, list[float]] = defaultdict(list)
    for split in splits:
        by_date[to_ny_date_key(split.epoch_seconds)].append(split.ratio)
    return dict(by_date)


def dividends_by_date(
    dividends: Sequence[DividendEvent],
) -> list[tuple[CalendarDateKey, float]]:
    """Dividends as ``(date key, amount)`` pairs in ascending date order."""
    keyed = [(to_ny_date_key(d.epoch_seconds), d.amount) for d in dividends]
    keyed.sort(key=lambda item: item[0])
    return keyed


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


def _validate_base(base: Any) -> float:
    if isinstance(base, bool) or not isinstance(base, (int, float)):
        raise InvalidArgumentError(f"Base must be a positive number, got {base!r}")
    if not math.isfinite(base) or base <= 0:
        raise InvalidArgumentError(f"Base must be a positive number, got {base!r}")
    return float(base)


def simulate_symbol(
    history: SymbolHistory,
    calendar: Sequence[CalendarDateKey],
    base: float,
) -> DripSeries:
    """Walk one symbol's reinvested position across the calendar.

    On each date, in order:

    1. Dividends dated on or before the date that have not been credited yet
       accrue ``shares at prior close * amount`` as pending cash.
    2. The first date with a close buys ``base / close`` shares.
    3. Splits of the date multiply the share count, compounding.
    4. Pending cash is reinvested at the date's open, if it has one; otherwise
       it carries forward.
    5. The position is valued at the close.

    :param history: Sanitized bars and events of the symbol.
    :param calendar: Shared trading calendar.
    :param base: Cash invested at the first close.
    :returns: Series aligned index-for-index with ``calendar``.
    """
    bars = bars_by_date(history.bars)
    splits = splits_by_date(history.splits)
    dividends = dividends_by_date(history.dividends)
    next_dividend = 0

    position = DripPosition()
    values: list[float | None] = []
    pcts: list[float | None] = []
    shares: list[float | None] = []

    for day in calendar:
        bar = bars.get(day)
        open_price = bar.open if bar is not None else None
        close_price = bar.close if bar is not None else None

        # Entitlement follows the share count before any of today's splits
        while next_dividend < len(dividends) and dividends[next_dividend][0] <= day:
            amount = dividends[next_dividend][1]
            position.pending_reinvest_cash += position.shares_at_prior_close * amount
            next_dividend += 1

        if not position.started and close_price is not None and close_price > 0:
            position.shares_held = round_shares(base / close_price)
            position.started = True

        if position.started:
            for ratio in splits.get(day, ()):
                position.shares_held = round_shares(position.shares_held * ratio)

            if (
                position.pending_reinvest_cash > 0
                and open_price is not None
                and open_price > 0
            ):
                added = round_shares(position.pending_reinvest_cash / open_price)
                position.shares_held = round_shares(position.shares_held + added)
                position.pending_reinvest_cash = 0.0

        if position.started and close_price is not None:
            value = position.shares_held * close_price
            values.append(value)
            pcts.append((value - base) / base)
            shares.append(position.shares_held)
        else:
            values.append(None)
            pcts.append(None)
            shares.append(position.shares_held if position.started else None)

        position.shares_at_prior_close = position.shares_held

    return DripSeries(symbol=history.symbol, value=values, pct=pcts, shares=shares)


def compute_drip_series(
    inputs: Sequence[SymbolHistory],
    base: float = 1000.0,
    horizon: str = "5y",
    today: str | None = None,
) -> DripOutput:
    """Compute daily reinvested value series for a basket of symbols.

    Malformed bars, splits and dividends are dropped rather than failing the
    computation. Dates without data yield None in both ``value`` and ``pct``.

    :param inputs: Provider history of each symbol.
    :param base: Starting cash per symbol; must be positive and finite.
    :param horizon: "5y" for the trailing five years, "max" for all history.
    :param today: New York date key used as "today" (defaults to the clock).
    :returns: Shared calendar and one series per input, in input order.
    :raises InvalidArgumentError: If ``base`` or ``horizon`` is invalid.
    """
    base_amount = _validate_base(base)
    if horizon not in VALID_HORIZONS:
        raise InvalidArgumentError(
            f"Invalid horizon '{horizon}'. Valid options: {sorted(VALID_HORIZONS)}"
        )

    today_key = today or ny_today()
    start_key = ny_five_years_ago_boundary(today_key) if horizon == "5y" else None

    sanitized = [
        SymbolHistory(
            symbol=h.symbol,
            bars=sanitize_bars(h.bars),
            splits=sanitize_splits(h.splits),
            dividends=sanitize_dividends(h.dividends),
        )
        for h in inputs
    ]

    calendar = build_trading_calendar(
        [h.bars for h in sanitized],
        start=start_key,
        end=today_key,
    )
    logger.debug(
        "Simulating %d symbols over %d dates (horizon=%s)",
        len(sanitized),
        len(calendar),
        horizon,
    )

    series = [simulate_symbol(h, calendar, base_amount) for h in sanitized]
    return DripOutput(dates=calendar, series=series)


__all__ = [
    "VALID_HORIZONS",
    "SHARE_DECIMALS",
    "round_shares",
    "sanitize_bars",
    "sanitize_splits",
    "sanitize_dividends",
    "bars_by_date",
    "splits_by_date",
    "dividends_by_date",
    "simulate_symbol",
    "compute_drip_series",
]
