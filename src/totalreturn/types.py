"""Core type definitions for the total-return library.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages.
"""

from __future__ import annotations

from typing import Any, Literal, NewType

from pydantic import BaseModel, ConfigDict, Field

# Type aliases for domain-specific identifiers
Symbol = NewType("Symbol", str)
CalendarDateKey = NewType("CalendarDateKey", str)

Horizon = Literal["5y", "max"]
HistoryRange = Literal["1y", "5y", "max"]


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


class MutableModel(BaseModel):
    """Base model for mutable state objects."""

    model_config = ConfigDict(validate_assignment=True)


# ---------------------------------------------------------------------------
# Market Data Types
# ---------------------------------------------------------------------------


class DailyBar(FrozenModel):
    """One trading day of OHLCV data for a symbol.

    Price and volume fields are ``None`` when the provider reported nothing for
    that day.

    :param epoch_seconds: Provider start-of-day marker, seconds since the epoch (UTC).
    :param open: Opening price.
    :param high: Highest price of the day.
    :param low: Lowest price of the day.
    :param close: Closing price.
    :param volume: Trading volume.
    :param adj_close: Dividend/split adjusted close.
    """

    epoch_seconds: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None
    adj_close: float | None = None


class SplitEvent(FrozenModel):
    """Corporate split.

    :param epoch_seconds: Event timestamp, seconds since the epoch (UTC).
    :param ratio: Shares multiplier (2.0 for a 2-for-1 split).
    """

    epoch_seconds: float
    ratio: float


class DividendEvent(FrozenModel):
    """Cash distribution.

    :param epoch_seconds: Reported pay/ex date, seconds since the epoch (UTC).
    :param amount: Cash paid per share.
    """

    epoch_seconds: float
    amount: float


class SymbolHistory(FrozenModel):
    """Everything the engines need to know about one symbol.

    :param symbol: Ticker the data belongs to.
    :param bars: Daily bars in chronological order.
    :param splits: Split events.
    :param dividends: Dividend events.
    """

    symbol: Symbol
    bars: list[DailyBar] = Field(default_factory=list)
    splits: list[SplitEvent] = Field(default_factory=list)
    dividends: list[DividendEvent] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# DRIP Types
# ---------------------------------------------------------------------------


class DripPosition(MutableModel):
    """Simulation state of a reinvested position.

    :param shares_held: Shares currently held, rounded to 4 decimals.
    :param pending_reinvest_cash: Dividend cash waiting for the next known open.
    :param started: Whether the initial purchase happened.
    :param shares_at_prior_close: Shares held at the previous calendar date's close.
    """

    shares_held: float = 0.0
    pending_reinvest_cash: float = 0.0
    started: bool = False
    shares_at_prior_close: float = 0.0


class DripSeries(FrozenModel):
    """Daily reinvested valuation of one symbol, aligned with the calendar.

    :param symbol: Ticker of the series.
    :param value: Position value at each close, or None before data is available.
    :param pct: Return relative to the base investment, or None.
    :param shares: Shares held at each close, or None before the purchase.
    """

    symbol: Symbol
    value: list[float | None] = Field(default_factory=list)
    pct: list[float | None] = Field(default_factory=list)
    shares: list[float | None] = Field(default_factory=list)


class DripOutput(FrozenModel):
    """DRIP engine result.

    :param dates: Trading calendar as ascending date keys.
    :param series: One series per input symbol, in input order.
    """

    dates: list[CalendarDateKey] = Field(default_factory=list)
    series: list[DripSeries] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Stats Types
# ---------------------------------------------------------------------------


class StatsBucket(FrozenModel):
    """One reading (or aggregate) of each per-day statistic.

    :param close: Close price.
    :param intraday_variation: (high - low) / close, as a fraction.
    :param returns_from: Trailing returns keyed by window label ("d1", "d5", ...).
    """

    close: float | None = None
    intraday_variation: float | None = None
    returns_from: dict[str, float | None] = Field(default_factory=dict)


class StatsAgg(FrozenModel):
    """Aggregates of the per-day statistics over a window.

    :param average: Mean of each statistic, only reported for the last year.
    :param min: Minimum of each statistic.
    :param max: Maximum of each statistic.
    :param std: Population standard deviation.
    :param var: Population variance.
    """

    average: StatsBucket | None = None
    min: StatsBucket
    max: StatsBucket
    std: StatsBucket
    var: StatsBucket


class SymbolStats(FrozenModel):
    """Descriptive statistics of a symbol.

    :param current: Most recent available reading of each statistic.
    :param last_year: Aggregates over the trailing trading year.
    :param all_time: Aggregates over the full history.
    """

    current: StatsBucket
    last_year: StatsAgg
    all_time: StatsAgg


# ---------------------------------------------------------------------------
# Configuration Types
# ---------------------------------------------------------------------------


class ReturnsConfig(FrozenModel):
    """Configuration for a total-return computation.

    :param symbols: Validated tickers to compute.
    :param base: Starting cash invested in each symbol.
    :param horizon: "5y" for a trailing five years, "max" for all history.
    :param data_source: Data source type ("yahoo", "csv", "chart_json").
    :param source_params: Provider-specific parameters.
    :param output_path: Where to write the JSON report, if anywhere.
    :param start: First date to fetch, replacing the horizon's span when set.
    :param end: Last date to fetch (inclusive).
    """

    symbols: list[Symbol]
    base: float = 1000.0
    horizon: Horizon = "5y"
    data_source: str = "yahoo"
    source_params: dict[str, Any] = Field(default_factory=dict)
    output_path: str | None = None
    start: CalendarDateKey | None = None
    end: CalendarDateKey | None = None


# ---------------------------------------------------------------------------
# Report Types
# ---------------------------------------------------------------------------


class ReturnsMeta(FrozenModel):
    """Parameters a returns report was computed with."""

    symbols: list[Symbol]
    base: float
    horizon: Horizon


class ReturnsReport(FrozenModel):
    """Serializable total-return report.

    :param meta: Request parameters.
    :param dates: Trading calendar.
    :param series: Per-symbol valuation series.
    """

    meta: ReturnsMeta
    dates: list[CalendarDateKey] = Field(default_factory=list)
    series: list[DripSeries] = Field(default_factory=list)


class SymbolStatsItem(FrozenModel):
    """Stats of one symbol within a report."""

    symbol: Symbol
    stats: SymbolStats


class StatsReport(FrozenModel):
    """Serializable stats report."""

    items: list[SymbolStatsItem] = Field(default_factory=list)


class DividendRecord(FrozenModel):
    """Dividend keyed by its New York calendar date."""

    date: CalendarDateKey
    amount: float


class SymbolDividends(FrozenModel):
    """Dividend history of one symbol within a report."""

    symbol: Symbol
    range: HistoryRange
    dividends: list[DividendRecord] = Field(default_factory=list)


class DividendReport(FrozenModel):
    """Serializable dividend listing."""

    items: list[SymbolDividends] = Field(default_factory=list)


class PriceRecord(FrozenModel):
    """Daily candle keyed by its New York calendar date.

    :param date: New York date of the bar.
    :param epoch_seconds: Provider timestamp of the bar.
    :param open: Opening price.
    :param high: Highest price of the day.
    :param low: Lowest price of the day.
    :param close: Closing price.
    :param volume: Trading volume.
    :param adj_close: Dividend/split adjusted close.
    """

    date: CalendarDateKey
    epoch_seconds: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None
    adj_close: float | None = None


class SplitRecord(FrozenModel):
    """Split keyed by its New York calendar date."""

    date: CalendarDateKey
    ratio: float


class SymbolPrices(FrozenModel):
    """Candle history of one symbol within a report."""

    symbol: Symbol
    range: HistoryRange
    candles: list[PriceRecord] = Field(default_factory=list)
    splits: list[SplitRecord] = Field(default_factory=list)


class PriceReport(FrozenModel):
    """Serializable price listing."""

    items: list[SymbolPrices] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

__all__ = [
    # Type aliases
    "Symbol",
    "CalendarDateKey",
    "Horizon",
    "HistoryRange",
    # Base models
    "FrozenModel",
    "MutableModel",
    # Market data
    "DailyBar",
    "SplitEvent",
    "DividendEvent",
    "SymbolHistory",
    # DRIP
    "DripPosition",
    "DripSeries",
    "DripOutput",
    # Stats
    "StatsBucket",
    "StatsAgg",
    "SymbolStats",
    # Configuration
    "ReturnsConfig",
    # Reports
    "ReturnsMeta",
    "ReturnsReport",
    "SymbolStatsItem",
    "StatsReport",
    "DividendRecord",
    "SymbolDividends",
    "DividendReport",
    "PriceRecord",
    "SplitRecord",
    "SymbolPrices",
    "PriceReport",
]
