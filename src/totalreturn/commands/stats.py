"""Execution for the stats, dividends and prices commands."""

from __future__ import annotations

from totalreturn.analytics.drip import sanitize_bars
from totalreturn.analytics.stats import compute_symbol_stats
from totalreturn.calendar import DateBound
from totalreturn.data.sources import DataSource
from totalreturn.dates import to_ny_date_key
from totalreturn.types import (
    DividendRecord,
    DividendReport,
    HistoryRange,
    PriceRecord,
    PriceReport,
    SplitRecord,
    StatsReport,
    Symbol,
    SymbolDividends,
    SymbolPrices,
    SymbolStatsItem,
)


def build_stats_report(
    symbols: list[Symbol],
    source: DataSource,
    history_range: HistoryRange = "5y",
) -> StatsReport:
    """Compute descriptive statistics for each symbol.

    :param symbols: Validated tickers.
    :param source: Where to fetch bars from.
    :param history_range: How much history the all-time window covers.
    :returns: One stats item per symbol, in input order.
    """
    items = []
    for symbol in symbols:
        history = source.fetch_history(symbol, history_range)
        items.append(
            SymbolStatsItem(symbol=symbol, stats=compute_symbol_stats(history.bars))
        )
    return StatsReport(items=items)


def build_dividend_report(
    symbols: list[Symbol],
    source: DataSource,
    history_range: HistoryRange = "5y",
) -> DividendReport:
    """List each symbol's dividends by New York date, oldest first."""
    items = []
    for symbol in symbols:
        history = source.fetch_history(symbol, history_range)
        records = sorted(
            (
                DividendRecord(date=to_ny_date_key(d.epoch_seconds), amount=d.amount)
                for d in history.dividends
            ),
            key=lambda r: r.date,
        )
        items.append(
            SymbolDividends(symbol=symbol, range=history_range, dividends=records)
        )
    return DividendReport(items=items)


def build_price_report(
    symbols: list[Symbol],
    source: DataSource,
    history_range: HistoryRange = "5y",
    start: DateBound = None,
    end: DateBound = None,
) -> PriceReport:
    """List each symbol's daily candles and splits by New York date.

    Candles are reported unadjusted, as the provider sent them; malformed bars
    are left out.

    :param symbols: Validated tickers.
    :param source: Where to fetch bars from.
    :param history_range: How far back to list.
    :param start: Explicit first date, replacing the range's span.
    :param end: Explicit last date (inclusive).
    :returns: One price listing per symbol, in input order.
    """
    items = []
    for symbol in symbols:
        history = source.fetch_history(symbol, history_range, start=start, end=end)
        candles = [
            PriceRecord(
                date=to_ny_date_key(bar.epoch_seconds),
                epoch_seconds=bar.epoch_seconds,
                open=bar.open,
                high=bar.high,
                low=bar.low,
                close=bar.close,
                volume=bar.volume,
                adj_close=bar.adj_close,
            )
            for bar in sorted(sanitize_bars(history.bars), key=lambda b: b.epoch_seconds)
        ]
        splits = sorted(
            (
                SplitRecord(date=to_ny_date_key(s.epoch_seconds), ratio=s.ratio)
                for s in history.splits
            ),
            key=lambda r: r.date,
        )
        items.append(
            SymbolPrices(
                symbol=symbol, range=history_range, candles=candles, splits=splits
            )
        )
    return PriceReport(items=items)
