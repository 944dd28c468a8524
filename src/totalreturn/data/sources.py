"""Data source implementations for fetching daily history.

This module provides an abstract interface for data sources and concrete
implementations for Yahoo Finance, per-symbol CSV files, and saved Yahoo chart
JSON responses. Every source returns a :class:`SymbolHistory` of daily bars,
splits and dividends.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from totalreturn.calendar import DateBound
from totalreturn.dates import (
    NY_TZ,
    coerce_date_key,
    is_date_key,
    ny_today,
    ny_years_ago_boundary,
    to_ny_date_key,
)
from totalreturn.data.chart import parse_chart_bars, parse_chart_events
from totalreturn.exceptions import DataSourceError, InvalidArgumentError
from totalreturn.types import (
    CalendarDateKey,
    DailyBar,
    DividendEvent,
    SplitEvent,
    Symbol,
    SymbolHistory,
)

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)

VALID_HISTORY_RANGES = frozenset(["1y", "5y", "max"])

# Valid data source types
VALID_DATA_SOURCES = frozenset(["yahoo", "csv", "chart_json"])

_RANGE_YEARS = {"1y": 1, "5y": 5}


def _check_range(history_range: str) -> None:
    if history_range not in VALID_HISTORY_RANGES:
        raise DataSourceError(
            f"Unsupported range '{history_range}'. "
            f"Supported: {sorted(VALID_HISTORY_RANGES)}"
        )


def resolve_fetch_span(
    start: DateBound = None, end: DateBound = None
) -> tuple[CalendarDateKey | None, CalendarDateKey | None]:
    """Normalize an explicit fetch window to New York date keys.

    :param start: First date to fetch, or None.
    :param end: Last date to fetch (inclusive), or None.
    :returns: ``(start, end)`` date keys, each None when not given.
    :raises InvalidArgumentError: If a bound cannot be parsed or ``start`` is
        after ``end``.
    """
    keys = []
    for label, value in (("start", start), ("end", end)):
        if value is None or value == "":
            keys.append(None)
            continue
        key = coerce_date_key(value)
        if key is None:
            raise InvalidArgumentError(f"Invalid {label} date: {value!r}")
        keys.append(key)

    start_key, end_key = keys
    if start_key and end_key and start_key > end_key:
        raise InvalidArgumentError(
            f"Start date {start_key} is after end date {end_key}"
        )
    return start_key, end_key


def range_start_key(
    history_range: str, today: str | None = None
) -> CalendarDateKey | None:
    """First date key covered by ``history_range`` ("max" has no start)."""
    years = _RANGE_YEARS.get(history_range)
    if years is None:
        return None
    return ny_years_ago_boundary(today or ny_today(), years)


def clip_history(
    history: SymbolHistory,
    history_range: str,
    today: str | None = None,
    start: CalendarDateKey | None = None,
    end: CalendarDateKey | None = None,
) -> SymbolHistory:
    """Drop bars and events outside the requested window.

    :param history: History to clip.
    :param history_range: Range whose start applies when ``start`` is not set,
        counted back from ``end`` when that is given.
    :param today: Override for "today" as a New York date key.
    :param start: Explicit first date, replacing the start of the range.
    :param end: Last date kept (inclusive).
    """
    first = start or range_start_key(history_range, end or today)
    if first is None and end is None:
        return history

    def inside(epoch_seconds: float) -> bool:
        key = to_ny_date_key(epoch_seconds)
        return (first is None or key >= first) and (end is None or key <= end)

    return SymbolHistory(
        symbol=history.symbol,
        bars=[b for b in history.bars if inside(b.epoch_seconds)],
        splits=[s for s in history.splits if inside(s.epoch_seconds)],
        dividends=[d for d in history.dividends if inside(d.epoch_seconds)],
    )


class DataSource(ABC):
    """Abstract base class for data sources.

    All data source implementations must inherit from this class and implement
    the `fetch_history` method.
    """

    @abstractmethod
    def fetch_history(
        self,
        symbol: Symbol,
        history_range: str = "5y",
        start: DateBound = None,
        end: DateBound = None,
    ) -> SymbolHistory:
        """Fetch daily bars, splits and dividends for one symbol.

        :param symbol: Symbol to fetch.
        :param history_range: How far back to fetch ("1y", "5y" or "max").
        :param start: Explicit first date; replaces the range's span when set.
        :param end: Explicit last date (inclusive).
        :returns: Bars in chronological order plus the symbol's events.
        :raises DataSourceError: If fetching fails.
        :raises InvalidArgumentError: If ``start`` or ``end`` is unusable.
        """
        ...


class YahooDataSource(DataSource):
    """Data source that fetches data from Yahoo Finance via yfinance.

    Bars are requested unadjusted so that splits and dividends can be applied
    by the DRIP engine itself.

    :param source_params: Optional parameters for configuring the source.
        - timeout: Request timeout in seconds (default: 30)
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize Yahoo data source.

        :param source_params: Optional configuration parameters.
        """
        self.params = source_params or {}
        self.timeout = self.params.get("timeout", 30)

    def fetch_history(
        self,
        symbol: Symbol,
        history_range: str = "5y",
        start: DateBound = None,
        end: DateBound = None,
    ) -> SymbolHistory:
        """Fetch daily history from Yahoo Finance.

        :param symbol: Symbol to fetch.
        :param history_range: yfinance period to fetch.
        :param start: Explicit first date, requested instead of the period.
        :param end: Explicit last date (inclusive).
        :returns: SymbolHistory, empty when Yahoo has no data.
        :raises DataSourceError: If fetching fails.
        """
        try:
            import yfinance as yf
        except ImportError as e:
            raise DataSourceError(
                "yfinance is not installed. Install it with: pip install yfinance"
            ) from e

        _check_range(history_range)
        start_key, end_key = resolve_fetch_span(start, end)

        span: dict[str, str]
        if start_key:
            span = {"start": start_key}
        else:
            span = {"period": history_range}
        if end_key:
            # yfinance treats end as exclusive
            span["end"] = (date.fromisoformat(end_key) + timedelta(days=1)).isoformat()

        try:
            ticker = yf.Ticker(str(symbol))
            df = ticker.history(
                interval="1d",
                auto_adjust=False,
                actions=True,
                timeout=self.timeout,
                **span,
            )
        except Exception as e:
            raise DataSourceError(
                f"Failed to fetch data for symbol '{symbol}': {e}"
            ) from e

        if df.empty:
            logger.info("No Yahoo data for %s (%s)", symbol, history_range)
            return SymbolHistory(symbol=symbol)

        history = history_from_frame(symbol, df)
        if start_key or end_key:
            history = clip_history(
                history, history_range, start=start_key, end=end_key
            )
        logger.info(
            "Fetched %d bars, %d splits, %d dividends for %s",
            len(history.bars),
            len(history.splits),
            len(history.dividends),
            symbol,
        )
        return history


def _frame_value(row: "pd.Series", column: str) -> float | None:
    if column not in row.index:
        return None
    value = row[column]
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def history_from_frame(symbol: Symbol, df: "pd.DataFrame") -> SymbolHistory:
    """Convert a yfinance history frame into a SymbolHistory.

    Non-zero ``Dividends`` and ``Stock Splits`` cells become events on the
    row's date.
    """
    bars: list[DailyBar] = []
    splits: list[SplitEvent] = []
    dividends: list[DividendEvent] = []

    for timestamp, row in df.iterrows():
        # yfinance returns timezone-aware timestamps
        ts = timestamp.to_pydatetime()
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        epoch = ts.timestamp()

        bars.append(
            DailyBar(
                epoch_seconds=epoch,
                open=_frame_value(row, "Open"),
                high=_frame_value(row, "High"),
                low=_frame_value(row, "Low"),
                close=_frame_value(row, "Close"),
                volume=_frame_value(row, "Volume"),
                adj_close=_frame_value(row, "Adj Close"),
            )
        )

        amount = _frame_value(row, "Dividends")
        if amount is not None and amount > 0:
            dividends.append(DividendEvent(epoch_seconds=epoch, amount=amount))

        ratio = _frame_value(row, "Stock Splits")
        if ratio is not None and ratio > 0:
            splits.append(SplitEvent(epoch_seconds=epoch, ratio=ratio))

    return SymbolHistory(symbol=symbol, bars=bars, splits=splits, dividends=dividends)


def _require_directory(params: dict[str, Any], source_name: str) -> Path:
    directory = params.get("directory")
    if not directory:
        raise DataSourceError(f"{source_name} requires 'directory' in source_params")
    return Path(directory)


class CSVDataSource(DataSource):
    """Data source that reads one CSV file per symbol.

    Files are looked up as ``{directory}/{SYMBOL}.csv``. Expected columns
    (default names):
    - date: ``YYYY-MM-DD`` (New York date) or ISO timestamp
    - open, high, low, close, volume: Prices and volume (blank = missing)
    - adj_close: Adjusted close (optional)
    - dividend: Cash dividend per share paid that day (optional)
    - split: Split ratio effective that day (optional)

    :param source_params: Required parameters:
        - directory: Directory holding the CSV files.
        Optional parameters:
        - delimiter: CSV delimiter (default: ",")
        - date_col: Column name for the date (default: "date")
    """

    PRICE_COLUMNS = ("open", "high", "low", "close", "volume", "adj_close")

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize CSV data source.

        :param source_params: Configuration with directory and optional settings.
        :raises DataSourceError: If directory is not provided.
        """
        self.params = source_params or {}
        self.directory = _require_directory(self.params, "CSVDataSource")
        self.delimiter = self.params.get("delimiter", ",")
        self.date_col = self.params.get("date_col", "date")

    @staticmethod
    def _parse_timestamp(text: str) -> float:
        if is_date_key(text):
            day = datetime.strptime(text, "%Y-%m-%d")
            return day.replace(tzinfo=NY_TZ).timestamp()
        ts = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.timestamp()

    @staticmethod
    def _parse_number(row: dict[str, str], column: str) -> float | None:
        raw = (row.get(column) or "").strip()
        if not raw:
            return None
        return float(raw)

    def fetch_history(
        self,
        symbol: Symbol,
        history_range: str = "5y",
        start: DateBound = None,
        end: DateBound = None,
    ) -> SymbolHistory:
        """Read a symbol's history from its CSV file.

        :param symbol: Symbol to read.
        :param history_range: Rows before the range start are skipped.
        :param start: Explicit first date, replacing the range start.
        :param end: Rows after this date are skipped.
        :returns: SymbolHistory built from the file.
        :raises DataSourceError: If the file is missing or malformed.
        """
        _check_range(history_range)
        start_key, end_key = resolve_fetch_span(start, end)
        path = self.directory / f"{symbol}.csv"
        if not path.exists():
            raise DataSourceError(f"CSV file not found: {path}")

        bars: list[DailyBar] = []
        splits: list[SplitEvent] = []
        dividends: list[DividendEvent] = []

        try:
            with open(path, newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)

                for row in reader:
                    ts_str = (row.get(self.date_col) or "").strip()
                    if not ts_str:
                        continue

                    try:
                        epoch = self._parse_timestamp(ts_str)
                        values = {c: self._parse_number(row, c) for c in self.PRICE_COLUMNS}
                        amount = self._parse_number(row, "dividend")
                        ratio = self._parse_number(row, "split")
                    except ValueError as e:
                        raise DataSourceError(f"Failed to parse row {row}: {e}") from e

                    bars.append(DailyBar(epoch_seconds=epoch, **values))
                    if amount is not None and amount > 0:
                        dividends.append(DividendEvent(epoch_seconds=epoch, amount=amount))
                    if ratio is not None and ratio > 0:
                        splits.append(SplitEvent(epoch_seconds=epoch, ratio=ratio))

        except csv.Error as e:
            raise DataSourceError(f"CSV parsing error: {e}") from e
        except OSError as e:
            raise DataSourceError(f"Failed to read CSV file: {e}") from e

        bars.sort(key=lambda b: b.epoch_seconds)
        history = SymbolHistory(
            symbol=symbol, bars=bars, splits=splits, dividends=dividends
        )
        return clip_history(history, history_range, start=start_key, end=end_key)


class ChartJsonDataSource(DataSource):
    """Data source that reads saved Yahoo chart responses.

    Files are looked up as ``{directory}/{SYMBOL}.json`` and must hold a chart
    response requested with ``events=div,splits``.

    :param source_params: Required parameters:
        - directory: Directory holding the JSON files.
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize chart JSON data source.

        :param source_params: Configuration with directory.
        :raises DataSourceError: If directory is not provided.
        """
        self.params = source_params or {}
        self.directory = _require_directory(self.params, "ChartJsonDataSource")

    def fetch_history(
        self,
        symbol: Symbol,
        history_range: str = "5y",
        start: DateBound = None,
        end: DateBound = None,
    ) -> SymbolHistory:
        """Load and validate a symbol's saved chart response.

        :param symbol: Symbol to read.
        :param history_range: Data before the range start is dropped.
        :param start: Explicit first date, replacing the range start.
        :param end: Data after this date is dropped.
        :returns: SymbolHistory built from the response.
        :raises DataSourceError: If the file is missing or not a chart response.
        """
        _check_range(history_range)
        start_key, end_key = resolve_fetch_span(start, end)
        path = self.directory / f"{symbol}.json"
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise DataSourceError(f"Chart JSON file not found: {path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise DataSourceError(f"Failed to read chart JSON file {path}: {e}") from e

        bars = parse_chart_bars(payload)
        splits, dividends = parse_chart_events(payload)
        history = SymbolHistory(
            symbol=symbol, bars=bars, splits=splits, dividends=dividends
        )
        return clip_history(history, history_range, start=start_key, end=end_key)


def resolve_data_source(
    data_source: str, source_params: dict[str, Any] | None = None
) -> DataSource:
    """Construct a data source by name.

    :param data_source: Source type ("yahoo", "csv" or "chart_json").
    :param source_params: Source-specific parameters.
    :returns: DataSource instance for the specified type.
    :raises DataSourceError: If data_source type is unrecognized.
    """
    source_type = data_source.lower()

    if source_type == "yahoo":
        return YahooDataSource(source_params)
    elif source_type == "csv":
        return CSVDataSource(source_params)
    elif source_type == "chart_json":
        return ChartJsonDataSource(source_params)
    else:
        raise DataSourceError(
            f"Unrecognized data source type: '{data_source}'. "
            f"Supported types: {', '.join(sorted(VALID_DATA_SOURCES))}"
        )
