"""Schema validation for Yahoo chart responses.

The chart endpoint returns bars as parallel arrays under
``chart.result[0].indicators`` and corporate actions as maps under
``chart.result[0].events``. Responses are validated here and converted into
:class:`DailyBar`, :class:`SplitEvent` and :class:`DividendEvent` so raw
provider JSON never reaches the engines.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from totalreturn.exceptions import ProviderError
from totalreturn.types import DailyBar, DividendEvent, SplitEvent

PROVIDER_PARSE_STATUS = 502


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------


class _ChartModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChartQuote(_ChartModel):
    open: list[float | None] | None = None
    high: list[float | None] | None = None
    low: list[float | None] | None = None
    close: list[float | None] | None = None
    volume: list[float | None] | None = None


class ChartAdjClose(_ChartModel):
    adjclose: list[float | None] | None = None


class ChartIndicators(_ChartModel):
    quote: list[ChartQuote] | None = None
    adjclose: list[ChartAdjClose] | None = None


class ChartSplit(_ChartModel):
    date: float
    numerator: float | None = None
    denominator: float | None = None
    split_ratio: str | None = Field(default=None, alias="splitRatio")


class ChartDividend(_ChartModel):
    date: float
    amount: float


class ChartEvents(_ChartModel):
    splits: dict[str, ChartSplit] | None = None
    dividends: dict[str, ChartDividend] | None = None


class ChartResult(_ChartModel):
    timestamp: list[float] | None = None
    indicators: ChartIndicators | None = None
    events: ChartEvents | None = None


class ChartBody(_ChartModel):
    result: list[ChartResult] | None = None
    error: Any = None


class ChartResponse(_ChartModel):
    chart: ChartBody


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_error(area: str, detail: str) -> ProviderError:
    return ProviderError(
        area,
        PROVIDER_PARSE_STATUS,
        f"Yahoo provider {area} parse error: {detail}",
    )


def _first_result(payload: Mapping[str, Any] | str | bytes, area: str) -> ChartResult:
    try:
        if isinstance(payload, (str, bytes)):
            response = ChartResponse.model_validate_json(payload)
        else:
            response = ChartResponse.model_validate(payload)
    except ValidationError as e:
        detail = ", ".join(err["msg"] for err in e.errors())
        raise _parse_error(area, detail) from e

    if not response.chart.result:
        raise _parse_error(area, "Empty or malformed response")
    return response.chart.result[0]


def _finite(value: float | None) -> float | None:
    return value if value is not None and math.isfinite(value) else None


def _at(values: list[float | None] | None, index: int) -> float | None:
    if values is None or index >= len(values):
        return None
    return _finite(values[index])


def parse_chart_bars(payload: Mapping[str, Any] | str | bytes) -> list[DailyBar]:
    """Convert a chart response into daily bars.

    Arrays of unequal length are padded to the longest one; a missing timestamp
    becomes 0 and missing or non-finite numbers become None.

    :param payload: Decoded JSON mapping or raw JSON text.
    :returns: Bars in provider order.
    :raises ProviderError: If the response does not match the chart schema.
    """
    result = _first_result(payload, "candles")
    if result.indicators is None:
        raise _parse_error("candles", "Missing indicators")

    timestamps = result.timestamp or []
    quote = result.indicators.quote[0] if result.indicators.quote else ChartQuote()
    adj = (
        result.indicators.adjclose[0]
        if result.indicators.adjclose
        else ChartAdjClose()
    )

    columns = [quote.open, quote.high, quote.low, quote.close, quote.volume, adj.adjclose]
    length = max([len(timestamps)] + [len(c) for c in columns if c is not None])

    bars: list[DailyBar] = []
    for i in range(length):
        bars.append(
            DailyBar(
                epoch_seconds=timestamps[i] if i < len(timestamps) else 0,
                open=_at(quote.open, i),
                high=_at(quote.high, i),
                low=_at(quote.low, i),
                close=_at(quote.close, i),
                volume=_at(quote.volume, i),
                adj_close=_at(adj.adjclose, i),
            )
        )
    return bars


def parse_split_ratio(text: str | None) -> float:
    """Parse a ``"numerator:denominator"`` ratio, falling back to 1.0."""
    if not text:
        return 1.0
    parts = text.split(":")
    if len(parts) != 2:
        return 1.0
    try:
        numerator = float(parts[0])
        denominator = float(parts[1])
    except ValueError:
        return 1.0
    return ratio_from_fraction(numerator, denominator)


def ratio_from_fraction(numerator: float | None, denominator: float | None) -> float:
    """Shares multiplier from a numerator/denominator pair, falling back to 1.0."""
    if numerator is None or denominator is None:
        return 1.0
    if not math.isfinite(numerator) or not math.isfinite(denominator) or denominator == 0:
        return 1.0
    return numerator / denominator


def parse_chart_events(
    payload: Mapping[str, Any] | str | bytes,
) -> tuple[list[SplitEvent], list[DividendEvent]]:
    """Extract split and dividend events from a chart response.

    :param payload: Decoded JSON mapping or raw JSON text.
    :returns: ``(splits, dividends)``, each sorted by timestamp.
    :raises ProviderError: If the response does not match the chart schema.
    """
    result = _first_result(payload, "events")
    events = result.events or ChartEvents()

    splits = [
        SplitEvent(
            epoch_seconds=s.date,
            ratio=(
                parse_split_ratio(s.split_ratio)
                if s.split_ratio
                else ratio_from_fraction(s.numerator, s.denominator)
            ),
        )
        for s in (events.splits or {}).values()
    ]
    dividends = [
        DividendEvent(epoch_seconds=d.date, amount=d.amount)
        for d in (events.dividends or {}).values()
    ]

    splits.sort(key=lambda s: s.epoch_seconds)
    dividends.sort(key=lambda d: d.epoch_seconds)
    return splits, dividends


__all__ = [
    "ChartResponse",
    "parse_chart_bars",
    "parse_chart_events",
    "parse_split_ratio",
    "ratio_from_fraction",
]
