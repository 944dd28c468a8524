"""US equity ticker validation."""

from __future__ import annotations

import re
from typing import Iterable

from totalreturn.exceptions import TickerValidationError
from totalreturn.types import Symbol

# 1-5 letters, optional class suffix like BRK-B / BF-B
US_TICKER_RE = re.compile(r"^[A-Z]{1,5}(?:-[A-Z]{1,2})?$")


def validate_us_ticker(raw: str) -> Symbol:
    """Normalize and validate a US equity ticker.

    :param raw: User supplied ticker text.
    :returns: Upper-cased ticker.
    :raises TickerValidationError: If the ticker is empty or malformed.
    """
    normalized = str(raw).strip().upper()
    if not normalized:
        raise TickerValidationError("Ticker is required")
    if not US_TICKER_RE.match(normalized):
        raise TickerValidationError(
            f"Invalid US ticker format '{raw}'. "
            "Use 1-5 letters, optional class suffix like BRK-B"
        )
    return Symbol(normalized)


def parse_symbols(raw: str | Iterable[str] | None) -> list[Symbol]:
    """Parse a comma-separated list (or iterable) of tickers.

    Blank entries are skipped and duplicates removed, keeping first-seen order.

    :raises TickerValidationError: If any entry is malformed.
    """
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)

    symbols: list[Symbol] = []
    for part in parts:
        if not str(part).strip():
            continue
        symbol = validate_us_ticker(part)
        if symbol not in symbols:
            symbols.append(symbol)
    return symbols


__all__ = ["US_TICKER_RE", "validate_us_ticker", "parse_symbols"]
