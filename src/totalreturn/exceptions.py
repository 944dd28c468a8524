"""Total-return exception hierarchy.

All package-specific exceptions derive from :class:`TotalReturnError` so callers
can catch every error raised by the library uniformly.
"""

from __future__ import annotations


class TotalReturnError(Exception):
    """Base class for total-return exceptions.

    Derived exceptions should extend this class so that callers can catch all
    library-specific errors uniformly.
    """


class ConfigError(TotalReturnError):
    """Raised when configuration files or parameters are invalid."""


class DataSourceError(TotalReturnError):
    """Raised when accessing or processing a data source fails."""


class ProviderError(DataSourceError):
    """Raised when the upstream market-data provider rejects or garbles a request.

    :param area: Which provider dataset failed ("candles" or "events").
    :param status: HTTP-like status code describing the failure.
    :param message: Human readable description.
    :param body_snippet: Leading part of the provider response, if any.
    """

    def __init__(
        self,
        area: str,
        status: int,
        message: str,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message)
        self.area = area
        self.status = status
        self.body_snippet = body_snippet[:300] if body_snippet else body_snippet


class DataValidationError(TotalReturnError):
    """Raised when data fails validation checks.

    Named DataValidationError to avoid conflict with pydantic's ValidationError.
    """


class TickerValidationError(DataValidationError):
    """Raised when a ticker symbol is not a valid US equity ticker."""


class InvalidArgumentError(TotalReturnError, ValueError):
    """Raised when a computation is called with an unusable argument."""


__all__ = [
    "TotalReturnError",
    "ConfigError",
    "DataSourceError",
    "ProviderError",
    "DataValidationError",
    "TickerValidationError",
    "InvalidArgumentError",
]
