"""Total-return package root."""

from totalreturn.exceptions import InvalidArgumentError, TotalReturnError

__all__ = ["InvalidArgumentError", "TotalReturnError"]
