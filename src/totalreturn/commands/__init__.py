"""CLI command implementations for the total-return library.

Each command module provides:
- Configuration loading and validation
- Command execution logic
- Integration with core library functions
"""

from totalreturn.commands.returns import build_returns_report
from totalreturn.commands.returns import load_returns_config
from totalreturn.commands.stats import build_dividend_report
from totalreturn.commands.stats import build_price_report
from totalreturn.commands.stats import build_stats_report

__all__ = [
    "load_returns_config",
    "build_returns_report",
    "build_stats_report",
    "build_dividend_report",
    "build_price_report",
]
