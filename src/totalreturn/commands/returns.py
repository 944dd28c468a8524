"""Configuration and execution for the returns command.

Example config file (returns.yaml):

    symbols:
      - "AAPL"
      - "MSFT"
    base: 1000
    horizon: "5y"
    data_source: "yahoo"
    source_params: {}
    output_path: "returns.json"  # Optional
    start: "2020-01-02"  # Optional, replaces the horizon's fetch span
    end: "2024-12-31"  # Optional
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import yaml

from totalreturn.analytics.drip import VALID_HORIZONS, compute_drip_series
from totalreturn.data.sources import (
    VALID_DATA_SOURCES,
    DataSource,
    resolve_fetch_span,
)
from totalreturn.exceptions import (
    ConfigError,
    InvalidArgumentError,
    TickerValidationError,
)
from totalreturn.tickers import parse_symbols
from totalreturn.types import (
    ReturnsConfig,
    ReturnsMeta,
    ReturnsReport,
    Symbol,
)

logger = logging.getLogger(__name__)

# Largest basket a single request may compute
MAX_SYMBOLS = 5

DEFAULT_BASE = 1000.0


def parse_basket(raw: Any) -> list[Symbol]:
    """Validate a basket of tickers given as a list or comma-separated text.

    :raises ConfigError: If the basket is empty, too large, or has a bad ticker.
    """
    if not isinstance(raw, (str, list)):
        raise ConfigError("'symbols' must be a list or comma-separated string")
    try:
        symbols = parse_symbols(raw)
    except TickerValidationError as e:
        raise ConfigError(str(e)) from e

    if not symbols:
        raise ConfigError("'symbols' must contain at least one ticker")
    if len(symbols) > MAX_SYMBOLS:
        raise ConfigError(f"A maximum of {MAX_SYMBOLS} symbols is supported")
    return symbols


def _parse_base(raw: Any) -> float:
    if isinstance(raw, bool):
        raise ConfigError(f"'base' must be a positive number, got {raw!r}")
    try:
        base = float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'base' must be a positive number, got {raw!r}") from e
    if not math.isfinite(base) or base <= 0:
        raise ConfigError(f"'base' must be a positive number, got {raw!r}")
    return base


def load_returns_config(config_path: str | Path) -> ReturnsConfig:
    """Parse and validate a returns configuration file.

    :param config_path: Path to YAML configuration file.
    :returns: Validated ReturnsConfig object.
    :raises ConfigError: If file cannot be read or config is invalid.
    """
    config_path = Path(config_path)

    # Read and parse YAML
    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    if "symbols" not in raw_config:
        raise ConfigError("Missing required field: symbols")
    symbols = parse_basket(raw_config["symbols"])

    base = _parse_base(raw_config.get("base", DEFAULT_BASE))

    horizon = str(raw_config.get("horizon", "5y")).lower()
    if horizon not in VALID_HORIZONS:
        raise ConfigError(
            f"Invalid horizon '{horizon}'. Valid options: {sorted(VALID_HORIZONS)}"
        )

    data_source = raw_config.get("data_source", "yahoo")
    if data_source not in VALID_DATA_SOURCES:
        raise ConfigError(
            f"Invalid data_source '{data_source}'. "
            f"Valid options: {sorted(VALID_DATA_SOURCES)}"
        )

    # Parse source_params (optional)
    source_params: dict[str, Any] = raw_config.get("source_params") or {}
    if not isinstance(source_params, dict):
        raise ConfigError("'source_params' must be a mapping")

    output_path = raw_config.get("output_path")
    if output_path is not None and not isinstance(output_path, str):
        raise ConfigError("'output_path' must be a string")

    # Optional explicit fetch window
    try:
        start, end = resolve_fetch_span(raw_config.get("start"), raw_config.get("end"))
    except InvalidArgumentError as e:
        raise ConfigError(str(e)) from e

    return ReturnsConfig(
        symbols=symbols,
        base=base,
        horizon=horizon,
        data_source=data_source,
        source_params=source_params,
        output_path=output_path,
        start=start,
        end=end,
    )


def build_returns_report(
    config: ReturnsConfig,
    source: DataSource,
    today: str | None = None,
) -> ReturnsReport:
    """Fetch every symbol of the basket and compute its DRIP series.

    :param config: Validated configuration.
    :param source: Where to fetch history from.
    :param today: Override for "today" as a New York date key.
    :returns: Report with the shared calendar and one series per symbol.
    :raises DataSourceError: If fetching any symbol fails.
    """
    histories = [
        source.fetch_history(s, config.horizon, start=config.start, end=config.end)
        for s in config.symbols
    ]
    drip = compute_drip_series(
        histories, base=config.base, horizon=config.horizon, today=today
    )
    logger.info(
        "Computed %d series over %d dates", len(drip.series), len(drip.dates)
    )
    return ReturnsReport(
        meta=ReturnsMeta(
            symbols=config.symbols, base=config.base, horizon=config.horizon
        ),
        dates=drip.dates,
        series=drip.series,
    )


def write_report(report: ReturnsReport, output_path: str | Path) -> Path:
    """Write a report as JSON, creating parent directories as needed."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return path
