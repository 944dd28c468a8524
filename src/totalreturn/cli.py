#!/usr/bin/env python3
"""Command-line interface for the total-return calculator."""

from __future__ import annotations

import argparse
import logging
import sys


def _fmt_money(value: float | None) -> str:
    return "N/A" if value is None else f"${value:,.2f}"


def _fmt_pct(value: float | None) -> str:
    return "N/A" if value is None else f"{value:+.2%}"


def _last_value(values: list[float | None]) -> float | None:
    for value in reversed(values):
        if value is not None:
            return value
    return None


def _print_returns(report) -> None:
    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    if not report.dates:
        print("No data available for the requested symbols.")
        return

    print(f"Dates:     {report.dates[0]} to {report.dates[-1]} ({len(report.dates)} days)")
    print(f"\n{'Symbol':<10} {'Final Value':>15} {'Return':>10} {'Shares':>12}")
    print("-" * 50)
    for series in report.series:
        shares = _last_value(series.shares)
        shares_str = "N/A" if shares is None else f"{shares:,.4f}"
        print(
            f"{series.symbol:<10} {_fmt_money(_last_value(series.value)):>15} "
            f"{_fmt_pct(_last_value(series.pct)):>10} {shares_str:>12}"
        )


def cmd_returns(args: argparse.Namespace) -> int:
    """Compute dividend-reinvested returns for a basket."""
    from totalreturn.commands.returns import parse_basket
    from totalreturn.data.sources import resolve_fetch_span
    from totalreturn.exceptions import TotalReturnError
    from totalreturn.types import ReturnsConfig

    try:
        start, end = resolve_fetch_span(args.start, args.end)
        config = ReturnsConfig(
            symbols=parse_basket(args.symbols),
            base=args.base,
            horizon=args.horizon,
            data_source=args.source,
            source_params=_source_params(args),
            start=start,
            end=end,
        )
    except TotalReturnError as e:
        print(f"Error: {e}")
        return 1

    return _run_returns(config, as_json=args.json)


def cmd_run(args: argparse.Namespace) -> int:
    """Compute returns from a YAML configuration file."""
    from totalreturn.commands.returns import load_returns_config
    from totalreturn.exceptions import ConfigError

    try:
        config = load_returns_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1

    return _run_returns(config, as_json=args.json)


def _run_returns(config, as_json: bool) -> int:
    from totalreturn.commands.returns import build_returns_report, write_report
    from totalreturn.data.sources import resolve_data_source
    from totalreturn.exceptions import TotalReturnError

    if not as_json:
        print("=" * 60)
        print("TOTAL RETURN (DIVIDENDS REINVESTED)")
        print("=" * 60)
        print(f"Symbols:   {', '.join(str(s) for s in config.symbols)}")
        print(f"Base:      ${config.base:,.2f}")
        print(f"Horizon:   {config.horizon}")
        print(f"Source:    {config.data_source}")
        print("\n📊 Fetching data...")

    try:
        source = resolve_data_source(config.data_source, config.source_params)
        report = build_returns_report(config, source)
    except TotalReturnError as e:
        print(f"Error: {e}")
        return 1

    if as_json:
        print(report.model_dump_json())
    else:
        _print_returns(report)

    if config.output_path:
        try:
            path = write_report(report, config.output_path)
        except OSError as e:
            print(f"Error: Failed to write report: {e}")
            return 1
        if not as_json:
            print(f"\n💾 Saved report to {path}")

    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Show descriptive statistics for each symbol."""
    from totalreturn.commands.returns import parse_basket
    from totalreturn.commands.stats import build_stats_report
    from totalreturn.data.sources import resolve_data_source
    from totalreturn.exceptions import TotalReturnError

    try:
        symbols = parse_basket(args.symbols)
        source = resolve_data_source(args.source, _source_params(args))
        report = build_stats_report(symbols, source, args.range)
    except TotalReturnError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(report.model_dump_json())
        return 0

    for item in report.items:
        stats = item.stats
        print("=" * 60)
        print(f"STATS: {item.symbol} ({args.range})")
        print("=" * 60)
        print(f"{'':<14} {'Current':>12} {'1Y Avg':>12} {'1Y Std':>12} {'All Std':>12}")
        print("-" * 66)
        rows = [("close", lambda b: b.close), ("intraday", lambda b: b.intraday_variation)]
        rows += [
            (f"return {key}", lambda b, key=key: b.returns_from.get(key))
            for key in stats.current.returns_from
        ]
        for label, pick in rows:
            cells = [
                pick(stats.current),
                pick(stats.last_year.average) if stats.last_year.average else None,
                pick(stats.last_year.std),
                pick(stats.all_time.std),
            ]
            print(f"{label:<14} " + " ".join(_fmt_cell(c) for c in cells))
        print()

    return 0


def _fmt_cell(value: float | None) -> str:
    return f"{'N/A':>12}" if value is None else f"{value:>12.4f}"


def cmd_dividends(args: argparse.Namespace) -> int:
    """List the dividend history of each symbol."""
    from totalreturn.commands.returns import parse_basket
    from totalreturn.commands.stats import build_dividend_report
    from totalreturn.data.sources import resolve_data_source
    from totalreturn.exceptions import TotalReturnError

    try:
        symbols = parse_basket(args.symbols)
        source = resolve_data_source(args.source, _source_params(args))
        report = build_dividend_report(symbols, source, args.range)
    except TotalReturnError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(report.model_dump_json())
        return 0

    for item in report.items:
        print(f"\n📋 {item.symbol} dividends ({len(item.dividends)} total)")
        for record in item.dividends:
            print(f"   {record.date}  ${record.amount:.4f}")

    return 0


def cmd_prices(args: argparse.Namespace) -> int:
    """List daily candles and splits of each symbol."""
    from totalreturn.commands.returns import parse_basket
    from totalreturn.commands.stats import build_price_report
    from totalreturn.data.sources import resolve_data_source
    from totalreturn.exceptions import TotalReturnError

    try:
        symbols = parse_basket(args.symbols)
        source = resolve_data_source(args.source, _source_params(args))
        report = build_price_report(
            symbols, source, args.range, start=args.start, end=args.end
        )
    except TotalReturnError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(report.model_dump_json())
        return 0

    for item in report.items:
        print(f"\n📈 {item.symbol} prices ({len(item.candles)} days)")
        print(f"{'Date':<12} {'Open':>10} {'High':>10} {'Low':>10} {'Close':>10} {'Volume':>14}")
        print("-" * 71)
        for candle in item.candles:
            cells = [candle.open, candle.high, candle.low, candle.close]
            volume = "N/A" if candle.volume is None else f"{candle.volume:,.0f}"
            print(
                f"{candle.date:<12} "
                + " ".join(f"{'N/A':>10}" if c is None else f"{c:>10.2f}" for c in cells)
                + f" {volume:>14}"
            )
        for split in item.splits:
            print(f"   Split {split.date}  x{split.ratio:g}")

    return 0


def _source_params(args: argparse.Namespace) -> dict:
    params: dict = {}
    if getattr(args, "data_dir", None):
        params["directory"] = args.data_dir
    return params


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source",
        default="yahoo",
        choices=["yahoo", "csv", "chart_json"],
        help="Data source (default: yahoo)",
    )
    parser.add_argument(
        "--data-dir", help="Directory of per-symbol files for csv/chart_json sources"
    )
    parser.add_argument("--json", action="store_true", help="Print JSON output")


def _add_span_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--start", help="First date to fetch (YYYY-MM-DD), overriding the span"
    )
    parser.add_argument("--end", help="Last date to fetch (YYYY-MM-DD, inclusive)")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Dividend-reinvested total return calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Returns command
    returns_parser = subparsers.add_parser(
        "returns", help="Compute DRIP total return for up to 5 symbols"
    )
    returns_parser.add_argument("symbols", help="Comma-separated symbols (e.g., AAPL,MSFT)")
    returns_parser.add_argument(
        "-b", "--base", type=float, default=1000.0, help="Starting cash per symbol"
    )
    returns_parser.add_argument(
        "--horizon", default="5y", choices=["5y", "max"], help="History horizon"
    )
    _add_source_args(returns_parser)
    _add_span_args(returns_parser)

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show descriptive statistics")
    stats_parser.add_argument("symbols", help="Comma-separated symbols")
    stats_parser.add_argument(
        "--range", default="5y", choices=["1y", "5y", "max"], help="History range"
    )
    _add_source_args(stats_parser)

    # Dividends command
    dividends_parser = subparsers.add_parser("dividends", help="List dividend history")
    dividends_parser.add_argument("symbols", help="Comma-separated symbols")
    dividends_parser.add_argument(
        "--range", default="5y", choices=["1y", "5y", "max"], help="History range"
    )
    _add_source_args(dividends_parser)

    # Prices command
    prices_parser = subparsers.add_parser("prices", help="List daily candles and splits")
    prices_parser.add_argument("symbols", help="Comma-separated symbols")
    prices_parser.add_argument(
        "--range", default="5y", choices=["1y", "5y", "max"], help="History range"
    )
    _add_span_args(prices_parser)
    _add_source_args(prices_parser)

    # Run command
    run_parser = subparsers.add_parser(
        "run", help="Compute returns from a YAML configuration file"
    )
    run_parser.add_argument("config", help="Path to YAML configuration file")
    run_parser.add_argument("--json", action="store_true", help="Print JSON output")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "returns":
        return cmd_returns(args)
    elif args.command == "stats":
        return cmd_stats(args)
    elif args.command == "dividends":
        return cmd_dividends(args)
    elif args.command == "prices":
        return cmd_prices(args)
    elif args.command == "run":
        return cmd_run(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
