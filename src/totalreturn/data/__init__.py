"""Data ingestion and source management module."""

from totalreturn.data.chart import parse_chart_bars
from totalreturn.data.chart import parse_chart_events
from totalreturn.data.sources import ChartJsonDataSource
from totalreturn.data.sources import CSVDataSource
from totalreturn.data.sources import DataSource
from totalreturn.data.sources import YahooDataSource
from totalreturn.data.sources import resolve_data_source
from totalreturn.data.sources import resolve_fetch_span

__all__ = [
    "DataSource",
    "YahooDataSource",
    "CSVDataSource",
    "ChartJsonDataSource",
    "resolve_data_source",
    "resolve_fetch_span",
    "parse_chart_bars",
    "parse_chart_events",
]
