"""Tests for New York date helpers."""

import logging
from datetime import date, datetime, timezone

import pytest

from totalreturn.dates import (clamp_to_valid_date, coerce_date_key,
                               is_date_key, ny_five_years_ago_boundary,
                               ny_today, ny_years_ago_boundary, to_ny_date_key)


def utc_epoch(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> float:
    """Epoch seconds of a UTC wall-clock time."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc).timestamp()


class TestToNyDateKey:
    """Tests for to_ny_date_key."""

    def test_market_hours_timestamp(self) -> None:
        """A 14:30 UTC timestamp falls on the same New York date."""
        assert to_ny_date_key(utc_epoch(2024, 1, 2, 14, 30)) == "2024-01-02"

    def test_late_utc_maps_to_previous_ny_day(self) -> None:
        """03:00 UTC is still the previous evening in New York."""
        assert to_ny_date_key(utc_epoch(2024, 1, 3, 3, 0)) == "2024-01-02"

    def test_daylight_saving_offset(self) -> None:
        """During EDT the offset is four hours."""
        assert to_ny_date_key(utc_epoch(2024, 7, 2, 3, 59)) == "2024-07-01"
        assert to_ny_date_key(utc_epoch(2024, 7, 2, 4, 0)) == "2024-07-02"

    def test_fractional_seconds_floored(self) -> None:
        """Fractional seconds do not change the date."""
        ts = utc_epoch(2024, 1, 2, 5, 0) - 0.5
        assert to_ny_date_key(ts) == "2024-01-01"

    def test_malformed_input_falls_back_to_epoch(self) -> None:
        """Non-numeric input yields the epoch's New York date."""
        assert to_ny_date_key(float("nan")) == "1969-12-31"
        assert to_ny_date_key("not a number") == "1969-12-31"  # type: ignore[arg-type]

    def test_zero_padded(self) -> None:
        """Month and day are always two digits."""
        key = to_ny_date_key(utc_epoch(2024, 3, 5, 15, 0))
        assert key == "2024-03-05"
        assert is_date_key(key)


class TestNyToday:
    """Tests for ny_today."""

    def test_converts_reference_instant(self) -> None:
        """Early UTC morning is still yesterday in New York."""
        now = datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)
        assert ny_today(now) == "2023-12-31"

    def test_naive_reference_is_utc(self) -> None:
        """A naive datetime is interpreted as UTC."""
        assert ny_today(datetime(2024, 1, 1, 3, 0)) == "2023-12-31"

    def test_defaults_to_clock(self) -> None:
        """Without a reference the result is a valid date key."""
        assert is_date_key(ny_today())


class TestClampToValidDate:
    """Tests for clamp_to_valid_date."""

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("2019-02-29", "2019-02-28"),
            ("2020-02-30", "2020-02-29"),
            ("2023-04-31", "2023-04-30"),
            ("2023-01-31", "2023-01-31"),
            ("2023-06-15", "2023-06-15"),
        ],
    )
    def test_clamps_to_month_end(self, key: str, expected: str) -> None:
        """Impossible days are pulled back to the last day of the month."""
        assert clamp_to_valid_date(key) == expected

    def test_non_key_passes_through(self) -> None:
        """Text that is not a date key is returned unchanged."""
        assert clamp_to_valid_date("yesterday") == "yesterday"


class TestYearsAgoBoundary:
    """Tests for the trailing-years boundaries."""

    def test_five_years_from_leap_day(self) -> None:
        """Five years before a leap day lands on Feb 28."""
        assert ny_five_years_ago_boundary("2024-02-29") == "2019-02-28"

    def test_five_years_regular_date(self) -> None:
        """Ordinary dates just lose five years."""
        assert ny_five_years_ago_boundary("2024-06-15") == "2019-06-15"

    def test_one_year(self) -> None:
        """The generic helper supports any year count."""
        assert ny_years_ago_boundary("2024-02-29", 1) == "2023-02-28"
        assert ny_years_ago_boundary("2024-02-29", 4) == "2020-02-29"


class TestCoerceDateKey:
    """Tests for coerce_date_key."""

    def test_none(self) -> None:
        """None means no bound."""
        assert coerce_date_key(None) is None

    def test_date_key_passthrough(self) -> None:
        """Date keys are returned as-is."""
        assert coerce_date_key("2024-01-15") == "2024-01-15"

    def test_epoch_seconds(self) -> None:
        """Epoch seconds are converted in New York time."""
        assert coerce_date_key(utc_epoch(2024, 1, 3, 3, 0)) == "2024-01-02"

    def test_epoch_milliseconds(self) -> None:
        """Large epoch values are treated as milliseconds."""
        ms = int(utc_epoch(2024, 1, 2, 14, 30) * 1000)
        assert coerce_date_key(ms) == "2024-01-02"

    def test_aware_datetime(self) -> None:
        """Aware datetimes are converted to New York."""
        value = datetime(2024, 1, 3, 3, 0, tzinfo=timezone.utc)
        assert coerce_date_key(value) == "2024-01-02"

    def test_naive_datetime_is_utc(self) -> None:
        """Naive datetimes are taken as UTC."""
        assert coerce_date_key(datetime(2024, 1, 3, 3, 0)) == "2024-01-02"

    def test_date(self) -> None:
        """Plain dates keep their calendar day."""
        assert coerce_date_key(date(2024, 1, 15)) == "2024-01-15"

    def test_iso_timestamp(self) -> None:
        """ISO timestamps with a Z suffix are accepted."""
        assert coerce_date_key("2024-01-03T03:00:00Z") == "2024-01-02"

    @pytest.mark.parametrize(
        "text", ["01/15/2024", "Jan 15, 2024", "January 15, 2024", "15 Jan 2024"]
    )
    def test_text_formats(self, text: str) -> None:
        """Common date-only text formats are parsed."""
        assert coerce_date_key(text) == "2024-01-15"

    def test_unparseable_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        """Garbage yields None and logs a warning."""
        with caplog.at_level(logging.WARNING, logger="totalreturn.dates"):
            assert coerce_date_key("not a date") is None

        assert "unparseable" in caplog.text
