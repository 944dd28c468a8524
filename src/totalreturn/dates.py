"""America/New_York date helpers.

Provider timestamps are UTC start-of-day markers. Every join between bars,
splits and dividends happens on the New York calendar date those instants fall
on, represented as a ``YYYY-MM-DD`` string.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from totalreturn.types import CalendarDateKey

logger = logging.getLogger(__name__)

NY_TIME_ZONE = "America/New_York"
NY_TZ = ZoneInfo(NY_TIME_ZONE)

_DATE_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# Date-only text formats accepted for calendar bounds, tried in order
_DATE_TEXT_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%b %d, %Y", "%B %d, %Y", "%d %b %Y")

# Epoch values above this are taken to be milliseconds
_MILLISECONDS_THRESHOLD = 1e12


def _format_key(value: date) -> CalendarDateKey:
    return CalendarDateKey(f"{value.year:04d}-{value.month:02d}-{value.day:02d}")


def is_date_key(text: str) -> bool:
    """Return True if ``text`` has the ``YYYY-MM-DD`` shape."""
    return bool(_DATE_KEY_RE.match(text))


def to_ny_date_key(epoch_seconds: float) -> CalendarDateKey:
    """Convert an epoch-seconds instant to its New York calendar date.

    Fractional seconds are floored. Input that is not a usable number falls back
    to the epoch itself.

    :param epoch_seconds: Seconds since 1970-01-01T00:00:00Z.
    :returns: Date key as observed in America/New_York.
    """
    try:
        moment = datetime.fromtimestamp(math.floor(float(epoch_seconds)), tz=NY_TZ)
    except (TypeError, ValueError, OverflowError, OSError):
        moment = datetime.fromtimestamp(0, tz=NY_TZ)
    return _format_key(moment)


def ny_today(now: datetime | None = None) -> CalendarDateKey:
    """Today's date key in New York.

    :param now: Reference instant; naive values are taken as UTC. Defaults to
        the current time.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return _format_key(now.astimezone(NY_TZ))


def clamp_to_valid_date(key: str) -> CalendarDateKey:
    """Pull an impossible date back to the last valid day of its month.

    The day is decremented until the date exists, stopping at the 28th
    (``2019-02-29`` becomes ``2019-02-28``). Text that is not a date key is
    returned unchanged.
    """
    match = _DATE_KEY_RE.match(key)
    if not match:
        return CalendarDateKey(key)
    year, month, day = (int(part) for part in match.groups())

    while day > 28:
        try:
            return _format_key(date(year, month, day))
        except ValueError:
            day -= 1
    try:
        return _format_key(date(year, month, day))
    except ValueError:
        return CalendarDateKey(f"{year:04d}-{month:02d}-28")


def ny_years_ago_boundary(key: str, years: int) -> CalendarDateKey:
    """Date key ``years`` calendar years before ``key``, clamped to a valid date."""
    match = _DATE_KEY_RE.match(key)
    if not match:
        return CalendarDateKey(key)
    year, month, day = match.groups()
    return clamp_to_valid_date(f"{int(year) - years:04d}-{month}-{day}")


def ny_five_years_ago_boundary(key: str) -> CalendarDateKey:
    """Start boundary of the trailing five-year horizon ending on ``key``."""
    return ny_years_ago_boundary(key, 5)


def coerce_date_key(
    value: str | int | float | date | datetime | None,
) -> CalendarDateKey | None:
    """Normalize a calendar bound to a New York date key.

    Accepts a date key, epoch seconds (or milliseconds), ``date``/``datetime``
    objects, ISO timestamps, and a few common date-only text formats. Instants
    are converted to New York time; naive datetimes are taken as UTC.

    :returns: Date key, or None when ``value`` is None or cannot be parsed.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return _format_key(value.astimezone(NY_TZ))

    if isinstance(value, date):
        return _format_key(value)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > _MILLISECONDS_THRESHOLD else value
        return to_ny_date_key(seconds)

    text = str(value).strip()
    if is_date_key(text):
        return CalendarDateKey(text)

    try:
        return coerce_date_key(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _DATE_TEXT_FORMATS:
        try:
            return _format_key(datetime.strptime(text, fmt).date())
        except ValueError:
            continue

    logger.warning("Ignoring unparseable date bound %r", value)
    return None


__all__ = [
    "NY_TIME_ZONE",
    "NY_TZ",
    "is_date_key",
    "to_ny_date_key",
    "ny_today",
    "clamp_to_valid_date",
    "ny_years_ago_boundary",
    "ny_five_years_ago_boundary",
    "coerce_date_key",
]
