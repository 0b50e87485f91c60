"""
Best-effort timestamp parsing for exported chat rows.

Parsers are tried in a fixed priority order; the first one that returns a
value wins. When none does, the current time is used and a warning is logged,
so a malformed row never aborts assembly.
"""

import logging
import math
import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

# Day 0 of the spreadsheet serial calendar lines up with the Unix epoch at 25569
SPREADSHEET_EPOCH_OFFSET = 25569
SECONDS_PER_DAY = 86400

_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(.*)$")

_TIME_FORMATS = ["%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M:%S %p", "%H:%M:%S.%f"]

Parser = Callable[[Any], datetime | None]


def _is_blank(value: Any) -> bool:
    # Empty spreadsheet cells arrive as None, "" or NaN
    if isinstance(value, float):
        return math.isnan(value)
    return value is None or (isinstance(value, str) and not value.strip())


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime_instance(value: Any) -> datetime | None:
    """Accept values that are already datetimes (or plain dates)."""
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    return None


def parse_spreadsheet_serial(value: Any) -> datetime | None:
    """Interpret a number as a spreadsheet serial date (days since 1899-12-30)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    seconds = (value - SPREADSHEET_EPOCH_OFFSET) * SECONDS_PER_DAY
    try:
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=seconds)
    except (OverflowError, ValueError):
        return None


def parse_iso(value: Any) -> datetime | None:
    """Parse an ISO-8601 string such as 2024-01-15T10:30:00Z."""
    if not isinstance(value, str):
        return None
    try:
        return _as_utc(datetime.fromisoformat(value.strip()))
    except ValueError:
        return None


def _parse_time_of_day(text: str) -> time | None:
    text = text.strip().lstrip("T").strip()
    if not text:
        return time()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def _parse_slash_date(value: Any, month_first: bool) -> datetime | None:
    if not isinstance(value, str):
        return None
    match = _SLASH_DATE.match(value.strip())
    if not match:
        return None
    first, second, year, rest = match.groups()
    month, day = (first, second) if month_first else (second, first)
    try:
        day_part = date(int(year), int(month), int(day))
    except ValueError:
        return None
    time_part = _parse_time_of_day(rest)
    if time_part is None:
        return None
    return datetime.combine(day_part, time_part, tzinfo=timezone.utc)


def parse_month_first(value: Any) -> datetime | None:
    """Parse M/D/YYYY with an optional time of day."""
    return _parse_slash_date(value, month_first=True)


def parse_day_first(value: Any) -> datetime | None:
    """Parse D/M/YYYY with an optional time of day."""
    return _parse_slash_date(value, month_first=False)


# Order matters: 1/2/2024 is read as January 2nd before February 1st.
PARSER_CHAIN: list[Parser] = [
    parse_datetime_instance,
    parse_spreadsheet_serial,
    parse_iso,
    parse_month_first,
    parse_day_first,
]


def parse_timestamp(
    value: Any,
    now: Callable[[], datetime] | None = None,
    context: str = "",
) -> datetime:
    """
    Parse a loosely typed timestamp into a UTC-aware datetime.

    Args:
        value: Raw cell value (number, string, datetime or None)
        now: Clock used for the fallback (default: current UTC time)
        context: Extra text for log messages, e.g. "row 12"

    Returns:
        Parsed datetime, or the fallback "now" when nothing matched
    """
    clock = now or (lambda: datetime.now(timezone.utc))

    if _is_blank(value):
        logger.debug("Missing timestamp%s, using current time", f" at {context}" if context else "")
        return _as_utc(clock())

    for parser in PARSER_CHAIN:
        parsed = parser(value)
        if parsed is not None:
            return parsed

    logger.warning(
        "Invalid date%s: %r, using current time", f" at {context}" if context else "", value
    )
    return _as_utc(clock())


def date_string(value: datetime) -> str:
    """Render the UTC calendar date of a timestamp as YYYY-MM-DD."""
    return _as_utc(value).date().isoformat()
