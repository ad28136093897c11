"""
Time window resolution for analytical queries.
Turns a symbolic range token and an optional anchor into a UTC interval.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from pydantic import TypeAdapter, ValidationError

from ..api.schemas import TimeWindow
from ..core.errors import InvalidParameter

RANGE_DURATIONS = {
    "30d": timedelta(days=30),
    "7d": timedelta(days=7),
    "24h": timedelta(hours=24),
}

# Unrecognized or missing range tokens fall back to this
DEFAULT_DURATION = timedelta(hours=24)

_datetime_adapter = TypeAdapter(datetime)


def range_duration(range_token: Any) -> timedelta:
    """Map a range token to its duration; unknown tokens mean 24 hours."""
    if not isinstance(range_token, str):
        return DEFAULT_DURATION
    return RANGE_DURATIONS.get(range_token, DEFAULT_DURATION)


def parse_anchor(anchor: Any) -> datetime:
    """
    Parse an explicit anchor into an aware UTC datetime.

    Accepts ISO-8601 strings, unix timestamps and datetime objects. Naive
    values are taken to be UTC already.

    Raises:
        InvalidParameter: If the anchor is not a real timestamp
    """
    if isinstance(anchor, bool) or anchor == "":
        raise InvalidParameter("invalid start time")
    try:
        parsed = _datetime_adapter.validate_python(anchor)
    except ValidationError:
        raise InvalidParameter("invalid start time")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        raise InvalidParameter("invalid start time")


def resolve_window(
    range_token: Any = None,
    anchor: Any = None,
    now: Optional[datetime] = None,
) -> TimeWindow:
    """
    Resolve a range token and optional anchor into a concrete window.

    With an anchor the window runs forward from it; without one it runs
    backward from ``now`` (the current instant unless given).
    """
    duration = range_duration(range_token)

    if anchor is not None:
        start = parse_anchor(anchor)
        try:
            end = start + duration
        except OverflowError:
            raise InvalidParameter("invalid start time")
        return TimeWindow(start=start, end=end)

    end = now or datetime.now(timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    try:
        start = end - duration
    except OverflowError:
        raise InvalidParameter("invalid time range")
    return TimeWindow(start=start, end=end)
