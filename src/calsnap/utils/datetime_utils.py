"""
Calsnap Datetime Utilities

This module provides datetime parsing and formatting utilities:
- parse_datetime: Parse an ISO 8601 string into a UTC datetime (None when invalid)
- to_utc_iso: Format a datetime as second precision UTC ISO 8601
- shift: Add a duration to a datetime (None when the result is out of range)
- utc_now: Current instant in UTC, truncated to seconds
- resolve_timezone: Look up an IANA timezone by name
- format_in_timezone: Render an instant in a named timezone with UTC fallback
- to_ics_stamp: Format a datetime in the iCalendar UTC form (YYYYMMDDTHHMMSSZ)
"""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple

import pytz

from calsnap.constants import ICS_SETTINGS


def parse_datetime(value) -> Optional[datetime]:
    """
    Parse a datetime value into an aware UTC datetime.

    Supports UTC ISO datetimes (YYYY-MM-DDTHH:MM:SSZ), offset datetimes,
    naive datetimes (assumed UTC), simple dates (midnight UTC) and
    datetime objects.

    Args:
        value: String or datetime to parse

    Returns:
        datetime in UTC, or None when the value is not a real calendar instant
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    try:
        if dt.tzinfo is None:
            dt = pytz.UTC.localize(dt)
        return dt.astimezone(pytz.UTC)
    except (ValueError, OverflowError):
        return None


def to_utc_iso(dt: datetime) -> str:
    """
    Format a datetime as UTC ISO 8601 with second precision.

    Args:
        dt: Aware or naive (assumed UTC) datetime

    Returns:
        String such as 2025-03-01T10:00:00Z
    """
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def shift(dt: datetime, delta: timedelta) -> Optional[datetime]:
    """Return dt + delta, or None when the result falls outside the datetime range."""
    try:
        return dt + delta
    except OverflowError:
        return None


def utc_now() -> datetime:
    return datetime.now(pytz.UTC).replace(microsecond=0)


def resolve_timezone(name: Optional[str]):
    """Return the pytz timezone for an IANA name, or None if unknown."""
    if not name:
        return None
    try:
        return pytz.timezone(name.strip())
    except (pytz.UnknownTimeZoneError, AttributeError):
        return None


def format_in_timezone(dt: datetime, tz_name: Optional[str]) -> Tuple[str, str]:
    """
    Render an instant in the user's timezone.

    Falls back to UTC when the timezone name is missing or unrecognized.

    Args:
        dt: Aware datetime
        tz_name: IANA timezone name (e.g. America/New_York)

    Returns:
        Tuple of (formatted local time, timezone name actually used)
    """
    tz = resolve_timezone(tz_name)
    used = tz.zone if tz else "UTC"
    local = dt.astimezone(tz or pytz.UTC)
    return local.strftime("%Y-%m-%d %H:%M:%S %Z"), used


def to_ics_stamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC).strftime(ICS_SETTINGS.STAMP_FORMAT)
