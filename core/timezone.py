"""
Civil timezone utilities.

All user-facing dates and times are interpreted in a single fixed civil zone
(Europe/Oslo by default). Event instants are stored as absolute UTC datetimes;
every "today"/"tomorrow" decision is made here against the civil zone, never by
comparing raw date strings.
"""

import re
from datetime import datetime, timedelta, timezone

import pytz

from .config import get_civil_timezone

DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class CivilTimeParseError(ValueError):
    """Raised when a civil date or time string cannot be parsed."""


def _get_zone(tz_name: str | None):
    return pytz.timezone(tz_name or get_civil_timezone())


def ensure_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime (naive datetimes are treated as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def zone_offset_at(instant: datetime, tz_name: str | None = None) -> timedelta:
    """UTC offset of the civil zone at an absolute instant."""
    return ensure_utc(instant).astimezone(_get_zone(tz_name)).utcoffset()


def _parse_civil_fields(date_str: str, time_str: str) -> datetime:
    date_match = DATE_PATTERN.match((date_str or "").strip())
    time_match = TIME_PATTERN.match((time_str or "").strip())
    if not date_match or not time_match:
        raise CivilTimeParseError(f"Invalid date/time input: {date_str!r} {time_str!r}")

    year, month, day = (int(part) for part in date_match.groups())
    hour, minute = int(time_match.group(1)), int(time_match.group(2))
    try:
        return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
    except ValueError as e:
        raise CivilTimeParseError(
            f"Invalid date/time input: {date_str!r} {time_str!r}"
        ) from e


def resolve_civil_instant(
    date_str: str,
    time_str: str,
    tz_name: str | None = None,
) -> datetime:
    """
    Interpret a civil date + time as wall-clock time in the civil zone.

    Resolution is two-pass: take the zone offset at the naive wall-clock value
    read as UTC and apply it, then look the offset up again at the resulting
    instant. If the two differ (the value straddles a DST transition), the
    second offset wins. Non-existent spring-forward times therefore resolve to
    the pre-transition offset, and ambiguous fall-back times to the
    post-transition one.

    Args:
        date_str: "YYYY-MM-DD"
        time_str: "HH:MM" (seconds are accepted and ignored)
        tz_name: Civil zone override (defaults to CIVIL_TIMEZONE)

    Returns:
        Aware UTC datetime

    Raises:
        CivilTimeParseError: If either component is malformed
    """
    naive_utc = _parse_civil_fields(date_str, time_str)

    first_offset = zone_offset_at(naive_utc, tz_name)
    resolved = naive_utc - first_offset

    second_offset = zone_offset_at(resolved, tz_name)
    if second_offset != first_offset:
        resolved = naive_utc - second_offset

    return resolved


def to_civil(instant: datetime, tz_name: str | None = None) -> datetime:
    """Convert an absolute instant to a civil-zone aware datetime."""
    return ensure_utc(instant).astimezone(_get_zone(tz_name))


def civil_date_key(instant: datetime, tz_name: str | None = None) -> str:
    """Calendar date (YYYY-MM-DD) of an instant in the civil zone."""
    return to_civil(instant, tz_name).strftime("%Y-%m-%d")


def tomorrow_civil_date_key(now: datetime, tz_name: str | None = None) -> str:
    """
    Calendar date of "tomorrow" in the civil zone.

    Derived from today's civil date as a UTC midnight plus one calendar day,
    not from now + 24h (which is wrong on 23h/25h DST days).
    """
    today = to_civil(now, tz_name).date()
    today_midnight_utc = datetime(
        today.year, today.month, today.day, tzinfo=timezone.utc
    )
    return (today_midnight_utc + timedelta(days=1)).strftime("%Y-%m-%d")


def civil_hour(instant: datetime, tz_name: str | None = None) -> int:
    """Hour of day (0-23) of an instant in the civil zone."""
    return to_civil(instant, tz_name).hour


def format_event_datetime(instant: datetime, tz_name: str | None = None) -> str:
    """
    Format an event instant for humans in the civil zone.

    Returns:
        Formatted string like "Thursday 11 June 2026 at 10:00"
    """
    local_dt = to_civil(instant, tz_name)
    return (
        f"{local_dt.strftime('%A')} {local_dt.day} "
        f"{local_dt.strftime('%B %Y')} at {local_dt.strftime('%H:%M')}"
    )
