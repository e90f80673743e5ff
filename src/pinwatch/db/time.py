# src/pinwatch/db/time.py
"""Time utilities for models and services.

Report timestamps travel as strict ISO-8601 strings with millisecond
precision and a literal ``Z`` suffix, e.g. ``2024-10-25T10:00:00.000Z``.
"""

import re
from datetime import UTC, date, datetime, timedelta

ISO_MILLIS_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
DATE_ONLY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_iso(value: datetime) -> str:
    """Serialize ``value`` as ``YYYY-MM-DDTHH:MM:SS.sssZ``."""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(text: object) -> datetime | None:
    """Parse a strict millisecond ISO timestamp.

    Returns None unless ``text`` matches the exact format and survives a
    round trip through ``format_iso`` unchanged (so ``2024-02-30`` fails).
    """
    if not isinstance(text, str) or not ISO_MILLIS_PATTERN.match(text):
        return None
    try:
        parsed = datetime.strptime(text, "%Y-%m-%dT%H:%M:%S.%fZ").replace(tzinfo=UTC)
    except ValueError:
        return None
    if format_iso(parsed) != text:
        return None
    return parsed


def parse_date_or_iso(text: object) -> datetime | None:
    """Accept either ``YYYY-MM-DD`` (midnight UTC) or a strict ISO timestamp."""
    if isinstance(text, str) and DATE_ONLY_PATTERN.match(text):
        try:
            day = date.fromisoformat(text)
        except ValueError:
            return None
        return datetime(day.year, day.month, day.day, tzinfo=UTC)
    return parse_iso(text)


def is_same_utc_day(value: datetime, now: datetime) -> bool:
    """Return True when both instants fall on the same UTC calendar day."""
    return as_utc(value).date() == as_utc(now).date()


def week_window_start(now: datetime, days: int = 7) -> datetime:
    """Return the inclusive lower bound of the trailing ``days`` window."""
    return as_utc(now) - timedelta(days=days)
