# mypy: ignore-errors
"""Tests for timestamp parsing and formatting helpers."""

from datetime import UTC, datetime

from pinwatch.db.time import (
    format_iso,
    is_same_utc_day,
    parse_date_or_iso,
    parse_iso,
    week_window_start,
)


def test_parse_iso_accepts_millisecond_z_format() -> None:
    """Strict timestamps parse to aware UTC datetimes."""
    parsed = parse_iso("2024-10-25T10:00:00.123Z")
    assert parsed == datetime(2024, 10, 25, 10, 0, 0, 123000, tzinfo=UTC)


def test_parse_iso_rejects_loose_formats() -> None:
    """Anything but the exact millisecond Z format is rejected."""
    for text in (
        "2024-10-25",
        "2024-10-25T10:00:00Z",
        "2024-10-25T10:00:00.000+00:00",
        "2024-10-25 10:00:00.000Z",
        "not a date",
        None,
        12345,
    ):
        assert parse_iso(text) is None


def test_parse_iso_rejects_impossible_dates() -> None:
    """Calendar-invalid values fail even when the shape matches."""
    assert parse_iso("2024-02-30T10:00:00.000Z") is None
    assert parse_iso("2024-10-25T25:00:00.000Z") is None


def test_format_iso_truncates_to_milliseconds() -> None:
    """Microseconds are truncated, not rounded."""
    value = datetime(2024, 10, 25, 10, 0, 0, 999999, tzinfo=UTC)
    assert format_iso(value) == "2024-10-25T10:00:00.999Z"


def test_format_iso_treats_naive_values_as_utc() -> None:
    """Naive values read back from SQLite are interpreted as UTC."""
    assert format_iso(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"


def test_parse_date_or_iso_accepts_dates_and_timestamps() -> None:
    """Cutoffs accept a bare date (midnight UTC) or a strict timestamp."""
    assert parse_date_or_iso("2024-10-25") == datetime(2024, 10, 25, tzinfo=UTC)
    assert parse_date_or_iso("2024-10-25T12:30:00.000Z") == datetime(
        2024, 10, 25, 12, 30, tzinfo=UTC
    )
    assert parse_date_or_iso("2024-13-01") is None
    assert parse_date_or_iso("yesterday") is None


def test_same_utc_day_and_week_window() -> None:
    """Day comparison uses the UTC calendar; the week window is inclusive."""
    now = datetime(2024, 10, 25, 0, 30, tzinfo=UTC)
    assert is_same_utc_day(datetime(2024, 10, 25, 23, 59, tzinfo=UTC), now)
    assert not is_same_utc_day(datetime(2024, 10, 24, 23, 59, tzinfo=UTC), now)
    assert week_window_start(now) == datetime(2024, 10, 18, 0, 30, tzinfo=UTC)
