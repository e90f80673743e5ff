# mypy: ignore-errors
"""Tests for the submission intake pipeline."""

from datetime import timedelta

import pytest

from pinwatch.core.settings import settings
from pinwatch.db.time import format_iso
from pinwatch.models import FlaggedSubmission, LiveReport
from pinwatch.models.report import REPORT_STATE_PENDING
from pinwatch.services.errors import (
    ClientIdentityError,
    ModerationRejected,
    NotFound,
    QuotaExceeded,
    ValidationError,
)
from pinwatch.services.ingestion import (
    MESSAGE_CREATED,
    MESSAGE_MERGED,
    ModerationGate,
    Submission,
)
from pinwatch.services.repository import LiveReportRepository
from pinwatch.services.stats import StatsAggregator
from tests.support import FIXED_NOW, MAIN_ST_KEY

CLIENT_IP = "198.51.100.20"


@pytest.fixture()
def gate(moderator, geocoder, clock) -> ModerationGate:
    return ModerationGate(moderator=moderator, geocoder=geocoder, daily_limit=3, clock=clock)


def _submission(**overrides) -> Submission:
    values = {
        "added_at": format_iso(FIXED_NOW),
        "address": "123 Main St",
        "additional_info": "Two vehicles parked outside",
        "image_path": "uploads/abc/photo.jpg",
    }
    values.update(overrides)
    return Submission(**values)


@pytest.mark.asyncio
async def test_new_submission_creates_pending_report(gate, db_session, clock) -> None:
    """A valid submission lands in the pending bucket with count 1."""
    result = await gate.submit(db_session, _submission(), CLIENT_IP)

    assert result.message == MESSAGE_CREATED
    assert result.created is True
    assert result.formatted_address == "123 Main St, Springfield, IL 62701, USA"

    record = LiveReportRepository(REPORT_STATE_PENDING).get(db_session, MAIN_ST_KEY)
    assert record.reported_count == 1
    assert record.address == result.formatted_address
    assert record.lat == pytest.approx(40.7128)
    assert record.image_path == "uploads/abc/photo.jpg"

    snapshot = StatsAggregator(clock=clock).snapshot(db_session)
    assert (snapshot.total, snapshot.today, snapshot.this_week) == (1, 1, 1)


@pytest.mark.asyncio
async def test_same_address_merges_into_one_row(gate, db_session, clock) -> None:
    """Spelling variants geocoding to one place merge and keep the latest fields."""
    first_at = FIXED_NOW.replace(hour=10)
    second_at = FIXED_NOW.replace(hour=11)
    await gate.submit(
        db_session,
        _submission(added_at=format_iso(first_at), additional_info="first"),
        CLIENT_IP,
    )
    result = await gate.submit(
        db_session,
        _submission(
            added_at=format_iso(second_at),
            address="123  main   st",
            additional_info="second",
        ),
        CLIENT_IP,
    )

    assert result.message == MESSAGE_MERGED
    assert db_session.query(LiveReport).count() == 1
    record = LiveReportRepository(REPORT_STATE_PENDING).get(db_session, MAIN_ST_KEY)
    assert record.reported_count == 2
    assert record.additional_info == "second"
    assert record.added_at == second_at

    # Merges do not touch the running counters.
    assert StatsAggregator(clock=clock).snapshot(db_session).total == 1


@pytest.mark.asyncio
async def test_identical_retry_is_not_counted_twice(gate, db_session) -> None:
    """Resending the exact stored submission leaves the count alone."""
    await gate.submit(db_session, _submission(), CLIENT_IP)
    result = await gate.submit(db_session, _submission(), CLIENT_IP)

    assert result.created is False
    record = LiveReportRepository(REPORT_STATE_PENDING).get(db_session, MAIN_ST_KEY)
    assert record.reported_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"added_at": None}, "Missing required fields: addedAt and address"),
        ({"address": ""}, "Missing required fields: addedAt and address"),
        ({"added_at": "2024-10-25T15:00:00Z"}, "Must be ISO 8601 format."),
        ({"added_at": "2024-10-24T15:00:00.000Z"}, "Must be today's date in ISO 8601 format."),
        ({"address": "<b></b>"}, "Invalid address provided"),
    ],
)
async def test_validation_failures(gate, db_session, moderator, geocoder, overrides, message) -> None:
    """Malformed input is rejected before any provider call."""
    with pytest.raises(ValidationError) as exc_info:
        await gate.submit(db_session, _submission(**overrides), CLIENT_IP)

    assert message in exc_info.value.message
    assert moderator.calls == []
    assert geocoder.calls == []
    assert db_session.query(LiveReport).count() == 0


@pytest.mark.asyncio
async def test_required_info_and_image_settings(gate, db_session, mocker) -> None:
    """Deployments can require additional info and an image."""
    mocker.patch.object(settings, "require_additional_info", True)
    with pytest.raises(ValidationError, match="additionalInfo"):
        await gate.submit(db_session, _submission(additional_info=""), CLIENT_IP)

    mocker.patch.object(settings, "require_image", True)
    with pytest.raises(ValidationError, match="imagePath"):
        await gate.submit(db_session, _submission(image_path=None), CLIENT_IP)


@pytest.mark.asyncio
async def test_unknown_client_is_blocked(gate, db_session) -> None:
    """Callers without an address are refused."""
    with pytest.raises(ClientIdentityError):
        await gate.submit(db_session, _submission(), "unknown")


@pytest.mark.asyncio
async def test_quota_is_enforced_before_providers(gate, db_session, geocoder) -> None:
    """The fourth submission of the day is refused without geocoding."""
    for _ in range(3):
        await gate.submit(db_session, _submission(address="9 Oak Ave", additional_info="x"), CLIENT_IP)
    calls_before = len(geocoder.calls)

    with pytest.raises(QuotaExceeded) as exc_info:
        await gate.submit(db_session, _submission(), CLIENT_IP)

    assert exc_info.value.message == "Daily limit reached. Try again tomorrow."
    assert len(geocoder.calls) == calls_before


@pytest.mark.asyncio
async def test_quota_resets_next_day(gate, db_session, clock) -> None:
    """A new UTC day restores the quota."""
    for _ in range(3):
        await gate.submit(db_session, _submission(), CLIENT_IP)

    clock.advance(days=1)
    result = await gate.submit(
        db_session,
        _submission(added_at=format_iso(clock.now), additional_info="next day"),
        CLIENT_IP,
    )
    assert result.message == MESSAGE_MERGED


@pytest.mark.asyncio
async def test_flagged_text_is_logged_and_rejected(gate, db_session, geocoder) -> None:
    """Flagged info is recorded for review and never geocoded."""
    with pytest.raises(ModerationRejected) as exc_info:
        await gate.submit(
            db_session,
            _submission(additional_info="some <i>abusive</i> text"),
            CLIENT_IP,
        )

    assert "negative or abusive language" in exc_info.value.message
    assert geocoder.calls == []
    logged = db_session.query(FlaggedSubmission).one()
    assert logged.additional_info == "some abusive text"
    assert logged.address == "123 Main St"
    assert db_session.query(LiveReport).count() == 0


@pytest.mark.asyncio
async def test_ungeocodable_address_is_not_found(gate, db_session) -> None:
    """Addresses the geocoder cannot place are rejected."""
    with pytest.raises(NotFound, match="valid address that can be found on the map"):
        await gate.submit(db_session, _submission(address="Nowhere Lane"), CLIENT_IP)
    assert db_session.query(LiveReport).count() == 0


@pytest.mark.asyncio
async def test_empty_key_from_geocoder_is_rejected(moderator, db_session, clock) -> None:
    """A formatted address with no key characters cannot be stored."""
    from pinwatch.services.geocoding import GeocodeResult
    from tests.support import FakeGeocoder

    geocoder = FakeGeocoder({"123 main st": GeocodeResult(1.0, 2.0, "!!!")})
    gate = ModerationGate(moderator=moderator, geocoder=geocoder, clock=clock)

    with pytest.raises(ValidationError, match="Could not generate valid address key"):
        await gate.submit(db_session, _submission(), CLIENT_IP)


@pytest.mark.asyncio
async def test_older_today_submission_still_counts_for_today(gate, db_session, clock) -> None:
    """Any timestamp on the current UTC day is accepted."""
    early = FIXED_NOW.replace(hour=0, minute=0, second=0) + timedelta(milliseconds=1)
    result = await gate.submit(db_session, _submission(added_at=format_iso(early)), CLIENT_IP)
    assert result.created is True
    assert StatsAggregator(clock=clock).snapshot(db_session).today == 1
