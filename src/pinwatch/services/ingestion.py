# src/pinwatch/services/ingestion.py
"""Submission intake: validation, quota, moderation, geocoding and upsert."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pinwatch.core.settings import settings
from pinwatch.db.time import is_same_utc_day, parse_iso, utcnow
from pinwatch.models import FlaggedSubmission
from pinwatch.models.report import REPORT_STATE_PENDING
from pinwatch.services.address import make_address_key, sanitize_input
from pinwatch.services.errors import (
    InternalError,
    ModerationRejected,
    NotFound,
    QuotaExceeded,
    ValidationError,
)
from pinwatch.services.geocoding import Geocoder
from pinwatch.services.merge import ReportRecord
from pinwatch.services.moderation import ContentModerator
from pinwatch.services.rate_limit import SUBMISSION_BUCKET, RateLimiter, client_key_for
from pinwatch.services.repository import LiveReportRepository
from pinwatch.services.stats import StatsAggregator

logger = logging.getLogger(__name__)

MESSAGE_CREATED = "Data logged and saved successfully"
MESSAGE_MERGED = "Location updated successfully"


@dataclass(frozen=True)
class Submission:
    added_at: str | None
    address: str | None
    additional_info: str | None = None
    image_path: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class SubmissionResult:
    message: str
    formatted_address: str
    address_key: str
    created: bool


class ModerationGate:
    """Admits a submission into the pending bucket or rejects it.

    Checks run cheapest first and each failure aborts before any paid
    provider call or store write that follows it.
    """

    def __init__(
        self,
        moderator: ContentModerator,
        geocoder: Geocoder,
        rate_limiter: RateLimiter | None = None,
        stats: StatsAggregator | None = None,
        pending: LiveReportRepository | None = None,
        daily_limit: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.moderator = moderator
        self.geocoder = geocoder
        self.rate_limiter = rate_limiter or RateLimiter(clock=clock)
        self.stats = stats or StatsAggregator(clock=clock)
        self.pending = pending or LiveReportRepository(REPORT_STATE_PENDING)
        self.daily_limit = daily_limit or settings.submission_daily_limit
        self._clock = clock

    def _validate(self, submission: Submission) -> datetime:
        if not submission.added_at or not submission.address:
            raise ValidationError("Missing required fields: addedAt and address")
        if settings.require_image and not submission.image_path:
            raise ValidationError("Missing required fields: imagePath")
        if settings.require_additional_info and not submission.additional_info:
            raise ValidationError("Missing required fields: additionalInfo")

        added_at = parse_iso(submission.added_at)
        if added_at is None:
            raise ValidationError("Invalid date format for addedAt. Must be ISO 8601 format.")
        if not is_same_utc_day(added_at, self._clock()):
            raise ValidationError(
                "Invalid date format for addedAt. Must be today's date in ISO 8601 format."
            )
        return added_at

    def _log_flagged(self, db: Session, submission: Submission, address: str, info: str) -> None:
        db.add(
            FlaggedSubmission(
                added_at=submission.added_at or "",
                address=address,
                additional_info=info,
                logged_at=self._clock(),
            )
        )
        db.commit()

    async def submit(
        self,
        db: Session,
        submission: Submission,
        client_ip: str | None,
    ) -> SubmissionResult:
        """Validate and store one submission.

        Raises:
            ValidationError: Missing or malformed fields, or an unusable address.
            ClientIdentityError: The client address is unknown.
            QuotaExceeded: The client used up today's submissions.
            ModerationRejected: The additional info was flagged.
            NotFound: The address did not geocode to a street-level place.
            InternalError: A store write failed.
        """
        added_at = self._validate(submission)

        address = sanitize_input(submission.address, settings.max_input_length)
        info = sanitize_input(submission.additional_info, settings.max_input_length)
        if not address:
            raise ValidationError("Invalid address provided")

        client_key = client_key_for(client_ip)
        try:
            exceeded = self.rate_limiter.check_and_increment(
                db, client_key, SUBMISSION_BUCKET, self.daily_limit
            )
        except SQLAlchemyError as exc:
            logger.error("Rate limit check failed", exc_info=True)
            raise InternalError() from exc
        if exceeded:
            raise QuotaExceeded()

        verdict = await self.moderator.classify(info)
        if verdict.flagged:
            try:
                self._log_flagged(db, submission, address, info)
            except SQLAlchemyError:
                db.rollback()
                logger.error("Failed to log flagged submission", exc_info=True)
            logger.info("Rejected flagged submission for %r", address)
            raise ModerationRejected()

        geocoded = await self.geocoder.resolve(address)
        if geocoded is None:
            raise NotFound("Please provide a valid address that can be found on the map")

        key = make_address_key(geocoded.formatted_address)
        if not key:
            raise ValidationError("Could not generate valid address key")

        record = ReportRecord(
            key=key,
            address=geocoded.formatted_address,
            additional_info=info,
            lat=geocoded.lat,
            lng=geocoded.lng,
            added_at=added_at,
            image_path=submission.image_path,
            image_url=submission.image_url,
        )
        try:
            created = self._upsert(db, record)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to store report %s", key, exc_info=True)
            raise InternalError() from exc

        if created:
            try:
                self.stats.record_new_report(db, added_at)
            except SQLAlchemyError:
                # The report is stored; recalculation repairs the counters.
                db.rollback()
                logger.error("Failed to update stats for report %s", key, exc_info=True)

        logger.info("%s report %s", "Created" if created else "Merged", key)
        return SubmissionResult(
            message=MESSAGE_CREATED if created else MESSAGE_MERGED,
            formatted_address=geocoded.formatted_address,
            address_key=key,
            created=created,
        )

    def _upsert(self, db: Session, record: ReportRecord) -> bool:
        try:
            return self._upsert_once(db, record)
        except IntegrityError:
            # A concurrent request inserted the same key; merge into it.
            db.rollback()
            return self._upsert_once(db, record)

    def _upsert_once(self, db: Session, record: ReportRecord) -> bool:
        existing = self.pending.get(db, record.key, for_update=True)
        if existing is None:
            self.pending.put(db, record)
            db.commit()
            return True

        if (
            existing.added_at == record.added_at
            and existing.additional_info == record.additional_info
            and existing.image_path == record.image_path
        ):
            # Client retry of the submission already stored.
            db.rollback()
            return False

        self.pending.put(
            db,
            replace(record, reported_count=existing.reported_count + 1),
        )
        db.commit()
        return False
