# src/pinwatch/services/maintenance.py
"""Operator-run migrations: key consolidation and range deletion."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pinwatch.db.time import parse_date_or_iso
from pinwatch.models.report import REPORT_STATE_PENDING, REPORT_STATE_VERIFIED
from pinwatch.services.errors import InternalError, ValidationError
from pinwatch.services.merge import consolidate
from pinwatch.services.repository import (
    ArchiveReportRepository,
    LiveReportRepository,
    ReportRepository,
    live_repositories,
)

logger = logging.getLogger(__name__)

CONSOLIDATION_TARGETS = (REPORT_STATE_PENDING, REPORT_STATE_VERIFIED, "archive")
CONFIRM_ANSWERS = {"y", "yes"}
TOP_ADDRESS_COUNT = 5


def repository_for(target: str, batch_size: int | None = None) -> ReportRepository:
    """Return the repository named by a CLI target."""
    if target == "archive":
        return ArchiveReportRepository(batch_size)
    if target in (REPORT_STATE_PENDING, REPORT_STATE_VERIFIED):
        return LiveReportRepository(target, batch_size)
    raise ValidationError(f"Unknown target: {target}. Use one of {', '.join(CONSOLIDATION_TARGETS)}")


@dataclass
class ConsolidationResult:
    processed: int
    unique: int
    top_addresses: list[tuple[str, int]] = field(default_factory=list)

    @property
    def merged(self) -> int:
        return self.processed - self.unique


class ConsolidationMigration:
    """Re-keys one bucket by address key, merging rows that collide."""

    def __init__(self, repository: ReportRepository) -> None:
        self.repository = repository

    def run(self, db: Session) -> ConsolidationResult:
        records = self.repository.list_all(db)
        merged = consolidate(records)

        try:
            self.repository.replace_all(db, merged.values())
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Consolidation of %s failed; no rows changed", self.repository.name, exc_info=True)
            raise InternalError() from exc

        ranked = sorted(merged.values(), key=lambda record: record.reported_count, reverse=True)
        result = ConsolidationResult(
            processed=len(records),
            unique=len(merged),
            top_addresses=[
                (record.address, record.reported_count) for record in ranked[:TOP_ADDRESS_COUNT]
            ],
        )
        logger.info(
            "Consolidated %s: %s rows into %s unique addresses",
            self.repository.name,
            result.processed,
            result.unique,
        )
        return result


@dataclass
class DeletionResult:
    message: str
    live: int = 0
    archive: int = 0

    @property
    def deleted(self) -> dict[str, int]:
        return {"live": self.live, "archive": self.archive}


class RangeDeleter:
    """Deletes every report added at or after a cutoff, after confirmation."""

    def __init__(
        self,
        live: list[LiveReportRepository] | None = None,
        archive: ArchiveReportRepository | None = None,
        confirm: Callable[[str], str] = input,
    ) -> None:
        self.live = live or live_repositories()
        self.archive = archive or ArchiveReportRepository()
        self.confirm = confirm

    def run(self, db: Session, cutoff_text: str) -> DeletionResult:
        """Delete reports from ``cutoff_text`` onwards.

        ``cutoff_text`` is ``YYYY-MM-DD`` (midnight UTC) or a millisecond
        ISO timestamp; anything else is rejected before scanning.
        """
        cutoff = parse_date_or_iso(cutoff_text)
        if cutoff is None:
            raise ValidationError(
                f"Invalid date format: {cutoff_text}. Please use ISO 8601 format "
                '(e.g., "2024-10-25" or "2024-10-25T12:30:00.000Z")'
            )

        live_matches = [
            (repository, [record.key for record in repository.list_added_since(db, cutoff)])
            for repository in self.live
        ]
        archive_keys = [record.key for record in self.archive.list_added_since(db, cutoff)]
        total = sum(len(keys) for _, keys in live_matches) + len(archive_keys)

        if total == 0:
            return DeletionResult("No reports found to delete")

        answer = self.confirm(f"Delete {total} reports? [y/n]: ")
        if answer.strip().lower() not in CONFIRM_ANSWERS:
            return DeletionResult("Deletion cancelled by user")

        result = DeletionResult(f"Successfully deleted {total} reports from {cutoff_text} onwards")
        try:
            for repository, keys in live_matches:
                result.live += repository.delete_keys(db, keys)
            db.commit()
            result.archive = self.archive.delete_keys(db, archive_keys)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Range deletion from %s failed", cutoff_text, exc_info=True)
            raise InternalError() from exc

        logger.info(
            "Deleted %s live and %s archived reports from %s",
            result.live,
            result.archive,
            cutoff_text,
        )
        return result
