# src/pinwatch/services/archival.py
"""Nightly move of aged-out live reports into the archive."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pinwatch.core.settings import settings
from pinwatch.db.time import utcnow
from pinwatch.services.merge import ReportRecord, merge_most_recent
from pinwatch.services.rate_limit import RateLimiter
from pinwatch.services.repository import (
    ArchiveReportRepository,
    LiveReportRepository,
    live_repositories,
)
from pinwatch.services.stats import StatsAggregator

logger = logging.getLogger(__name__)


@dataclass
class ArchivalResult:
    attempted: int = 0
    moved: int = 0
    merged: int = 0
    failed: int = 0
    # Sum of reported_count over moved rows.
    removed_count: int = 0
    purged_rate_limits: int = 0

    @property
    def complete(self) -> bool:
        return self.failed == 0


class ArchivalMigrator:
    """Moves live reports older than the retention window into the archive."""

    def __init__(
        self,
        live: list[LiveReportRepository] | None = None,
        archive: ArchiveReportRepository | None = None,
        stats: StatsAggregator | None = None,
        rate_limiter: RateLimiter | None = None,
        retention_days: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.live = live or live_repositories()
        self.archive = archive or ArchiveReportRepository()
        self.stats = stats or StatsAggregator(clock=clock)
        self.rate_limiter = rate_limiter or RateLimiter(clock=clock)
        self.retention = timedelta(days=retention_days or settings.archive_after_days)
        self._clock = clock

    def _move(self, db: Session, repository: LiveReportRepository, record: ReportRecord) -> bool:
        """Move one row in its own transaction; return True if it merged."""
        existing = self.archive.get(db, record.key, for_update=True)
        if existing is None:
            self.archive.put(db, record)
        else:
            self.archive.put(db, merge_most_recent(existing, record))
        repository.delete(db, record.key)
        db.commit()
        return existing is not None

    def run(self, db: Session) -> ArchivalResult:
        """Archive every live row added before now minus the retention window.

        A failed row is rolled back, logged and counted; the batch carries
        on. Daily counters are reset afterwards using the moved count.
        """
        cutoff = self._clock() - self.retention
        result = ArchivalResult()

        for repository in self.live:
            for record in repository.list_added_before(db, cutoff):
                result.attempted += 1
                try:
                    merged = self._move(db, repository, record)
                except SQLAlchemyError:
                    db.rollback()
                    result.failed += 1
                    logger.error(
                        "Failed to archive %s report %s", repository.name, record.key, exc_info=True
                    )
                    continue
                result.moved += 1
                result.merged += int(merged)
                result.removed_count += record.reported_count

        self.stats.reset_daily(db, result.removed_count)
        result.purged_rate_limits = self.rate_limiter.purge_expired(db)

        logger.info(
            "Archived %s of %s reports (%s merged, %s failed)",
            result.moved,
            result.attempted,
            result.merged,
            result.failed,
        )
        return result
