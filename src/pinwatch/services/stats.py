# src/pinwatch/services/stats.py
"""Running report counters and their full recompute."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pinwatch.core.settings import settings
from pinwatch.db.time import is_same_utc_day, utcnow, week_window_start
from pinwatch.models import ReportStats
from pinwatch.models.stats import STATS_ROW_ID
from pinwatch.services.repository import (
    ArchiveReportRepository,
    ReportRepository,
    live_repositories,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatsSnapshot:
    total: int = 0
    today: int = 0
    this_week: int = 0


class StatsAggregator:
    """Maintains the single ``report_stats`` row.

    Incremental updates are single ``UPDATE`` statements so concurrent
    writers never lose increments; ``recalculate`` rebuilds the row from
    both storage tiers and is always authoritative.
    """

    def __init__(
        self,
        repositories: list[ReportRepository] | None = None,
        window_days: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repositories = repositories or [*live_repositories(), ArchiveReportRepository()]
        self.window_days = window_days or settings.archive_after_days
        self._clock = clock

    def _ensure_row(self, db: Session) -> None:
        if db.get(ReportStats, STATS_ROW_ID) is not None:
            return
        try:
            db.add(ReportStats(id=STATS_ROW_ID, total=0, today=0, this_week=0))
            db.commit()
        except IntegrityError:
            # Created concurrently.
            db.rollback()

    def snapshot(self, db: Session) -> StatsSnapshot:
        """Return the current counters, zeros if none were recorded yet."""
        row = db.get(ReportStats, STATS_ROW_ID)
        if row is None:
            return StatsSnapshot()
        db.refresh(row)
        return StatsSnapshot(total=row.total, today=row.today, this_week=row.this_week)

    def record_new_report(self, db: Session, added_at: datetime) -> None:
        """Count a report stored under a new address key.

        Merges into an existing key do not call this.
        """
        self._ensure_row(db)
        now = self._clock()
        today_increment = 1 if is_same_utc_day(added_at, now) else 0
        db.execute(
            update(ReportStats)
            .where(ReportStats.id == STATS_ROW_ID)
            .values(
                total=ReportStats.total + 1,
                today=ReportStats.today + today_increment,
                this_week=ReportStats.this_week + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()

    def reset_daily(self, db: Session, removed: int) -> None:
        """Zero ``today`` and take ``removed`` off ``this_week``, floored at 0."""
        self._ensure_row(db)
        remaining = ReportStats.this_week - removed
        db.execute(
            update(ReportStats)
            .where(ReportStats.id == STATS_ROW_ID)
            .values(
                today=0,
                this_week=case((remaining < 0, 0), else_=remaining),
                updated_at=self._clock(),
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Reset daily counters after archiving %s reports", removed)

    def recalculate(self, db: Session) -> StatsSnapshot:
        """Rebuild every counter by scanning the live and archive tiers.

        ``total`` sums ``reported_count`` over all rows; ``today`` over rows
        added on the current UTC day; ``this_week`` over rows added at or
        after now minus the retention window.
        """
        now = self._clock()
        week_start = week_window_start(now, self.window_days)
        total = today = this_week = 0
        scanned = 0
        for repository in self.repositories:
            for record in repository.list_all(db):
                scanned += 1
                count = record.reported_count or 1
                total += count
                if is_same_utc_day(record.added_at, now):
                    today += count
                if record.added_at >= week_start:
                    this_week += count

        db.merge(
            ReportStats(
                id=STATS_ROW_ID,
                total=total,
                today=today,
                this_week=this_week,
                updated_at=now,
            )
        )
        db.commit()
        logger.info(
            "Stats recalculated from %s rows: total=%s today=%s this_week=%s",
            scanned,
            total,
            today,
            this_week,
        )
        return StatsSnapshot(total=total, today=today, this_week=this_week)
