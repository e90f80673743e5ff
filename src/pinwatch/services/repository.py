# src/pinwatch/services/repository.py
"""Report storage tiers behind one repository interface.

The live tier holds one bucket per state (``pending``, ``verified``); the
archive tier holds reports past the retention window. Repositories never
commit; callers own transaction boundaries.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from pinwatch.core.settings import settings
from pinwatch.db.time import as_utc
from pinwatch.models import ArchivedReport, LiveReport
from pinwatch.models.report import LIVE_STATES
from pinwatch.services.merge import ReportRecord

T = TypeVar("T")

_RECORD_COLUMNS = (
    "address",
    "additional_info",
    "lat",
    "lng",
    "added_at",
    "reported_count",
    "image_path",
    "image_url",
    "verified_at",
)


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` entries."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class ReportRepository:
    """Key/value access to one report bucket."""

    model: type[LiveReport] | type[ArchivedReport]
    name: str

    def __init__(self, batch_size: int | None = None) -> None:
        self.batch_size = batch_size or settings.max_batch_size

    # Subclasses narrow queries to their bucket and fill bucket columns.
    def _scope(self, stmt: Any) -> Any:
        return stmt

    def _bucket_values(self, record: ReportRecord) -> dict[str, Any]:
        return {}

    def _to_record(self, row: Any) -> ReportRecord:
        return ReportRecord(
            key=row.address_key,
            address=row.address,
            additional_info=row.additional_info or "",
            lat=row.lat,
            lng=row.lng,
            added_at=as_utc(row.added_at),
            reported_count=row.reported_count or 1,
            image_path=row.image_path,
            image_url=row.image_url,
            verified_at=as_utc(row.verified_at) if row.verified_at else None,
            source_state=getattr(row, "source_state", None),
        )

    def _to_values(self, record: ReportRecord) -> dict[str, Any]:
        values = {column: getattr(record, column) for column in _RECORD_COLUMNS}
        values["address_key"] = record.key
        values.update(self._bucket_values(record))
        return values

    def get(self, db: Session, key: str, *, for_update: bool = False) -> ReportRecord | None:
        """Return the record stored under ``key``.

        With ``for_update`` the row stays locked until the caller's
        transaction ends.
        """
        stmt = self._scope(select(self.model).where(self.model.address_key == key))
        if for_update:
            stmt = stmt.with_for_update()
        row = db.execute(stmt).scalar_one_or_none()
        return self._to_record(row) if row is not None else None

    def put(self, db: Session, record: ReportRecord) -> None:
        """Insert or overwrite the row for ``record.key``."""
        db.merge(self.model(**self._to_values(record)))
        db.flush()

    def delete(self, db: Session, key: str) -> int:
        stmt = self._scope(delete(self.model).where(self.model.address_key == key))
        return db.execute(stmt).rowcount or 0

    def list_all(self, db: Session) -> list[ReportRecord]:
        stmt = self._scope(select(self.model).order_by(self.model.added_at))
        return [self._to_record(row) for row in db.execute(stmt).scalars()]

    def list_added_before(self, db: Session, cutoff: datetime) -> list[ReportRecord]:
        """Return records whose ``added_at`` is strictly older than ``cutoff``."""
        stmt = self._scope(
            select(self.model)
            .where(self.model.added_at < cutoff)
            .order_by(self.model.added_at)
        )
        return [self._to_record(row) for row in db.execute(stmt).scalars()]

    def list_added_since(self, db: Session, cutoff: datetime) -> list[ReportRecord]:
        """Return records whose ``added_at`` is at or after ``cutoff``."""
        stmt = self._scope(
            select(self.model)
            .where(self.model.added_at >= cutoff)
            .order_by(self.model.added_at)
        )
        return [self._to_record(row) for row in db.execute(stmt).scalars()]

    def delete_keys(self, db: Session, keys: Iterable[str]) -> int:
        """Delete ``keys`` in statements of at most ``batch_size`` keys."""
        deleted = 0
        for batch in chunked(list(keys), self.batch_size):
            stmt = self._scope(delete(self.model).where(self.model.address_key.in_(batch)))
            deleted += db.execute(stmt).rowcount or 0
        return deleted

    def replace_all(self, db: Session, records: Iterable[ReportRecord]) -> int:
        """Swap the bucket's contents for ``records``.

        Existing keys are deleted and the new rows inserted, both in chunks
        of at most ``batch_size``, inside the caller's transaction.
        """
        existing = db.execute(self._scope(select(self.model.address_key))).scalars().all()
        self.delete_keys(db, existing)
        rows = [self._to_values(record) for record in records]
        for batch in chunked(rows, self.batch_size):
            db.execute(insert(self.model), list(batch))
        db.expire_all()
        return len(rows)


class LiveReportRepository(ReportRepository):
    """One state bucket of the live tier."""

    model = LiveReport

    def __init__(self, state: str, batch_size: int | None = None) -> None:
        if state not in LIVE_STATES:
            raise ValueError(f"Unknown live report state: {state}")
        super().__init__(batch_size)
        self.state = state
        self.name = state

    def _scope(self, stmt: Any) -> Any:
        return stmt.where(LiveReport.state == self.state)

    def _bucket_values(self, record: ReportRecord) -> dict[str, Any]:
        return {"state": self.state}

    def _to_record(self, row: Any) -> ReportRecord:
        record = super()._to_record(row)
        return replace(record, source_state=self.state)


class ArchiveReportRepository(ReportRepository):
    """The archive tier."""

    model = ArchivedReport
    name = "archive"

    def _bucket_values(self, record: ReportRecord) -> dict[str, Any]:
        return {"source_state": record.source_state}


def live_repositories(batch_size: int | None = None) -> list[LiveReportRepository]:
    """Return repositories for every live state bucket."""
    return [LiveReportRepository(state, batch_size) for state in LIVE_STATES]
