# src/pinwatch/services/merge.py
"""Duplicate-merge semantics shared by ingestion, archival and migrations."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from pinwatch.services.address import make_address_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportRecord:
    """Storage-agnostic view of a report row."""

    key: str
    address: str
    additional_info: str
    lat: float
    lng: float
    added_at: datetime
    reported_count: int = 1
    image_path: str | None = None
    image_url: str | None = None
    verified_at: datetime | None = None
    source_state: str | None = None


def merge_most_recent(existing: ReportRecord, incoming: ReportRecord) -> ReportRecord:
    """Combine two records for the same location.

    Counts are summed. Every other field comes from whichever record has
    the later ``added_at``; on a tie the existing record wins.
    """
    newer = incoming if incoming.added_at > existing.added_at else existing
    return replace(
        newer,
        key=existing.key,
        reported_count=existing.reported_count + incoming.reported_count,
    )


def consolidate(records: Iterable[ReportRecord]) -> dict[str, ReportRecord]:
    """Group ``records`` by recomputed address key and merge duplicates.

    Records whose address produces an empty key are dropped with a warning.
    """
    merged: dict[str, ReportRecord] = {}
    for record in records:
        key = make_address_key(record.address)
        if not key:
            logger.warning("Skipping report %s: address yields an empty key", record.key)
            continue
        rekeyed = replace(record, key=key)
        current = merged.get(key)
        merged[key] = rekeyed if current is None else merge_most_recent(current, rekeyed)
    return merged
