# src/pinwatch/services/rate_limit.py
"""Daily per-client submission quotas."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pinwatch.core.security import hash_client_key
from pinwatch.core.settings import settings
from pinwatch.db.time import utcnow
from pinwatch.models import RateLimitCounter
from pinwatch.services.errors import ClientIdentityError

logger = logging.getLogger(__name__)

SUBMISSION_BUCKET = "submission"
UNKNOWN_CLIENT = "unknown"


def client_key_for(client_ip: str | None) -> str:
    """Return the salted counter key for ``client_ip``.

    Raises:
        ClientIdentityError: If the client address could not be determined.
    """
    if not client_ip or client_ip == UNKNOWN_CLIENT:
        raise ClientIdentityError()
    return hash_client_key(client_ip)


class RateLimiter:
    """Atomic daily counters keyed by bucket and hashed client identity."""

    def __init__(
        self,
        ttl_hours: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.ttl = timedelta(hours=ttl_hours or settings.rate_limit_ttl_hours)
        self._clock = clock

    def check_and_increment(self, db: Session, client_key: str, bucket: str, limit: int) -> bool:
        """Count one attempt against the client's daily quota.

        The counter row is read under a row lock and written in the same
        transaction. A count stamped with an earlier UTC day counts as zero.

        Args:
            db: Database session
            client_key: Salted client hash from ``client_key_for``
            bucket: Quota namespace, e.g. ``"submission"``
            limit: Maximum attempts per UTC day

        Returns:
            True if the quota is already exhausted (nothing is written),
            False if the attempt was counted.
        """
        counter_id = f"{bucket}_{client_key}"
        try:
            return self._increment(db, counter_id, bucket, client_key, limit)
        except IntegrityError:
            # Another request created the row first; retry against its row.
            db.rollback()
            return self._increment(db, counter_id, bucket, client_key, limit)

    def _increment(
        self, db: Session, counter_id: str, bucket: str, client_key: str, limit: int
    ) -> bool:
        now = self._clock()
        today = now.date()
        row = db.execute(
            select(RateLimitCounter)
            .where(RateLimitCounter.id == counter_id)
            .with_for_update()
        ).scalar_one_or_none()

        count = row.count if row is not None and row.window_date == today else 0
        if count >= limit:
            db.rollback()
            logger.info("Quota exhausted for bucket %s (limit %s)", bucket, limit)
            return True

        if row is None:
            row = RateLimitCounter(id=counter_id, bucket=bucket, client_key=client_key)
            db.add(row)
        row.window_date = today
        row.count = count + 1
        row.expires_at = now + self.ttl
        row.updated_at = now
        db.commit()
        return False

    def purge_expired(self, db: Session) -> int:
        """Delete counter rows whose expiry has passed."""
        result = db.execute(
            delete(RateLimitCounter)
            .where(RateLimitCounter.expires_at < self._clock())
            .execution_options(synchronize_session=False)
        )
        db.commit()
        removed = result.rowcount or 0
        if removed:
            logger.info("Purged %s expired rate limit counters", removed)
        return removed
