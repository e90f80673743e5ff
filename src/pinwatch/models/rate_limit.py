# src/pinwatch/models/rate_limit.py
"""Per-client daily quota counters."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pinwatch.db.session import Base


class RateLimitCounter(Base):
    __tablename__ = "rate_limit_counter"

    # "{bucket}_{client_key}"
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    bucket: Mapped[str] = mapped_column(String(32), nullable=False)
    client_key: Mapped[str] = mapped_column(String(64), nullable=False)
    # UTC day the count belongs to; a different day means the count is stale.
    window_date: Mapped[date] = mapped_column(Date, nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
