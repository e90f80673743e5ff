# src/pinwatch/models/stats.py
"""Aggregate report counters."""

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from pinwatch.db.session import Base

STATS_ROW_ID = 1


class ReportStats(Base):
    """Single-row table holding the running totals shown on the public map."""

    __tablename__ = "report_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=STATS_ROW_ID)
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    this_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
