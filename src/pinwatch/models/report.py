# src/pinwatch/models/report.py
"""SQLAlchemy models for live and archived reports."""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pinwatch.db.session import Base

REPORT_STATE_PENDING = "pending"
REPORT_STATE_VERIFIED = "verified"
LIVE_STATES = (REPORT_STATE_PENDING, REPORT_STATE_VERIFIED)

ADDRESS_KEY_MAX_LENGTH = 200


class LiveReport(Base):
    """A report awaiting review or already published.

    Rows are keyed by state bucket and address key, so one location has at
    most one pending row and one verified row.
    """

    __tablename__ = "live_report"

    state: Mapped[str] = mapped_column(String(16), primary_key=True)
    address_key: Mapped[str] = mapped_column(String(ADDRESS_KEY_MAX_LENGTH), primary_key=True)

    address: Mapped[str] = mapped_column(Text, nullable=False)
    additional_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    reported_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Object path while pending; public URL once verified.
    image_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ArchivedReport(Base):
    """A report older than the live retention window."""

    __tablename__ = "archived_report"

    address_key: Mapped[str] = mapped_column(String(ADDRESS_KEY_MAX_LENGTH), primary_key=True)
    # Live bucket the newest merged record came from.
    source_state: Mapped[str | None] = mapped_column(String(16), nullable=True)

    address: Mapped[str] = mapped_column(Text, nullable=False)
    additional_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    reported_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    image_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
