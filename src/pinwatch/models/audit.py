# src/pinwatch/models/audit.py
"""Append-only audit trail for moderation decisions and rejected content."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pinwatch.db.session import Base


class VerificationLog(Base):
    __tablename__ = "verification_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    verifier_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    report_address: Mapped[str] = mapped_column(Text, nullable=False)
    verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DenialLog(Base):
    __tablename__ = "denial_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    verifier_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    report_address: Mapped[str] = mapped_column(Text, nullable=False)
    # Non-public location the image was moved to, if there was one.
    image_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    denied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class FlaggedSubmission(Base):
    """Submission rejected by the content classifier, kept for review."""

    __tablename__ = "flagged_submission"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    added_at: Mapped[str] = mapped_column(String(32), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    additional_info: Mapped[str] = mapped_column(Text, nullable=False)
    logged_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
