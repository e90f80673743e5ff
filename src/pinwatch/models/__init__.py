# src/pinwatch/models/__init__.py
"""SQLAlchemy models for the Pinwatch service."""

from .audit import DenialLog, FlaggedSubmission, VerificationLog
from .rate_limit import RateLimitCounter
from .report import ArchivedReport, LiveReport
from .stats import ReportStats

__all__ = [
    "ArchivedReport", "LiveReport",
    "DenialLog", "FlaggedSubmission", "VerificationLog",
    "RateLimitCounter",
    "ReportStats",
]
