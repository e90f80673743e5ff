# src/pinwatch/services/__init__.py
"""Business logic services for the Pinwatch service."""

from .archival import ArchivalMigrator
from .ingestion import ModerationGate
from .maintenance import ConsolidationMigration, RangeDeleter
from .rate_limit import RateLimiter
from .stats import StatsAggregator
from .verification import VerificationWorkflow

__all__ = [
    "ArchivalMigrator",
    "ConsolidationMigration",
    "ModerationGate",
    "RangeDeleter",
    "RateLimiter",
    "StatsAggregator",
    "VerificationWorkflow",
]
