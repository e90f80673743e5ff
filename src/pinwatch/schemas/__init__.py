# src/pinwatch/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .report import ReportCreate, ReportResponse, ReportSubmitResponse
from .verification import DecisionResponse, StatsResponse

__all__ = [
    "ReportCreate", "ReportResponse", "ReportSubmitResponse",
    "DecisionResponse", "StatsResponse",
]
