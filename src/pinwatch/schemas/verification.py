# src/pinwatch/schemas/verification.py
"""Verifier decision and stats schemas."""

from pydantic import BaseModel, ConfigDict, Field


class DecisionResponse(BaseModel):
    """Outcome of a verify, deny or delete action."""

    success: bool
    message: str


class StatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    today: int
    this_week: int = Field(..., serialization_alias="thisWeek")
