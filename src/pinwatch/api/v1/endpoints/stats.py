"""Aggregate counters for the public map."""

from __future__ import annotations

from fastapi import APIRouter

from pinwatch.api.v1.dependencies import SessionDep
from pinwatch.schemas.verification import StatsResponse
from pinwatch.services.stats import StatsAggregator

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(db: SessionDep) -> StatsResponse:
    """Return total, today and this-week report counts."""
    snapshot = StatsAggregator().snapshot(db)
    return StatsResponse(total=snapshot.total, today=snapshot.today, this_week=snapshot.this_week)
