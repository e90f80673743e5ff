"""Public report intake and listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from pinwatch.api.v1.dependencies import ClientIpDep, GeocoderDep, ModeratorDep, SessionDep
from pinwatch.models.report import REPORT_STATE_VERIFIED
from pinwatch.schemas.report import ReportCreate, ReportResponse, ReportSubmitResponse
from pinwatch.services.ingestion import ModerationGate, Submission
from pinwatch.services.repository import LiveReportRepository

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportSubmitResponse, status_code=status.HTTP_200_OK)
async def submit_report(
    payload: ReportCreate,
    db: SessionDep,
    client_ip: ClientIpDep,
    moderator: ModeratorDep,
    geocoder: GeocoderDep,
) -> ReportSubmitResponse:
    """Accept a community report into the pending queue.

    Args:
        payload: Submitted report fields
        db: Database session
        client_ip: Caller address used for the daily quota
        moderator: Content classifier for the additional info
        geocoder: Address resolver

    Returns:
        Confirmation message and the geocoded address
    """
    gate = ModerationGate(moderator=moderator, geocoder=geocoder)
    result = await gate.submit(
        db,
        Submission(
            added_at=payload.added_at,
            address=payload.address,
            additional_info=payload.additional_info,
            image_path=payload.image_path,
            image_url=payload.image_url,
        ),
        client_ip,
    )
    return ReportSubmitResponse(message=result.message, formatted_address=result.formatted_address)


@router.get("/verified", response_model=list[ReportResponse])
async def list_verified_reports(db: SessionDep) -> list[ReportResponse]:
    """Return published reports for the public map."""
    repository = LiveReportRepository(REPORT_STATE_VERIFIED)
    return [ReportResponse.from_record(record) for record in repository.list_all(db)]
