"""Verifier-only endpoints for reviewing pending reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pinwatch.api.v1.dependencies import BlobStoreDep, SessionDep, VerifierDep
from pinwatch.models.report import REPORT_STATE_PENDING
from pinwatch.schemas.report import ReportResponse
from pinwatch.schemas.verification import DecisionResponse
from pinwatch.services.blob_store import BlobStore
from pinwatch.services.repository import LiveReportRepository
from pinwatch.services.verification import (
    DecisionResult,
    VerificationWorkflow,
    Verifier,
    require_verifier,
)

router = APIRouter(prefix="/verifiers", tags=["verifiers"])


def _workflow(blob_store: BlobStore) -> VerificationWorkflow:
    return VerificationWorkflow(blob_store=blob_store)


def _response(result: DecisionResult) -> DecisionResponse:
    return DecisionResponse(success=result.success, message=result.message)


def require_verifier_role(verifier: VerifierDep) -> Verifier:
    """Reject non-verifiers before the blob store is resolved."""
    return require_verifier(verifier)


@router.get(
    "/pending",
    response_model=dict[str, ReportResponse],
    dependencies=[Depends(require_verifier_role)],
)
async def list_pending_reports(db: SessionDep) -> dict[str, ReportResponse]:
    """Return pending reports keyed by report id, image paths included."""
    repository = LiveReportRepository(REPORT_STATE_PENDING)
    return {
        record.key: ReportResponse.from_record(record, include_path=True)
        for record in repository.list_all(db)
    }


@router.post(
    "/reports/{report_id}/verify",
    response_model=DecisionResponse,
    dependencies=[Depends(require_verifier_role)],
)
async def verify_report(
    report_id: str,
    db: SessionDep,
    verifier: VerifierDep,
    blob_store: BlobStoreDep,
) -> DecisionResponse:
    """Publish a pending report."""
    return _response(_workflow(blob_store).verify(db, report_id, verifier))


@router.post(
    "/reports/{report_id}/deny",
    response_model=DecisionResponse,
    dependencies=[Depends(require_verifier_role)],
)
async def deny_report(
    report_id: str,
    db: SessionDep,
    verifier: VerifierDep,
    blob_store: BlobStoreDep,
) -> DecisionResponse:
    """Reject a pending report."""
    return _response(_workflow(blob_store).deny(db, report_id, verifier))


@router.delete(
    "/reports/{report_id}",
    response_model=DecisionResponse,
    dependencies=[Depends(require_verifier_role)],
)
async def delete_report(
    report_id: str,
    db: SessionDep,
    verifier: VerifierDep,
    blob_store: BlobStoreDep,
) -> DecisionResponse:
    """Remove a pending report and its image."""
    return _response(_workflow(blob_store).delete(db, report_id, verifier))
