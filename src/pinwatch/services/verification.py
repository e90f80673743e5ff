# src/pinwatch/services/verification.py
"""Verifier decisions on pending reports.

Image relocation follows copy, confirm, store write, delete original.
When the store write fails the copy is removed and the pending row stays
for a retry; a leftover original after a successful write is only logged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pinwatch.core.security import VERIFIER_ROLE
from pinwatch.db.time import utcnow
from pinwatch.models import DenialLog, VerificationLog
from pinwatch.models.report import REPORT_STATE_PENDING, REPORT_STATE_VERIFIED
from pinwatch.services.blob_store import BlobStore, denied_path, file_name, verified_path
from pinwatch.services.errors import (
    AuthorizationError,
    BlobNotFoundError,
    InternalError,
    NotFound,
)
from pinwatch.services.merge import ReportRecord
from pinwatch.services.repository import LiveReportRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verifier:
    uid: str
    role: str | None


@dataclass(frozen=True)
class DecisionResult:
    success: bool
    message: str


def require_verifier(actor: Verifier | None) -> Verifier:
    """Return ``actor`` if it holds the verifier role.

    Raises:
        AuthorizationError: 401 when unauthenticated, 403 for other roles.
    """
    if actor is None or not actor.uid:
        raise AuthorizationError("Authentication required", status_code=401)
    if actor.role != VERIFIER_ROLE:
        raise AuthorizationError()
    return actor


class VerificationWorkflow:
    """Moves pending reports to verified, denied or deleted."""

    def __init__(
        self,
        blob_store: BlobStore,
        pending: LiveReportRepository | None = None,
        verified: LiveReportRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.blob_store = blob_store
        self.pending = pending or LiveReportRepository(REPORT_STATE_PENDING)
        self.verified = verified or LiveReportRepository(REPORT_STATE_VERIFIED)
        self._clock = clock

    def _load_pending(self, db: Session, report_id: str) -> ReportRecord:
        record = self.pending.get(db, report_id, for_update=True)
        if record is None:
            raise NotFound(f"Report with ID {report_id} not found in pending reports")
        return record

    def _copy(self, db: Session, source: str, destination: str) -> None:
        """Copy and confirm; on failure release the pending row lock and raise."""
        try:
            self.blob_store.copy(source, destination)
        except BlobNotFoundError as exc:
            db.rollback()
            raise NotFound(f"Image {source} not found for report") from exc
        except Exception as exc:
            db.rollback()
            logger.error("Failed to copy %s to %s", source, destination, exc_info=True)
            raise InternalError() from exc
        if not self.blob_store.exists(destination):
            db.rollback()
            logger.error("Copy of %s missing at %s after copy", source, destination)
            raise InternalError()

    def _discard_copy(self, path: str) -> None:
        try:
            self.blob_store.delete(path)
        except Exception:
            logger.error("Could not remove copied image %s during rollback", path, exc_info=True)

    def _delete_original(self, path: str | None, report_id: str) -> None:
        if not path:
            return
        try:
            self.blob_store.delete(path)
        except BlobNotFoundError:
            logger.warning("Image %s for report %s was already gone", path, report_id)
        except Exception:
            logger.error("Orphaned image %s left behind for report %s", path, report_id, exc_info=True)

    def verify(self, db: Session, report_id: str, actor: Verifier | None) -> DecisionResult:
        """Publish a pending report, merging into an existing verified one."""
        verifier = require_verifier(actor)
        pending = self._load_pending(db, report_id)
        now = self._clock()

        existing = self.verified.get(db, report_id, for_update=True)
        if existing is not None:
            try:
                self.verified.put(
                    db,
                    replace(
                        existing,
                        reported_count=existing.reported_count + 1,
                        added_at=now,
                    ),
                )
                self.pending.delete(db, report_id)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.error("Failed to merge report %s into verified", report_id, exc_info=True)
                raise InternalError() from exc
            self._delete_original(pending.image_path, report_id)
            logger.info("Merged pending report %s into verified by %s", report_id, verifier.uid)
            return DecisionResult(True, f"Report {report_id} verified successfully")

        image_url = None
        copied_to = None
        if pending.image_path:
            copied_to = verified_path(report_id, pending.image_path)
            self._copy(db, pending.image_path, copied_to)
            try:
                image_url = self.blob_store.public_url(copied_to)
            except Exception as exc:
                db.rollback()
                self._discard_copy(copied_to)
                logger.error("Could not mint public URL for %s", copied_to, exc_info=True)
                raise InternalError() from exc

        try:
            self.verified.put(
                db,
                replace(
                    pending,
                    image_path=None,
                    image_url=image_url,
                    verified_at=now,
                ),
            )
            db.add(
                VerificationLog(
                    report_id=report_id,
                    verifier_uid=verifier.uid,
                    report_address=pending.address,
                    verified_at=now,
                )
            )
            self.pending.delete(db, report_id)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to store verified report %s", report_id, exc_info=True)
            if copied_to:
                self._discard_copy(copied_to)
            raise InternalError() from exc

        self._delete_original(pending.image_path, report_id)
        logger.info("Report %s verified by %s", report_id, verifier.uid)
        return DecisionResult(True, f"Report {report_id} verified successfully")

    def deny(self, db: Session, report_id: str, actor: Verifier | None) -> DecisionResult:
        """Reject a pending report, keeping its image in the denied area."""
        verifier = require_verifier(actor)
        pending = self._load_pending(db, report_id)
        now = self._clock()

        moved_to = None
        if pending.image_path:
            moved_to = denied_path(report_id, pending.image_path)
            self._copy(db, pending.image_path, moved_to)

        try:
            db.add(
                DenialLog(
                    report_id=report_id,
                    verifier_uid=verifier.uid,
                    report_address=pending.address,
                    image_path=moved_to,
                    image_name=file_name(pending.image_path) if pending.image_path else None,
                    denied_at=now,
                )
            )
            self.pending.delete(db, report_id)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to record denial of report %s", report_id, exc_info=True)
            if moved_to:
                self._discard_copy(moved_to)
            raise InternalError() from exc

        self._delete_original(pending.image_path, report_id)
        logger.info("Report %s denied by %s", report_id, verifier.uid)
        return DecisionResult(True, f"Report {report_id} denied successfully")

    def delete(self, db: Session, report_id: str, actor: Verifier | None) -> DecisionResult:
        """Remove a pending report and its image outright."""
        verifier = require_verifier(actor)
        pending = self._load_pending(db, report_id)

        if pending.image_path:
            try:
                self.blob_store.delete(pending.image_path)
            except BlobNotFoundError:
                logger.warning("Image %s for report %s was already gone", pending.image_path, report_id)
            except Exception as exc:
                db.rollback()
                logger.error(
                    "Failed to delete image %s for report %s", pending.image_path, report_id, exc_info=True
                )
                raise InternalError() from exc

        try:
            self.pending.delete(db, report_id)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to delete pending report %s", report_id, exc_info=True)
            raise InternalError() from exc

        logger.info("Report %s deleted by %s", report_id, verifier.uid)
        return DecisionResult(True, f"Report {report_id} deleted successfully")
