# src/pinwatch/services/errors.py
"""Domain exceptions raised by report services.

Every error carries the HTTP status the API surfaces it with, so endpoints
never translate messages themselves.
"""

from __future__ import annotations

from fastapi import status


class ReportError(RuntimeError):
    """Base exception for report intake and moderation failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message or self.default_message)
        if status_code is not None:
            self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ReportError):
    """Raised when a request is missing fields or carries malformed values."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ClientIdentityError(ReportError):
    """Raised when the caller's network identity cannot be determined."""

    status_code = status.HTTP_412_PRECONDITION_FAILED
    default_message = "Unable to determine client IP address. Request blocked for security."


class ModerationRejected(ReportError):
    """Raised when submitted text is flagged by the content classifier."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Please avoid using negative or abusive language in the additional info"


class NotFound(ReportError):
    """Raised when an address or report cannot be resolved."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class QuotaExceeded(ReportError):
    """Raised when a client exhausts its daily submission quota."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Daily limit reached. Try again tomorrow."


class AuthorizationError(ReportError):
    """Raised when the caller is unauthenticated or lacks the verifier role."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions. Verifier role required."


class InternalError(ReportError):
    """Raised for infrastructure failures; the cause is logged, not surfaced."""


class BlobNotFoundError(LookupError):
    """Raised by blob stores when an object does not exist."""
