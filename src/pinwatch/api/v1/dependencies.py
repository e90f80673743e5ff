"""Shared API dependencies for authentication and collaborators."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from pinwatch.core.security import decode_token
from pinwatch.db.session import get_db
from pinwatch.services.blob_store import BlobStore, get_blob_store
from pinwatch.services.errors import AuthorizationError
from pinwatch.services.geocoding import Geocoder, get_geocoder
from pinwatch.services.moderation import ContentModerator, get_content_moderator
from pinwatch.services.rate_limit import UNKNOWN_CLIENT
from pinwatch.services.verification import Verifier

# Missing credentials are reported by get_verifier, not by the scheme.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_client_ip(request: Request) -> str:
    """Return the caller's address.

    The first ``X-Forwarded-For`` hop wins over the socket peer; an
    unresolvable caller yields ``"unknown"``, which intake rejects.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def get_verifier(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Verifier:
    """Decode the bearer token into a Verifier.

    Raises:
        AuthorizationError: If the token is missing, invalid or has no subject.
    """
    if credentials is None:
        raise AuthorizationError("Authentication required", status_code=401)
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as err:
        raise AuthorizationError("Authentication required", status_code=401) from err

    subject = payload.get("sub")
    if not subject:
        raise AuthorizationError("Authentication required", status_code=401)
    return Verifier(uid=str(subject), role=payload.get("role"))


ClientIpDep = Annotated[str, Depends(get_client_ip)]
VerifierDep = Annotated[Verifier, Depends(get_verifier)]
ModeratorDep = Annotated[ContentModerator, Depends(get_content_moderator)]
GeocoderDep = Annotated[Geocoder, Depends(get_geocoder)]
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
