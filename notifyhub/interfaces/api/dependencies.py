"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notifyhub.domain.entities import Identity
from notifyhub.infrastructure.security import identity_from_token

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_identity(token: str | None) -> Identity:
    """Return the identity carried by ``token`` or raise a 401 error.

    No database access happens here, so unauthenticated requests are
    rejected before the store is touched.
    """

    if not token:
        raise _unauthorized("Not authenticated")
    try:
        return identity_from_token(token)
    except ValueError as exc:
        raise _unauthorized("Invalid credentials") from exc


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """Return the verified identity of the caller."""

    return resolve_identity(credentials.credentials if credentials else None)


def require_publisher(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Ensure the caller may create notifications directly."""

    if not identity.can_publish():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to publish notifications",
        )
    return identity
