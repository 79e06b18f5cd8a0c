"""Identity token helpers.

Tokens are issued by the portal's authentication service; this module only
signs tokens for trusted callers (tests, internal tooling) and turns a
verified token into an :class:`Identity`.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from notifyhub.config import get_settings
from notifyhub.domain.entities import Identity, Role
from notifyhub.domain.exceptions import NotificationValidationError

ALGORITHM = "HS256"


def create_access_token(identity: Identity, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {
        "sub": identity.username,
        "uid": identity.user_id,
        "role": identity.role.value,
        "exp": expire,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def identity_from_token(token: str) -> Identity:
    """Return the identity carried by ``token`` or raise ``ValueError``."""

    payload = decode_access_token(token)
    username = payload.get("sub")
    user_id = payload.get("uid")
    role = payload.get("role")
    if not isinstance(username, str) or not username:
        raise ValueError("Token subject is missing")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
        raise ValueError("Token user id is missing")
    try:
        parsed_role = Role.parse(role)
    except NotificationValidationError as exc:
        raise ValueError("Token role is invalid") from exc
    return Identity(user_id=user_id, username=username, role=parsed_role)


__all__ = [
    "ALGORITHM",
    "create_access_token",
    "decode_access_token",
    "identity_from_token",
]
