"""
Bearer token verification.

The identity provider mints the tokens with the opaque user id in ``sub``; we
check signature and expiry and hand back that id. ``create_access_token``
mints tokens the same way for local runs and tests.
"""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from cinelist.core.config import settings


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {"sub": str(user_id), "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> str | None:
    """Return the caller's user id, or None for a tampered, expired or subject-less token."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        return None
    return subject
