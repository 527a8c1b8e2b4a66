"""
Auth dependency for every protected endpoint.

The identity provider has already authenticated the user; we only verify the
bearer token and hand the opaque user id to the route. Nothing downstream
reads ambient session state: every service call gets the caller id explicitly.

Usage in any route:
    from cinelist.deps.auth import CurrentUser, get_current_user

    @router.get("/protected")
    def protected(user: CurrentUser = Depends(get_current_user)):
        ...
"""
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from cinelist.core.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: str


def get_current_user(token: str | None = Depends(oauth2_scheme)) -> CurrentUser:
    """
    Decode the bearer JWT and return the caller's identity.

    Raises 401 on any failure (missing, invalid or expired token, empty sub).
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": {"code": "UNAUTHENTICATED", "message": "Invalid or expired token"}},
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    sub = decode_access_token(token)
    if not sub:
        raise credentials_exception

    return CurrentUser(id=str(sub))
