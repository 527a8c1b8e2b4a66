"""
Mapping from service failures to HTTP responses.

Every router reports failures in the same envelope:
    {"error": {"code": "...", "message": "..."}}
"""
from fastapi import HTTPException, status

from cinelist.services.errors import ListServiceError

_STATUS_BY_CODE = {
    "LIST_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVITE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "MOVIE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NOT_A_MEMBER": status.HTTP_403_FORBIDDEN,
    "NOT_LIST_OWNER": status.HTTP_403_FORBIDDEN,
    "NOT_INVITEE": status.HTTP_403_FORBIDDEN,
    "ALREADY_MEMBER": status.HTTP_409_CONFLICT,
    "CAPACITY_EXCEEDED": status.HTTP_409_CONFLICT,
    "DUPLICATE_PENDING_INVITE": status.HTTP_409_CONFLICT,
    "INVITE_ALREADY_RESOLVED": status.HTTP_409_CONFLICT,
    "CANNOT_REMOVE_OWNER": status.HTTP_409_CONFLICT,
    "CANNOT_DELETE_DEFAULT_LIST": status.HTTP_409_CONFLICT,
    "STORAGE_CONFLICT": status.HTTP_409_CONFLICT,
    "INVALID_NOTE": status.HTTP_400_BAD_REQUEST,
    "TRANSIENT_STORE_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def service_error(exc: ListServiceError) -> HTTPException:
    code = exc.code
    return HTTPException(
        status_code=_STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST),
        detail=_error(code, str(exc)),
    )


def validation_error(exc: ValueError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=_error("VALIDATION_ERROR", str(exc)),
    )
