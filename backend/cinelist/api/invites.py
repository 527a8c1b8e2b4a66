"""
Invites API — /invites
──────────────────────
Resolving direct invites and redeeming invite links.

Endpoints:
  GET    /invites                        — Pending direct invites addressed to me
  POST   /invites/{id}/accept            — Accept a direct invite
  POST   /invites/{id}/decline           — Decline a direct invite
  DELETE /invites/{id}                   — Revoke a pending invite (any member)
  GET    /invites/links/{code}           — Preview an invite link
  POST   /invites/links/{code}/redeem    — Join a list through an invite link
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cinelist.api.errors import service_error
from cinelist.db.session import get_db
from cinelist.deps.auth import CurrentUser, get_current_user
from cinelist.schemas.invites import InviteLinkPreviewResponse, InviteResponse
from cinelist.schemas.lists import MemberResponse
from cinelist.services.errors import ListServiceError
from cinelist.services.invite_service import (
    accept_direct_invite,
    decline_direct_invite,
    list_my_pending_invites,
    preview_invite_link,
    redeem_link_invite,
    revoke_invite,
)

router = APIRouter()


@router.get("", response_model=list[InviteResponse])
def my_invites_endpoint(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_my_pending_invites(db, current_user.id)


@router.post("/{invite_id}/accept", response_model=MemberResponse)
def accept_invite_endpoint(
    invite_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return accept_direct_invite(db, invite_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.post("/{invite_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
def decline_invite_endpoint(
    invite_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        decline_direct_invite(db, invite_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.delete("/{invite_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_invite_endpoint(
    invite_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        revoke_invite(db, invite_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.get("/links/{code}", response_model=InviteLinkPreviewResponse)
def preview_link_endpoint(
    code: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return preview_invite_link(db, code)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.post("/links/{code}/redeem", response_model=MemberResponse)
def redeem_link_endpoint(
    code: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return redeem_link_invite(db, code, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc
