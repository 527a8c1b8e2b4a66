"""
Lists API — /lists
──────────────────
Collaborative movie lists: roster, ownership and list-scoped invites.

Endpoints:
  POST   /lists                              — Create a list (caller becomes owner)
  GET    /lists                              — Lists I own or collaborate on
  POST   /lists/default                      — Get or create my default list
  GET    /lists/{id}                         — List detail with roster and movies
  PATCH  /lists/{id}                         — Update name / visibility / cover
  DELETE /lists/{id}                         — Delete list (owner only, not default)
  GET    /lists/{id}/members                 — Roster
  DELETE /lists/{id}/members/{user_id}       — Remove a collaborator (owner only)
  POST   /lists/{id}/leave                   — Leave as collaborator
  POST   /lists/{id}/transfer                — Hand ownership to a collaborator
  POST   /lists/{id}/invites                 — Invite a user directly
  POST   /lists/{id}/invite-links            — Create a shareable invite link
  GET    /lists/{id}/invites                 — Pending invites for the list (members only)
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cinelist.api.errors import service_error, validation_error
from cinelist.db.session import get_db
from cinelist.deps.auth import CurrentUser, get_current_user
from cinelist.schemas.invites import DirectInviteRequest, InviteResponse
from cinelist.schemas.lists import (
    CreateListRequest,
    ListDetailResponse,
    ListResponse,
    MemberResponse,
    TransferOwnershipRequest,
    UpdateListRequest,
)
from cinelist.services.errors import ListServiceError
from cinelist.services.invite_service import (
    create_direct_invite,
    create_link_invite,
    list_pending_invites,
)
from cinelist.services.list_service import (
    create_list,
    delete_list,
    ensure_default_list,
    get_list_detail,
    list_my_lists,
    update_list_settings,
)
from cinelist.services.membership_service import (
    get_members,
    leave_list,
    remove_collaborator,
    transfer_ownership,
)

router = APIRouter()


# ── Lists ─────────────────────────────────────────────────────────────────────

@router.post("", response_model=ListResponse, status_code=status.HTTP_201_CREATED)
def create_list_endpoint(
    payload: CreateListRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return create_list(
            db,
            current_user.id,
            payload.name,
            is_public=payload.is_public,
            cover_image_url=payload.cover_image_url,
        )
    except ListServiceError as exc:
        raise service_error(exc) from exc
    except ValueError as exc:
        raise validation_error(exc) from exc


@router.get("", response_model=list[ListResponse])
def list_my_lists_endpoint(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_my_lists(db, current_user.id)


@router.post("/default", response_model=ListResponse)
def ensure_default_list_endpoint(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return ensure_default_list(db, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.get("/{list_id}", response_model=ListDetailResponse)
def get_list_endpoint(
    list_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return get_list_detail(db, list_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.patch("/{list_id}", response_model=ListResponse)
def update_list_endpoint(
    list_id: UUID,
    payload: UpdateListRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return update_list_settings(
            db, list_id, current_user.id, payload.model_dump(exclude_unset=True)
        )
    except ListServiceError as exc:
        raise service_error(exc) from exc
    except ValueError as exc:
        raise validation_error(exc) from exc


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_list_endpoint(
    list_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        delete_list(db, list_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


# ── Roster ────────────────────────────────────────────────────────────────────

@router.get("/{list_id}/members", response_model=list[MemberResponse])
def get_members_endpoint(
    list_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return get_members(db, list_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.delete("/{list_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member_endpoint(
    list_id: UUID,
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        remove_collaborator(db, list_id, current_user.id, user_id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.post("/{list_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_list_endpoint(
    list_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    try:
        leave_list(db, list_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.post("/{list_id}/transfer", response_model=list[MemberResponse])
def transfer_ownership_endpoint(
    list_id: UUID,
    payload: TransferOwnershipRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return transfer_ownership(db, list_id, current_user.id, payload.new_owner_id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


# ── List-scoped invites ───────────────────────────────────────────────────────

@router.post("/{list_id}/invites", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
def create_direct_invite_endpoint(
    list_id: UUID,
    payload: DirectInviteRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return create_direct_invite(db, list_id, current_user.id, payload.invitee_id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.post("/{list_id}/invite-links", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
def create_invite_link_endpoint(
    list_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return create_link_invite(db, list_id, current_user.id)
    except ListServiceError as exc:
        raise service_error(exc) from exc


@router.get("/{list_id}/invites", response_model=list[InviteResponse])
def list_pending_invites_endpoint(
    list_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    try:
        return list(list_pending_invites(db, list_id, current_user.id))
    except ListServiceError as exc:
        raise service_error(exc) from exc
