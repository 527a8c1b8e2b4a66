"""
Invitation registry: direct invites and shareable invite links.

Creation only pre-checks capacity; capacity can change before the invite is
used, so consumption (accept / redeem) re-checks it in the same transaction
that writes the membership row and resolves the invite.

Link invites are reusable: every redemption adds one collaborator until the
list is full, the link expires or a member revokes it. Expiry is checked at
redemption time; nothing sweeps old links.
"""
import logging
import secrets
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from cinelist.core.config import settings
from cinelist.db.models import (
    InviteKind,
    InviteStatus,
    ListInvite,
    MovieList,
)
from cinelist.services.errors import (
    AlreadyMemberError,
    CapacityExceededError,
    DuplicatePendingInviteError,
    InviteAlreadyResolvedError,
    InviteNotFoundError,
    ListNotFoundError,
    NotAMemberError,
    NotInviteeError,
    StorageConflictError,
)
from cinelist.services.identity import (
    IdentityDirectory,
    as_utc,
    avatar_url,
    cached_or_fresh,
    directory_for,
)
from cinelist.services.membership_service import (
    add_collaborator,
    find_member,
    get_list_or_raise,
    load_roster,
    member_payload,
)
from cinelist.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _generate_code() -> str:
    return secrets.token_urlsafe(settings.INVITE_CODE_BYTES)


def _get_invite_or_raise(db: Session, invite_id: UUID) -> ListInvite:
    invite = db.get(ListInvite, invite_id, populate_existing=True)
    if invite is None:
        raise InviteNotFoundError(f"Invite {invite_id} not found")
    return invite


def _get_live_link_or_raise(db: Session, code: str) -> ListInvite:
    """A link invite that can still be redeemed: known, not revoked, not expired."""
    invite = (
        db.query(ListInvite)
        .populate_existing()
        .filter(ListInvite.code == code, ListInvite.kind == InviteKind.LINK)
        .first()
    )
    if (
        invite is None
        or invite.status != InviteStatus.PENDING
        or as_utc(invite.expires_at) <= _utcnow()
    ):
        raise InviteNotFoundError("This invite link is invalid or has expired")
    return invite


def _resolve(db: Session, invite: ListInvite, new_status: InviteStatus) -> None:
    """Move a pending invite to *new_status*; lose the race → StorageConflictError."""
    resolved_at = _utcnow()
    result = db.execute(
        update(ListInvite)
        .where(ListInvite.id == invite.id, ListInvite.status == InviteStatus.PENDING)
        .values(status=new_status, resolved_at=resolved_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StorageConflictError(f"Invite {invite.id} was resolved concurrently")
    set_committed_value(invite, "status", new_status)
    set_committed_value(invite, "resolved_at", resolved_at)


def _pending_direct_invites_for(db: Session, list_id: UUID, invitee_id: str) -> list[ListInvite]:
    return (
        db.query(ListInvite)
        .filter(
            ListInvite.list_id == list_id,
            ListInvite.invitee_id == invitee_id,
            ListInvite.kind == InviteKind.DIRECT,
            ListInvite.status == InviteStatus.PENDING,
        )
        .all()
    )


def _check_can_invite(db: Session, list_id: UUID, inviter_id: str) -> tuple[MovieList, list]:
    movie_list = get_list_or_raise(db, list_id)
    roster = load_roster(db, list_id)
    if find_member(roster, inviter_id) is None:
        raise NotAMemberError("Only members of this list can invite")
    return movie_list, roster


def _check_room(roster: list) -> None:
    if len(roster) >= settings.MAX_LIST_MEMBERS:
        raise CapacityExceededError(
            f"This list already has the maximum of {settings.MAX_LIST_MEMBERS} members"
        )


def _invite_payload(
    invite: ListInvite,
    directory: IdentityDirectory,
    list_name: str | None = None,
) -> dict:
    payload = {
        "id": invite.id,
        "kind": invite.kind.value,
        "list_id": invite.list_id,
        "list_owner_id": invite.list_owner_id,
        "list_name": list_name,
        "inviter_id": invite.inviter_id,
        "inviter_username": invite.inviter_username,
        "invitee_id": invite.invitee_id,
        "invitee_username": None,
        "invitee_display_name": None,
        "invitee_avatar_url": None,
        "code": invite.code,
        "status": invite.status.value,
        "expires_at": invite.expires_at,
        "created_at": invite.created_at,
    }
    if invite.invitee_id is not None:
        profile = cached_or_fresh(
            directory,
            invite.invitee_id,
            {
                "username": invite.invitee_username,
                "display_name": invite.invitee_display_name,
                "photo_url": invite.invitee_photo_url,
            },
            invite.profile_cached_at,
        )
        payload["invitee_username"] = profile["username"]
        payload["invitee_display_name"] = profile.get("display_name")
        payload["invitee_avatar_url"] = avatar_url(profile["username"], profile.get("photo_url"))
    return payload


# ── Creation ──────────────────────────────────────────────────────────────────

def create_direct_invite(
    db: Session,
    list_id: UUID,
    inviter_id: str,
    invitee_id: str,
    directory: IdentityDirectory | None = None,
) -> dict:
    """Invite a specific user. One pending direct invite per (list, invitee)."""
    directory = directory_for(db, directory)

    def _create(session: Session) -> dict:
        movie_list, roster = _check_can_invite(session, list_id, inviter_id)
        if find_member(roster, invitee_id) is not None:
            raise AlreadyMemberError("User is already a member of this list")
        _check_room(roster)

        pending = (
            session.query(ListInvite)
            .filter(
                ListInvite.list_id == list_id,
                ListInvite.kind == InviteKind.DIRECT,
                ListInvite.invitee_id == invitee_id,
                ListInvite.status == InviteStatus.PENDING,
            )
            .first()
        )
        if pending is not None:
            raise DuplicatePendingInviteError("This user already has a pending invite")

        invitee = directory.resolve_profile(invitee_id)
        inviter = directory.resolve_profile(inviter_id)
        invite = ListInvite(
            kind=InviteKind.DIRECT,
            list_id=list_id,
            list_owner_id=movie_list.owner_id,
            inviter_id=inviter_id,
            invitee_id=invitee_id,
            status=InviteStatus.PENDING,
            created_at=_utcnow(),
            invitee_username=invitee["username"],
            invitee_display_name=invitee.get("display_name"),
            invitee_photo_url=invitee.get("photo_url"),
            inviter_username=inviter["username"],
            profile_cached_at=_utcnow(),
        )
        session.add(invite)
        # Surface a concurrent duplicate here, as an IntegrityError the runner retries
        session.flush()
        logger.info("User %s invited %s to list %s", inviter_id, invitee_id, list_id)
        return _invite_payload(invite, directory, movie_list.name)

    return run_in_transaction(db, _create, name="create_direct_invite")


def create_link_invite(
    db: Session,
    list_id: UUID,
    inviter_id: str,
    directory: IdentityDirectory | None = None,
) -> dict:
    """Create a shareable invite link valid for INVITE_LINK_TTL_DAYS."""
    directory = directory_for(db, directory)

    def _create(session: Session) -> dict:
        movie_list, roster = _check_can_invite(session, list_id, inviter_id)
        _check_room(roster)

        now = _utcnow()
        invite = ListInvite(
            kind=InviteKind.LINK,
            list_id=list_id,
            list_owner_id=movie_list.owner_id,
            inviter_id=inviter_id,
            code=_generate_code(),
            status=InviteStatus.PENDING,
            created_at=now,
            expires_at=now + timedelta(days=settings.INVITE_LINK_TTL_DAYS),
            inviter_username=directory.resolve_profile(inviter_id)["username"],
            profile_cached_at=now,
        )
        session.add(invite)
        session.flush()
        logger.info("User %s created invite link %s for list %s", inviter_id, invite.id, list_id)
        return _invite_payload(invite, directory, movie_list.name)

    return run_in_transaction(db, _create, name="create_link_invite")


# ── Consumption ───────────────────────────────────────────────────────────────

def accept_direct_invite(
    db: Session,
    invite_id: UUID,
    accepter_id: str,
    directory: IdentityDirectory | None = None,
) -> dict:
    """
    Invitee joins the list.

    The capacity check, the membership insert and pending → accepted commit in
    one transaction; neither half is ever visible alone.
    Returns the new member.
    """
    directory = directory_for(db, directory)

    def _accept(session: Session) -> dict:
        invite = _get_invite_or_raise(session, invite_id)
        if invite.kind != InviteKind.DIRECT:
            raise InviteNotFoundError(f"Invite {invite_id} not found")
        if invite.invitee_id != accepter_id:
            raise NotInviteeError("This invite is addressed to someone else")
        if invite.status != InviteStatus.PENDING:
            raise InviteAlreadyResolvedError(f"This invite was already {invite.status.value}")

        try:
            movie_list = get_list_or_raise(session, invite.list_id)
        except ListNotFoundError as exc:
            raise InviteNotFoundError(f"Invite {invite_id} not found") from exc
        roster = load_roster(session, invite.list_id)

        member = add_collaborator(
            session, movie_list, roster, accepter_id, directory.resolve_profile(accepter_id)
        )
        _resolve(session, invite, InviteStatus.ACCEPTED)
        session.flush()
        return member_payload(member, directory)

    return run_in_transaction(db, _accept, name="accept_direct_invite")


def redeem_link_invite(
    db: Session,
    code: str,
    redeemer_id: str,
    directory: IdentityDirectory | None = None,
) -> dict:
    """Join a list through an invite link. Returns the new member."""
    directory = directory_for(db, directory)

    def _redeem(session: Session) -> dict:
        invite = _get_live_link_or_raise(session, code)
        try:
            movie_list = get_list_or_raise(session, invite.list_id)
        except ListNotFoundError as exc:
            raise InviteNotFoundError("This invite link is invalid or has expired") from exc
        roster = load_roster(session, invite.list_id)

        member = add_collaborator(
            session, movie_list, roster, redeemer_id, directory.resolve_profile(redeemer_id)
        )
        # A direct invite to the same list is now answered
        for direct in _pending_direct_invites_for(session, invite.list_id, redeemer_id):
            _resolve(session, direct, InviteStatus.ACCEPTED)
        session.flush()
        logger.info("User %s redeemed invite link %s", redeemer_id, invite.id)
        return member_payload(member, directory)

    return run_in_transaction(db, _redeem, name="redeem_link_invite")


# ── Resolution without consumption ────────────────────────────────────────────

def decline_direct_invite(db: Session, invite_id: UUID, accepter_id: str) -> None:
    """Invitee turns the invite down. No roster effect."""

    def _decline(session: Session) -> None:
        invite = _get_invite_or_raise(session, invite_id)
        if invite.kind != InviteKind.DIRECT:
            raise InviteNotFoundError(f"Invite {invite_id} not found")
        if invite.invitee_id != accepter_id:
            raise NotInviteeError("This invite is addressed to someone else")
        if invite.status != InviteStatus.PENDING:
            raise InviteAlreadyResolvedError(f"This invite was already {invite.status.value}")
        _resolve(session, invite, InviteStatus.DECLINED)
        logger.info("User %s declined invite %s", accepter_id, invite_id)

    run_in_transaction(db, _decline, name="decline_direct_invite")


def revoke_invite(db: Session, invite_id: UUID, revoker_id: str) -> None:
    """Any current member may cancel a pending invite or invalidate a link."""

    def _revoke(session: Session) -> None:
        invite = _get_invite_or_raise(session, invite_id)
        roster = load_roster(session, invite.list_id)
        if find_member(roster, revoker_id) is None:
            raise NotAMemberError("Only members of this list can revoke invites")
        if invite.status != InviteStatus.PENDING:
            raise InviteAlreadyResolvedError(f"This invite was already {invite.status.value}")
        _resolve(session, invite, InviteStatus.REVOKED)
        logger.info("User %s revoked invite %s", revoker_id, invite_id)

    run_in_transaction(db, _revoke, name="revoke_invite")


# ── Reads ─────────────────────────────────────────────────────────────────────

def list_pending_invites(
    db: Session,
    list_id: UUID,
    caller_id: str,
    directory: IdentityDirectory | None = None,
) -> Iterator[dict]:
    """
    Pending invites of a list, visible to its members only.

    Membership is checked now; the rows are fetched now too, and the returned
    iterator walks that snapshot once.
    """
    movie_list = get_list_or_raise(db, list_id)
    roster = load_roster(db, list_id)
    if find_member(roster, caller_id) is None:
        raise NotAMemberError("Only members of this list can see its invites")

    now = _utcnow()
    rows = (
        db.query(ListInvite)
        .filter(
            ListInvite.list_id == list_id,
            ListInvite.status == InviteStatus.PENDING,
        )
        .order_by(ListInvite.created_at.asc())
        .all()
    )
    snapshot = [
        row for row in rows
        if row.kind == InviteKind.DIRECT or as_utc(row.expires_at) > now
    ]
    directory = directory_for(db, directory)
    return (_invite_payload(row, directory, movie_list.name) for row in snapshot)


def list_my_pending_invites(
    db: Session,
    user_id: str,
    directory: IdentityDirectory | None = None,
) -> list[dict]:
    """Pending direct invites addressed to *user_id*, newest first."""
    rows = (
        db.query(ListInvite, MovieList)
        .join(MovieList, ListInvite.list_id == MovieList.id)
        .filter(
            ListInvite.invitee_id == user_id,
            ListInvite.kind == InviteKind.DIRECT,
            ListInvite.status == InviteStatus.PENDING,
        )
        .order_by(ListInvite.created_at.desc())
        .all()
    )
    directory = directory_for(db, directory)
    return [_invite_payload(invite, directory, movie_list.name) for invite, movie_list in rows]


def preview_invite_link(db: Session, code: str) -> dict:
    """What the invite landing page shows before the user joins."""
    invite = _get_live_link_or_raise(db, code)
    movie_list = db.get(MovieList, invite.list_id)
    if movie_list is None:
        raise InviteNotFoundError("This invite link is invalid or has expired")
    member_total = len(load_roster(db, invite.list_id))
    return {
        "list_id": movie_list.id,
        "list_name": movie_list.name,
        "inviter_id": invite.inviter_id,
        "inviter_username": invite.inviter_username,
        "member_count": member_total,
        "is_full": member_total >= settings.MAX_LIST_MEMBERS,
        "expires_at": invite.expires_at,
    }
