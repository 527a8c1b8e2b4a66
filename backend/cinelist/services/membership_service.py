"""
Membership ledger: the authoritative roster of each list.

Invariants held here:
  • exactly one `owner` row per list (movie_lists.owner_id mirrors it)
  • at most MAX_LIST_MEMBERS rows per list
  • a user appears at most once per list

Every roster mutation runs inside run_in_transaction and starts with
claim_roster(), a compare-and-set on movie_lists.roster_version. Two writers
racing on the same list cannot both commit: the loser's CAS matches zero rows,
it rolls back and re-reads the roster.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from cinelist.core.config import settings
from cinelist.db.models import ListMember, MemberRole, MovieList
from cinelist.services.errors import (
    AlreadyMemberError,
    CannotRemoveOwnerError,
    CapacityExceededError,
    ListNotFoundError,
    NotAMemberError,
    NotListOwnerError,
    StorageConflictError,
)
from cinelist.services.identity import (
    IdentityDirectory,
    as_utc,
    avatar_url,
    cached_or_fresh,
    directory_for,
)
from cinelist.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


# ── Roster reads ──────────────────────────────────────────────────────────────

def get_list_or_raise(db: Session, list_id) -> MovieList:
    movie_list = db.get(MovieList, list_id, populate_existing=True)
    if movie_list is None:
        raise ListNotFoundError(f"List {list_id} not found")
    return movie_list


def load_roster(db: Session, list_id) -> list[ListMember]:
    """Owner first, then collaborators by join time."""
    rows = (
        db.query(ListMember)
        .populate_existing()
        .filter(ListMember.list_id == list_id)
        .all()
    )
    return sorted(
        rows,
        key=lambda m: (m.role != MemberRole.OWNER, as_utc(m.joined_at), m.user_id),
    )


def find_member(roster: list[ListMember], user_id: str) -> ListMember | None:
    for member in roster:
        if member.user_id == user_id:
            return member
    return None


def assert_member(db: Session, list_id, user_id: str) -> ListMember:
    member = (
        db.query(ListMember)
        .filter(ListMember.list_id == list_id, ListMember.user_id == user_id)
        .first()
    )
    if member is None:
        raise NotAMemberError("You are not a member of this list")
    return member


def member_count(db: Session, list_id) -> int:
    return db.query(ListMember).filter(ListMember.list_id == list_id).count()


def _owns_default_list(db: Session, user_id: str) -> bool:
    return (
        db.query(MovieList.id)
        .filter(MovieList.owner_id == user_id, MovieList.is_default.is_(True))
        .first()
        is not None
    )


# ── Roster writes (call inside run_in_transaction only) ───────────────────────

def claim_roster(db: Session, movie_list: MovieList) -> None:
    """
    Compare-and-set the roster version seen when *movie_list* was read.

    Raises StorageConflictError if anyone else changed the roster (or deleted
    the list) since.
    """
    seen = movie_list.roster_version
    result = db.execute(
        update(MovieList)
        .where(MovieList.id == movie_list.id, MovieList.roster_version == seen)
        .values(roster_version=MovieList.roster_version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StorageConflictError(f"Roster of list {movie_list.id} changed concurrently")
    set_committed_value(movie_list, "roster_version", seen + 1)


def apply_profile(member: ListMember, profile: dict) -> None:
    member.username = profile.get("username")
    member.display_name = profile.get("display_name")
    member.photo_url = profile.get("photo_url")
    member.profile_cached_at = datetime.now(timezone.utc)


def add_collaborator(
    db: Session,
    movie_list: MovieList,
    roster: list[ListMember],
    user_id: str,
    profile: dict,
) -> ListMember:
    """
    Append a collaborator row. Only invite consumption calls this.

    *roster* must have been read in the same attempt as *movie_list*; the CAS
    in claim_roster() is what makes the capacity check hold under concurrency.
    """
    if find_member(roster, user_id) is not None:
        raise AlreadyMemberError("User is already a member of this list")
    if len(roster) >= settings.MAX_LIST_MEMBERS:
        raise CapacityExceededError(
            f"This list already has the maximum of {settings.MAX_LIST_MEMBERS} members"
        )

    claim_roster(db, movie_list)

    member = ListMember(
        list_id=movie_list.id,
        user_id=user_id,
        role=MemberRole.COLLABORATOR,
        joined_at=datetime.now(timezone.utc),
    )
    apply_profile(member, profile)
    db.add(member)
    logger.info("User %s joined list %s as collaborator", user_id, movie_list.id)
    return member


def remove_member(
    db: Session,
    movie_list: MovieList,
    roster: list[ListMember],
    user_id: str,
) -> None:
    """Drop a collaborator row. The owner row is never removed here."""
    member = find_member(roster, user_id)
    if member is None:
        raise NotAMemberError("User is not a member of this list")
    if member.role == MemberRole.OWNER:
        raise CannotRemoveOwnerError(
            "The owner cannot be removed; transfer ownership first"
        )

    claim_roster(db, movie_list)
    db.delete(member)
    logger.info("User %s removed from list %s", user_id, movie_list.id)


# ── Payload ───────────────────────────────────────────────────────────────────

def member_payload(member: ListMember, directory: IdentityDirectory) -> dict:
    profile = cached_or_fresh(
        directory,
        member.user_id,
        {
            "username": member.username,
            "display_name": member.display_name,
            "photo_url": member.photo_url,
        },
        member.profile_cached_at,
    )
    return {
        "user_id": member.user_id,
        "role": member.role.value,
        "joined_at": member.joined_at,
        "username": profile["username"],
        "display_name": profile.get("display_name"),
        "avatar_url": avatar_url(profile["username"], profile.get("photo_url")),
    }


# ── Public operations ─────────────────────────────────────────────────────────

def get_members(
    db: Session,
    list_id,
    viewer_id: str,
    directory: IdentityDirectory | None = None,
) -> list[dict]:
    """Roster of a list. Members can always read it; others only on public lists."""
    movie_list = get_list_or_raise(db, list_id)
    roster = load_roster(db, list_id)
    if not movie_list.is_public and find_member(roster, viewer_id) is None:
        raise NotAMemberError("You are not a member of this list")

    directory = directory_for(db, directory)
    return [member_payload(m, directory) for m in roster]


def transfer_ownership(
    db: Session,
    list_id,
    current_owner_id: str,
    new_owner_id: str,
    directory: IdentityDirectory | None = None,
) -> list[dict]:
    """
    Make a collaborator the owner; the old owner stays on as collaborator.

    Both role changes and movie_lists.owner_id commit together. Returns the
    new roster.
    """
    directory = directory_for(db, directory)

    def _transfer(session: Session) -> list[dict]:
        movie_list = get_list_or_raise(session, list_id)
        roster = load_roster(session, list_id)

        if movie_list.owner_id != current_owner_id:
            raise NotListOwnerError("Only the owner can transfer ownership")

        old_owner = find_member(roster, current_owner_id)
        new_owner = find_member(roster, new_owner_id)
        if new_owner is None or new_owner.role != MemberRole.COLLABORATOR:
            raise NotAMemberError("New owner must be a collaborator on this list")

        claim_roster(session, movie_list)

        # Demote before promoting so the one-owner index never sees two owners
        old_owner.role = MemberRole.COLLABORATOR
        session.flush()
        new_owner.role = MemberRole.OWNER
        if movie_list.is_default and _owns_default_list(session, new_owner_id):
            # One default list per owner: the incoming list becomes a regular one
            movie_list.is_default = False
        movie_list.owner_id = new_owner_id
        apply_profile(old_owner, directory.resolve_profile(current_owner_id))
        apply_profile(new_owner, directory.resolve_profile(new_owner_id))
        session.flush()

        logger.info(
            "Ownership of list %s transferred from %s to %s",
            list_id, current_owner_id, new_owner_id,
        )
        return [member_payload(m, directory) for m in load_roster(session, list_id)]

    return run_in_transaction(db, _transfer, name="transfer_ownership")


def remove_collaborator(
    db: Session,
    list_id,
    owner_id: str,
    collaborator_id: str,
) -> None:
    """Owner removes a collaborator."""

    def _remove(session: Session) -> None:
        movie_list = get_list_or_raise(session, list_id)
        roster = load_roster(session, list_id)
        if movie_list.owner_id != owner_id:
            raise NotListOwnerError("Only the owner can remove collaborators")
        remove_member(session, movie_list, roster, collaborator_id)

    run_in_transaction(db, _remove, name="remove_collaborator")


def leave_list(db: Session, list_id, user_id: str) -> None:
    """A collaborator removes themself. The owner must transfer first."""

    def _leave(session: Session) -> None:
        movie_list = get_list_or_raise(session, list_id)
        roster = load_roster(session, list_id)
        remove_member(session, movie_list, roster, user_id)

    run_in_transaction(db, _leave, name="leave_list")
