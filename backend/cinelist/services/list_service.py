"""
List lifecycle: create, settings, delete, and the caller's list overview.
"""
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from cinelist.core.config import settings
from cinelist.db.models import (
    ListInvite,
    ListMember,
    ListMovie,
    ListMovieNote,
    MemberRole,
    MovieList,
)
from cinelist.services.errors import (
    CannotDeleteDefaultListError,
    NotAMemberError,
    NotListOwnerError,
)
from cinelist.services.identity import IdentityDirectory, directory_for
from cinelist.services.membership_service import (
    apply_profile,
    claim_roster,
    find_member,
    get_list_or_raise,
    load_roster,
    member_payload,
)
from cinelist.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def _list_dict(movie_list: MovieList, role: str | None, member_count: int, movie_count: int) -> dict:
    return {
        "id": movie_list.id,
        "owner_id": movie_list.owner_id,
        "name": movie_list.name,
        "is_public": movie_list.is_public,
        "is_default": movie_list.is_default,
        "cover_image_url": movie_list.cover_image_url,
        "role": role,
        "member_count": member_count,
        "movie_count": movie_count,
        "created_at": movie_list.created_at,
        "updated_at": movie_list.updated_at,
    }


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned or len(cleaned) > 100:
        raise ValueError("List name must be 1-100 characters")
    return cleaned


def _insert_list_with_owner(
    session: Session,
    owner_id: str,
    name: str,
    is_public: bool,
    is_default: bool,
    cover_image_url: str | None,
    directory: IdentityDirectory,
) -> MovieList:
    now = datetime.now(timezone.utc)
    movie_list = MovieList(
        owner_id=owner_id,
        name=_clean_name(name),
        is_public=is_public,
        is_default=is_default,
        cover_image_url=cover_image_url,
        roster_version=1,
        created_at=now,
        updated_at=now,
    )
    session.add(movie_list)
    session.flush()

    owner = ListMember(
        list_id=movie_list.id,
        user_id=owner_id,
        role=MemberRole.OWNER,
        joined_at=now,
    )
    apply_profile(owner, directory.resolve_profile(owner_id))
    session.add(owner)
    session.flush()
    return movie_list


def create_list(
    db: Session,
    owner_id: str,
    name: str,
    is_public: bool = False,
    cover_image_url: str | None = None,
    directory: IdentityDirectory | None = None,
) -> dict:
    """Create a list and its owner membership in one transaction."""
    directory = directory_for(db, directory)

    def _create(session: Session) -> dict:
        movie_list = _insert_list_with_owner(
            session, owner_id, name, is_public, False, cover_image_url, directory
        )
        logger.info("User %s created list %s", owner_id, movie_list.id)
        return _list_dict(movie_list, MemberRole.OWNER.value, 1, 0)

    return run_in_transaction(db, _create, name="create_list")


def ensure_default_list(
    db: Session,
    owner_id: str,
    directory: IdentityDirectory | None = None,
) -> dict:
    """Return the caller's default list, creating it on first use."""
    directory = directory_for(db, directory)

    def _ensure(session: Session) -> dict:
        existing = (
            session.query(MovieList)
            .filter(MovieList.owner_id == owner_id, MovieList.is_default.is_(True))
            .order_by(MovieList.created_at.asc())
            .first()
        )
        if existing is not None:
            members = len(load_roster(session, existing.id))
            movies = session.query(ListMovie).filter(ListMovie.list_id == existing.id).count()
            return _list_dict(existing, MemberRole.OWNER.value, members, movies)

        movie_list = _insert_list_with_owner(
            session, owner_id, settings.DEFAULT_LIST_NAME, False, True, None, directory
        )
        logger.info("Created default list %s for user %s", movie_list.id, owner_id)
        return _list_dict(movie_list, MemberRole.OWNER.value, 1, 0)

    return run_in_transaction(db, _ensure, name="ensure_default_list")


def update_list_settings(
    db: Session,
    list_id: UUID,
    caller_id: str,
    updates: dict,
) -> dict:
    """
    Rename, change visibility or cover. Owner or collaborator.

    These are plain field updates; the roster version is left alone.
    """

    def _update(session: Session) -> dict:
        movie_list = get_list_or_raise(session, list_id)
        roster = load_roster(session, list_id)
        member = find_member(roster, caller_id)
        if member is None:
            raise NotAMemberError("You are not a member of this list")

        if updates.get("name") is not None:
            movie_list.name = _clean_name(updates["name"])
        if updates.get("is_public") is not None:
            movie_list.is_public = bool(updates["is_public"])
        if "cover_image_url" in updates:
            movie_list.cover_image_url = updates["cover_image_url"] or None
        movie_list.updated_at = datetime.now(timezone.utc)
        session.flush()

        movies = session.query(ListMovie).filter(ListMovie.list_id == list_id).count()
        return _list_dict(movie_list, member.role.value, len(roster), movies)

    return run_in_transaction(db, _update, name="update_list_settings")


def delete_list(db: Session, list_id: UUID, requester_id: str) -> None:
    """
    Delete a list with everything hanging off it: roster, invites, movies, notes.

    Default lists can never be deleted. Only the owner may delete.
    """

    def _delete(session: Session) -> None:
        movie_list = get_list_or_raise(session, list_id)
        if movie_list.is_default:
            raise CannotDeleteDefaultListError("Your default list cannot be deleted")
        if movie_list.owner_id != requester_id:
            raise NotListOwnerError("Only the owner can delete this list")

        # Fence off concurrent accepts/transfers before the rows go away
        claim_roster(session, movie_list)

        movie_ids = session.query(ListMovie.id).filter(ListMovie.list_id == list_id)
        session.query(ListMovieNote).filter(
            ListMovieNote.list_movie_id.in_(movie_ids.scalar_subquery())
        ).delete(synchronize_session=False)
        session.query(ListMovie).filter(ListMovie.list_id == list_id).delete(synchronize_session=False)
        session.query(ListInvite).filter(ListInvite.list_id == list_id).delete(synchronize_session=False)
        session.query(ListMember).filter(ListMember.list_id == list_id).delete(synchronize_session=False)
        session.query(MovieList).filter(MovieList.id == list_id).delete(synchronize_session=False)
        session.expunge(movie_list)
        logger.info("User %s deleted list %s", requester_id, list_id)

    run_in_transaction(db, _delete, name="delete_list")


def list_my_lists(db: Session, user_id: str) -> list[dict]:
    """Every list the user belongs to, owned or collaborative, newest first."""
    rows = (
        db.query(MovieList, ListMember.role)
        .join(ListMember, ListMember.list_id == MovieList.id)
        .filter(ListMember.user_id == user_id)
        .order_by(MovieList.is_default.desc(), MovieList.created_at.desc())
        .all()
    )
    if not rows:
        return []

    list_ids = [movie_list.id for movie_list, _ in rows]
    member_counts = dict(
        db.query(ListMember.list_id, func.count(ListMember.user_id))
        .filter(ListMember.list_id.in_(list_ids))
        .group_by(ListMember.list_id)
        .all()
    )
    movie_counts = dict(
        db.query(ListMovie.list_id, func.count(ListMovie.id))
        .filter(ListMovie.list_id.in_(list_ids))
        .group_by(ListMovie.list_id)
        .all()
    )

    return [
        _list_dict(
            movie_list,
            role.value,
            member_counts.get(movie_list.id, 0),
            movie_counts.get(movie_list.id, 0),
        )
        for movie_list, role in rows
    ]


def get_list_detail(
    db: Session,
    list_id: UUID,
    viewer_id: str,
    directory: IdentityDirectory | None = None,
) -> dict:
    """List metadata, roster and movies (with everyone's notes)."""
    movie_list = get_list_or_raise(db, list_id)
    roster = load_roster(db, list_id)
    viewer = find_member(roster, viewer_id)
    if viewer is None and not movie_list.is_public:
        raise NotAMemberError("You are not a member of this list")

    directory = directory_for(db, directory)
    movies = (
        db.query(ListMovie)
        .filter(ListMovie.list_id == list_id)
        .order_by(ListMovie.created_at.desc())
        .all()
    )
    notes_by_movie: dict = {}
    if movies:
        for note in (
            db.query(ListMovieNote)
            .filter(ListMovieNote.list_movie_id.in_([m.id for m in movies]))
            .all()
        ):
            notes_by_movie.setdefault(note.list_movie_id, {})[note.user_id] = note.body

    detail = _list_dict(
        movie_list,
        viewer.role.value if viewer else None,
        len(roster),
        len(movies),
    )
    detail["members"] = [member_payload(m, directory) for m in roster]
    detail["movies"] = [
        {
            "tmdb_id": movie.tmdb_id,
            "media_type": movie.media_type,
            "title": movie.title,
            "year": movie.year,
            "poster_url": movie.poster_url,
            "social_link": movie.social_link,
            "status": movie.status.value,
            "added_by": movie.added_by,
            "added_at": movie.created_at,
            # Public viewers see the list, not the members' private notes
            "notes": notes_by_movie.get(movie.id, {}) if viewer else {},
        }
        for movie in movies
    ]
    return detail
