"""
Movies inside lists: fan-out add and per-user notes.

add_movie_to_lists is best effort. Each selected list gets its own
transaction, so one failing list neither blocks nor rolls back the others;
the caller gets a per-list outcome.
"""
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from cinelist.core.config import settings
from cinelist.db.models import ListMovie, ListMovieNote, WatchStatus
from cinelist.services.errors import (
    InvalidNoteError,
    ListNotFoundError,
    ListServiceError,
    MovieNotFoundError,
)
from cinelist.services.membership_service import assert_member, get_list_or_raise
from cinelist.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def _clean_note(text: str | None) -> str:
    cleaned = (text or "").strip()
    if len(cleaned) > settings.NOTE_MAX_LENGTH:
        raise InvalidNoteError(f"Notes are limited to {settings.NOTE_MAX_LENGTH} characters")
    return cleaned


def _write_note(session: Session, list_movie: ListMovie, user_id: str, text: str) -> None:
    """Upsert or clear the caller's own note. Other members' notes are never touched."""
    existing = session.get(ListMovieNote, (list_movie.id, user_id))
    if not text:
        if existing is not None:
            session.delete(existing)
        return
    if existing is None:
        session.add(ListMovieNote(list_movie_id=list_movie.id, user_id=user_id, body=text))
    else:
        existing.body = text
        existing.updated_at = datetime.now(timezone.utc)


def _upsert_movie(session: Session, list_id: UUID, user_id: str, movie: dict) -> ListMovie:
    list_movie = (
        session.query(ListMovie)
        .filter(ListMovie.list_id == list_id, ListMovie.tmdb_id == movie["tmdb_id"])
        .first()
    )
    if list_movie is None:
        list_movie = ListMovie(
            list_id=list_id,
            tmdb_id=movie["tmdb_id"],
            media_type=movie.get("media_type") or "movie",
            title=movie["title"],
            year=movie.get("year"),
            poster_url=movie.get("poster_url"),
            social_link=movie.get("social_link"),
            status=WatchStatus.TO_WATCH,
            added_by=user_id,
        )
        session.add(list_movie)
    else:
        # Refresh display fields from the catalog; keep added_by and status
        list_movie.title = movie["title"]
        list_movie.media_type = movie.get("media_type") or list_movie.media_type
        list_movie.year = movie.get("year") or list_movie.year
        list_movie.poster_url = movie.get("poster_url") or list_movie.poster_url
        if movie.get("social_link"):
            list_movie.social_link = movie["social_link"]
    session.flush()
    return list_movie


def _add_to_one_list(
    db: Session,
    user_id: str,
    movie: dict,
    selection: dict,
) -> None:
    list_id = selection["list_id"]
    expected_owner = selection.get("list_owner_id")

    def _add(session: Session) -> None:
        movie_list = get_list_or_raise(session, list_id)
        if expected_owner and movie_list.owner_id != expected_owner:
            raise ListNotFoundError(f"List {list_id} not found")
        assert_member(session, list_id, user_id)
        note = _clean_note(selection.get("note"))

        list_movie = _upsert_movie(session, list_id, user_id, movie)
        if note:
            _write_note(session, list_movie, user_id, note)

    run_in_transaction(db, _add, name="add_movie_to_list")


def add_movie_to_lists(
    db: Session,
    user_id: str,
    movie: dict,
    selections: list[dict],
) -> dict:
    """
    Add *movie* to every selected list the caller belongs to.

    Returns {success_count, error_count, results}; each result carries the
    list id and, on failure, the error code and message.
    """
    results = []
    for selection in selections:
        try:
            _add_to_one_list(db, user_id, movie, selection)
        except ListServiceError as exc:
            results.append({
                "list_id": selection["list_id"],
                "ok": False,
                "error_code": exc.code,
                "message": str(exc),
            })
            continue
        results.append({
            "list_id": selection["list_id"],
            "ok": True,
            "error_code": None,
            "message": None,
        })

    success_count = sum(1 for r in results if r["ok"])
    error_count = len(results) - success_count
    logger.info(
        "User %s added tmdb:%s to %d list(s), %d failed",
        user_id, movie.get("tmdb_id"), success_count, error_count,
    )
    return {
        "success_count": success_count,
        "error_count": error_count,
        "results": results,
    }


def update_movie_note(
    db: Session,
    list_id: UUID,
    tmdb_id: int,
    user_id: str,
    text: str | None,
) -> dict:
    """Write (or clear, when empty) the caller's note. Returns all notes on the movie."""

    def _update(session: Session) -> dict:
        get_list_or_raise(session, list_id)
        assert_member(session, list_id, user_id)
        note = _clean_note(text)

        list_movie = (
            session.query(ListMovie)
            .filter(ListMovie.list_id == list_id, ListMovie.tmdb_id == tmdb_id)
            .first()
        )
        if list_movie is None:
            raise MovieNotFoundError("This movie is not in the list")

        _write_note(session, list_movie, user_id, note)
        session.flush()

        notes = (
            session.query(ListMovieNote)
            .filter(ListMovieNote.list_movie_id == list_movie.id)
            .all()
        )
        return {
            "list_id": list_id,
            "tmdb_id": tmdb_id,
            "notes": {n.user_id: n.body for n in notes},
        }

    return run_in_transaction(db, _update, name="update_movie_note")
