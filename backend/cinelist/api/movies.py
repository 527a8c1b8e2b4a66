"""
Movies API
──────────
Adding a movie to several lists at once, and per-user notes.

Endpoints:
  POST   /movies/add                            — Add one movie to the selected lists
  PUT    /lists/{id}/movies/{tmdb_id}/note      — Set or clear my note on a movie
"""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cinelist.api.errors import service_error
from cinelist.db.session import get_db
from cinelist.deps.auth import CurrentUser, get_current_user
from cinelist.schemas.movies import (
    AddMovieToListsRequest,
    AddMovieToListsResponse,
    MovieNotesResponse,
    UpdateNoteRequest,
)
from cinelist.services.errors import ListServiceError
from cinelist.services.movie_service import add_movie_to_lists, update_movie_note

router = APIRouter()


@router.post("/movies/add", response_model=AddMovieToListsResponse)
def add_movie_endpoint(
    payload: AddMovieToListsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    # Per-list failures are reported in the body; the request itself succeeds
    return add_movie_to_lists(
        db,
        current_user.id,
        payload.movie.model_dump(),
        [selection.model_dump() for selection in payload.selections],
    )


@router.put("/lists/{list_id}/movies/{tmdb_id}/note", response_model=MovieNotesResponse)
def update_note_endpoint(
    list_id: UUID,
    tmdb_id: int,
    payload: UpdateNoteRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return update_movie_note(db, list_id, tmdb_id, current_user.id, payload.text)
    except ListServiceError as exc:
        raise service_error(exc) from exc
