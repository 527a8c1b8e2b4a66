"""
Movie-in-list request/response schemas.
"""
from uuid import UUID

from pydantic import BaseModel, Field


class MoviePayload(BaseModel):
    """Catalog metadata for the movie being added. Opaque beyond these fields."""

    tmdb_id: int
    title: str = Field(min_length=1, max_length=500)
    year: str | None = Field(default=None, max_length=4)
    poster_url: str | None = None
    media_type: str = Field(default="movie", pattern="^(movie|tv)$")
    social_link: str | None = None


class ListSelection(BaseModel):
    list_id: UUID
    list_owner_id: str | None = None
    note: str | None = None


class AddMovieToListsRequest(BaseModel):
    movie: MoviePayload
    selections: list[ListSelection] = Field(min_length=1, max_length=50)


class ListAddResult(BaseModel):
    list_id: UUID
    ok: bool
    error_code: str | None = None
    message: str | None = None


class AddMovieToListsResponse(BaseModel):
    success_count: int
    error_count: int
    results: list[ListAddResult]


class UpdateNoteRequest(BaseModel):
    """Empty text clears the caller's note."""

    text: str = ""


class MovieNotesResponse(BaseModel):
    list_id: UUID
    tmdb_id: int
    notes: dict[str, str]
