"""
List and membership request/response schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CreateListRequest(BaseModel):
    """Create a new list. The caller becomes its owner."""

    name: str = Field(min_length=1, max_length=100)
    is_public: bool = False
    cover_image_url: str | None = Field(default=None, max_length=1000)


class UpdateListRequest(BaseModel):
    """Partial settings update. Omitted fields are left alone."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    is_public: bool | None = None
    cover_image_url: str | None = Field(default=None, max_length=1000)


class TransferOwnershipRequest(BaseModel):
    new_owner_id: str = Field(min_length=1, max_length=128)


class MemberResponse(BaseModel):
    """One roster entry; display fields come from the profile cache."""

    user_id: str
    role: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
    joined_at: datetime


class ListResponse(BaseModel):
    id: UUID
    owner_id: str
    name: str
    is_public: bool
    is_default: bool
    cover_image_url: str | None = None
    role: str | None = None
    member_count: int
    movie_count: int = 0
    created_at: datetime
    updated_at: datetime


class ListMovieResponse(BaseModel):
    tmdb_id: int
    media_type: str
    title: str
    year: str | None = None
    poster_url: str | None = None
    social_link: str | None = None
    status: str
    added_by: str
    added_at: datetime
    notes: dict[str, str] = {}


class ListDetailResponse(ListResponse):
    members: list[MemberResponse]
    movies: list[ListMovieResponse]
