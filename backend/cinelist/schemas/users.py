"""
User search schemas (invite composition).
"""
from pydantic import BaseModel


class UserPreview(BaseModel):
    """Minimal public profile used when picking someone to invite."""

    user_id: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
