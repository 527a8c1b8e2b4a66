"""
Invite request/response schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class DirectInviteRequest(BaseModel):
    """Invite a specific user to collaborate."""

    invitee_id: str = Field(min_length=1, max_length=128)


class InviteResponse(BaseModel):
    """A direct invite or an invite link."""

    id: UUID
    kind: str
    list_id: UUID
    list_owner_id: str
    list_name: str | None = None
    inviter_id: str
    inviter_username: str | None = None
    invitee_id: str | None = None
    invitee_username: str | None = None
    invitee_display_name: str | None = None
    invitee_avatar_url: str | None = None
    code: str | None = None
    status: str
    expires_at: datetime | None = None
    created_at: datetime


class InviteLinkPreviewResponse(BaseModel):
    """What the invite landing page shows before joining."""

    list_id: UUID
    list_name: str
    inviter_id: str
    inviter_username: str | None = None
    member_count: int
    is_full: bool
    expires_at: datetime
