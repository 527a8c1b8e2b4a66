"""
Identity Directory access: profile lookups and user search.

The directory is owned by the auth/onboarding side of the product. We read it
to put human-readable names on members and invites; authorization never looks
at it.

Profile cache contract
──────────────────────
Membership and invite rows keep a copy of the profile taken when the row was
written (username, display_name, photo_url, profile_cached_at). That copy is
served as-is while younger than PROFILE_CACHE_TTL_SECONDS. Older copies are
re-resolved for the response only; read paths never write the refreshed copy
back. Rows rewritten by a later operation (accept, transfer) pick up a fresh
copy.
"""
from datetime import datetime, timedelta, timezone
from typing import Protocol
from urllib.parse import quote_plus

from sqlalchemy.orm import Session

from cinelist.core.config import settings
from cinelist.db.models import UserProfile


def _avatar_from_username(username: str) -> str:
    return f"https://api.dicebear.com/8.x/thumbs/svg?seed={quote_plus(username)}"


def avatar_url(username: str | None, photo_url: str | None) -> str | None:
    if photo_url:
        return photo_url
    if username:
        return _avatar_from_username(username)
    return None


def _placeholder_profile(user_id: str) -> dict:
    return {
        "user_id": user_id,
        "username": user_id,
        "display_name": None,
        "photo_url": None,
    }


class IdentityDirectory(Protocol):
    def resolve_profile(self, user_id: str) -> dict:
        ...

    def search_users(self, prefix: str, excluding_user_id: str, limit: int = 10) -> list[dict]:
        ...


class SqlIdentityDirectory:
    """Identity Directory backed by the user_profiles mirror table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def resolve_profile(self, user_id: str) -> dict:
        """Return {user_id, username, display_name, photo_url}; unknown ids get a placeholder."""
        row = self.db.get(UserProfile, user_id)
        if row is None:
            return _placeholder_profile(user_id)
        return {
            "user_id": row.id,
            "username": row.username,
            "display_name": row.display_name,
            "photo_url": row.photo_url,
        }

    def search_users(self, prefix: str, excluding_user_id: str, limit: int = 10) -> list[dict]:
        """Prefix search on username, excluding the caller."""
        q = prefix.strip().lower()
        if not q:
            return []

        rows = (
            self.db.query(UserProfile)
            .filter(
                UserProfile.id != excluding_user_id,
                UserProfile.username.ilike(f"{q}%"),
            )
            .order_by(UserProfile.username.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                "user_id": row.id,
                "username": row.username,
                "display_name": row.display_name,
                "photo_url": row.photo_url,
            }
            for row in rows
        ]


def directory_for(db: Session, directory: IdentityDirectory | None = None) -> IdentityDirectory:
    return directory if directory is not None else SqlIdentityDirectory(db)


# ── Cache helpers ─────────────────────────────────────────────────────────────

def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def is_stale(cached_at: datetime | None, now: datetime | None = None) -> bool:
    if cached_at is None:
        return True
    now = now or datetime.now(timezone.utc)
    return now - as_utc(cached_at) > timedelta(seconds=settings.PROFILE_CACHE_TTL_SECONDS)


def cached_or_fresh(
    directory: IdentityDirectory,
    user_id: str,
    cached: dict,
    cached_at: datetime | None,
) -> dict:
    """Return the cached profile while it is fresh, else a newly resolved one."""
    if not is_stale(cached_at) and cached.get("username"):
        return {"user_id": user_id, **cached}
    return directory.resolve_profile(user_id)
