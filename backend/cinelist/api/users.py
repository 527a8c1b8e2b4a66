"""
Users API — /users
──────────────────
Endpoints:
  GET    /users/search?q=prefix       — Find people to invite
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cinelist.db.session import get_db
from cinelist.deps.auth import CurrentUser, get_current_user
from cinelist.schemas.users import UserPreview
from cinelist.services.identity import SqlIdentityDirectory, avatar_url

router = APIRouter()


@router.get("/search", response_model=list[UserPreview])
def search_users_endpoint(
    q: str = Query(..., min_length=1, max_length=50),
    limit: int = Query(default=10, ge=1, le=25),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[dict]:
    profiles = SqlIdentityDirectory(db).search_users(q, current_user.id, limit=limit)
    return [
        {
            "user_id": profile["user_id"],
            "username": profile["username"],
            "display_name": profile["display_name"],
            "avatar_url": avatar_url(profile["username"], profile["photo_url"]),
        }
        for profile in profiles
    ]
