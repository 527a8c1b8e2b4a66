"""
SQLAlchemy ORM models.

Column types are the portable SQLAlchemy 2.x ones (Uuid, generic Enum) so the same
metadata runs on Postgres in production and on SQLite in the test suite.
The Alembic migration in alembic/versions mirrors this file.

User ids are opaque strings handed to us by the identity provider; there is
no users table to foreign-key against; `user_profiles` is only a read-side
mirror of the Identity Directory.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, relationship


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Enums ─────────────────────────────────────────────────────────────────────

class MemberRole(str, PyEnum):
    OWNER = "owner"
    COLLABORATOR = "collaborator"


class InviteKind(str, PyEnum):
    DIRECT = "direct"
    LINK = "link"


class InviteStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REVOKED = "revoked"


class WatchStatus(str, PyEnum):
    TO_WATCH = "To Watch"
    WATCHED = "Watched"


def _values(enum_cls: type[PyEnum]) -> list[str]:
    return [member.value for member in enum_cls]


# ── Timestamp helper ──────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


USER_ID = String(128)


# ── Models ────────────────────────────────────────────────────────────────────

class UserProfile(Base):
    """
    Read-side mirror of the Identity Directory.

    Written by the auth/onboarding flow, read here only to decorate responses
    (member lists, invite lists). Never consulted for authorization.
    """
    __tablename__ = "user_profiles"

    id = Column(USER_ID, primary_key=True, comment="Opaque user id from the identity provider")
    username = Column(String(32), unique=True, nullable=False, index=True)
    display_name = Column(String(60), nullable=True)
    photo_url = Column(String(500), nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UserProfile id={self.id!r} username={self.username!r}>"


class MovieList(Base):
    """
    A named, ownable collection of movies/shows.

    owner_id mirrors the single `owner` row in list_members; both change
    together, only via ownership transfer.

    roster_version is the optimistic-concurrency token for the membership
    roster. Every roster mutation bumps it with a compare-and-set UPDATE.
    """
    __tablename__ = "movie_lists"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(USER_ID, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    cover_image_url = Column(String(1000), nullable=True)
    roster_version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "length(trim(name)) >= 1 AND length(trim(name)) <= 100",
            name="chk_movie_list_name",
        ),
        # One default list per user
        Index(
            "uq_movie_lists_one_default",
            "owner_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default"),
        ),
    )

    # Relationships
    members = relationship(
        "ListMember",
        back_populates="movie_list",
        cascade="all, delete-orphan",
        order_by="ListMember.joined_at",
    )
    invites = relationship(
        "ListInvite",
        back_populates="movie_list",
        cascade="all, delete-orphan",
    )
    movies = relationship(
        "ListMovie",
        back_populates="movie_list",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<MovieList id={self.id} name={self.name!r} owner={self.owner_id!r}>"


class ListMember(Base):
    """
    One row of a list's roster.

    username / display_name / photo_url are a write-time copy of the Identity
    Directory profile; profile_cached_at records when it was taken.
    """
    __tablename__ = "list_members"

    list_id = Column(
        Uuid,
        ForeignKey("movie_lists.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(USER_ID, primary_key=True, index=True)
    role = Column(
        SAEnum(MemberRole, name="member_role", values_callable=_values),
        nullable=False,
    )
    joined_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Profile cache
    username = Column(String(32), nullable=True)
    display_name = Column(String(60), nullable=True)
    photo_url = Column(String(500), nullable=True)
    profile_cached_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # At most one owner per list
        Index(
            "uq_list_members_one_owner",
            "list_id",
            unique=True,
            postgresql_where=text("role = 'owner'"),
            sqlite_where=text("role = 'owner'"),
        ),
    )

    # Relationships
    movie_list = relationship("MovieList", back_populates="members")

    def __repr__(self) -> str:
        return f"<ListMember list={self.list_id} user={self.user_id!r} role={self.role}>"


class ListInvite(Base):
    """
    Invitation to join a list.

    kind=direct: addressed to invitee_id; pending → accepted | declined | revoked
    kind=link:   redeemable by anyone holding `code` until expires_at;
                   pending → revoked. Redemption does not change its status.
    """
    __tablename__ = "list_invites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    kind = Column(
        SAEnum(InviteKind, name="invite_kind", values_callable=_values),
        nullable=False,
    )
    list_id = Column(
        Uuid,
        ForeignKey("movie_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    list_owner_id = Column(USER_ID, nullable=False)  # owner at creation time
    inviter_id = Column(USER_ID, nullable=False)
    invitee_id = Column(USER_ID, nullable=True, index=True)
    code = Column(String(64), nullable=True, unique=True)
    status = Column(
        SAEnum(InviteStatus, name="invite_status", values_callable=_values),
        nullable=False,
        default=InviteStatus.PENDING,
    )
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    # Profile cache (invitee for direct invites, inviter for both)
    invitee_username = Column(String(32), nullable=True)
    invitee_display_name = Column(String(60), nullable=True)
    invitee_photo_url = Column(String(500), nullable=True)
    inviter_username = Column(String(32), nullable=True)
    profile_cached_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(kind = 'direct' AND invitee_id IS NOT NULL AND code IS NULL) OR "
            "(kind = 'link' AND invitee_id IS NULL AND code IS NOT NULL AND expires_at IS NOT NULL)",
            name="chk_invite_kind_fields",
        ),
        # One pending direct invite per (list, invitee)
        Index(
            "uq_list_invites_pending_direct",
            "list_id",
            "invitee_id",
            unique=True,
            postgresql_where=text("kind = 'direct' AND status = 'pending'"),
            sqlite_where=text("kind = 'direct' AND status = 'pending'"),
        ),
    )

    # Relationships
    movie_list = relationship("MovieList", back_populates="invites")

    def __repr__(self) -> str:
        return f"<ListInvite id={self.id} kind={self.kind} status={self.status}>"


class ListMovie(Base):
    """A movie or show in a list. Upserted by (list_id, tmdb_id)."""
    __tablename__ = "list_movies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    list_id = Column(
        Uuid,
        ForeignKey("movie_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tmdb_id = Column(Integer, nullable=False)
    media_type = Column(String(10), nullable=False, default="movie")
    title = Column(String(500), nullable=False)
    year = Column(String(4), nullable=True)
    poster_url = Column(String(1000), nullable=True)
    social_link = Column(String(1000), nullable=True)
    status = Column(
        SAEnum(WatchStatus, name="watch_status", values_callable=_values),
        nullable=False,
        default=WatchStatus.TO_WATCH,
    )
    added_by = Column(USER_ID, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("list_id", "tmdb_id", name="uq_list_movie"),
    )

    # Relationships
    movie_list = relationship("MovieList", back_populates="movies")
    notes = relationship(
        "ListMovieNote",
        back_populates="list_movie",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<ListMovie list={self.list_id} tmdb={self.tmdb_id} title={self.title!r}>"


class ListMovieNote(Base):
    """One user's note on a movie in a list. Keyed by the writer, so no merges."""
    __tablename__ = "list_movie_notes"

    list_movie_id = Column(
        Uuid,
        ForeignKey("list_movies.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id = Column(USER_ID, primary_key=True)
    body = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    # Relationships
    list_movie = relationship("ListMovie", back_populates="notes")
