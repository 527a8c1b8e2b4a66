"""Collaborative lists: lists, roster, invites, movies, notes, profile mirror.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    member_role = sa.Enum("owner", "collaborator", name="member_role")
    invite_kind = sa.Enum("direct", "link", name="invite_kind")
    invite_status = sa.Enum("pending", "accepted", "declined", "revoked", name="invite_status")
    watch_status = sa.Enum("To Watch", "Watched", name="watch_status")

    # ── user_profiles ─────────────────────────────────────────────────────
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("username", sa.String(32), nullable=False),
        sa.Column("display_name", sa.String(60), nullable=True),
        sa.Column("photo_url", sa.String(500), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_user_profiles_username", "user_profiles", ["username"], unique=True)

    # ── movie_lists ───────────────────────────────────────────────────────
    op.create_table(
        "movie_lists",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("cover_image_url", sa.String(1000), nullable=True),
        sa.Column("roster_version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "length(trim(name)) >= 1 AND length(trim(name)) <= 100",
            name="chk_movie_list_name",
        ),
    )
    op.create_index("ix_movie_lists_owner_id", "movie_lists", ["owner_id"])
    op.create_index(
        "uq_movie_lists_one_default",
        "movie_lists",
        ["owner_id"],
        unique=True,
        postgresql_where=sa.text("is_default"),
    )

    # ── list_members ──────────────────────────────────────────────────────
    op.create_table(
        "list_members",
        sa.Column("list_id", UUID(as_uuid=True), sa.ForeignKey("movie_lists.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(128), primary_key=True),
        sa.Column("role", member_role, nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("username", sa.String(32), nullable=True),
        sa.Column("display_name", sa.String(60), nullable=True),
        sa.Column("photo_url", sa.String(500), nullable=True),
        sa.Column("profile_cached_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_list_members_user_id", "list_members", ["user_id"])
    op.create_index(
        "uq_list_members_one_owner",
        "list_members",
        ["list_id"],
        unique=True,
        postgresql_where=sa.text("role = 'owner'"),
    )

    # ── list_invites ──────────────────────────────────────────────────────
    op.create_table(
        "list_invites",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("kind", invite_kind, nullable=False),
        sa.Column("list_id", UUID(as_uuid=True), sa.ForeignKey("movie_lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("list_owner_id", sa.String(128), nullable=False),
        sa.Column("inviter_id", sa.String(128), nullable=False),
        sa.Column("invitee_id", sa.String(128), nullable=True),
        sa.Column("code", sa.String(64), nullable=True, unique=True),
        sa.Column("status", invite_status, nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("invitee_username", sa.String(32), nullable=True),
        sa.Column("invitee_display_name", sa.String(60), nullable=True),
        sa.Column("invitee_photo_url", sa.String(500), nullable=True),
        sa.Column("inviter_username", sa.String(32), nullable=True),
        sa.Column("profile_cached_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(kind = 'direct' AND invitee_id IS NOT NULL AND code IS NULL) OR "
            "(kind = 'link' AND invitee_id IS NULL AND code IS NOT NULL AND expires_at IS NOT NULL)",
            name="chk_invite_kind_fields",
        ),
    )
    op.create_index("ix_list_invites_list_id", "list_invites", ["list_id"])
    op.create_index("ix_list_invites_invitee_id", "list_invites", ["invitee_id"])
    op.create_index(
        "uq_list_invites_pending_direct",
        "list_invites",
        ["list_id", "invitee_id"],
        unique=True,
        postgresql_where=sa.text("kind = 'direct' AND status = 'pending'"),
    )

    # ── list_movies ───────────────────────────────────────────────────────
    op.create_table(
        "list_movies",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("list_id", UUID(as_uuid=True), sa.ForeignKey("movie_lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tmdb_id", sa.Integer(), nullable=False),
        sa.Column("media_type", sa.String(10), nullable=False, server_default="movie"),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("year", sa.String(4), nullable=True),
        sa.Column("poster_url", sa.String(1000), nullable=True),
        sa.Column("social_link", sa.String(1000), nullable=True),
        sa.Column("status", watch_status, nullable=False, server_default="To Watch"),
        sa.Column("added_by", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("list_id", "tmdb_id", name="uq_list_movie"),
    )
    op.create_index("ix_list_movies_list_id", "list_movies", ["list_id"])

    # ── list_movie_notes ──────────────────────────────────────────────────
    op.create_table(
        "list_movie_notes",
        sa.Column("list_movie_id", UUID(as_uuid=True), sa.ForeignKey("list_movies.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(128), primary_key=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("list_movie_notes")
    op.drop_table("list_movies")
    op.drop_table("list_invites")
    op.drop_table("list_members")
    op.drop_table("movie_lists")
    op.drop_table("user_profiles")
    sa.Enum(name="watch_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="invite_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="invite_kind").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="member_role").drop(op.get_bind(), checkfirst=True)
