"""Create board membership, share link, join request and sink tables.

Revision ID: 001_share_links
Revises: 000_enable_extensions
Create Date: 2026-10-19

Referenced tables (users, workspaces, boards and their member tables) carry
only the columns the share link flows read or write.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_share_links"
down_revision: str | None = "000_enable_extensions"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_USERS_ID = "users.id"


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        sa.UUID(),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    # Referenced entities
    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=True),
        _created_at_column(),
    )

    op.create_table(
        "workspaces",
        _id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        _created_at_column(),
    )

    op.create_table(
        "workspace_members",
        _id_column(),
        sa.Column(
            "workspace_id",
            sa.UUID(),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False),
        _created_at_column(),
        sa.UniqueConstraint(
            "workspace_id", "user_id", name="uq_workspace_members_workspace_user"
        ),
        sa.CheckConstraint(
            "role IN ('owner', 'admin', 'member', 'viewer')",
            name="ck_workspace_members_role",
        ),
    )

    op.create_table(
        "boards",
        _id_column(),
        sa.Column(
            "workspace_id",
            sa.UUID(),
            sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_by",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at_column(),
    )

    op.create_table(
        "board_members",
        _id_column(),
        sa.Column(
            "board_id",
            sa.UUID(),
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(20), nullable=False),
        _created_at_column(),
        sa.UniqueConstraint("board_id", "user_id", name="uq_board_members_board_user"),
        sa.CheckConstraint(
            "role IN ('owner', 'admin', 'member', 'commenter', 'viewer')",
            name="ck_board_members_role",
        ),
    )

    # Share links. Only the SHA-256 hash of the secret is stored.
    op.create_table(
        "share_links",
        _id_column(),
        sa.Column(
            "board_id",
            sa.UUID(),
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "owner_id",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("access_type", sa.String(20), nullable=False),
        sa.Column("role_on_join", sa.String(20), nullable=False),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("restrict_domain", sa.String(255), nullable=True),
        sa.Column(
            "single_use", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at_column(),
        sa.CheckConstraint(
            "access_type IN ('view_only', 'join_on_click', 'invite_only')",
            name="ck_share_links_access_type",
        ),
        sa.CheckConstraint(
            "role_on_join IN ('viewer', 'commenter', 'member')",
            name="ck_share_links_role_on_join",
        ),
        sa.CheckConstraint("uses >= 0", name="ck_share_links_uses_non_negative"),
        sa.CheckConstraint(
            "max_uses IS NULL OR max_uses > 0",
            name="ck_share_links_max_uses_positive",
        ),
    )
    op.create_index(
        "ix_share_links_board_created", "share_links", ["board_id", "created_at"]
    )

    # Append-only use log
    op.create_table(
        "share_link_uses",
        _id_column(),
        sa.Column(
            "share_link_id",
            sa.UUID(),
            sa.ForeignKey("share_links.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("action", sa.String(20), nullable=False),
        _created_at_column(),
        sa.CheckConstraint(
            "action IN ('requested', 'joined')", name="ck_share_link_uses_action"
        ),
    )
    op.create_index(
        "ix_share_link_uses_link_action",
        "share_link_uses",
        ["share_link_id", "action"],
    )

    # One join request per (link, user); repeats upsert back to pending
    op.create_table(
        "join_requests",
        _id_column(),
        sa.Column(
            "share_link_id",
            sa.UUID(),
            sa.ForeignKey("share_links.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "board_id",
            sa.UUID(),
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "handled_by",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("handled_at", sa.DateTime(timezone=True), nullable=True),
        _created_at_column(),
        sa.UniqueConstraint(
            "share_link_id", "user_id", name="uq_join_requests_link_user"
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_join_requests_status",
        ),
    )
    op.create_index(
        "ix_join_requests_board_status", "join_requests", ["board_id", "status"]
    )

    # Sinks
    op.create_table(
        "activities",
        _id_column(),
        sa.Column(
            "board_id",
            sa.UUID(),
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        _created_at_column(),
    )
    op.create_index(
        "ix_activities_board_created", "activities", ["board_id", "created_at"]
    )

    op.create_table(
        "notifications",
        _id_column(),
        sa.Column(
            "user_id",
            sa.UUID(),
            sa.ForeignKey(_USERS_ID, ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at_column(),
    )
    op.create_index(
        "ix_notifications_user_read", "notifications", ["user_id", "is_read"]
    )


def downgrade() -> None:
    op.drop_index("ix_notifications_user_read")
    op.drop_table("notifications")
    op.drop_index("ix_activities_board_created")
    op.drop_table("activities")
    op.drop_index("ix_join_requests_board_status")
    op.drop_table("join_requests")
    op.drop_index("ix_share_link_uses_link_action")
    op.drop_table("share_link_uses")
    op.drop_index("ix_share_links_board_created")
    op.drop_table("share_links")
    op.drop_table("board_members")
    op.drop_table("boards")
    op.drop_table("workspace_members")
    op.drop_table("workspaces")
    op.drop_table("users")
