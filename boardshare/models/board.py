"""Board and workspace membership models.

These tables belong to the board subsystem. Only the columns the share-link
flows read or write are mapped here: names for messages, the workspace a
board lives in, and the (board, user) / (workspace, user) role rows.
"""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from boardshare.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin

_USERS_ID = "users.id"


class Workspace(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Workspace grouping boards.

    Attributes:
        id: UUID primary key.
        name: Display name.
    """

    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(String(255), nullable=False)


class WorkspaceMember(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Workspace-level membership.

    Attributes:
        workspace_id: Workspace the user belongs to.
        user_id: Member.
        role: One of owner, admin, member, viewer (viewer is the lowest tier).
    """

    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint(
            "workspace_id", "user_id", name="uq_workspace_members_workspace_user"
        ),
        CheckConstraint(
            "role IN ('owner', 'admin', 'member', 'viewer')",
            name="ck_workspace_members_role",
        ),
    )

    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey(_USERS_ID, ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)


class Board(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Board that share links grant access to.

    Attributes:
        workspace_id: Owning workspace.
        name: Display name.
        description: Optional description shown on the share landing page.
        created_by: User who created the board.
    """

    __tablename__ = "boards"

    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey(_USERS_ID, ondelete="CASCADE"),
        nullable=False,
    )


class BoardMember(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Board-level membership: (board, user) -> role.

    Attributes:
        board_id: Board.
        user_id: Member.
        role: One of owner, admin, member, commenter, viewer.
    """

    __tablename__ = "board_members"
    __table_args__ = (
        UniqueConstraint("board_id", "user_id", name="uq_board_members_board_user"),
        CheckConstraint(
            "role IN ('owner', 'admin', 'member', 'commenter', 'viewer')",
            name="ck_board_members_role",
        ),
    )

    board_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey(_USERS_ID, ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
