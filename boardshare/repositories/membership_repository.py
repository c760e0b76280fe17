"""Repository for board and workspace membership.

Membership inserts are insert-if-absent: an existing row is never
overwritten, so a share link can never change (or downgrade) a role that
a user already holds.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.models import Board, BoardMember, User, WorkspaceMember
from boardshare.services.share_link_types import BoardContext


class MembershipRepository:
    """Stateless repository for board and workspace membership.

    All methods are static; no instance state.
    """

    @staticmethod
    async def get_board_role(
        db: AsyncSession,
        *,
        board_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> str | None:
        """Get a user's role on a board.

        Args:
            db: Async database session.
            board_id: Board UUID.
            user_id: User UUID.

        Returns:
            Role string, or None if the user is not a member.
        """
        stmt = select(BoardMember.role).where(
            BoardMember.board_id == board_id,
            BoardMember.user_id == user_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_board(db: AsyncSession, board_id: uuid.UUID) -> Board | None:
        """Fetch a board by primary key.

        Args:
            db: Async database session.
            board_id: Board UUID.

        Returns:
            Board if found, None otherwise.
        """
        result = await db.execute(select(Board).where(Board.id == board_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_board_context(
        db: AsyncSession,
        *,
        board_id: uuid.UUID,
        owner_id: uuid.UUID,
    ) -> BoardContext | None:
        """Load the board facts used to word messages about a share link.

        Args:
            db: Async database session.
            board_id: Board behind the link.
            owner_id: Creator of the link, whose name is shown to invitees.

        Returns:
            BoardContext, or None if the board does not exist.
        """
        owner_name = (
            select(User.name).where(User.id == owner_id).scalar_subquery()
        )
        stmt = select(Board, owner_name).where(Board.id == board_id)
        row = (await db.execute(stmt)).one_or_none()
        if row is None:
            return None
        board, name = row
        return BoardContext(
            board_id=board.id,
            workspace_id=board.workspace_id,
            board_name=board.name,
            board_description=board.description,
            board_created_by=board.created_by,
            owner_name=name,
        )

    @staticmethod
    async def add_board_member_if_absent(
        db: AsyncSession,
        *,
        board_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str,
    ) -> bool:
        """Insert a board membership unless one already exists.

        INSERT ... ON CONFLICT DO NOTHING on (board_id, user_id). When a
        concurrent transaction holds an uncommitted insert for the same pair,
        PostgreSQL waits for it and then skips the row.

        Args:
            db: Async database session.
            board_id: Board UUID.
            user_id: User UUID.
            role: Role to grant if the user is not a member yet.

        Returns:
            True if a row was inserted, False if the user was already a member.
        """
        stmt = (
            insert(BoardMember)
            .values(id=uuid.uuid4(), board_id=board_id, user_id=user_id, role=role)
            .on_conflict_do_nothing(constraint="uq_board_members_board_user")
            .returning(BoardMember.id)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def ensure_workspace_member(
        db: AsyncSession,
        *,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str,
    ) -> bool:
        """Insert a workspace membership unless one already exists.

        Args:
            db: Async database session.
            workspace_id: Workspace UUID.
            user_id: User UUID.
            role: Role to grant to a new workspace member.

        Returns:
            True if a row was inserted, False if the user was already a member.
        """
        stmt = (
            insert(WorkspaceMember)
            .values(
                id=uuid.uuid4(),
                workspace_id=workspace_id,
                user_id=user_id,
                role=role,
            )
            .on_conflict_do_nothing(constraint="uq_workspace_members_workspace_user")
            .returning(WorkspaceMember.id)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None
