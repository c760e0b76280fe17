"""Repository for join request operations.

Join requests are never deleted. A repeated request through the same link
upserts the existing row back to pending; review moves it to approved or
rejected exactly once.
"""

import uuid
from datetime import datetime
from typing import Any, cast

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.models import BoardMember, JoinRequest, ShareLink, User


class JoinRequestRepository:
    """Stateless repository for JoinRequest table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def upsert_pending(
        db: AsyncSession,
        *,
        share_link_id: uuid.UUID,
        board_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> uuid.UUID:
        """Create or re-open the join request for (link, user).

        A single INSERT ... ON CONFLICT DO UPDATE statement, so two
        concurrent requests by the same user through the same link always
        converge on one pending row. Re-opening resets created_at and
        clears the previous review.

        Args:
            db: Async database session.
            share_link_id: Invite-only link being redeemed.
            board_id: Board behind the link.
            user_id: Requesting user.

        Returns:
            UUID of the pending join request.
        """
        stmt = insert(JoinRequest).values(
            id=uuid.uuid4(),
            share_link_id=share_link_id,
            board_id=board_id,
            user_id=user_id,
            status="pending",
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_join_requests_link_user",
            set_={
                "status": "pending",
                "created_at": func.now(),
                "handled_by": None,
                "handled_at": None,
            },
        ).returning(JoinRequest.id)
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def get_by_id(
        db: AsyncSession, request_id: uuid.UUID
    ) -> JoinRequest | None:
        """Fetch a join request by primary key.

        Args:
            db: Async database session.
            request_id: Join request UUID.

        Returns:
            JoinRequest if found, None otherwise.
        """
        stmt = select(JoinRequest).where(JoinRequest.id == request_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_review(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
    ) -> tuple[JoinRequest, str, str | None] | None:
        """Load a join request with everything a reviewer decision needs.

        Args:
            db: Async database session.
            request_id: Join request UUID.
            reviewer_id: User reviewing the request.

        Returns:
            Tuple of (request, the link's role_on_join, reviewer's board
            role or None), or None if the request does not exist.
        """
        stmt = (
            select(JoinRequest, ShareLink.role_on_join, BoardMember.role)
            .join(ShareLink, ShareLink.id == JoinRequest.share_link_id)
            .outerjoin(
                BoardMember,
                (BoardMember.board_id == JoinRequest.board_id)
                & (BoardMember.user_id == reviewer_id),
            )
            .where(JoinRequest.id == request_id)
        )
        row = (await db.execute(stmt)).one_or_none()
        if row is None:
            return None
        request, role_on_join, reviewer_role = row
        return request, role_on_join, reviewer_role

    @staticmethod
    async def transition_if_pending(
        db: AsyncSession,
        *,
        request_id: uuid.UUID,
        status: str,
        handled_by: uuid.UUID,
        handled_at: datetime,
    ) -> bool:
        """Atomically move a pending request to its final status.

        Uses WHERE status = 'pending' so that of two concurrent decisions
        only one takes effect.

        Args:
            db: Async database session.
            request_id: Join request UUID.
            status: "approved" or "rejected".
            handled_by: Reviewer.
            handled_at: Decision timestamp.

        Returns:
            True if this call moved the request, False if it was not pending.
        """
        result = cast(
            CursorResult[Any],
            await db.execute(
                update(JoinRequest)
                .where(JoinRequest.id == request_id, JoinRequest.status == "pending")
                .values(status=status, handled_by=handled_by, handled_at=handled_at)
                .execution_options(synchronize_session=False)
            ),
        )
        return result.rowcount > 0

    @staticmethod
    async def list_pending_for_board(
        db: AsyncSession, board_id: uuid.UUID
    ) -> list[tuple[JoinRequest, str | None, str]]:
        """List a board's pending join requests, newest first.

        Args:
            db: Async database session.
            board_id: Board UUID.

        Returns:
            List of (request, requester name, requester email) tuples.
        """
        stmt = (
            select(JoinRequest, User.name, User.email)
            .join(User, User.id == JoinRequest.user_id)
            .where(JoinRequest.board_id == board_id, JoinRequest.status == "pending")
            .order_by(JoinRequest.created_at.desc(), JoinRequest.id.desc())
        )
        result = await db.execute(stmt)
        return [(request, name, email) for request, name, email in result.all()]
