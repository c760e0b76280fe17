"""Join request review for invite-only share links.

Board owners and admins approve or reject pending requests. The status
transition is a conditional update on status = 'pending', so a request is
decided exactly once even when two reviewers click at the same moment.
Approval grants the link's role only if the requester is not a member yet;
an existing role is never downgraded. Share link use counters are never
touched by review.
"""

import uuid
from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.core.errors import AlreadyHandledError, ForbiddenError, NotFoundError
from boardshare.repositories.join_request_repository import JoinRequestRepository
from boardshare.repositories.membership_repository import MembershipRepository
from boardshare.repositories.user_repository import UserRepository
from boardshare.services.notification_relay import ActivityRecorder, NotificationRelay
from boardshare.services.share_link_types import (
    BOARD_ADMIN_ROLES,
    SHARE_MANAGER_ROLES,
    WORKSPACE_JOIN_ROLE,
    Decision,
    JoinRequestStatus,
    PendingJoinRequest,
    ReviewResult,
)

logger = structlog.get_logger()


class RequestReviewer:
    """Decides and lists join requests.

    Args:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._notifications = NotificationRelay(db)
        self._activities = ActivityRecorder(db)

    async def decide(
        self,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        decision: str,
        now: datetime | None = None,
    ) -> ReviewResult:
        """Approve or reject a pending join request.

        Args:
            request_id: Join request UUID.
            reviewer_id: Acting user. Must be board owner or admin.
            decision: "approve" or "reject".
            now: Clock override for tests.

        Returns:
            ReviewResult with the new status.

        Raises:
            ValidationError: If decision is not approve or reject.
            NotFoundError: If the request does not exist or the reviewer is
                not on its board.
            ForbiddenError: If the reviewer is not an owner or admin.
            AlreadyHandledError: If the request is no longer pending.
        """
        choice = Decision.from_string(decision, label="decision")
        new_status = (
            JoinRequestStatus.APPROVED
            if choice is Decision.APPROVE
            else JoinRequestStatus.REJECTED
        )

        try:
            found = await JoinRequestRepository.get_for_review(
                self._db, request_id=request_id, reviewer_id=reviewer_id
            )
            if found is None:
                raise NotFoundError("Join request", str(request_id))
            request, role_on_join, reviewer_role = found
            if reviewer_role is None:
                raise NotFoundError("Join request", str(request_id))
            if reviewer_role not in {r.value for r in BOARD_ADMIN_ROLES}:
                raise ForbiddenError("You don't have permission to handle requests")
            if request.status != JoinRequestStatus.PENDING.value:
                raise AlreadyHandledError(str(request_id))

            moved = await JoinRequestRepository.transition_if_pending(
                self._db,
                request_id=request_id,
                status=new_status.value,
                handled_by=reviewer_id,
                handled_at=now or datetime.now(UTC),
            )
            if not moved:
                raise AlreadyHandledError(str(request_id))

            board = await MembershipRepository.get_board(self._db, request.board_id)
            if board is None:
                raise NotFoundError("Board", str(request.board_id))
            requester = await UserRepository.get_by_id(self._db, request.user_id)

            granted_role = None
            if new_status is JoinRequestStatus.APPROVED:
                granted_role = await self._grant(
                    board.id, board.workspace_id, request.user_id, role_on_join
                )
                self._notifications.enqueue(
                    request.user_id,
                    type="request_approved",
                    title="Request Approved",
                    message=(
                        f'Your request to join "{board.name}" has been approved!'
                    ),
                    data={"board_id": str(board.id), "role": granted_role},
                )
            else:
                self._notifications.enqueue(
                    request.user_id,
                    type="request_rejected",
                    title="Request Declined",
                    message=f'Your request to join "{board.name}" was not approved.',
                    data={"board_id": str(board.id)},
                )

            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

        logger.info(
            "join_request_decided",
            request_id=str(request_id),
            board_id=str(request.board_id),
            status=new_status.value,
        )
        return ReviewResult(
            request_id=request_id,
            status=new_status,
            board_id=request.board_id,
            user_id=request.user_id,
            requester_name=requester.name if requester else None,
            role=granted_role,
        )

    async def _grant(
        self,
        board_id: uuid.UUID,
        workspace_id: uuid.UUID,
        user_id: uuid.UUID,
        role_on_join: str,
    ) -> str:
        """Add the requester to the board and workspace if absent.

        Returns:
            The board role the requester holds afterwards.
        """
        inserted = await MembershipRepository.add_board_member_if_absent(
            self._db, board_id=board_id, user_id=user_id, role=role_on_join
        )
        await MembershipRepository.ensure_workspace_member(
            self._db,
            workspace_id=workspace_id,
            user_id=user_id,
            role=WORKSPACE_JOIN_ROLE,
        )
        if not inserted:
            current = await MembershipRepository.get_board_role(
                self._db, board_id=board_id, user_id=user_id
            )
            return current or role_on_join

        self._activities.record(
            board_id,
            user_id,
            action="joined_board",
            description="Joined the board (request approved)",
        )
        return role_on_join

    async def list_pending(
        self,
        board_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> list[PendingJoinRequest]:
        """List a board's pending join requests, newest first.

        Args:
            board_id: Board UUID.
            actor_id: Acting user. Must be the board creator or hold owner,
                admin or member.

        Returns:
            List of PendingJoinRequest.

        Raises:
            NotFoundError: If the board does not exist.
            ForbiddenError: If the actor may not see the board's requests.
        """
        board = await MembershipRepository.get_board(self._db, board_id)
        if board is None:
            raise NotFoundError("Board", str(board_id))
        actor_role = await MembershipRepository.get_board_role(
            self._db, board_id=board_id, user_id=actor_id
        )
        is_manager = actor_role in {r.value for r in SHARE_MANAGER_ROLES}
        if board.created_by != actor_id and not is_manager:
            raise ForbiddenError()

        rows = await JoinRequestRepository.list_pending_for_board(self._db, board_id)
        return [
            PendingJoinRequest(
                id=request.id,
                share_link_id=request.share_link_id,
                user_id=request.user_id,
                user_name=name,
                user_email=email,
                created_at=request.created_at,
            )
            for request, name, email in rows
        ]
