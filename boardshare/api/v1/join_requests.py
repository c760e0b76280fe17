"""Join requests API router.

Pending requests created by invite-only share links, listed for board
managers and decided by board owners and admins.
"""

import uuid

from fastapi import APIRouter

from boardshare.api.deps import CurrentUserId, DbSession
from boardshare.core.responses import DataResponse, ListResponse
from boardshare.schemas.share_link import (
    DecideJoinRequestRequest,
    JoinRequestDecisionResponse,
    JoinRequestResponse,
)
from boardshare.services.request_reviewer import RequestReviewer

router = APIRouter()


@router.get("/boards/{board_id}/join-requests")
async def list_join_requests(
    board_id: uuid.UUID,
    user_id: CurrentUserId,
    db: DbSession,
) -> ListResponse[JoinRequestResponse]:
    """List pending join requests for a board, newest first."""
    pending = await RequestReviewer(db).list_pending(board_id, user_id)
    return ListResponse(
        data=[
            JoinRequestResponse(
                id=p.id,
                share_link_id=p.share_link_id,
                user_id=p.user_id,
                user_name=p.user_name,
                user_email=p.user_email,
                created_at=p.created_at,
            )
            for p in pending
        ]
    )


@router.post("/join-requests/{request_id}/decision")
async def decide_join_request(
    request_id: uuid.UUID,
    body: DecideJoinRequestRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[JoinRequestDecisionResponse]:
    """Approve or reject a pending join request."""
    result = await RequestReviewer(db).decide(request_id, user_id, body.decision)
    return DataResponse(
        data=JoinRequestDecisionResponse(
            request_id=result.request_id,
            status=result.status.value,
            board_id=result.board_id,
            user_id=result.user_id,
            requester_name=result.requester_name,
            role=result.role,
        )
    )
