"""Share links API router.

Create, list and revoke require a board role. Validate may be called
anonymously (viewer fields are then null). Redeem is rate limited and maps
rejected outcomes onto error responses that name the board and its owner
but never expose the token hash.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Query, Request, status

from boardshare.api.deps import CurrentUserId, DbSession, OptionalUserId
from boardshare.core.config import settings
from boardshare.core.errors import (
    AlreadyRevokedError,
    APIError,
    DomainRestrictedError,
    NotFoundError,
    ShareLinkUnavailableError,
)
from boardshare.core.rate_limiting import client_ip_key, limiter, redeem_ip_limit
from boardshare.core.responses import DataResponse, ListResponse
from boardshare.models import ShareLink
from boardshare.schemas.share_link import (
    CreateShareLinkRequest,
    CreateShareLinkResponse,
    RedeemResponse,
    RedeemShareLinkRequest,
    RevokeShareLinkResponse,
    ShareLinkPreviewResponse,
    ShareLinkResponse,
)
from boardshare.services.join_coordinator import JoinCoordinator
from boardshare.services.share_link_service import ShareLinkService
from boardshare.services.share_link_types import (
    LinkStatus,
    OutcomeKind,
    RedeemOutcome,
    RejectionReason,
    ShareLinkView,
)

router = APIRouter()

# =============================================================================
# Shared helpers
# =============================================================================

_UNAVAILABLE_MESSAGES: dict[RejectionReason, tuple[str, str]] = {
    RejectionReason.REVOKED: ("REVOKED", "This link has been revoked"),
    RejectionReason.EXPIRED: ("EXPIRED", "This link has expired"),
    RejectionReason.EXHAUSTED: (
        "EXHAUSTED",
        "This link has reached its maximum uses",
    ),
    RejectionReason.ALREADY_USED: ("ALREADY_USED", "This link has already been used"),
}

_SUCCESS_MESSAGES: dict[OutcomeKind, str] = {
    OutcomeKind.ALREADY_MEMBER: "You are already a member of this board",
    OutcomeKind.JOINED: "You have successfully joined the board",
    OutcomeKind.REQUEST_SENT: "Your request to join has been sent to the board owner",
}

TokenQuery = Annotated[str, Query(min_length=1, max_length=256)]


def _view_to_response(view: ShareLinkView) -> ShareLinkResponse:
    return ShareLinkResponse(
        id=view.id,
        board_id=view.board_id,
        owner_id=view.owner_id,
        owner_name=view.owner_name,
        access_type=view.access_type,
        role_on_join=view.role_on_join,
        uses=view.uses,
        max_uses=view.max_uses,
        expires_at=view.expires_at,
        restrict_domain=view.restrict_domain,
        single_use=view.single_use,
        status=view.status.value,
        join_count=view.join_count,
        notes=view.notes,
        revoked_at=view.revoked_at,
        created_at=view.created_at,
    )


def _link_to_response(link: ShareLink) -> ShareLinkResponse:
    """Convert a freshly created link; it has no uses and is active."""
    return ShareLinkResponse(
        id=link.id,
        board_id=link.board_id,
        owner_id=link.owner_id,
        access_type=link.access_type,
        role_on_join=link.role_on_join,
        uses=link.uses,
        max_uses=link.max_uses,
        expires_at=link.expires_at,
        restrict_domain=link.restrict_domain,
        single_use=link.single_use,
        status=LinkStatus.ACTIVE.value,
        join_count=0,
        notes=link.notes,
        revoked_at=link.revoked_at,
        created_at=link.created_at,
    )


def rejection_to_error(outcome: RedeemOutcome) -> APIError:
    """Translate a rejected redeem outcome into the matching API error."""
    if outcome.reason is RejectionReason.DOMAIN_RESTRICTED:
        return DomainRestrictedError(
            outcome.restrict_domain or "",
            board_name=outcome.board_name,
            owner_name=outcome.owner_name,
        )
    if outcome.reason in _UNAVAILABLE_MESSAGES:
        code, message = _UNAVAILABLE_MESSAGES[outcome.reason]
        return ShareLinkUnavailableError(
            code,
            message,
            board_name=outcome.board_name,
            owner_name=outcome.owner_name,
        )
    return NotFoundError("Share link")


# =============================================================================
# Board-scoped endpoints
# =============================================================================


@router.post("/boards/{board_id}/share-links", status_code=status.HTTP_201_CREATED)
async def create_share_link(
    board_id: uuid.UUID,
    body: CreateShareLinkRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[CreateShareLinkResponse]:
    """Create a share link. The token is returned only in this response."""
    created = await ShareLinkService(db).create(
        board_id,
        user_id,
        access_type=body.access_type,
        role_on_join=body.role_on_join,
        expires_in=body.expires_in,
        max_uses=body.max_uses,
        restrict_domain=body.restrict_domain,
        single_use=body.single_use,
        notes=body.notes,
    )
    return DataResponse(
        data=CreateShareLinkResponse(
            share_link=_link_to_response(created.link),
            token=created.secret,
            url=created.url,
        )
    )


@router.get("/boards/{board_id}/share-links")
async def list_share_links(
    board_id: uuid.UUID,
    user_id: CurrentUserId,
    db: DbSession,
) -> ListResponse[ShareLinkResponse]:
    """List a board's share links, newest first, with derived status."""
    views = await ShareLinkService(db).list_for_board(board_id, user_id)
    return ListResponse(data=[_view_to_response(v) for v in views])


# =============================================================================
# Token-scoped endpoints
# =============================================================================


@router.get("/share-links/validate")
async def validate_share_link(
    token: TokenQuery,
    viewer_id: OptionalUserId,
    db: DbSession,
) -> DataResponse[ShareLinkPreviewResponse]:
    """Preview a share link for its landing page. Read-only."""
    preview = await ShareLinkService(db).validate(token, viewer_id=viewer_id)
    return DataResponse(
        data=ShareLinkPreviewResponse(
            status=preview.status.value,
            valid=preview.status is LinkStatus.ACTIVE,
            share_link_id=preview.share_link_id,
            board_id=preview.board_id,
            board_name=preview.board_name,
            board_description=preview.board_description,
            owner_name=preview.owner_name,
            access_type=preview.access_type,
            role_on_join=preview.role_on_join,
            restrict_domain=preview.restrict_domain,
            already_member=preview.already_member,
            existing_role=preview.existing_role,
            domain_allowed=preview.domain_allowed,
        )
    )


@router.post("/share-links/redeem")
@limiter.limit(settings.rate_limit_redeem)
@limiter.limit(redeem_ip_limit, key_func=client_ip_key)
async def redeem_share_link(
    request: Request,
    body: RedeemShareLinkRequest,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[RedeemResponse]:
    """Redeem a share link for the current user.

    Rate limits: settings.rate_limit_redeem per user (or IP), and
    settings.rate_limit_redeem_ip per client IP across all users.
    """
    outcome = await JoinCoordinator(db).redeem(
        body.token,
        user_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    if not outcome.succeeded:
        raise rejection_to_error(outcome)

    return DataResponse(
        data=RedeemResponse(
            outcome=outcome.kind.value,
            role=outcome.role,
            board_id=outcome.board_id,
            board_name=outcome.board_name,
            message=_SUCCESS_MESSAGES[outcome.kind],
        )
    )


# =============================================================================
# Link-scoped endpoints
# =============================================================================


@router.post("/share-links/{link_id}/revoke")
async def revoke_share_link(
    link_id: uuid.UUID,
    user_id: CurrentUserId,
    db: DbSession,
) -> DataResponse[RevokeShareLinkResponse]:
    """Revoke a share link. Revoking twice reports already_revoked."""
    try:
        await ShareLinkService(db).revoke(link_id, user_id)
    except AlreadyRevokedError:
        return DataResponse(
            data=RevokeShareLinkResponse(share_link_id=link_id, already_revoked=True)
        )
    return DataResponse(data=RevokeShareLinkResponse(share_link_id=link_id))
