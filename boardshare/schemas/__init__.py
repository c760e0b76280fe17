"""Pydantic request/response schemas for API endpoints."""

from boardshare.schemas.share_link import (
    CreateShareLinkRequest,
    CreateShareLinkResponse,
    DecideJoinRequestRequest,
    JoinRequestDecisionResponse,
    JoinRequestResponse,
    RedeemResponse,
    RedeemShareLinkRequest,
    RevokeShareLinkResponse,
    ShareLinkPreviewResponse,
    ShareLinkResponse,
)

__all__ = [
    # Share links
    "CreateShareLinkRequest",
    "CreateShareLinkResponse",
    "RedeemResponse",
    "RedeemShareLinkRequest",
    "RevokeShareLinkResponse",
    "ShareLinkPreviewResponse",
    "ShareLinkResponse",
    # Join requests
    "DecideJoinRequestRequest",
    "JoinRequestDecisionResponse",
    "JoinRequestResponse",
]
