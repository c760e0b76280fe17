"""Share link and join request schemas.

Request bodies forbid unknown fields. Response models never carry the
token hash; the plaintext secret appears only in CreateShareLinkResponse.
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Requests
# =============================================================================


class CreateShareLinkRequest(BaseModel):
    """Body for POST /boards/{board_id}/share-links.

    Attributes:
        access_type: view_only, join_on_click, or invite_only.
        role_on_join: viewer, commenter, or member.
        expires_in: "never", "1day", "7days", "30days" or an ISO timestamp.
        max_uses: Optional positive cap on direct joins.
        restrict_domain: Optional email domain ("@company.com").
        single_use: Whether the link dies after its first direct join.
        notes: Optional creator notes.
    """

    model_config = ConfigDict(extra="forbid")

    access_type: str = Field(default="view_only", max_length=20)
    role_on_join: str = Field(default="viewer", max_length=20)
    expires_in: str | None = Field(default="never", max_length=64)
    max_uses: int | None = Field(default=None, gt=0)
    restrict_domain: str | None = Field(default=None, max_length=255)
    single_use: bool = False
    notes: str | None = Field(default=None, max_length=2000)


class RedeemShareLinkRequest(BaseModel):
    """Body for POST /share-links/redeem."""

    model_config = ConfigDict(extra="forbid")

    token: str = Field(min_length=1, max_length=256)


class DecideJoinRequestRequest(BaseModel):
    """Body for POST /join-requests/{request_id}/decision."""

    model_config = ConfigDict(extra="forbid")

    decision: Literal["approve", "reject"]


# =============================================================================
# Responses
# =============================================================================


class ShareLinkResponse(BaseModel):
    """Share link as shown to board managers.

    Attributes:
        id: Link UUID.
        board_id: Board UUID.
        owner_id: Creator UUID.
        owner_name: Creator display name.
        access_type: Access type.
        role_on_join: Role granted on join.
        uses: Committed direct joins.
        max_uses: Optional cap.
        expires_at: Optional expiry.
        restrict_domain: Optional domain restriction.
        single_use: Single-use flag.
        status: Derived status (active, revoked, expired, exhausted, used).
        join_count: Joins recorded in the use log.
        notes: Creator notes.
        revoked_at: Revocation timestamp.
        created_at: Creation timestamp.
    """

    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    board_id: uuid.UUID
    owner_id: uuid.UUID
    owner_name: str | None = None
    access_type: str
    role_on_join: str
    uses: int
    max_uses: int | None = None
    expires_at: datetime | None = None
    restrict_domain: str | None = None
    single_use: bool
    status: str
    join_count: int = 0
    notes: str | None = None
    revoked_at: datetime | None = None
    created_at: datetime


class CreateShareLinkResponse(BaseModel):
    """Response for POST /boards/{board_id}/share-links.

    The only response that ever carries the plaintext secret.
    """

    model_config = ConfigDict(extra="forbid")

    share_link: ShareLinkResponse
    token: str
    url: str


class RevokeShareLinkResponse(BaseModel):
    """Response for POST /share-links/{link_id}/revoke."""

    model_config = ConfigDict(extra="forbid")

    share_link_id: uuid.UUID
    revoked: bool = True
    already_revoked: bool = False


class ShareLinkPreviewResponse(BaseModel):
    """Response for GET /share-links/validate.

    Viewer-specific fields are null for anonymous callers.
    """

    model_config = ConfigDict(extra="forbid")

    status: str
    valid: bool
    share_link_id: uuid.UUID
    board_id: uuid.UUID
    board_name: str
    board_description: str | None = None
    owner_name: str | None = None
    access_type: str
    role_on_join: str
    restrict_domain: str | None = None
    already_member: bool | None = None
    existing_role: str | None = None
    domain_allowed: bool | None = None


class RedeemResponse(BaseModel):
    """Response for a successful POST /share-links/redeem.

    Attributes:
        outcome: already_member, joined, or request_sent.
        role: Board role after the call (null for request_sent).
        board_id: Board UUID.
        board_name: Board display name.
        message: Human-readable summary.
    """

    model_config = ConfigDict(extra="forbid")

    outcome: str
    role: str | None = None
    board_id: uuid.UUID
    board_name: str | None = None
    message: str


class JoinRequestResponse(BaseModel):
    """Pending join request as shown to board managers."""

    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    share_link_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str | None = None
    user_email: str
    created_at: datetime


class JoinRequestDecisionResponse(BaseModel):
    """Response for POST /join-requests/{request_id}/decision."""

    model_config = ConfigDict(extra="forbid")

    request_id: uuid.UUID
    status: str
    board_id: uuid.UUID
    user_id: uuid.UUID
    requester_name: str | None = None
    role: str | None = None
