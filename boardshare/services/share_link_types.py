"""Type definitions shared by the share-link services.

Enum values match the database check constraints, so ``Enum.value`` is what
gets stored and ``from_string`` is how stored values are read back.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from boardshare.core.errors import ValidationError

# =============================================================================
# Enums
# =============================================================================


class _StoredEnum(Enum):
    """Enum whose values are the strings persisted in the database."""

    @classmethod
    def from_string(cls, value: str, *, label: str):
        """Convert a stored or user-supplied string to the enum.

        Args:
            value: String to convert.
            label: Human-readable name used in the error message.

        Returns:
            The matching enum member.

        Raises:
            ValidationError: If the string doesn't match any member.
        """
        for member in cls:
            if member.value == value:
                return member
        valid = [m.value for m in cls]
        raise ValidationError(f"Invalid {label}: '{value}'. Valid: {valid}")


class AccessType(_StoredEnum):
    """What redeeming a share link does."""

    # Both direct-grant types add the user with the link's role_on_join
    VIEW_ONLY = "view_only"
    JOIN_ON_CLICK = "join_on_click"
    # Creates a join request that a reviewer must approve
    INVITE_ONLY = "invite_only"


class JoinRole(_StoredEnum):
    """Board roles a share link may hand out."""

    VIEWER = "viewer"
    COMMENTER = "commenter"
    MEMBER = "member"


class BoardRole(_StoredEnum):
    """Every board-level role."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    COMMENTER = "commenter"
    VIEWER = "viewer"


class LinkStatus(Enum):
    """Derived share-link status. Computed on every read, never stored."""

    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    USED = "used"


class RejectionReason(Enum):
    """Why a redeem attempt was turned away."""

    NOT_FOUND = "not_found"
    REVOKED = "revoked"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    ALREADY_USED = "already_used"
    DOMAIN_RESTRICTED = "domain_restricted"


class OutcomeKind(Enum):
    """Closed set of redeem outcomes."""

    ALREADY_MEMBER = "already_member"
    JOINED = "joined"
    REQUEST_SENT = "request_sent"
    REJECTED = "rejected"


class JoinRequestStatus(_StoredEnum):
    """Join request lifecycle: pending -> approved | rejected."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(_StoredEnum):
    """Reviewer decision on a pending join request."""

    APPROVE = "approve"
    REJECT = "reject"


class UseAction(Enum):
    """Values of share_link_uses.action."""

    REQUESTED = "requested"
    JOINED = "joined"


# Roles allowed to create and list share links.
SHARE_MANAGER_ROLES: frozenset[BoardRole] = frozenset(
    {BoardRole.OWNER, BoardRole.ADMIN, BoardRole.MEMBER}
)

# Roles allowed to revoke any link and to review join requests.
BOARD_ADMIN_ROLES: frozenset[BoardRole] = frozenset({BoardRole.OWNER, BoardRole.ADMIN})

# Workspace tier granted alongside any board membership from a share link.
WORKSPACE_JOIN_ROLE = "viewer"


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass(frozen=True)
class RedeemOutcome:
    """Result of redeeming a share link.

    Exactly one of ``role`` (already_member, joined) or ``reason``
    (rejected) is set, depending on ``kind``. Board metadata is filled in
    whenever the secret resolved to a link, so even rejections can name
    the board and its owner.

    Attributes:
        kind: Which transition happened.
        role: Board role the user holds after the call.
        reason: Why the attempt was rejected.
        board_id: Board behind the link.
        board_name: Board display name.
        owner_name: Display name of the link creator.
        restrict_domain: The link's domain restriction (for rejection messages).
    """

    kind: OutcomeKind
    role: str | None = None
    reason: RejectionReason | None = None
    board_id: uuid.UUID | None = None
    board_name: str | None = None
    owner_name: str | None = None
    restrict_domain: str | None = None

    @property
    def succeeded(self) -> bool:
        """True for every outcome except a rejection."""
        return self.kind is not OutcomeKind.REJECTED


@dataclass(frozen=True)
class BoardContext:
    """Board facts needed to word messages about a share link.

    Attributes:
        board_id: Board UUID.
        workspace_id: Workspace the board belongs to.
        board_name: Board display name.
        board_description: Optional board description.
        board_created_by: User who created the board.
        owner_name: Display name of the share link creator.
    """

    board_id: uuid.UUID
    workspace_id: uuid.UUID
    board_name: str
    board_description: str | None
    board_created_by: uuid.UUID
    owner_name: str | None


@dataclass(frozen=True)
class ShareLinkView:
    """Share link as listed to board managers. Never carries the hash.

    Attributes:
        id: Link UUID.
        board_id: Board UUID.
        owner_id: Link creator.
        owner_name: Display name of the creator.
        access_type: Access type value.
        role_on_join: Role value.
        uses: Committed direct joins.
        max_uses: Optional cap.
        expires_at: Optional expiry.
        restrict_domain: Optional domain restriction.
        single_use: Single-use flag.
        status: Derived status at listing time.
        join_count: Number of "joined" rows in the use log.
        notes: Creator notes.
        revoked_at: When the link was revoked.
        created_at: Creation timestamp.
    """

    id: uuid.UUID
    board_id: uuid.UUID
    owner_id: uuid.UUID
    owner_name: str | None
    access_type: str
    role_on_join: str
    uses: int
    max_uses: int | None
    expires_at: datetime | None
    restrict_domain: str | None
    single_use: bool
    status: LinkStatus
    join_count: int
    notes: str | None
    revoked_at: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class ShareLinkPreview:
    """Read-only view of a share link for its landing page.

    Viewer-specific fields stay None when the caller is anonymous.

    Attributes:
        status: Derived link status.
        share_link_id: Link UUID.
        board_id: Board UUID.
        board_name: Board display name.
        board_description: Board description.
        owner_name: Display name of the link creator.
        access_type: Access type value.
        role_on_join: Role value.
        restrict_domain: Optional domain restriction.
        already_member: Whether the viewer already belongs to the board.
        existing_role: The viewer's current board role.
        domain_allowed: Whether the viewer's email satisfies the restriction.
    """

    status: LinkStatus
    share_link_id: uuid.UUID
    board_id: uuid.UUID
    board_name: str
    board_description: str | None
    owner_name: str | None
    access_type: str
    role_on_join: str
    restrict_domain: str | None
    already_member: bool | None = None
    existing_role: str | None = None
    domain_allowed: bool | None = None


@dataclass(frozen=True)
class ReviewResult:
    """Result of approving or rejecting a join request.

    Attributes:
        request_id: Join request UUID.
        status: New request status.
        board_id: Board UUID.
        user_id: Requesting user.
        requester_name: Display name of the requester.
        role: Role the requester holds after approval (None on reject).
    """

    request_id: uuid.UUID
    status: JoinRequestStatus
    board_id: uuid.UUID
    user_id: uuid.UUID
    requester_name: str | None
    role: str | None = None


@dataclass(frozen=True)
class PendingJoinRequest:
    """Pending join request as shown to board managers.

    Attributes:
        id: Join request UUID.
        share_link_id: Link the request came through.
        user_id: Requesting user.
        user_name: Requester display name.
        user_email: Requester email.
        created_at: When the request was (last) made.
    """

    id: uuid.UUID
    share_link_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str | None
    user_email: str
    created_at: datetime
