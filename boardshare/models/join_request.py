"""Join request model - pending approvals for invite-only share links.

At most one row exists per (share_link_id, user_id); asking again upserts
that row back to pending instead of inserting a duplicate.
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from boardshare.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class JoinRequest(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Request by a user to join a board through an invite-only link.

    Attributes:
        share_link_id: Invite-only link that was redeemed.
        board_id: Board the user asks to join (denormalized from the link).
        user_id: Requesting user.
        status: pending, approved, or rejected.
        handled_by: Reviewer who approved or rejected the request.
        handled_at: When the request was handled.
        created_at: When the request was (last) made.
    """

    __tablename__ = "join_requests"
    __table_args__ = (
        UniqueConstraint(
            "share_link_id", "user_id", name="uq_join_requests_link_user"
        ),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_join_requests_status",
        ),
        Index("ix_join_requests_board_status", "board_id", "status"),
    )

    share_link_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("share_links.id", ondelete="CASCADE"),
        nullable=False,
    )
    board_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default="pending",
    )
    handled_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    handled_at: Mapped[datetime | None] = mapped_column(nullable=True)
