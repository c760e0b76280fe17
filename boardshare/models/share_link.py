"""Share link models - secret board invitations and their use log.

Only the SHA-256 hash of the secret is stored. Links are never deleted:
revocation flips is_revoked, and the use log is append-only, so both tables
double as an audit trail.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from boardshare.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class ShareLink(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Revocable share link granting access to a board.

    Status (active, revoked, expired, exhausted, used) is derived on every
    read by share_link_policy.evaluate() and is deliberately not a column.

    Attributes:
        board_id: Board the link grants access to.
        owner_id: User who created the link (receives join notifications).
        token_hash: SHA-256 hex digest of the secret. Unique.
        access_type: view_only, join_on_click, or invite_only.
        role_on_join: viewer, commenter, or member.
        max_uses: Optional cap on direct joins.
        uses: Number of committed direct joins. Only ever incremented.
        expires_at: Optional expiry instant.
        restrict_domain: Optional "@example.com" email-domain restriction.
        single_use: Link dies after the first direct join.
        is_revoked: Set by an explicit revoke.
        revoked_at: When the link was revoked.
        notes: Free-form creator notes.
        created_at: Creation timestamp.
    """

    __tablename__ = "share_links"
    __table_args__ = (
        CheckConstraint(
            "access_type IN ('view_only', 'join_on_click', 'invite_only')",
            name="ck_share_links_access_type",
        ),
        CheckConstraint(
            "role_on_join IN ('viewer', 'commenter', 'member')",
            name="ck_share_links_role_on_join",
        ),
        CheckConstraint("uses >= 0", name="ck_share_links_uses_non_negative"),
        CheckConstraint(
            "max_uses IS NULL OR max_uses > 0", name="ck_share_links_max_uses_positive"
        ),
        Index("ix_share_links_board_created", "board_id", "created_at"),
    )

    board_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    access_type: Mapped[str] = mapped_column(String(20), nullable=False)
    role_on_join: Mapped[str] = mapped_column(String(20), nullable=False)
    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    uses: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    restrict_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    single_use: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    is_revoked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    revoked_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)


class ShareLinkUse(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Append-only log of successful redeem attempts.

    One row per request-to-join or direct join. Rows are never updated.

    Attributes:
        share_link_id: Link that was redeemed.
        user_id: Redeeming user.
        ip_address: Client address as seen by the API.
        user_agent: Client user agent.
        action: requested (invite_only) or joined (direct grant).
    """

    __tablename__ = "share_link_uses"
    __table_args__ = (
        CheckConstraint(
            "action IN ('requested', 'joined')", name="ck_share_link_uses_action"
        ),
        Index("ix_share_link_uses_link_action", "share_link_id", "action"),
    )

    share_link_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("share_links.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text(), nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
