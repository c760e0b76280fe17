"""Activity log and notification outbox models.

Both tables are sinks: rows are written inside the same transaction as the
change they describe, so a rollback discards them together with it. A
separate delivery process reads notifications; nothing here sends anything.
"""

import uuid
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, false
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from boardshare.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class Activity(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Board activity feed entry.

    Attributes:
        board_id: Board the activity happened on.
        user_id: Acting user.
        action: Machine-readable action (e.g., "joined_board").
        description: Human-readable description.
    """

    __tablename__ = "activities"
    __table_args__ = (Index("ix_activities_board_created", "board_id", "created_at"),)

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
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False)


class Notification(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Queued in-app notification for a single user.

    Attributes:
        user_id: Recipient.
        type: Notification type (e.g., "join_request", "request_approved").
        title: Short title.
        message: Body text.
        data: JSON payload with ids the client needs to deep-link.
        is_read: Whether the recipient has seen it.
    """

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_read", "user_id", "is_read"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text(), nullable=False)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
