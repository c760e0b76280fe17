"""Notification and activity sinks.

Both write rows into outbox tables on the caller's session. Nothing is
flushed or committed here: the rows become visible only if the surrounding
transaction commits, and a rollback discards them with everything else.
A separate delivery process reads the notifications table.
"""

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.models import Activity, Notification


class NotificationRelay:
    """Queues in-app notifications for delivery.

    Args:
        db: Async database session the notification joins.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def enqueue(
        self,
        user_id: uuid.UUID,
        *,
        type: str,  # noqa: A002
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        """Queue a notification for a user.

        Args:
            user_id: Recipient.
            type: Notification type (e.g., "join_request").
            title: Short title.
            message: Body text.
            data: JSON-serializable payload. UUIDs must already be strings.

        Returns:
            The pending Notification row.
        """
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data,
        )
        self._db.add(notification)
        return notification


class ActivityRecorder:
    """Appends entries to a board's activity feed."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def record(
        self,
        board_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        action: str,
        description: str,
    ) -> Activity:
        """Record an activity on a board.

        Args:
            board_id: Board the activity happened on.
            user_id: Acting user.
            action: Machine-readable action (e.g., "share_link_created").
            description: Human-readable description.

        Returns:
            The pending Activity row.
        """
        activity = Activity(
            board_id=board_id,
            user_id=user_id,
            action=action,
            description=description,
        )
        self._db.add(activity)
        return activity
