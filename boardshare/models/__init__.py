"""SQLAlchemy ORM models for boardshare.

All models are exported from this module for convenient imports:
    from boardshare.models import ShareLink, JoinRequest, ...

Models are organized by domain:
- user.py: User (identity, referenced)
- board.py: Workspace, WorkspaceMember, Board, BoardMember (referenced)
- share_link.py: ShareLink, ShareLinkUse
- join_request.py: JoinRequest
- activity.py: Activity, Notification (sinks)
"""

from boardshare.models.activity import Activity, Notification
from boardshare.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin
from boardshare.models.board import Board, BoardMember, Workspace, WorkspaceMember
from boardshare.models.join_request import JoinRequest
from boardshare.models.share_link import ShareLink, ShareLinkUse
from boardshare.models.user import User

__all__ = [
    # Base classes
    "Base",
    "CreatedAtMixin",
    "UUIDPrimaryKeyMixin",
    # Referenced entities
    "User",
    "Workspace",
    "WorkspaceMember",
    "Board",
    "BoardMember",
    # Share links
    "ShareLink",
    "ShareLinkUse",
    "JoinRequest",
    # Sinks
    "Activity",
    "Notification",
]
