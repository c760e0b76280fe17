"""User model - identity referenced by boards and share links.

Owned by the identity provider; this subsystem only reads the email (for
domain restrictions) and the display name (for notifications and previews).
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from boardshare.models.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """User account.

    Attributes:
        id: UUID primary key.
        email: Unique email address.
        name: Display name.
        created_at: Account creation timestamp.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
