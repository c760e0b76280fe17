"""Repository for reading users.

Users are owned by the identity provider; this subsystem only reads them.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.models import User


class UserRepository:
    """Stateless repository for User reads.

    All methods are static; no instance state.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
        """Fetch a user by primary key.

        Args:
            db: Async database session.
            user_id: User UUID.

        Returns:
            User if found, None otherwise.
        """
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
