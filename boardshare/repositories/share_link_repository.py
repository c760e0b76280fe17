"""Repository for share link and share link use operations.

Lookups by token hash are exact matches on a unique column; the plaintext
secret never reaches this layer.
"""

import uuid
from datetime import datetime
from typing import Any, cast

from sqlalchemy import and_, func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.models import ShareLink, ShareLinkUse, User


class ShareLinkRepository:
    """Stateless repository for ShareLink and ShareLinkUse table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        board_id: uuid.UUID,
        owner_id: uuid.UUID,
        token_hash: str,
        access_type: str,
        role_on_join: str,
        expires_at: datetime | None = None,
        max_uses: int | None = None,
        restrict_domain: str | None = None,
        single_use: bool = False,
        notes: str | None = None,
    ) -> ShareLink:
        """Create a new share link with zero uses.

        Args:
            db: Async database session.
            board_id: Board the link grants access to.
            owner_id: Creator of the link.
            token_hash: SHA-256 hex digest of the secret.
            access_type: view_only, join_on_click, or invite_only.
            role_on_join: viewer, commenter, or member.
            expires_at: Optional expiry instant.
            max_uses: Optional cap on direct joins.
            restrict_domain: Optional normalized "@domain" restriction.
            single_use: Whether the link dies after its first direct join.
            notes: Optional creator notes.

        Returns:
            Created ShareLink with database-generated fields.
        """
        link = ShareLink(
            board_id=board_id,
            owner_id=owner_id,
            token_hash=token_hash,
            access_type=access_type,
            role_on_join=role_on_join,
            expires_at=expires_at,
            max_uses=max_uses,
            uses=0,
            restrict_domain=restrict_domain,
            single_use=single_use,
            notes=notes,
        )
        db.add(link)
        await db.flush()
        await db.refresh(link)
        return link

    @staticmethod
    async def get_by_id(db: AsyncSession, link_id: uuid.UUID) -> ShareLink | None:
        """Fetch a share link by primary key.

        Args:
            db: Async database session.
            link_id: Share link UUID.

        Returns:
            ShareLink if found, None otherwise.
        """
        stmt = select(ShareLink).where(ShareLink.id == link_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_token_hash(
        db: AsyncSession, token_hash: str
    ) -> ShareLink | None:
        """Look up a share link by token hash without locking it.

        Used by the read-only preview. Redemption must use
        acquire_by_token_hash instead.

        Args:
            db: Async database session.
            token_hash: SHA-256 hex digest of the presented secret.

        Returns:
            ShareLink if found, None otherwise.
        """
        stmt = select(ShareLink).where(ShareLink.token_hash == token_hash)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def acquire_by_token_hash(
        db: AsyncSession, token_hash: str
    ) -> ShareLink | None:
        """Look up a share link and take an exclusive row lock on it.

        SELECT ... FOR UPDATE: the lock is held until the caller's
        transaction commits or rolls back, so concurrent redemptions of the
        same link are serialized. populate_existing refreshes an already
        loaded instance with the values read under the lock.

        Args:
            db: Async database session with an open transaction.
            token_hash: SHA-256 hex digest of the presented secret.

        Returns:
            Locked ShareLink if found, None otherwise.
        """
        stmt = (
            select(ShareLink)
            .where(ShareLink.token_hash == token_hash)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_board(
        db: AsyncSession, board_id: uuid.UUID
    ) -> list[tuple[ShareLink, str | None, int]]:
        """List a board's share links, newest first.

        Args:
            db: Async database session.
            board_id: Board to list links for.

        Returns:
            List of (link, creator name, number of "joined" uses) tuples.
        """
        join_count = (
            select(func.count(ShareLinkUse.id))
            .where(
                and_(
                    ShareLinkUse.share_link_id == ShareLink.id,
                    ShareLinkUse.action == "joined",
                )
            )
            .correlate(ShareLink)
            .scalar_subquery()
        )
        stmt = (
            select(ShareLink, User.name, join_count)
            .outerjoin(User, User.id == ShareLink.owner_id)
            .where(ShareLink.board_id == board_id)
            .order_by(ShareLink.created_at.desc(), ShareLink.id.desc())
        )
        result = await db.execute(stmt)
        return [(link, name, int(count)) for link, name, count in result.all()]

    @staticmethod
    async def increment_uses(db: AsyncSession, link_id: uuid.UUID) -> None:
        """Add one committed direct join to a link's use counter.

        Args:
            db: Async database session holding the link's row lock.
            link_id: Share link UUID.
        """
        stmt = (
            update(ShareLink)
            .where(ShareLink.id == link_id)
            .values(uses=ShareLink.uses + 1)
            .execution_options(synchronize_session=False)
        )
        await db.execute(stmt)

    @staticmethod
    async def mark_revoked(
        db: AsyncSession,
        *,
        link_id: uuid.UUID,
        revoked_at: datetime,
    ) -> bool:
        """Atomically revoke a link that is not revoked yet.

        Uses WHERE is_revoked = false so that of two concurrent revokes only
        one reports success.

        Args:
            db: Async database session.
            link_id: Share link UUID.
            revoked_at: Revocation timestamp.

        Returns:
            True if this call revoked the link, False if it already was.
        """
        result = cast(
            CursorResult[Any],
            await db.execute(
                update(ShareLink)
                .where(ShareLink.id == link_id, ShareLink.is_revoked.is_(False))
                .values(is_revoked=True, revoked_at=revoked_at)
                .execution_options(synchronize_session=False)
            ),
        )
        return result.rowcount > 0

    @staticmethod
    async def log_use(
        db: AsyncSession,
        *,
        share_link_id: uuid.UUID,
        user_id: uuid.UUID,
        action: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ShareLinkUse:
        """Append a row to the share link use log.

        Args:
            db: Async database session.
            share_link_id: Redeemed link.
            user_id: Redeeming user.
            action: "requested" or "joined".
            ip_address: Client address.
            user_agent: Client user agent.

        Returns:
            The pending ShareLinkUse row.
        """
        use = ShareLinkUse(
            share_link_id=share_link_id,
            user_id=user_id,
            action=action,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(use)
        return use

    @staticmethod
    async def count_uses(
        db: AsyncSession,
        share_link_id: uuid.UUID,
        *,
        action: str | None = None,
    ) -> int:
        """Count use-log rows for a link, optionally for one action.

        Args:
            db: Async database session.
            share_link_id: Share link UUID.
            action: Optional "requested" or "joined" filter.

        Returns:
            Number of matching rows.
        """
        conditions = [ShareLinkUse.share_link_id == share_link_id]
        if action is not None:
            conditions.append(ShareLinkUse.action == action)
        stmt = select(func.count()).select_from(ShareLinkUse).where(*conditions)
        result = await db.execute(stmt)
        return result.scalar_one()
