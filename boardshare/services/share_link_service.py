"""Share link management: create, list, revoke, and preview.

Creating returns the plaintext secret exactly once, embedded in the share
URL; only its hash is stored. Listing never exposes the hash. Revocation is
a one-way conditional update. The preview is read-only and never locks.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.core.config import settings
from boardshare.core.errors import (
    AlreadyRevokedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from boardshare.models import ShareLink
from boardshare.repositories.membership_repository import MembershipRepository
from boardshare.repositories.share_link_repository import ShareLinkRepository
from boardshare.repositories.user_repository import UserRepository
from boardshare.services import share_link_policy, share_token
from boardshare.services.notification_relay import ActivityRecorder
from boardshare.services.share_link_options import (
    email_domain_matches,
    normalize_domain,
    resolve_expiry,
)
from boardshare.services.share_link_types import (
    BOARD_ADMIN_ROLES,
    SHARE_MANAGER_ROLES,
    AccessType,
    BoardRole,
    JoinRole,
    ShareLinkPreview,
    ShareLinkView,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class CreatedShareLink:
    """A newly created share link and its one-time secret.

    Attributes:
        link: Persisted share link.
        secret: Plaintext secret. Returned once, never stored.
        url: Share URL carrying the secret.
    """

    link: ShareLink
    secret: str
    url: str

    def __repr__(self) -> str:
        return f"CreatedShareLink(link_id={self.link.id})"


def build_share_url(secret: str) -> str:
    """Build the landing-page URL that carries a share secret."""
    return f"{settings.share_base_url.rstrip('/')}/share?token={secret}"


def _has_role(role: str | None, allowed: frozenset[BoardRole]) -> bool:
    return role is not None and role in {r.value for r in allowed}


class ShareLinkService:
    """Creates, lists, revokes and previews share links.

    Mutating methods commit on success and roll back on failure.

    Args:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._activities = ActivityRecorder(db)

    async def create(
        self,
        board_id: uuid.UUID,
        creator_id: uuid.UUID,
        access_type: str,
        role_on_join: str,
        expires_in: str | None = None,
        max_uses: int | None = None,
        restrict_domain: str | None = None,
        single_use: bool = False,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> CreatedShareLink:
        """Create a share link for a board.

        Args:
            board_id: Board to share.
            creator_id: Acting user. Must be owner, admin or member.
            access_type: view_only, join_on_click, or invite_only.
            role_on_join: viewer, commenter, or member.
            expires_in: "never", "1day", "7days", "30days" or an ISO timestamp.
            max_uses: Optional positive cap on direct joins.
            restrict_domain: Optional email domain, with or without "@".
            single_use: Whether the link dies after its first direct join.
            notes: Optional creator notes.
            now: Clock override for tests.

        Returns:
            CreatedShareLink with the persisted link, secret and URL.

        Raises:
            ValidationError: If any option is malformed.
            ForbiddenError: If the creator cannot share the board.
        """
        access = AccessType.from_string(access_type, label="access type")
        role = JoinRole.from_string(role_on_join, label="role")
        if max_uses is not None and max_uses <= 0:
            raise ValidationError(
                "max_uses must be a positive integer",
                details=[{"field": "max_uses"}],
            )

        creator_role = await MembershipRepository.get_board_role(
            self._db, board_id=board_id, user_id=creator_id
        )
        if not _has_role(creator_role, SHARE_MANAGER_ROLES):
            raise ForbiddenError("You don't have permission to share this board")

        now = now or datetime.now(UTC)
        expires_at = resolve_expiry(expires_in, now)
        domain = normalize_domain(restrict_domain)

        token = share_token.mint()
        try:
            link = await ShareLinkRepository.create(
                self._db,
                board_id=board_id,
                owner_id=creator_id,
                token_hash=token.lookup_key,
                access_type=access.value,
                role_on_join=role.value,
                expires_at=expires_at,
                max_uses=max_uses,
                restrict_domain=domain,
                single_use=single_use,
                notes=notes,
            )
            self._activities.record(
                board_id,
                creator_id,
                action="share_link_created",
                description="Created a share link for the board",
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

        logger.info(
            "share_link_created",
            share_link_id=str(link.id),
            board_id=str(board_id),
            access_type=access.value,
        )
        return CreatedShareLink(
            link=link, secret=token.secret, url=build_share_url(token.secret)
        )

    async def list_for_board(
        self,
        board_id: uuid.UUID,
        actor_id: uuid.UUID,
        now: datetime | None = None,
    ) -> list[ShareLinkView]:
        """List a board's share links, newest first, with derived status.

        Args:
            board_id: Board UUID.
            actor_id: Acting user. Must be owner, admin or member.
            now: Clock override for tests.

        Returns:
            List of ShareLinkView. Token hashes are never included.

        Raises:
            ForbiddenError: If the actor cannot manage the board's links.
        """
        actor_role = await MembershipRepository.get_board_role(
            self._db, board_id=board_id, user_id=actor_id
        )
        if not _has_role(actor_role, SHARE_MANAGER_ROLES):
            raise ForbiddenError()

        now = now or datetime.now(UTC)
        rows = await ShareLinkRepository.list_for_board(self._db, board_id)
        return [
            ShareLinkView(
                id=link.id,
                board_id=link.board_id,
                owner_id=link.owner_id,
                owner_name=owner_name,
                access_type=link.access_type,
                role_on_join=link.role_on_join,
                uses=link.uses,
                max_uses=link.max_uses,
                expires_at=link.expires_at,
                restrict_domain=link.restrict_domain,
                single_use=link.single_use,
                status=share_link_policy.evaluate(link, now),
                join_count=join_count,
                notes=link.notes,
                revoked_at=link.revoked_at,
                created_at=link.created_at,
            )
            for link, owner_name, join_count in rows
        ]

    async def revoke(
        self,
        link_id: uuid.UUID,
        actor_id: uuid.UUID,
        now: datetime | None = None,
    ) -> ShareLink:
        """Revoke a share link.

        Args:
            link_id: Share link UUID.
            actor_id: Acting user. Must be the link creator or a board
                owner/admin.
            now: Clock override for tests.

        Returns:
            The revoked ShareLink.

        Raises:
            NotFoundError: If the link does not exist, or the actor has no
                standing on its board.
            ForbiddenError: If the actor may not revoke this link.
            AlreadyRevokedError: If the link was already revoked.
        """
        try:
            link = await ShareLinkRepository.get_by_id(self._db, link_id)
            if link is None:
                raise NotFoundError("Share link", str(link_id))

            actor_role = await MembershipRepository.get_board_role(
                self._db, board_id=link.board_id, user_id=actor_id
            )
            is_creator = link.owner_id == actor_id
            if actor_role is None and not is_creator:
                raise NotFoundError("Share link", str(link_id))
            if not is_creator and not _has_role(actor_role, BOARD_ADMIN_ROLES):
                raise ForbiddenError("You don't have permission to revoke this link")
            if link.is_revoked:
                raise AlreadyRevokedError(str(link_id))

            revoked = await ShareLinkRepository.mark_revoked(
                self._db, link_id=link_id, revoked_at=now or datetime.now(UTC)
            )
            if not revoked:
                raise AlreadyRevokedError(str(link_id))

            self._activities.record(
                link.board_id,
                actor_id,
                action="share_link_revoked",
                description="Revoked a share link",
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

        await self._db.refresh(link)
        logger.info(
            "share_link_revoked",
            share_link_id=str(link_id),
            board_id=str(link.board_id),
        )
        return link

    async def validate(
        self,
        secret: str,
        viewer_id: uuid.UUID | None = None,
        now: datetime | None = None,
    ) -> ShareLinkPreview:
        """Preview a share link without redeeming it.

        Never mutates state and never takes a lock; the status reported here
        may be stale by the time the viewer redeems.

        Args:
            secret: Plaintext secret from the share URL.
            viewer_id: Signed-in user, if any.
            now: Clock override for tests.

        Returns:
            ShareLinkPreview. Viewer fields are set only when viewer_id is.

        Raises:
            ValidationError: If the secret is empty.
            NotFoundError: If no link matches the secret.
        """
        link = await ShareLinkRepository.get_by_token_hash(
            self._db, share_token.lookup(secret)
        )
        if link is None:
            raise NotFoundError("Share link")

        context = await MembershipRepository.get_board_context(
            self._db, board_id=link.board_id, owner_id=link.owner_id
        )
        if context is None:
            raise NotFoundError("Board", str(link.board_id))

        already_member = existing_role = domain_allowed = None
        if viewer_id is not None:
            existing_role = await MembershipRepository.get_board_role(
                self._db, board_id=link.board_id, user_id=viewer_id
            )
            already_member = existing_role is not None
            if link.restrict_domain:
                viewer = await UserRepository.get_by_id(self._db, viewer_id)
                domain_allowed = email_domain_matches(
                    viewer.email if viewer else None, link.restrict_domain
                )
            else:
                domain_allowed = True

        return ShareLinkPreview(
            status=share_link_policy.evaluate(link, now or datetime.now(UTC)),
            share_link_id=link.id,
            board_id=link.board_id,
            board_name=context.board_name,
            board_description=context.board_description,
            owner_name=context.owner_name,
            access_type=link.access_type,
            role_on_join=link.role_on_join,
            restrict_domain=link.restrict_domain,
            already_member=already_member,
            existing_role=existing_role,
            domain_allowed=domain_allowed,
        )
