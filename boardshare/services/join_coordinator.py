"""Share link redemption.

Redeeming runs as one transaction that holds an exclusive row lock on the
share link from lookup to commit. Concurrent redemptions of the same link
therefore see each other's committed uses counter, which is what makes
single-use and max-uses links safe under concurrency.

Steps under the lock:
1. Resolve the secret to a link (rejected: not_found)
2. Evaluate status (rejected: revoked, expired, exhausted, already_used)
3. Existing board member -> already_member, nothing written
4. Email-domain restriction (rejected: domain_restricted)
5. invite_only -> pending join request, request_sent
   view_only / join_on_click -> membership + uses + 1, joined

Only joined and request_sent commit. Every other outcome rolls back, so a
rejected attempt leaves no trace in the use log. Lock and statement
timeouts surface as TransientError after rollback.
"""

import uuid
from datetime import UTC, datetime

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.core.config import settings
from boardshare.core.database import is_transient_db_error, set_transaction_timeouts
from boardshare.core.errors import NotFoundError, TransientError
from boardshare.models import ShareLink, User
from boardshare.repositories.join_request_repository import JoinRequestRepository
from boardshare.repositories.membership_repository import MembershipRepository
from boardshare.repositories.share_link_repository import ShareLinkRepository
from boardshare.repositories.user_repository import UserRepository
from boardshare.services import share_link_policy, share_token
from boardshare.services.notification_relay import ActivityRecorder, NotificationRelay
from boardshare.services.share_link_options import email_domain_matches
from boardshare.services.share_link_types import (
    WORKSPACE_JOIN_ROLE,
    AccessType,
    BoardContext,
    LinkStatus,
    OutcomeKind,
    RedeemOutcome,
    RejectionReason,
    UseAction,
)

logger = structlog.get_logger()

_COMMITTING_OUTCOMES = frozenset({OutcomeKind.JOINED, OutcomeKind.REQUEST_SENT})


def _display_name(user: User) -> str:
    return user.name or user.email


class JoinCoordinator:
    """Redeems share links for signed-in users.

    Owns its transaction: commits on joined / request_sent and rolls back
    on every other outcome or error.

    Args:
        db: Async database session. Must not be inside another transaction
            that the caller still needs.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._notifications = NotificationRelay(db)
        self._activities = ActivityRecorder(db)

    async def redeem(
        self,
        secret: str,
        user_id: uuid.UUID,
        ip_address: str | None = None,
        user_agent: str | None = None,
        now: datetime | None = None,
    ) -> RedeemOutcome:
        """Redeem a share link for a user.

        Args:
            secret: Plaintext secret from the share URL.
            user_id: Redeeming user.
            ip_address: Client address for the use log.
            user_agent: Client user agent for the use log.
            now: Clock override for tests.

        Returns:
            RedeemOutcome describing what happened.

        Raises:
            ValidationError: If the secret is empty.
            NotFoundError: If the redeeming user does not exist.
            TransientError: On lock timeout, statement timeout, serialization
                failure or deadlock. Nothing was written; safe to retry.
        """
        lookup_key = share_token.lookup(secret)
        now = now or datetime.now(UTC)

        try:
            await set_transaction_timeouts(
                self._db,
                lock_timeout_ms=settings.redeem_lock_timeout_ms,
                statement_timeout_ms=settings.redeem_statement_timeout_ms,
            )
            outcome = await self._redeem_locked(
                lookup_key, user_id, ip_address, user_agent, now
            )
            if outcome.kind in _COMMITTING_OUTCOMES:
                await self._db.commit()
            else:
                await self._db.rollback()
        except DBAPIError as exc:
            await self._db.rollback()
            if is_transient_db_error(exc):
                logger.warning("share_link_redeem_contended", user_id=str(user_id))
                raise TransientError() from exc
            raise
        except Exception:
            await self._db.rollback()
            raise

        if outcome.kind is OutcomeKind.REJECTED:
            logger.info(
                "share_link_redeem_rejected",
                user_id=str(user_id),
                board_id=str(outcome.board_id) if outcome.board_id else None,
                reason=outcome.reason.value if outcome.reason else None,
            )
        else:
            logger.info(
                "share_link_redeemed",
                user_id=str(user_id),
                board_id=str(outcome.board_id),
                outcome=outcome.kind.value,
                role=outcome.role,
            )
        return outcome

    async def _redeem_locked(
        self,
        lookup_key: str,
        user_id: uuid.UUID,
        ip_address: str | None,
        user_agent: str | None,
        now: datetime,
    ) -> RedeemOutcome:
        link = await ShareLinkRepository.acquire_by_token_hash(self._db, lookup_key)
        if link is None:
            return RedeemOutcome(
                kind=OutcomeKind.REJECTED, reason=RejectionReason.NOT_FOUND
            )

        context = await MembershipRepository.get_board_context(
            self._db, board_id=link.board_id, owner_id=link.owner_id
        )
        if context is None:
            return RedeemOutcome(
                kind=OutcomeKind.REJECTED, reason=RejectionReason.NOT_FOUND
            )

        status = share_link_policy.evaluate(link, now)
        if status is not LinkStatus.ACTIVE:
            return self._rejected(share_link_policy.rejection_for(status), context)

        existing_role = await MembershipRepository.get_board_role(
            self._db, board_id=link.board_id, user_id=user_id
        )
        if existing_role is not None:
            return self._already_member(existing_role, context)

        user = await UserRepository.get_by_id(self._db, user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))

        if link.restrict_domain and not email_domain_matches(
            user.email, link.restrict_domain
        ):
            return self._rejected(
                RejectionReason.DOMAIN_RESTRICTED,
                context,
                restrict_domain=link.restrict_domain,
            )

        if link.access_type == AccessType.INVITE_ONLY.value:
            await self._request_to_join(link, user, context, ip_address, user_agent)
            return RedeemOutcome(
                kind=OutcomeKind.REQUEST_SENT,
                board_id=context.board_id,
                board_name=context.board_name,
                owner_name=context.owner_name,
            )

        inserted = await MembershipRepository.add_board_member_if_absent(
            self._db, board_id=link.board_id, user_id=user_id, role=link.role_on_join
        )
        if not inserted:
            # A concurrent redeem or approval added the user first.
            role = await MembershipRepository.get_board_role(
                self._db, board_id=link.board_id, user_id=user_id
            )
            return self._already_member(role or link.role_on_join, context)

        await self._join_directly(link, user, context, ip_address, user_agent)
        return RedeemOutcome(
            kind=OutcomeKind.JOINED,
            role=link.role_on_join,
            board_id=context.board_id,
            board_name=context.board_name,
            owner_name=context.owner_name,
        )

    async def _request_to_join(
        self,
        link: ShareLink,
        user: User,
        context: BoardContext,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        await JoinRequestRepository.upsert_pending(
            self._db,
            share_link_id=link.id,
            board_id=link.board_id,
            user_id=user.id,
        )
        await ShareLinkRepository.log_use(
            self._db,
            share_link_id=link.id,
            user_id=user.id,
            action=UseAction.REQUESTED.value,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._notifications.enqueue(
            link.owner_id,
            type="join_request",
            title="New Join Request",
            message=(
                f'{_display_name(user)} has requested to join your board '
                f'"{context.board_name}"'
            ),
            data={
                "board_id": str(link.board_id),
                "user_id": str(user.id),
                "share_link_id": str(link.id),
            },
        )

    async def _join_directly(
        self,
        link: ShareLink,
        user: User,
        context: BoardContext,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        await MembershipRepository.ensure_workspace_member(
            self._db,
            workspace_id=context.workspace_id,
            user_id=user.id,
            role=WORKSPACE_JOIN_ROLE,
        )
        await ShareLinkRepository.increment_uses(self._db, link.id)
        await ShareLinkRepository.log_use(
            self._db,
            share_link_id=link.id,
            user_id=user.id,
            action=UseAction.JOINED.value,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._activities.record(
            link.board_id,
            user.id,
            action="joined_board",
            description="Joined the board via share link",
        )
        self._notifications.enqueue(
            link.owner_id,
            type="member_joined",
            title="New Member Joined",
            message=(
                f'{_display_name(user)} has joined your board "{context.board_name}"'
            ),
            data={
                "board_id": str(link.board_id),
                "user_id": str(user.id),
                "share_link_id": str(link.id),
            },
        )

    @staticmethod
    def _rejected(
        reason: RejectionReason,
        context: BoardContext,
        restrict_domain: str | None = None,
    ) -> RedeemOutcome:
        return RedeemOutcome(
            kind=OutcomeKind.REJECTED,
            reason=reason,
            board_id=context.board_id,
            board_name=context.board_name,
            owner_name=context.owner_name,
            restrict_domain=restrict_domain,
        )

    @staticmethod
    def _already_member(role: str, context: BoardContext) -> RedeemOutcome:
        return RedeemOutcome(
            kind=OutcomeKind.ALREADY_MEMBER,
            role=role,
            board_id=context.board_id,
            board_name=context.board_name,
            owner_name=context.owner_name,
        )
