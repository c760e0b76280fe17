"""Shared fixtures for share link tests backed by PostgreSQL.

Links are created straight through the repository so each test controls
uses, expiry and revocation without going through the service.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.models import ShareLink, User
from boardshare.repositories.share_link_repository import ShareLinkRepository
from boardshare.services import share_token

MakeLink = Callable[..., Awaitable[tuple[ShareLink, str]]]


@pytest.fixture
def make_link(db_session: AsyncSession, board) -> MakeLink:
    """Factory that persists a share link on the test board.

    Returns:
        Async callable taking ShareLink column overrides and returning
        (committed link, plaintext secret).
    """

    async def _make(**overrides: Any) -> tuple[ShareLink, str]:
        token = share_token.mint()
        fields: dict[str, Any] = {
            "board_id": board.board_id,
            "owner_id": board.owner_id,
            "access_type": "join_on_click",
            "role_on_join": "viewer",
        }
        fields.update(overrides)
        uses = fields.pop("uses", 0)
        is_revoked = fields.pop("is_revoked", False)

        link = await ShareLinkRepository.create(
            db_session, token_hash=token.lookup_key, **fields
        )
        link.uses = uses
        link.is_revoked = is_revoked
        await db_session.commit()
        return link, token.secret

    return _make


@pytest.fixture
def make_users(db_session: AsyncSession) -> Callable[[int], Awaitable[list[User]]]:
    """Factory that commits ``n`` outsider users at example.com."""

    async def _make(n: int) -> list[User]:
        users = [User(email=f"crowd{i}@example.com", name=f"Crowd {i}") for i in range(n)]
        db_session.add_all(users)
        await db_session.commit()
        return users

    return _make
