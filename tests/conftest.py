import socket
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from boardshare.core.config import settings
from boardshare.models import Board, BoardMember, User, Workspace, WorkspaceMember
from boardshare.models.base import Base

# Use separate test database
TEST_DATABASE_URL = settings.database_url.replace(
    settings.database_name, f"{settings.database_name}_test"
)

# Board cast (consistent across tests for predictable auth)
TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")  # board owner
ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
MEMBER_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
GUEST_ID = uuid.UUID("00000000-0000-0000-0000-000000000004")
CORP_GUEST_ID = uuid.UUID("00000000-0000-0000-0000-000000000005")
WORKSPACE_ID = uuid.UUID("10000000-0000-0000-0000-000000000001")
BOARD_ID = uuid.UUID("10000000-0000-0000-0000-000000000002")

BOARD_NAME = "Launch Plan"
OWNER_NAME = "Olivia Owner"

# Test-only signing secret.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow


def create_test_jwt(
    user_id: uuid.UUID = TEST_USER_ID,
    *,
    secret: str = TEST_AUTH_SECRET,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT for test authentication.

    Args:
        user_id: User UUID to encode in the sub claim.
        secret: Signing secret (must match settings.auth_secret in tests).
        expires_delta: Time until expiration. Defaults to 1 hour.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "aud": settings.auth_audience,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or timedelta(hours=1)),
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on port 5432, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("127.0.0.1", 5432))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available.

    Called by fixtures that require database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            "PostgreSQL not available on port 5432. "
            "Start database with: docker compose up -d"
        )


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine (one session per actor)."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Board Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def board(db_session: AsyncSession) -> SimpleNamespace:
    """Create a workspace and board with an owner, admin and member.

    Two outsiders exist as well: a guest at example.com and a guest at
    corp.example.com. Everything is committed so that other sessions
    (concurrent redeemers, the API client) can see it.

    Yields:
        Namespace with the board and user ids.
    """
    db_session.add_all(
        [
            User(id=TEST_USER_ID, email="owner@example.com", name=OWNER_NAME),
            User(id=ADMIN_ID, email="admin@example.com", name="Adam Admin"),
            User(id=MEMBER_ID, email="member@example.com", name="Mia Member"),
            User(id=GUEST_ID, email="guest@example.com", name="Gus Guest"),
            User(id=CORP_GUEST_ID, email="dana@Corp.Example.com", name="Dana"),
            Workspace(id=WORKSPACE_ID, name="Acme"),
        ]
    )
    await db_session.flush()
    db_session.add(
        Board(
            id=BOARD_ID,
            workspace_id=WORKSPACE_ID,
            name=BOARD_NAME,
            description="Q3 launch",
            created_by=TEST_USER_ID,
        )
    )
    await db_session.flush()
    db_session.add_all(
        [
            WorkspaceMember(workspace_id=WORKSPACE_ID, user_id=TEST_USER_ID, role="owner"),
            BoardMember(board_id=BOARD_ID, user_id=TEST_USER_ID, role="owner"),
            BoardMember(board_id=BOARD_ID, user_id=ADMIN_ID, role="admin"),
            BoardMember(board_id=BOARD_ID, user_id=MEMBER_ID, role="member"),
        ]
    )
    await db_session.commit()
    yield SimpleNamespace(
        board_id=BOARD_ID,
        workspace_id=WORKSPACE_ID,
        owner_id=TEST_USER_ID,
        admin_id=ADMIN_ID,
        member_id=MEMBER_ID,
        guest_id=GUEST_ID,
        corp_guest_id=CORP_GUEST_ID,
    )


# =============================================================================
# API Test Fixtures
# =============================================================================


@asynccontextmanager
async def _api_client(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: uuid.UUID | None,
) -> AsyncGenerator[AsyncClient, None]:
    """Build an AsyncClient against the app with auth enabled.

    Args:
        session_factory: Test session factory for the get_db override.
        user_id: User to sign the session cookie for, or None for no cookie.
    """
    from boardshare.core.database import get_db
    from boardshare.core.rate_limiting import limiter
    from boardshare.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    saved_auth_enabled = settings.auth_enabled
    saved_auth_secret = settings.auth_secret
    saved_limiter_enabled = limiter.enabled
    settings.auth_enabled = True
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)
    limiter.enabled = False

    cookies = {}
    if user_id is not None:
        cookies[settings.auth_cookie_name] = create_test_jwt(user_id)

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(
            transport=transport,
            base_url="http://test",
            cookies=cookies,
        ) as ac:
            yield ac
    finally:
        settings.auth_enabled = saved_auth_enabled
        settings.auth_secret = saved_auth_secret
        limiter.enabled = saved_limiter_enabled
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(
    session_factory, board  # noqa: ARG001 - ensures board exists
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client authenticated as the board owner."""
    async with _api_client(session_factory, TEST_USER_ID) as ac:
        yield ac


@pytest_asyncio.fixture
async def guest_client(
    session_factory, board  # noqa: ARG001 - ensures board exists
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client authenticated as an outsider (no board role)."""
    async with _api_client(session_factory, GUEST_ID) as ac:
        yield ac


@pytest_asyncio.fixture
async def unauthenticated_client(
    session_factory, board  # noqa: ARG001 - ensures board exists
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client without a session cookie (auth enabled)."""
    async with _api_client(session_factory, None) as ac:
        yield ac
