"""Async database engine and session management.

Configures the SQLAlchemy async engine with connection pooling, provides
dependency injection for database sessions, and the helpers that bound and
classify failures of short locking transactions.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from boardshare.core.config import settings

logger = logging.getLogger(__name__)

# SQLSTATE codes that mean "try again later" rather than "this will never work":
# lock_not_available, query_canceled (statement_timeout),
# serialization_failure, deadlock_detected.
_TRANSIENT_SQLSTATES: frozenset[str] = frozenset({"55P03", "57014", "40001", "40P01"})

engine = create_async_engine(
    settings.database_url,
    echo=settings.environment == "development",
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session.

    Services that own their transaction boundary (redeem, revoke, decide)
    commit or roll back themselves; the final commit here is then a no-op.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def set_transaction_timeouts(
    db: AsyncSession,
    *,
    lock_timeout_ms: int,
    statement_timeout_ms: int,
) -> None:
    """Bound how long the current transaction may wait on locks and statements.

    SET LOCAL scopes both values to the open transaction, so they vanish on
    commit or rollback and never leak to the pooled connection.

    Args:
        db: Async database session with an open (or auto-begun) transaction.
        lock_timeout_ms: Maximum wait for a row lock, in milliseconds.
        statement_timeout_ms: Maximum duration of any single statement.
    """
    # SET does not accept bind parameters; both values are validated ints.
    await db.execute(text(f"SET LOCAL lock_timeout = '{int(lock_timeout_ms)}ms'"))
    await db.execute(
        text(f"SET LOCAL statement_timeout = '{int(statement_timeout_ms)}ms'")
    )


def is_transient_db_error(exc: BaseException) -> bool:
    """Check whether a database error is a retry-safe contention failure.

    Args:
        exc: Exception raised by SQLAlchemy.

    Returns:
        True for lock timeouts, statement timeouts, serialization failures
        and deadlocks; False for everything else.
    """
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _TRANSIENT_SQLSTATES:
        logger.info("Transient database error (sqlstate=%s)", sqlstate)
        return True
    return False
