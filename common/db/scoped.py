"""
Operation-scoped database sessions.

Provides lazy session acquisition that releases connections immediately
after each operation, so no connection is held while waiting on Stripe or
on a retry delay.

Usage:
    # Single operation - acquires and releases immediately
    async with get_session() as session:
        result = await session.get(Model, id)
    # Connection released here

    # Multiple operations in a transaction - share one session
    async with transaction():
        await repo.save(thing1)
        await repo.save(thing2)
    # Commits together, then releases
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from common.core.exceptions import StorageError
from common.core.otel_axiom_exporter import get_logger
from common.db.context import (
    get_current_session,
    set_current_session,
    reset_current_session,
)

logger = get_logger(__name__)

# Set by common.db.session.init_engine(); tests patch it directly
AsyncSessionLocal: Optional[async_sessionmaker] = None


def bind_session_factory(factory: async_sessionmaker) -> None:
    global AsyncSessionLocal
    AsyncSessionLocal = factory


def _session_factory() -> async_sessionmaker:
    if AsyncSessionLocal is None:
        raise StorageError("Database engine is not initialised")
    return AsyncSessionLocal


@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession, None]:
    """
    Explicit transaction boundary.

    All DB operations inside share one session/connection.
    Commits on success, rolls back on exception. Nested calls join the
    outer transaction.
    """
    existing = get_current_session()
    if existing is not None:
        yield existing
        return

    start = time.perf_counter()
    async with _session_factory()() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(f"Transaction session acquire: {acquire_time * 1000:.2f}ms")

        token = set_current_session(session)
        try:
            yield session
            commit_start = time.perf_counter()
            await session.commit()
            commit_time = time.perf_counter() - commit_start
            logger.debug(f"Transaction commit: {commit_time * 1000:.2f}ms")
        except Exception as e:
            logger.error(f"Transaction rollback due to: {e}")
            await session.rollback()
            raise
        finally:
            reset_current_session(token)


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a session for a single DB operation.

    This is the primary interface for repositories:
    - Reuses session if inside a transaction() block
    - Otherwise acquires a new session, auto-commits, and releases immediately
    """
    existing = get_current_session()

    if existing:
        # Inside a transaction - reuse session, don't commit (transaction handles it)
        yield existing
    else:
        async with _session_factory()() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                logger.error(f"Operation rollback due to: {e}")
                await session.rollback()
                raise
