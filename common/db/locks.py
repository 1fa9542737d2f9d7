"""Transaction-scoped PostgreSQL advisory locks."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)


async def acquire_xact_lock(session: AsyncSession, key: str) -> bool:
    """
    Take pg_advisory_xact_lock on a string key.

    The lock is released when the surrounding transaction commits or rolls
    back, so call this inside ``transaction()``. Other dialects have no
    advisory locks; the call is skipped there and False is returned.
    """
    if session.get_bind().dialect.name != "postgresql":
        logger.debug(f"Advisory lock skipped for {key}: dialect has no advisory locks")
        return False

    await session.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key}
    )
    return True
