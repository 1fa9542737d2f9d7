"""Conflict-ignoring inserts for PostgreSQL and SQLite."""

from typing import Any, Optional, Sequence

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


async def insert_ignoring_conflict(
    session: AsyncSession,
    entity_class: Any,
    values: dict[str, Any],
    index_elements: Sequence[str],
) -> Optional[int]:
    """
    INSERT ... ON CONFLICT (index_elements) DO NOTHING RETURNING id.

    Returns the new row id, or None when a row with the same key already
    existed. The uniqueness check and the insert happen in one statement, so
    concurrent callers cannot both insert.
    """
    dialect = session.get_bind().dialect.name
    insert_fn = sqlite_insert if dialect == "sqlite" else pg_insert

    stmt = (
        insert_fn(entity_class)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(index_elements))
        .returning(entity_class.id)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
