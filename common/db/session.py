from typing import Optional
from uuid import uuid4

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy import pool

from common.core.config import Settings
from common.core.otel_axiom_exporter import get_logger
from common.db import scoped

logger = get_logger(__name__)

# Populated by init_engine() during application startup
engine: Optional[AsyncEngine] = None


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the asyncpg engine from settings."""
    engine_kwargs = {
        "echo": settings.debug,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "connect_args": {
            "prepared_statement_name_func": lambda: f"__asyncpg_{uuid4()}__",
        },
    }

    # NullPool: new connection per operation (workers behind pgbouncer)
    if settings.db_use_nullpool:
        logger.info("Using NullPool - no connection pooling")
        engine_kwargs["poolclass"] = pool.NullPool
    else:
        logger.info(
            f"Using connection pooling - pool_size={settings.db_pool_size}, max_overflow={settings.db_pool_overflow}"
        )
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_pool_overflow

    return create_async_engine(settings.async_database_url, **engine_kwargs)


def init_engine(settings: Settings) -> async_sessionmaker:
    """Create the engine and hand its session factory to common.db.scoped."""
    global engine

    engine = build_engine(settings)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    scoped.bind_session_factory(factory)
    return factory


async def dispose_engine() -> None:
    global engine

    if engine is not None:
        await engine.dispose()
        engine = None
