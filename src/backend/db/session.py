"""
Async database engine and session management.

The engine is created lazily from settings.DATABASE_URL. Tests and scripts
can point the application at another database with configure_database().
"""

from collections.abc import AsyncGenerator
from typing import Any, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from db.base import Base

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, applying SQLite-specific connection setup."""
    if database_url.startswith("sqlite"):
        engine = create_async_engine(
            database_url,
            echo=echo,
            connect_args={"timeout": 30},
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def configure_database(database_url: str, echo: bool = False) -> AsyncEngine:
    """Replace the global engine and session maker."""
    global _engine, _session_maker
    _engine = create_engine(database_url, echo=echo)
    _session_maker = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


def get_engine() -> AsyncEngine:
    """Get the global engine, creating it on first use."""
    if _engine is None:
        return configure_database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the global session factory."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a session for one request.

    Commits when the endpoint returns normally, rolls back otherwise.
    """
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing tables."""
    # Import models so every table is registered on Base.metadata
    import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_ready", url=engine.url.render_as_string(hide_password=True))


async def close_db() -> None:
    """Dispose of the engine's connection pool."""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
        logger.info("database_connections_closed")
    _engine = None
    _session_maker = None
