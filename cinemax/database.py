"""Async database engine and session management.

Uses SQLAlchemy 2.0 async. The default backend is a local SQLite file through
aiosqlite; a server database URL (e.g. postgresql+asyncpg) works unchanged.

SQLite transactions are opened with BEGIN IMMEDIATE so a write transaction
holds the write lock from its first statement. Readers never observe a
half-applied refresh and concurrent writers queue on the busy timeout
instead of failing on a lock upgrade.
"""

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cinemax.config import settings

logger = logging.getLogger(__name__)


def make_engine(url: str) -> AsyncEngine:
    """Create an async engine configured for the given backend."""
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=False)
        _use_immediate_transactions(engine)
        return engine

    return create_async_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = make_engine(settings.database_url)
async_session_factory = make_session_factory(engine)


async def create_tables(bind: AsyncEngine) -> None:
    from cinemax.models import Base  # noqa: F811

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> bool:
    """Create tables if they don't exist. Returns True on success."""
    try:
        await create_tables(engine)
        logger.info("Database initialized successfully | url=%s", settings.database_url.split("://")[0])
        return True
    except Exception as e:
        logger.warning("Database unavailable — lists will not be cached: %s", str(e)[:200])
        return False


async def close_db():
    """Dispose engine connections on shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")
