"""Database connection and session management."""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from exposure_store.config import Settings, get_settings
from exposure_store.utils.logger import get_logger

log = get_logger(__name__)


# Base class for all models
class Base(DeclarativeBase):
    pass


def _enable_sqlite_pragmas(engine: AsyncEngine, busy_timeout_seconds: float) -> None:
    """SQLite ignores foreign keys unless asked, per connection."""
    busy_timeout_ms = int(busy_timeout_seconds * 1000)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
        cursor.close()


def create_engine_from_settings(
    settings: Optional[Settings] = None, url: Optional[str] = None
) -> AsyncEngine:
    """Create an async engine for the configured backend."""
    settings = settings or get_settings()
    url = url or settings.database_url
    backend = make_url(url).get_backend_name()

    kwargs: dict = {"echo": settings.sql_echo, "future": True, "pool_pre_ping": True}
    if backend != "sqlite":
        kwargs["pool_recycle"] = settings.pool_recycle_seconds

    engine = create_async_engine(url, **kwargs)
    if backend == "sqlite":
        _enable_sqlite_pragmas(engine, settings.sqlite_busy_timeout_seconds)

    log.debug("engine created", backend=backend)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """Process-wide engine built from settings."""
    return create_engine_from_settings()


@lru_cache(maxsize=1)
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Process-wide session factory bound to ``get_engine()``."""
    return create_session_factory(get_engine())


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Open a session running exactly one transaction.

    Commits when the block exits normally. Any exception, cancellation
    included, rolls the transaction back. The session is always closed.
    """
    async with session_factory() as session:
        async with session.begin():
            yield session


async def init_db(engine: AsyncEngine):
    """Initialize database (create tables). Migrations are used outside tests."""
    import exposure_store.models  # noqa: F401  (register tables on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
