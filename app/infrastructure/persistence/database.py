"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

Schema is managed by Alembic migrations (app/infrastructure/persistence/migrations).
For local development and tests, create_all() builds the tables from the models.

The engine and session factory are created on first use (or explicitly by
init_engine() in the lifespan / scripts) so importing this module does not
trigger Settings validation. dispose_engine() is the shutdown boundary.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings
from app.domain.exceptions import SqlNotConfiguredException

logger = logging.getLogger(__name__)

# Set by init_engine(); avoids get_settings() at import time.
engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


def _engine_kwargs(database_url: str) -> dict[str, Any]:
    """Pool and driver options; pool sizing only applies to server databases."""
    settings = get_settings()
    kwargs: dict[str, Any] = {"echo": settings.database_echo, "pool_pre_ping": True}
    if database_url.startswith("postgresql"):
        kwargs["pool_size"] = settings.db_pool_size if settings.db_pool_size is not None else 10
        kwargs["max_overflow"] = (
            settings.db_max_overflow if settings.db_max_overflow is not None else 20
        )
        kwargs["pool_recycle"] = 3600
        command_timeout = (
            settings.db_command_timeout if settings.db_command_timeout is not None else 60
        )
        kwargs["connect_args"] = {"command_timeout": command_timeout}
    return kwargs


def configure_sqlite(bind: AsyncEngine) -> None:
    """Let SQLAlchemy control BEGIN on SQLite so SAVEPOINT (begin_nested) works.

    The sqlite3 driver defers BEGIN on its own, which breaks nested
    transactions; disable that and emit BEGIN explicitly.
    """

    @event.listens_for(bind.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(bind.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the API, the workflow engine and scripts."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def init_engine(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the engine and session factory once; return the session factory."""
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return AsyncSessionLocal
    url = database_url or get_settings().database_url
    engine = create_async_engine(url, **_engine_kwargs(url))
    if engine.url.get_backend_name() == "sqlite":
        configure_sqlite(engine)
    AsyncSessionLocal = build_session_factory(engine)
    logger.info("Database engine created (%s)", engine.url.get_backend_name())
    return AsyncSessionLocal


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory, creating the engine on first use.

    Raises SqlNotConfiguredException when settings cannot provide a database.
    """
    try:
        return init_engine()
    except ValueError as e:
        logger.error("Database not configured: %s", e)
        raise SqlNotConfiguredException() from e


async def dispose_engine() -> None:
    """Dispose the engine and forget the session factory (shutdown)."""
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")
    engine = None
    AsyncSessionLocal = None


async def create_all(bind: AsyncEngine | None = None) -> None:
    """Create all tables from the ORM metadata (development and tests only)."""
    # Registers every model on Base.metadata.
    import app.infrastructure.persistence.models  # noqa: F401

    target = bind or engine
    if target is None:
        init_engine()
        target = engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Database session dependency; opens no transaction of its own.

    Does not commit; write routes open their own transaction with
    `async with db.begin()` so the commit precedes any background dispatch.
    """
    async with get_session_factory()() as session:
        yield session
