"""Async engine and sessions for the collaboration hooks.

The server process shares a single asyncpg-backed engine. It is built on
the first ``get_session()`` call, inside the running event loop, from the
``DATABASE__*`` settings.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from notezcollab.config import DatabaseConfig, get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)
_pool_logger = logging.getLogger(f"{__name__}.pool")


@dataclass
class _Database:
    engine: AsyncEngine | None = None
    sessions: async_sessionmaker[AsyncSession] | None = None


_db = _Database()


def get_database_url() -> str:
    """The configured database URL.

    Raises:
        ValueError: If DATABASE__URL is not set.
    """
    url = get_settings().database.url
    if not url:
        msg = "DATABASE__URL must be set to reach the notes database."
        raise ValueError(msg)
    return url


def engine_options(config: DatabaseConfig) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` from the pool settings."""
    return {
        "pool_size": config.pool_size,
        "max_overflow": config.max_overflow,
        "pool_recycle": config.pool_recycle_seconds,
        "pool_pre_ping": True,
        "connect_args": {
            "timeout": config.connect_timeout_seconds,
            "command_timeout": config.statement_timeout_seconds,
        },
    }


def _log_connection_events(engine: AsyncEngine) -> None:
    pool = engine.sync_engine.pool

    @event.listens_for(pool, "connect")
    def _connected(_dbapi_conn: object, _record: object) -> None:
        _pool_logger.debug("Opened database connection (pool size %s)", pool.size())

    @event.listens_for(pool, "invalidate")
    def _invalidated(
        _dbapi_conn: object, _record: object, exception: BaseException | None
    ) -> None:
        _pool_logger.warning("Dropped database connection: %r", exception)


def get_engine() -> AsyncEngine | None:
    """The engine, or None until the first session is opened."""
    return _db.engine


async def init_db() -> None:
    """Build the engine and session factory from settings."""
    settings = get_settings()
    engine = create_async_engine(
        get_database_url(),
        echo=settings.dev.database_echo,
        **engine_options(settings.database),
    )
    _log_connection_events(engine)
    _db.engine = engine
    _db.sessions = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )


async def close_db() -> None:
    """Dispose of the engine; the next session builds a fresh one."""
    engine, _db.engine, _db.sessions = _db.engine, None, None
    if engine is not None:
        await engine.dispose()


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Open a session that is one transaction.

    The transaction commits when the block exits cleanly. If the block or
    the commit raises, it is rolled back and the error propagates.
    """
    if _db.sessions is None:
        await init_db()
    assert _db.sessions is not None

    async with _db.sessions() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.exception("Rolling back database transaction")
            await session.rollback()
            raise
