from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from watchlist.db.models import Base
from watchlist.monitoring import setup_query_monitoring
from watchlist.settings import AppSettings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict[str, Any]:
    """Return pool arguments suited to the database behind ``url``."""

    if url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            # Every session must see the same in-memory database.
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,  # Validate connections before use
        "pool_recycle": 1800,
        "pool_timeout": 30,
    }


def create_engine(settings: AppSettings, *, url: str | None = None) -> AsyncEngine:
    """Create the async SQLAlchemy engine described by ``settings``.

    ``url`` overrides the configured database, which the tests use to point at
    an in-memory SQLite file.
    """

    database_url = url or settings.resolved_database_url
    engine = create_async_engine(
        database_url,
        future=True,
        echo=False,
        **_engine_options(database_url),
    )
    setup_query_monitoring(engine, slow_query_threshold=settings.slow_query_threshold)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_models(engine: AsyncEngine) -> None:
    """Create every table that does not exist yet."""

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Async context manager for scripts that need manual session control."""

    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
