"""Shared fixtures for list engine, repository and API tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tests.watchlist.support.in_memory import (
    InMemoryContentCatalog,
    InMemoryListStore,
    InMemoryUserDirectory,
    TickingClock,
    make_movie,
    make_show,
)
from watchlist.cache import LocalCache
from watchlist.db.models import Base
from watchlist.services.my_list_cache import MyListCache
from watchlist.services.my_list_service import MyListService
from watchlist.settings import AppSettings


@pytest.fixture
def app_settings() -> AppSettings:
    """Settings pointing at a private in-memory SQLite database."""

    return AppSettings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        REDIS_ENABLED=False,
        CACHE_ENABLED=True,
        DEFAULT_USER_ID="user-1",
        LOG_LEVEL="WARNING",
        _env_file=None,
    )


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """Provide an in-memory SQLite session with every table created."""

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()
    await engine.dispose()


@pytest.fixture
def users() -> InMemoryUserDirectory:
    return InMemoryUserDirectory(["u1", "u2"])


@pytest.fixture
def catalog() -> InMemoryContentCatalog:
    contents = [make_movie(f"movie-{number}") for number in range(1, 31)]
    contents += [make_show(f"tvshow-{number}", episodes=number) for number in range(1, 6)]
    return InMemoryContentCatalog(contents)


@pytest.fixture
def store() -> InMemoryListStore:
    return InMemoryListStore()


@pytest_asyncio.fixture
async def backend() -> AsyncIterator[LocalCache]:
    cache = LocalCache(default_ttl=300, sweep_interval=60)
    yield cache
    await cache.close()


@pytest.fixture
def service(
    store: InMemoryListStore,
    catalog: InMemoryContentCatalog,
    users: InMemoryUserDirectory,
    backend: LocalCache,
) -> MyListService:
    return MyListService(
        store=store,
        catalog=catalog,
        users=users,
        cache=MyListCache(backend),
        clock=TickingClock(),
    )
