from __future__ import annotations

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from tests.watchlist.support.in_memory import InMemoryRedis
from watchlist.cache import LocalCache, RedisCache
from watchlist.schemas.content import ContentType
from watchlist.schemas.my_list import MyListItem, PaginatedMyListResponse, PaginationMeta
from watchlist.services.my_list_cache import MyListCache, page_key, user_pattern


def _payload() -> PaginatedMyListResponse:
    return PaginatedMyListResponse(
        data=[
            MyListItem(
                content_id="movie-1",
                content_type=ContentType.MOVIE,
                title="The Matrix",
                description="Reality is not what it seems.",
                genres=["Action"],
                added_at=datetime(2024, 1, 10, tzinfo=timezone.utc),
                director="Lana Wachowski, Lilly Wachowski",
                actors=["Keanu Reeves"],
            )
        ],
        pagination=PaginationMeta.compute(page=1, limit=10, total=1),
    )


def test_page_key_layout() -> None:
    assert page_key("u1", 1, 10) == "mylist:u1:1:10"
    assert page_key("u1", 2, 5, ContentType.TV_SHOW) == "mylist:u1:2:5:TVShow"


def test_user_pattern_escapes_glob_metacharacters() -> None:
    assert user_pattern("u1") == "mylist:u1:*"
    assert user_pattern("a*b?[c]") == r"mylist:a\*b\?\[c\]:*"


@pytest.mark.asyncio
async def test_page_round_trip_through_redis_stores_camel_case() -> None:
    fake_redis = InMemoryRedis()
    cache = MyListCache(RedisCache(fake_redis), ttl=300)

    await cache.set_page("u1", 1, 10, None, _payload())
    restored = await cache.get_page("u1", 1, 10)

    assert '"contentId": "movie-1"' in fake_redis.store["mylist:u1:1:10"]
    assert fake_redis.ttl["mylist:u1:1:10"] == 300
    assert restored is not None
    assert restored.model_dump(mode="json") == _payload().model_dump(mode="json")


@pytest.mark.asyncio
async def test_filtered_and_unfiltered_pages_are_cached_separately() -> None:
    cache = MyListCache(LocalCache())

    await cache.set_page("u1", 1, 10, ContentType.MOVIE, _payload())

    assert await cache.get_page("u1", 1, 10) is None
    assert await cache.get_page("u1", 1, 10, ContentType.MOVIE) is not None


@pytest.mark.asyncio
async def test_invalidate_user_removes_all_of_their_pages() -> None:
    backend = LocalCache()
    cache = MyListCache(backend)
    for page in (1, 2):
        await cache.set_page("u1", page, 10, None, _payload())
    await cache.set_page("u1", 1, 10, ContentType.MOVIE, _payload())
    await cache.set_page("u2", 1, 10, None, _payload())

    await cache.invalidate_user("u1")

    assert len(backend) == 1
    assert await cache.get_page("u2", 1, 10) is not None


@pytest.mark.asyncio
async def test_invalidate_user_with_glob_characters_spares_other_users() -> None:
    backend = LocalCache()
    cache = MyListCache(backend)
    await cache.set_page("u*", 1, 10, None, _payload())
    await cache.set_page("u1", 1, 10, None, _payload())

    await cache.invalidate_user("u*")

    assert await cache.get_page("u*", 1, 10) is None
    assert await cache.get_page("u1", 1, 10) is not None


@pytest.mark.asyncio
async def test_backend_errors_are_logged_and_absorbed(caplog: pytest.LogCaptureFixture) -> None:
    backend = LocalCache()
    backend.get_json = AsyncMock(side_effect=OSError("socket closed"))
    backend.set_json = AsyncMock(side_effect=OSError("socket closed"))
    backend.delete_pattern = AsyncMock(side_effect=OSError("socket closed"))
    backend.clear = AsyncMock(side_effect=OSError("socket closed"))
    cache = MyListCache(backend)

    with caplog.at_level(logging.WARNING, logger="watchlist.services.my_list_cache"):
        assert await cache.get_page("u1", 1, 10) is None
        await cache.set_page("u1", 1, 10, None, _payload())
        await cache.invalidate_user("u1")
        await cache.clear()

    assert caplog.text.count("Cache") >= 4


@pytest.mark.asyncio
async def test_corrupt_cached_page_is_treated_as_miss() -> None:
    backend = LocalCache()
    await backend.set_json("mylist:u1:1:10", {"unexpected": True})

    assert await MyListCache(backend).get_page("u1", 1, 10) is None
