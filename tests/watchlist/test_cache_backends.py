from __future__ import annotations

import asyncio
import json
import logging

import pytest
from redis.exceptions import ResponseError

from tests.watchlist.support.in_memory import InMemoryRedis, redis_down
from watchlist.cache import LocalCache, NullCache, RedisCache, connect_cache
from watchlist.settings import AppSettings


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _settings(**overrides: object) -> AppSettings:
    values: dict[str, object] = {"_env_file": None, "LOG_LEVEL": "WARNING"}
    values.update(overrides)
    return AppSettings(**values)


@pytest.mark.asyncio
async def test_redis_cache_round_trip_honours_ttl() -> None:
    fake_redis = InMemoryRedis()
    cache = RedisCache(fake_redis)

    await cache.set_json("mylist:u1:1:10", {"data": [], "total": 0}, ttl=300)

    assert json.loads(fake_redis.store["mylist:u1:1:10"]) == {"data": [], "total": 0}
    assert fake_redis.ttl["mylist:u1:1:10"] == 300
    assert await cache.get_json("mylist:u1:1:10") == {"data": [], "total": 0}
    assert await cache.get_json("missing") is None


@pytest.mark.asyncio
async def test_redis_cache_delete_pattern_only_touches_matching_keys() -> None:
    fake_redis = InMemoryRedis()
    cache = RedisCache(fake_redis)
    for key in ("mylist:u1:1:10", "mylist:u1:2:10:Movie", "mylist:u2:1:10"):
        await cache.set_json(key, {"k": key})

    await cache.delete_pattern("mylist:u1:*")

    assert sorted(fake_redis.store) == ["mylist:u2:1:10"]


@pytest.mark.asyncio
async def test_redis_cache_absorbs_connection_errors(caplog: pytest.LogCaptureFixture) -> None:
    fake_redis = InMemoryRedis()
    cache = RedisCache(fake_redis)
    fake_redis.fail_with = redis_down()

    with caplog.at_level(logging.DEBUG, logger="watchlist.cache"):
        assert await cache.get_json("k") is None
        await cache.set_json("k", {"v": 1})
        await cache.delete("k")
        await cache.delete_pattern("mylist:*")
        await cache.clear()

    assert "Redis get failed" in caplog.text


@pytest.mark.asyncio
async def test_redis_cache_absorbs_server_errors() -> None:
    fake_redis = InMemoryRedis()
    fake_redis.fail_with = ResponseError("WRONGTYPE")

    assert await RedisCache(fake_redis).get_json("k") is None


@pytest.mark.asyncio
async def test_redis_cache_propagates_non_redis_errors() -> None:
    fake_redis = InMemoryRedis()
    fake_redis.fail_with = ValueError("boom")

    with pytest.raises(ValueError):
        await RedisCache(fake_redis).get_json("k")


@pytest.mark.asyncio
async def test_redis_cache_treats_undecodable_payload_as_miss() -> None:
    fake_redis = InMemoryRedis()
    fake_redis.store["k"] = "{not json"

    assert await RedisCache(fake_redis).get_json("k") is None


@pytest.mark.asyncio
async def test_redis_cache_clear_and_close() -> None:
    fake_redis = InMemoryRedis()
    cache = RedisCache(fake_redis)
    await cache.set_json("a", 1)

    await cache.clear()
    await cache.close()

    assert fake_redis.store == {}
    assert fake_redis.closed is True


@pytest.mark.asyncio
async def test_local_cache_expires_entries_on_read() -> None:
    clock = FakeClock()
    cache = LocalCache(default_ttl=300, clock=clock)
    await cache.set_json("k", {"v": 1})

    clock.now += 299
    assert await cache.get_json("k") == {"v": 1}

    clock.now += 1
    assert await cache.get_json("k") is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_local_cache_returns_independent_copies() -> None:
    cache = LocalCache()
    await cache.set_json("k", {"items": [1]})

    first = await cache.get_json("k")
    first["items"].append(2)

    assert await cache.get_json("k") == {"items": [1]}


@pytest.mark.asyncio
async def test_local_cache_evict_expired_removes_only_stale_entries() -> None:
    clock = FakeClock()
    cache = LocalCache(default_ttl=300, clock=clock)
    await cache.set_json("short", 1, ttl=10)
    await cache.set_json("long", 2, ttl=600)

    clock.now += 11
    removed = await cache.evict_expired()

    assert removed == 1
    assert len(cache) == 1
    assert await cache.get_json("long") == 2


@pytest.mark.asyncio
async def test_local_cache_sweeper_runs_in_background() -> None:
    clock = FakeClock()
    cache = LocalCache(default_ttl=1, sweep_interval=0.01, clock=clock)
    await cache.set_json("k", 1)
    clock.now += 5

    cache.start_sweeper()
    for _ in range(100):
        if len(cache) == 0:
            break
        await asyncio.sleep(0.01)

    assert len(cache) == 0
    await cache.close()


@pytest.mark.asyncio
async def test_local_cache_pattern_delete_escapes_glob_characters() -> None:
    cache = LocalCache()
    await cache.set_json("mylist:a*b:1:10", 1)
    await cache.set_json("mylist:axxb:1:10", 2)

    await cache.delete_pattern(r"mylist:a\*b:*")

    assert await cache.get_json("mylist:a*b:1:10") is None
    assert await cache.get_json("mylist:axxb:1:10") == 2


@pytest.mark.asyncio
async def test_null_cache_never_hits() -> None:
    cache = NullCache()
    await cache.set_json("k", 1)
    await cache.delete("k")
    await cache.delete_pattern("*")

    assert await cache.get_json("k") is None


@pytest.mark.asyncio
async def test_connect_cache_returns_null_cache_when_disabled() -> None:
    backend = await connect_cache(_settings(CACHE_ENABLED=False, REDIS_ENABLED=True))

    assert isinstance(backend, NullCache)


@pytest.mark.asyncio
async def test_connect_cache_defaults_to_local_cache() -> None:
    backend = await connect_cache(_settings())

    assert isinstance(backend, LocalCache)
    await backend.close()


@pytest.mark.asyncio
async def test_connect_cache_falls_back_when_redis_ping_fails(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    async def _refuse(cls, url: str) -> RedisCache:
        raise redis_down()

    monkeypatch.setattr(RedisCache, "connect", classmethod(_refuse))

    with caplog.at_level(logging.WARNING, logger="watchlist.cache"):
        backend = await connect_cache(_settings(REDIS_ENABLED=True))

    assert isinstance(backend, LocalCache)
    assert "Falling back to the in-process cache" in caplog.text
    await backend.close()


@pytest.mark.asyncio
async def test_connect_cache_uses_redis_when_reachable(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_redis = InMemoryRedis()

    async def _connect(cls, url: str) -> RedisCache:
        assert url == "redis://cache:6379/1"
        return cls(fake_redis)

    monkeypatch.setattr(RedisCache, "connect", classmethod(_connect))

    backend = await connect_cache(_settings(REDIS_ENABLED=True, REDIS_URL="redis://cache:6379/1"))

    assert isinstance(backend, RedisCache)


@pytest.mark.asyncio
async def test_redis_cache_delete_removes_named_keys() -> None:
    fake_redis = InMemoryRedis()
    cache = RedisCache(fake_redis)
    for key in ("a", "b", "c"):
        await cache.set_json(key, key)

    await cache.delete("a", "b")
    await cache.delete()

    assert sorted(fake_redis.store) == ["c"]


@pytest.mark.asyncio
async def test_local_cache_delete_removes_named_keys() -> None:
    cache = LocalCache()
    await cache.set_json("a", 1)
    await cache.set_json("b", 2)

    await cache.delete("a", "missing")

    assert await cache.get_json("a") is None
    assert await cache.get_json("b") == 2
    assert len(cache) == 1
