from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import time
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from redis.asyncio import Redis
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from watchlist.settings import AppSettings

logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 300
_DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


def _redis_glob_to_fnmatch(pattern: str) -> str:
    """Rewrite Redis ``\\x`` escapes as one-character ``fnmatch`` classes."""

    translated: list[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "\\" and index + 1 < len(pattern):
            translated.append(f"[{pattern[index + 1]}]")
            index += 2
            continue
        translated.append(char)
        index += 1
    return "".join(translated)


@runtime_checkable
class CacheBackend(Protocol):
    """Key/value operations shared by every cache backend."""

    async def get_json(self, key: str) -> Any:
        """Return the decoded value stored under ``key`` or ``None``."""

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""

    async def delete(self, *keys: str) -> None:
        """Remove the given keys."""

    async def delete_pattern(self, pattern: str) -> None:
        """Remove every key matching the glob ``pattern``."""

    async def clear(self) -> None:
        """Remove every key."""

    async def close(self) -> None:
        """Release resources held by the backend."""


class RedisCache:
    """JSON cache backed by a ``redis.asyncio`` client.

    Redis failures never escape this class: the error is logged and reads
    report a miss. Anything that is not a Redis error propagates.
    """

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @classmethod
    async def connect(cls, url: str) -> RedisCache:
        """Create a client for ``url`` and verify it answers ``PING``."""

        client = Redis.from_url(url, decode_responses=True, encoding="utf-8")
        try:
            await client.ping()
        except RedisError:
            await client.aclose()
            raise
        logger.info("Redis connection established successfully")
        return cls(client)

    async def get_json(self, key: str) -> Any:
        try:
            payload = await self._redis.get(key)
        except RedisError as exc:
            logger.debug(f"Redis get failed for key {key}: {exc}")
            return None
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache payload for key %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        encoded = json.dumps(value, default=str)
        if ttl is None:
            ttl = _DEFAULT_TTL_SECONDS
        try:
            await self._redis.set(key, encoded, ex=ttl)
        except RedisError as exc:
            logger.debug(f"Redis set failed for key {key}: {exc}")

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._redis.delete(*keys)
        except RedisError as exc:
            logger.debug(f"Redis delete failed: {exc}")

    async def delete_pattern(self, pattern: str) -> None:
        try:
            async for key in self._redis.scan_iter(match=pattern):
                await self._redis.delete(key)
        except RedisError as exc:
            logger.warning(f"Redis delete_pattern failed for {pattern}: {exc}")

    async def clear(self) -> None:
        try:
            await self._redis.flushdb()
        except RedisError as exc:
            logger.warning(f"Redis flush failed: {exc}")

    async def close(self) -> None:
        """Close the Redis connection gracefully."""

        await self._redis.aclose()


class LocalCache:
    """In-process cache with per-entry expiry and a background sweeper.

    Values are stored as JSON text so callers get fresh copies on every read,
    matching what the Redis backend returns.
    """

    def __init__(
        self,
        *,
        default_ttl: int = _DEFAULT_TTL_SECONDS,
        sweep_interval: float = _DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Any = time.monotonic,
    ) -> None:
        self._entries: dict[str, tuple[float, str]] = {}
        self._lock = asyncio.Lock()
        self._default_ttl = default_ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._sweeper: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    async def get_json(self, key: str) -> Any:
        async with self._lock:
            cached_entry = self._entries.get(key)
            if cached_entry is None:
                return None

            expires_at, payload = cached_entry
            if expires_at <= self._clock():
                self._entries.pop(key, None)
                return None
        return json.loads(payload)

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl_seconds = ttl if ttl is not None and ttl > 0 else self._default_ttl
        encoded = json.dumps(value, default=str)
        async with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, encoded)

    async def delete(self, *keys: str) -> None:
        async with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        translated = _redis_glob_to_fnmatch(pattern)
        async with self._lock:
            matching_keys = [key for key in self._entries if fnmatchcase(key, translated)]
            for key in matching_keys:
                self._entries.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def evict_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""

        now = self._clock()
        async with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def start_sweeper(self) -> None:
        """Start the periodic expiry task on the running event loop."""

        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_forever(), name="local-cache-sweeper")

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.evict_expired()
            except Exception:  # pragma: no cover - keeps the sweeper alive
                logger.exception("Local cache sweep failed")

    async def close(self) -> None:
        """Cancel the sweeper task and drop every entry."""

        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
        await self.clear()


class NullCache:
    """Backend used when caching is disabled: every read misses."""

    async def get_json(self, key: str) -> Any:
        return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        return None

    async def delete(self, *keys: str) -> None:
        return None

    async def delete_pattern(self, pattern: str) -> None:
        return None

    async def clear(self) -> None:
        return None

    async def close(self) -> None:
        return None


async def connect_cache(settings: AppSettings) -> CacheBackend:
    """Select and initialise the cache backend described by ``settings``.

    Redis is only attempted when ``redis_enabled`` is set. When the server
    cannot be reached the service keeps running on the in-process cache.
    """

    if not settings.cache_enabled:
        logger.info("Caching disabled; list pages will be read from the database")
        return NullCache()

    if settings.redis_enabled:
        try:
            return await RedisCache.connect(settings.redis_url)
        except (RedisError, OSError) as exc:
            logger.warning(
                f"Redis connection failed: {exc}. Falling back to the in-process cache."
            )

    local = LocalCache(
        default_ttl=settings.cache_ttl_seconds,
        sweep_interval=settings.cache_sweep_interval_seconds,
    )
    local.start_sweeper()
    return local


__all__ = [
    "CacheBackend",
    "LocalCache",
    "NullCache",
    "RedisCache",
    "connect_cache",
]
