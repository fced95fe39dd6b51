"""Caching helpers dedicated to rendered list pages."""

from __future__ import annotations

import logging
import re

from watchlist.cache import CacheBackend
from watchlist.schemas.content import ContentType
from watchlist.schemas.my_list import PaginatedMyListResponse
from watchlist.settings import DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

_KEY_PREFIX = "mylist"
_GLOB_METACHARACTERS = re.compile(r"([\\*?\[\]])")


def _escape_glob(value: str) -> str:
    return _GLOB_METACHARACTERS.sub(r"\\\1", value)


def page_key(
    user_id: str,
    page: int,
    limit: int,
    content_type: ContentType | None = None,
) -> str:
    key = f"{_KEY_PREFIX}:{user_id}:{page}:{limit}"
    if content_type is not None:
        key = f"{key}:{content_type.value}"
    return key


def user_pattern(user_id: str) -> str:
    """Glob matching every page key of ``user_id`` and nobody else's."""

    return f"{_KEY_PREFIX}:{_escape_glob(user_id)}:*"


class MyListCache:
    """Typed read-through/write-invalidate helpers over a cache backend.

    Cache trouble must never fail a list operation, so every method logs and
    swallows backend errors; a failed read is reported as a miss.
    """

    def __init__(self, backend: CacheBackend, *, ttl: int = DEFAULT_CACHE_TTL_SECONDS) -> None:
        self._backend = backend
        self._ttl = ttl

    async def get_page(
        self,
        user_id: str,
        page: int,
        limit: int,
        content_type: ContentType | None = None,
    ) -> PaginatedMyListResponse | None:
        key = page_key(user_id, page, limit, content_type)
        try:
            cached = await self._backend.get_json(key)
            if cached is None:
                return None
            return PaginatedMyListResponse.model_validate(cached)
        except Exception:
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return None

    async def set_page(
        self,
        user_id: str,
        page: int,
        limit: int,
        content_type: ContentType | None,
        payload: PaginatedMyListResponse,
    ) -> None:
        key = page_key(user_id, page, limit, content_type)
        try:
            await self._backend.set_json(
                key, payload.model_dump(mode="json", by_alias=True), ttl=self._ttl
            )
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    async def invalidate_user(self, user_id: str) -> None:
        """Drop every cached page for ``user_id``."""

        pattern = user_pattern(user_id)
        try:
            await self._backend.delete_pattern(pattern)
        except Exception:
            logger.warning("Cache invalidation failed for %s", pattern, exc_info=True)

    async def clear(self) -> None:
        try:
            await self._backend.clear()
        except Exception:
            logger.warning("Cache clear failed", exc_info=True)


__all__ = ["MyListCache", "page_key", "user_pattern"]
