"""Business logic powering the My List endpoints.

:class:`MyListService` coordinates four collaborators, all passed in
explicitly:

* ``store`` - durable list storage with an atomic insert-if-absent
  (:class:`~watchlist.db.repositories.list_repository.ListRepository`).
* ``catalog`` - movie/show lookups (:class:`ContentCatalog`).
* ``users`` - user existence checks (:class:`UserDirectory`).
* ``cache`` - rendered page cache (:class:`~watchlist.services.my_list_cache.MyListCache`).

Writes always reach the store before the user's cached pages are dropped. A
read that misses the cache while a write is in flight may still store a page
built from pre-write data; it lives until the next write or its TTL expires.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from watchlist.db.repositories.list_repository import ListPage, UserListRecord
from watchlist.schemas.content import ContentDetails, ContentType, MovieDetails, TVShowDetails
from watchlist.schemas.my_list import (
    DEFAULT_PAGE_LIMIT,
    ListEntry,
    MyListItem,
    MyListStats,
    PaginatedMyListResponse,
    PaginationMeta,
)
from watchlist.services.errors import (
    ContentNotFoundError,
    DuplicateItemError,
    ItemNotFoundError,
    UserNotFoundError,
)
from watchlist.services.my_list_cache import MyListCache

logger = logging.getLogger(__name__)


@runtime_checkable
class UserDirectory(Protocol):
    async def exists(self, user_id: str) -> bool:
        """Return ``True`` when ``user_id`` is a known user."""


@runtime_checkable
class ContentCatalog(Protocol):
    async def content_exists(self, content_id: str, content_type: ContentType) -> bool:
        """Return ``True`` when the catalog holds the content."""

    async def find_contents_by_ids(
        self, refs: Sequence[tuple[str, ContentType]]
    ) -> list[ContentDetails]:
        """Resolve references in request order, omitting missing content."""


@runtime_checkable
class ListStore(Protocol):
    async def add_item(self, user_id: str, entry: ListEntry) -> bool: ...

    async def remove_item(self, user_id: str, content_id: str) -> bool: ...

    async def item_exists(self, user_id: str, content_id: str) -> bool: ...

    async def get_items_paginated(self, user_id: str, page: int, limit: int) -> ListPage: ...

    async def find_by_user_id(self, user_id: str) -> UserListRecord | None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _build_item(entry: ListEntry, details: ContentDetails) -> MyListItem:
    item = MyListItem(
        content_id=entry.content_id,
        content_type=entry.content_type,
        title=details.title,
        description=details.description,
        genres=list(details.genres),
        added_at=entry.added_at,
    )
    if isinstance(details, MovieDetails):
        item.release_date = details.release_date
        item.director = details.director
        item.actors = list(details.actors)
    elif isinstance(details, TVShowDetails):
        item.episode_count = len(details.episodes)
    return item


class MyListService:
    """Add, remove and paginate a user's list while keeping the cache honest."""

    def __init__(
        self,
        *,
        store: ListStore,
        catalog: ContentCatalog,
        users: UserDirectory,
        cache: MyListCache,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._users = users
        self._cache = cache
        self._clock = clock

    async def add_item(self, user_id: str, content_id: str, content_type: ContentType) -> None:
        """Append content to the user's list.

        Raises:
            UserNotFoundError: ``user_id`` is unknown.
            ContentNotFoundError: the catalog has no such movie/show.
            DuplicateItemError: the list already holds ``content_id``, including
                when a concurrent add of the same id won the insert.
        """

        try:
            if not await self._users.exists(user_id):
                raise UserNotFoundError(user_id)

            if not await self._catalog.content_exists(content_id, content_type):
                raise ContentNotFoundError(content_id, content_type.value)

            if await self._store.item_exists(user_id, content_id):
                raise DuplicateItemError(content_id)

            entry = ListEntry(
                content_id=content_id,
                content_type=content_type,
                added_at=self._clock(),
            )
            if not await self._store.add_item(user_id, entry):
                raise DuplicateItemError(content_id)
        except (UserNotFoundError, ContentNotFoundError, DuplicateItemError):
            raise
        except Exception:
            logger.error(
                "Error adding item to MyList",
                extra={"user_id": user_id, "content_id": content_id},
                exc_info=True,
            )
            raise

        await self._cache.invalidate_user(user_id)
        logger.info(
            "Item added to MyList",
            extra={
                "user_id": user_id,
                "content_id": content_id,
                "content_type": content_type.value,
            },
        )

    async def remove_item(self, user_id: str, content_id: str) -> None:
        """Remove content from the user's list.

        Raises:
            ItemNotFoundError: the list does not hold ``content_id``.
        """

        try:
            removed = await self._store.remove_item(user_id, content_id)
        except Exception:
            logger.error(
                "Error removing item from MyList",
                extra={"user_id": user_id, "content_id": content_id},
                exc_info=True,
            )
            raise

        if not removed:
            raise ItemNotFoundError(content_id)

        await self._cache.invalidate_user(user_id)
        logger.info(
            "Item removed from MyList",
            extra={"user_id": user_id, "content_id": content_id},
        )

    async def list_items(
        self,
        user_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_LIMIT,
        content_type: ContentType | None = None,
    ) -> PaginatedMyListResponse:
        """Return one page of the user's list, newest additions first.

        With ``content_type`` the filter is applied to the fetched page only,
        and the pagination block then describes the surviving rows of that page
        rather than the whole filtered list.
        """

        cached = await self._cache.get_page(user_id, page, limit, content_type)
        if cached is not None:
            logger.debug("MyList cache hit", extra={"user_id": user_id, "page": page})
            return cached

        try:
            response = await self._load_page(user_id, page, limit, content_type)
        except Exception:
            logger.error(
                "Error getting MyList",
                extra={"user_id": user_id, "page": page, "limit": limit},
                exc_info=True,
            )
            raise

        await self._cache.set_page(user_id, page, limit, content_type, response)
        logger.info(
            "MyList retrieved",
            extra={
                "user_id": user_id,
                "page": page,
                "limit": limit,
                "total_items": response.pagination.total,
            },
        )
        return response

    async def _load_page(
        self,
        user_id: str,
        page: int,
        limit: int,
        content_type: ContentType | None,
    ) -> PaginatedMyListResponse:
        result = await self._store.get_items_paginated(user_id, page, limit)
        if not result.items:
            return PaginatedMyListResponse(data=[], pagination=result.pagination)

        entries = result.items
        if content_type is not None:
            entries = [entry for entry in entries if entry.content_type is content_type]

        details = await self._catalog.find_contents_by_ids(
            [(entry.content_id, entry.content_type) for entry in entries]
        )
        details_by_ref = {(detail.content_id, detail.content_type): detail for detail in details}

        data: list[MyListItem] = []
        for entry in entries:
            detail = details_by_ref.get((entry.content_id, entry.content_type))
            if detail is None:
                logger.warning(
                    "Content not found for list entry",
                    extra={
                        "user_id": user_id,
                        "content_id": entry.content_id,
                        "content_type": entry.content_type.value,
                    },
                )
                continue
            data.append(_build_item(entry, detail))

        pagination = result.pagination
        if content_type is not None:
            pagination = PaginationMeta.compute(page=page, limit=limit, total=len(data))

        return PaginatedMyListResponse(data=data, pagination=pagination)

    async def get_stats(self, user_id: str) -> MyListStats:
        """Count the user's entries by content type."""

        record = await self._store.find_by_user_id(user_id)
        if record is None:
            return MyListStats()

        movie_count = sum(1 for entry in record.items if entry.content_type is ContentType.MOVIE)
        tv_show_count = len(record.items) - movie_count
        return MyListStats(
            total_items=movie_count + tv_show_count,
            movie_count=movie_count,
            tv_show_count=tv_show_count,
            last_updated=record.updated_at,
        )


__all__ = [
    "ContentCatalog",
    "ListStore",
    "MyListService",
    "UserDirectory",
]
