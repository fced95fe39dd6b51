"""FastAPI dependency providers.

Everything request-scoped is built from the objects the application factory
stores on ``app.state``: the session factory, the cache backend and settings.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from watchlist.db.repositories import ContentRepository, ListRepository, UserRepository
from watchlist.services.my_list_cache import MyListCache
from watchlist.services.my_list_service import MyListService
from watchlist.settings import AppSettings

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session and roll back whatever the handler left uncommitted on error."""

    async with request.app.state.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def get_my_list_cache(request: Request) -> MyListCache:
    settings: AppSettings = request.app.state.settings
    return MyListCache(request.app.state.cache, ttl=settings.cache_ttl_seconds)


def get_my_list_service(
    session: AsyncSession = Depends(get_db),
    cache: MyListCache = Depends(get_my_list_cache),
) -> MyListService:
    return MyListService(
        store=ListRepository(session),
        catalog=ContentRepository(session),
        users=UserRepository(session),
        cache=cache,
    )


def get_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    settings: AppSettings = Depends(get_app_settings),
) -> str:
    """Resolve the caller from ``X-User-Id``.

    A missing header falls back to ``settings.default_user_id`` when one is
    configured; a present but blank header is rejected.
    """

    if x_user_id is None:
        if settings.default_user_id:
            logger.warning(
                "X-User-Id header missing; using default user %s", settings.default_user_id
            )
            return settings.default_user_id
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required",
        )

    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header must not be blank",
        )
    return user_id


__all__ = [
    "get_app_settings",
    "get_db",
    "get_my_list_cache",
    "get_my_list_service",
    "get_user_id",
]
