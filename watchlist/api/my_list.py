"""FastAPI router exposing the per-user My List."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from watchlist.schemas.content import ContentType
from watchlist.schemas.my_list import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    AddItemData,
    AddItemRequest,
    AddItemResponse,
    MyListStats,
    PaginatedMyListResponse,
)
from watchlist.services.dependencies import get_my_list_service, get_user_id
from watchlist.services.my_list_service import MyListService

router = APIRouter()


@router.post(
    "/items",
    response_model=AddItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_item(
    payload: AddItemRequest,
    user_id: str = Depends(get_user_id),
    service: MyListService = Depends(get_my_list_service),
) -> AddItemResponse:
    """Add a movie or show to the caller's list."""

    await service.add_item(user_id, payload.content_id, payload.content_type)
    return AddItemResponse(
        data=AddItemData(content_id=payload.content_id, content_type=payload.content_type)
    )


@router.delete(
    "/items/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def remove_item(
    content_id: str,
    user_id: str = Depends(get_user_id),
    service: MyListService = Depends(get_my_list_service),
) -> Response:
    """Remove an entry from the caller's list."""

    await service.remove_item(user_id, content_id.strip())
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/items", response_model=PaginatedMyListResponse)
async def list_items(
    page: int = Query(1, ge=1, description="1-indexed page number"),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    content_type: ContentType | None = Query(
        None,
        alias="contentType",
        description="Only keep entries of this type from the requested page",
    ),
    user_id: str = Depends(get_user_id),
    service: MyListService = Depends(get_my_list_service),
) -> PaginatedMyListResponse:
    """Return a page of the caller's list, newest additions first."""

    return await service.list_items(user_id, page=page, limit=limit, content_type=content_type)


@router.get("/stats", response_model=MyListStats)
async def get_stats(
    user_id: str = Depends(get_user_id),
    service: MyListService = Depends(get_my_list_service),
) -> MyListStats:
    return await service.get_stats(user_id)
