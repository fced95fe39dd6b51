"""Pydantic schemas that power the My List API surface."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import Field, field_validator

from watchlist.schemas.content import CamelModel, ContentType

CONTENT_ID_MAX_LENGTH = 100
MAX_PAGE_LIMIT = 100
DEFAULT_PAGE_LIMIT = 10


class ListEntry(CamelModel):
    """Reference from a user's list to a catalog item."""

    content_id: str
    content_type: ContentType
    added_at: datetime


class AddItemRequest(CamelModel):
    """Payload for ``POST /items``."""

    content_id: str = Field(..., description="Catalog identifier of the movie or show")
    content_type: ContentType = Field(..., description="Either ``Movie`` or ``TVShow``")

    @field_validator("content_id")
    @classmethod
    def _trim_content_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("contentId must not be blank")
        if len(cleaned) > CONTENT_ID_MAX_LENGTH:
            raise ValueError(f"contentId must be at most {CONTENT_ID_MAX_LENGTH} characters")
        return cleaned


class AddItemData(CamelModel):
    content_id: str
    content_type: ContentType


class AddItemResponse(CamelModel):
    """Acknowledgement returned with ``201 Created``."""

    success: bool = True
    message: str = "Item added to MyList successfully"
    data: AddItemData


class MyListItem(CamelModel):
    """A list entry joined with its catalog details.

    Movies carry ``release_date``, ``director`` and ``actors``; shows carry
    ``episode_count``. Fields belonging to the other content type stay ``None``.
    """

    content_id: str
    content_type: ContentType
    title: str
    description: str
    genres: list[str] = Field(default_factory=list)
    added_at: datetime
    release_date: date | None = None
    director: str | None = None
    actors: list[str] | None = None
    episode_count: int | None = None


class PaginationMeta(CamelModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def compute(cls, *, page: int, limit: int, total: int) -> PaginationMeta:
        """Derive page flags from ``total``; an empty collection has zero pages."""

        total_pages = -(-total // limit) if total > 0 else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


class PaginatedMyListResponse(CamelModel):
    data: list[MyListItem] = Field(default_factory=list)
    pagination: PaginationMeta


class MyListStats(CamelModel):
    """Per-user counts by content type."""

    total_items: int = 0
    movie_count: int = 0
    tv_show_count: int = 0
    last_updated: datetime | None = None


__all__ = [
    "AddItemData",
    "AddItemRequest",
    "AddItemResponse",
    "CONTENT_ID_MAX_LENGTH",
    "DEFAULT_PAGE_LIMIT",
    "ListEntry",
    "MAX_PAGE_LIMIT",
    "MyListItem",
    "MyListStats",
    "PaginatedMyListResponse",
    "PaginationMeta",
]
