"""Pydantic schemas for API requests and responses."""

from watchlist.schemas.content import (  # noqa: F401
    ContentDetails,
    ContentType,
    Episode,
    Genre,
    MovieDetails,
    TVShowDetails,
)
from watchlist.schemas.error import (  # noqa: F401
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from watchlist.schemas.my_list import (  # noqa: F401
    AddItemRequest,
    AddItemResponse,
    ListEntry,
    MyListItem,
    MyListStats,
    PaginatedMyListResponse,
    PaginationMeta,
)
