"""Service layer: the list engine, its cache wrapper and business errors."""

from watchlist.services.errors import (  # noqa: F401
    ContentNotFoundError,
    DuplicateItemError,
    ItemNotFoundError,
    MyListError,
    MyListErrorKind,
    UserNotFoundError,
)
from watchlist.services.my_list_cache import MyListCache  # noqa: F401
from watchlist.services.my_list_service import MyListService  # noqa: F401
