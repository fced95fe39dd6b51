"""Repositories wrapping SQLAlchemy sessions for the list engine."""

from watchlist.db.repositories.content_repository import (  # noqa: F401
    ContentRef,
    ContentRepository,
)
from watchlist.db.repositories.list_repository import (  # noqa: F401
    ListPage,
    ListRepository,
    UserListRecord,
)
from watchlist.db.repositories.user_repository import UserRepository  # noqa: F401
