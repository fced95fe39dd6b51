"""Business errors raised by the list engine.

The set of kinds is closed; the HTTP layer maps each kind to a status code and
nothing below the transport knows about HTTP.
"""

from __future__ import annotations

from enum import Enum


class MyListErrorKind(str, Enum):
    USER_NOT_FOUND = "user_not_found"
    CONTENT_NOT_FOUND = "content_not_found"
    DUPLICATE_ITEM = "duplicate_item"
    ITEM_NOT_FOUND = "item_not_found"


class MyListError(Exception):
    """Base class for expected list failures."""

    kind: MyListErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UserNotFoundError(MyListError):
    kind = MyListErrorKind.USER_NOT_FOUND

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class ContentNotFoundError(MyListError):
    kind = MyListErrorKind.CONTENT_NOT_FOUND

    def __init__(self, content_id: str, content_type: str) -> None:
        super().__init__(f"Content not found: {content_id} ({content_type})")
        self.content_id = content_id
        self.content_type = content_type


class DuplicateItemError(MyListError):
    kind = MyListErrorKind.DUPLICATE_ITEM

    def __init__(self, content_id: str) -> None:
        super().__init__(f"Item already exists in list: {content_id}")
        self.content_id = content_id


class ItemNotFoundError(MyListError):
    kind = MyListErrorKind.ITEM_NOT_FOUND

    def __init__(self, content_id: str) -> None:
        super().__init__(f"Item not found in list: {content_id}")
        self.content_id = content_id


__all__ = [
    "ContentNotFoundError",
    "DuplicateItemError",
    "ItemNotFoundError",
    "MyListError",
    "MyListErrorKind",
    "UserNotFoundError",
]
