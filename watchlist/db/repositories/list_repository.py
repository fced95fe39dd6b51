"""Durable storage for per-user watch lists.

Uniqueness of ``(user_id, content_id)`` is enforced by the database. Adds are
issued as ``INSERT ... ON CONFLICT DO NOTHING`` so that concurrent writers of
the same item resolve to exactly one inserted row without a read-then-write
race. Both mutating methods commit before returning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from watchlist.db.models import ListEntryRecord, UserList, utcnow
from watchlist.schemas.content import ContentType
from watchlist.schemas.my_list import ListEntry, PaginationMeta

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(slots=True)
class ListPage:
    """One page of entries plus pagination computed over the whole list."""

    items: list[ListEntry]
    pagination: PaginationMeta


@dataclass(slots=True)
class UserListRecord:
    """A user's list aggregate with every entry, newest first."""

    user_id: str
    created_at: datetime
    updated_at: datetime
    items: list[ListEntry] = field(default_factory=list)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_entry(row: ListEntryRecord) -> ListEntry:
    return ListEntry(
        content_id=row.content_id,
        content_type=ContentType(row.content_type),
        added_at=_as_utc(row.added_at),
    )


class ListRepository:
    """SQLAlchemy-backed list store bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _insert(self, table: Any) -> Any:
        dialect = self._session.get_bind().dialect.name
        try:
            insert_factory = _DIALECT_INSERTS[dialect]
        except KeyError:
            raise RuntimeError(
                f"Conditional inserts are not supported for the {dialect!r} dialect"
            ) from None
        return insert_factory(table)

    async def add_item(self, user_id: str, entry: ListEntry) -> bool:
        """Insert ``entry`` unless the user already has that content id.

        Returns ``True`` when this call created the row and ``False`` when an
        entry with the same content id already existed.
        """

        try:
            await self._session.execute(
                self._insert(UserList)
                .values(user_id=user_id, created_at=entry.added_at, updated_at=entry.added_at)
                .on_conflict_do_nothing(index_elements=[UserList.user_id])
            )
            result = await self._session.execute(
                self._insert(ListEntryRecord)
                .values(
                    user_id=user_id,
                    content_id=entry.content_id,
                    content_type=entry.content_type.value,
                    added_at=entry.added_at,
                )
                .on_conflict_do_nothing(
                    index_elements=[ListEntryRecord.user_id, ListEntryRecord.content_id]
                )
            )
            inserted = result.rowcount == 1
            if inserted:
                await self._touch(user_id, entry.added_at)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

        if not inserted:
            logger.debug(
                "Conditional insert skipped existing entry",
                extra={"user_id": user_id, "content_id": entry.content_id},
            )
        return inserted

    async def remove_item(self, user_id: str, content_id: str) -> bool:
        """Delete the entry and report whether a row was removed."""

        try:
            result = await self._session.execute(
                delete(ListEntryRecord).where(
                    ListEntryRecord.user_id == user_id,
                    ListEntryRecord.content_id == content_id,
                )
            )
            removed = result.rowcount > 0
            if removed:
                await self._touch(user_id, utcnow())
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return removed

    async def _touch(self, user_id: str, when: datetime) -> None:
        await self._session.execute(
            update(UserList).where(UserList.user_id == user_id).values(updated_at=when)
        )

    async def item_exists(self, user_id: str, content_id: str) -> bool:
        query = select(ListEntryRecord.id).where(
            ListEntryRecord.user_id == user_id,
            ListEntryRecord.content_id == content_id,
        )
        result = await self._session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def count_items(self, user_id: str) -> int:
        query = select(func.count(ListEntryRecord.id)).where(ListEntryRecord.user_id == user_id)
        result = await self._session.execute(query)
        return int(result.scalar_one())

    async def get_items_paginated(self, user_id: str, page: int, limit: int) -> ListPage:
        """Return one page of entries ordered newest first.

        Entries sharing an ``added_at`` value keep their insertion order.
        """

        total = await self.count_items(user_id)
        if total == 0:
            return ListPage(items=[], pagination=PaginationMeta.compute(page=page, limit=limit, total=0))

        query = (
            select(ListEntryRecord)
            .where(ListEntryRecord.user_id == user_id)
            .order_by(ListEntryRecord.added_at.desc(), ListEntryRecord.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self._session.execute(query)
        items = [_to_entry(row) for row in result.scalars().all()]
        return ListPage(
            items=items,
            pagination=PaginationMeta.compute(page=page, limit=limit, total=total),
        )

    async def find_by_user_id(self, user_id: str) -> UserListRecord | None:
        """Load the list aggregate, or ``None`` when the user never added anything."""

        result = await self._session.execute(select(UserList).where(UserList.user_id == user_id))
        user_list = result.scalar_one_or_none()
        if user_list is None:
            return None

        entries = await self._session.execute(
            select(ListEntryRecord)
            .where(ListEntryRecord.user_id == user_id)
            .order_by(ListEntryRecord.added_at.desc(), ListEntryRecord.id.asc())
        )
        return UserListRecord(
            user_id=user_list.user_id,
            created_at=_as_utc(user_list.created_at),
            updated_at=_as_utc(user_list.updated_at),
            items=[_to_entry(row) for row in entries.scalars().all()],
        )


__all__ = ["ListPage", "ListRepository", "UserListRecord"]
