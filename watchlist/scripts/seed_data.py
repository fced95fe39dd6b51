#!/usr/bin/env python
"""Load sample users, movies, TV shows and lists into the configured database.

Creates any missing tables first. PostgreSQL deployments are normally migrated
with ``alembic upgrade head`` before seeding.

Usage:
    python -m watchlist.scripts.seed_data
    python -m watchlist.scripts.seed_data ./data/fixtures/sample_catalog.json --reset
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from watchlist.db.connection import create_engine, create_session_factory, init_models, session_scope
from watchlist.db.models import ListEntryRecord, Movie, TVShow, User, UserList
from watchlist.db.repositories.list_repository import ListRepository
from watchlist.schemas.content import ContentType, Episode
from watchlist.schemas.my_list import ListEntry
from watchlist.settings import get_settings

DEFAULT_FIXTURE = Path("data/fixtures/sample_catalog.json")


@dataclass
class SeedSummary:
    users: int = 0
    movies: int = 0
    tv_shows: int = 0
    list_entries: int = 0


def load_fixture(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def clear_tables(session: AsyncSession) -> None:
    """Delete lists first, then catalog rows."""
    for model in (ListEntryRecord, UserList, Movie, TVShow, User):
        await session.execute(delete(model))
    await session.commit()


async def seed_catalog(session: AsyncSession, data: dict[str, Any]) -> SeedSummary:
    """Upsert catalog rows and insert list entries that are not present yet."""
    summary = SeedSummary()

    for user in data.get("users", []):
        await session.merge(
            User(
                id=user["id"],
                username=user["username"],
                preferences=user.get("preferences", {}),
                watch_history=user.get("watchHistory", []),
            )
        )
        summary.users += 1

    for movie in data.get("movies", []):
        await session.merge(
            Movie(
                id=movie["id"],
                title=movie["title"],
                description=movie.get("description", ""),
                genres=movie.get("genres", []),
                release_date=date.fromisoformat(movie["releaseDate"]),
                director=movie["director"],
                actors=movie.get("actors", []),
            )
        )
        summary.movies += 1

    for show in data.get("tvShows", []):
        episodes = [
            Episode.model_validate(episode).model_dump(mode="json", by_alias=True)
            for episode in show.get("episodes", [])
        ]
        await session.merge(
            TVShow(
                id=show["id"],
                title=show["title"],
                description=show.get("description", ""),
                genres=show.get("genres", []),
                episodes=episodes,
            )
        )
        summary.tv_shows += 1

    await session.commit()

    repository = ListRepository(session)
    for user_list in data.get("myLists", []):
        for item in user_list.get("items", []):
            entry = ListEntry(
                content_id=item["contentId"],
                content_type=ContentType(item["contentType"]),
                added_at=_parse_datetime(item["addedAt"]),
            )
            if await repository.add_item(user_list["userId"], entry):
                summary.list_entries += 1

    return summary


async def run(fixture: Path, *, reset: bool) -> SeedSummary:
    settings = get_settings()
    engine = create_engine(settings)
    try:
        await init_models(engine)
        async with session_scope(create_session_factory(engine)) as session:
            if reset:
                await clear_tables(session)
            return await seed_catalog(session, load_fixture(fixture))
    finally:
        await engine.dispose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the watchlist database with sample data")
    parser.add_argument(
        "fixture",
        nargs="?",
        type=Path,
        default=DEFAULT_FIXTURE,
        help="JSON file with users, movies, tvShows and myLists arrays",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete existing rows before seeding",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if not args.fixture.exists():
        print(f"❌ Fixture not found: {args.fixture}")
        return 1

    summary = asyncio.run(run(args.fixture, reset=args.reset))
    print(f"✅ Seeded {summary.users} users, {summary.movies} movies, {summary.tv_shows} TV shows")
    print(f"✅ Inserted {summary.list_entries} new list entries")
    return 0


if __name__ == "__main__":
    sys.exit(main())
