from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import JSON, Date, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    preferences: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="``favoriteGenres`` and ``dislikedGenres`` lists keyed by genre name.",
    )
    watch_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Entries of ``{contentId, watchedOn, rating}`` in viewing order.",
    )


class Movie(Base):
    __tablename__ = "movies"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    genres: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    release_date: Mapped[date] = mapped_column(Date, nullable=False)
    director: Mapped[str] = mapped_column(String(255), nullable=False)
    actors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class TVShow(Base):
    __tablename__ = "tv_shows"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    genres: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    episodes: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc=(
            "Episodes stored inline as ``{episodeNumber, seasonNumber,"
            " releaseDate, director, actors}`` objects."
        ),
    )


from watchlist.db.models.my_list import ListEntryRecord, UserList  # noqa: E402

__all__ = [
    "Base",
    "ListEntryRecord",
    "Movie",
    "TVShow",
    "User",
    "UserList",
    "utcnow",
]
