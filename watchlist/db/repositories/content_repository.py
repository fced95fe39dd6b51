"""Read-only access to the movie and TV show catalog."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from watchlist.db.models import Movie, TVShow
from watchlist.schemas.content import (
    ContentDetails,
    ContentType,
    Episode,
    MovieDetails,
    TVShowDetails,
)

ContentRef = tuple[str, ContentType]


def _movie_details(movie: Movie) -> MovieDetails:
    return MovieDetails(
        content_id=movie.id,
        title=movie.title,
        description=movie.description,
        genres=list(movie.genres or []),
        release_date=movie.release_date,
        director=movie.director,
        actors=list(movie.actors or []),
    )


def _show_details(show: TVShow) -> TVShowDetails:
    return TVShowDetails(
        content_id=show.id,
        title=show.title,
        description=show.description,
        genres=list(show.genres or []),
        episodes=[Episode.model_validate(episode) for episode in show.episodes or []],
    )


class ContentRepository:
    """Catalog lookups used by the list engine."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def content_exists(self, content_id: str, content_type: ContentType) -> bool:
        model = Movie if content_type is ContentType.MOVIE else TVShow
        result = await self._session.execute(select(model.id).where(model.id == content_id))
        return result.scalar_one_or_none() is not None

    async def find_movie(self, content_id: str) -> MovieDetails | None:
        movie = await self._session.get(Movie, content_id)
        return _movie_details(movie) if movie is not None else None

    async def find_tv_show(self, content_id: str) -> TVShowDetails | None:
        show = await self._session.get(TVShow, content_id)
        return _show_details(show) if show is not None else None

    async def find_contents_by_ids(self, refs: Sequence[ContentRef]) -> list[ContentDetails]:
        """Resolve ``refs`` with at most one query per content type.

        The result follows the order of ``refs``; references whose content no
        longer exists are left out.
        """

        movie_ids = {content_id for content_id, kind in refs if kind is ContentType.MOVIE}
        show_ids = {content_id for content_id, kind in refs if kind is ContentType.TV_SHOW}

        found: dict[ContentRef, ContentDetails] = {}
        if movie_ids:
            movies = await self._session.execute(select(Movie).where(Movie.id.in_(movie_ids)))
            for movie in movies.scalars().all():
                found[(movie.id, ContentType.MOVIE)] = _movie_details(movie)
        if show_ids:
            shows = await self._session.execute(select(TVShow).where(TVShow.id.in_(show_ids)))
            for show in shows.scalars().all():
                found[(show.id, ContentType.TV_SHOW)] = _show_details(show)

        return [found[ref] for ref in refs if ref in found]


__all__ = ["ContentRef", "ContentRepository"]
