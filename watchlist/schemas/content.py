"""Catalog read models shared by the content repository and the list engine."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that accepts snake_case and emits camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ContentType(str, Enum):
    """Kinds of catalog content a list entry can reference."""

    MOVIE = "Movie"
    TV_SHOW = "TVShow"


class Genre(str, Enum):
    ACTION = "Action"
    COMEDY = "Comedy"
    DRAMA = "Drama"
    FANTASY = "Fantasy"
    HORROR = "Horror"
    ROMANCE = "Romance"
    SCIFI = "SciFi"


class Episode(CamelModel):
    """Single episode of a TV show as stored in the show's JSON column."""

    episode_number: int = Field(..., ge=1)
    season_number: int = Field(..., ge=1)
    release_date: date
    director: str
    actors: list[str] = Field(default_factory=list)


class MovieDetails(CamelModel):
    """Catalog view of a movie."""

    content_id: str
    title: str
    description: str
    genres: list[str] = Field(default_factory=list)
    release_date: date
    director: str
    actors: list[str] = Field(default_factory=list)

    @property
    def content_type(self) -> ContentType:
        return ContentType.MOVIE


class TVShowDetails(CamelModel):
    """Catalog view of a TV show."""

    content_id: str
    title: str
    description: str
    genres: list[str] = Field(default_factory=list)
    episodes: list[Episode] = Field(default_factory=list)

    @property
    def content_type(self) -> ContentType:
        return ContentType.TV_SHOW


ContentDetails = Union[MovieDetails, TVShowDetails]


__all__ = [
    "CamelModel",
    "ContentDetails",
    "ContentType",
    "Episode",
    "Genre",
    "MovieDetails",
    "TVShowDetails",
]
