"""Per-user watch list service for movies and TV shows."""

__version__ = "0.1.0"
