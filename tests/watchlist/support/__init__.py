"""Test doubles shared across the watchlist test modules."""
