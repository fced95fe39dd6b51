"""Test suite for the watchlist service."""
