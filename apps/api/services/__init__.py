"""Reel analysis services."""
