"""Routers package."""

from . import (
    health,
    reels,
)
