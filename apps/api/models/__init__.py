"""Models package."""

from .reel import Reel
