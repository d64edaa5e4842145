"""Trip API routes."""

from . import playback

__all__ = ["playback"]
