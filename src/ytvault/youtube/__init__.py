"""YouTube Data API access."""

from .client import PlaylistCursor, YouTubeClient

__all__ = ["PlaylistCursor", "YouTubeClient"]
