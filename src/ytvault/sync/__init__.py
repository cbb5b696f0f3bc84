"""Playlist -> vault synchronization."""

from .assets import AssetCache
from .orchestrator import SyncStage, SyncStats, YouTubeSync

__all__ = ["AssetCache", "SyncStage", "SyncStats", "YouTubeSync"]
