"""
Sync orchestrator: YouTube playlist -> Obsidian vault.

Stages run strictly in order, one entity at a time:
1. Fetch every video in the playlist (paginated)
2. Fetch the distinct channels owning those videos
3. Write a note per channel, with its cached thumbnail
4. Write a note per video, with its cached thumbnail
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Union
from zoneinfo import ZoneInfoNotFoundError

from ..config import SyncOptions
from ..errors import AssetDownloadError, YtVaultError
from ..models import Channel, ChannelView, Video, VideoView
from ..vault.index import VaultIndex
from ..vault.writer import NoteWriter
from ..youtube.client import YouTubeClient
from .assets import AssetCache

logger = logging.getLogger(__name__)

VIDEO_ID_KEY = "youtube-video-id"
CHANNEL_ID_KEY = "youtube-channel-id"

Entity = Union[Video, Channel]


class SyncStage(Enum):
    INIT = "init"
    FETCH_VIDEOS = "fetch_videos"
    FETCH_CHANNELS = "fetch_channels"
    MATERIALIZE_CHANNELS = "materialize_channels"
    MATERIALIZE_VIDEOS = "materialize_videos"
    DONE = "done"


@dataclass
class SyncStats:
    """Statistics from a sync run."""

    videos_fetched: int = 0
    channels_fetched: int = 0
    notes_written: int = 0
    notes_refreshed: int = 0
    notes_skipped: int = 0
    failed: int = 0
    thumbnails_downloaded: int = 0
    thumbnail_failures: int = 0
    errors: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"Fetched: {self.videos_fetched} videos, {self.channels_fetched} channels\n"
            f"Notes written: {self.notes_written}\n"
            f"Notes refreshed: {self.notes_refreshed}\n"
            f"Notes skipped (already in vault): {self.notes_skipped}\n"
            f"Thumbnails downloaded: {self.thumbnails_downloaded}\n"
            f"Thumbnail failures: {self.thumbnail_failures}\n"
            f"Failed: {self.failed}"
        )


class YouTubeSync:
    """
    Synchronizes one playlist into the vault.

    Usage:
        index = VaultIndex.scan(vault_path)
        sync = YouTubeSync(index, client, NoteWriter(vault_path), AssetCache(), options)
        stats = sync.sync()

    Re-running is safe: thumbnails already on disk are not downloaded again and
    notes already in the vault are skipped or refreshed according to
    `options.existing_notes`.
    """

    def __init__(
        self,
        index: VaultIndex,
        client: YouTubeClient,
        writer: NoteWriter,
        assets: AssetCache,
        options: SyncOptions,
    ):
        self.index = index
        self.client = client
        self.writer = writer
        self.assets = assets
        self.options = options
        self.videos: list[Video] = []
        self.channels: list[Channel] = []
        self.stage = SyncStage.INIT
        self.stats = SyncStats()

    def sync(self) -> SyncStats:
        """Run every stage. Fetch failures propagate; per-note failures are counted."""
        self.fetch_videos()
        self.fetch_channels()
        self.make_channel_notes()
        self.make_video_notes()
        self.stage = SyncStage.DONE
        return self.stats

    def fetch_videos(self) -> None:
        if self.videos:
            return
        self.stage = SyncStage.FETCH_VIDEOS
        cursor = self.client.playlist_videos(self.options.channel_id, self.options.playlist_id)
        for video in cursor:
            self.videos.append(video)
        self.stats.videos_fetched = len(self.videos)
        logger.info(f"Fetched {len(self.videos)} video details")

    def channel_ids(self) -> list[str]:
        """Distinct owner channel ids, in the order they first appear."""
        return list(dict.fromkeys(video.channel_id for video in self.videos))

    def fetch_channels(self) -> None:
        if self.channels:
            return
        self.stage = SyncStage.FETCH_CHANNELS
        if self.options.batch_channel_lookup:
            channels = self.client.channel_details_batch(self.channel_ids())
        else:
            channels = self.client.channel_details(self.channel_ids())
        for channel in channels:
            self.channels.append(channel)
            logger.info(f"Fetched channel details: {channel.name}")
        self.stats.channels_fetched = len(self.channels)

    def make_channel_notes(self) -> None:
        self.stage = SyncStage.MATERIALIZE_CHANNELS
        for channel in self.channels:
            self._materialize(
                channel,
                id_key=CHANNEL_ID_KEY,
                thumbnail_dir=self.options.channel_thumbnail_path,
                template=self.options.channel_template,
                folder=self.options.channel_folder,
                make_view=lambda c, thumb: ChannelView.from_channel(
                    c, thumb, self.writer.vault_path, self.options.timezone
                ),
            )

    def make_video_notes(self) -> None:
        self.stage = SyncStage.MATERIALIZE_VIDEOS
        for video in self.videos:
            self._materialize(
                video,
                id_key=VIDEO_ID_KEY,
                thumbnail_dir=self.options.video_thumbnail_path,
                template=self.options.video_template,
                folder=self.options.video_folder,
                make_view=lambda v, thumb: VideoView.from_video(
                    v, thumb, self.writer.vault_path, self.options.timezone
                ),
            )

    def _materialize(
        self,
        entity: Entity,
        id_key: str,
        thumbnail_dir: Path,
        template: str,
        folder: str,
        make_view: Callable[[Entity, Path | None], Union[VideoView, ChannelView]],
    ) -> None:
        existing = None
        if self.options.existing_notes != "overwrite":
            existing = self.index.find_by_data(id_key, entity.id)
        if existing and self.options.existing_notes == "skip":
            logger.debug(f"Skipping {entity.name}: already in vault as {existing.path}")
            self.stats.notes_skipped += 1
            return

        try:
            thumbnail = self._cache_thumbnail(entity, thumbnail_dir)
            data = make_view(entity, thumbnail).to_context()
            if existing:
                self.writer.write_to(existing.path, template, data)
                self.stats.notes_refreshed += 1
            else:
                self.writer.write(template, folder, f"{entity.name}.md", data)
                self.stats.notes_written += 1
        except (YtVaultError, OSError, ValueError, ZoneInfoNotFoundError) as e:
            if self.options.fail_fast:
                raise
            error_msg = f"{entity.kind} {entity.name}: {e}"
            logger.error(f"Failed to write note for {error_msg}")
            self.stats.failed += 1
            self.stats.errors.append(error_msg)

    def _cache_thumbnail(self, entity: Entity, directory: Path) -> Path | None:
        before = self.assets.downloads
        try:
            path = self.assets.ensure_thumbnail(entity, directory)
        except AssetDownloadError as e:
            if self.options.fail_fast:
                raise
            logger.warning(f"Continuing without thumbnail for {entity.name}: {e}")
            self.stats.thumbnail_failures += 1
            self.stats.errors.append(str(e))
            return None
        self.stats.thumbnails_downloaded += self.assets.downloads - before
        return path
