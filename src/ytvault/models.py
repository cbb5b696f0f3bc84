"""Data models used throughout ytvault.

`Video` and `Channel` wrap YouTube Data API resources. `VideoView` and
`ChannelView` are the flat contexts handed to note templates.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import Any, ClassVar
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

from .vault.writer import make_safe_filename


VIDEO_THUMBNAIL_RANKS = ("maxres", "standard", "high", "medium", "default")
CHANNEL_THUMBNAIL_RANKS = ("high", "medium", "default")


def _common_replaces(text: str) -> str:
    return text.replace("[", "(").replace("]", ")")


def safe_title(title: str | None) -> str | None:
    """Title safe for note names and wikilinks: brackets become parens, '#' dropped."""
    if not title:
        return None
    return _common_replaces(title).replace("#", "")


def sanitise(text: str | None) -> str | None:
    """Free text safe for a note body: '#' is wrapped in backticks so Obsidian won't tag it."""
    if not text:
        return None
    return _common_replaces(text).replace("#", "`#`")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as returned by the API."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def humanize_timestamp(value: str | None, tz: str = "Europe/London") -> str | None:
    """Format an API timestamp as 'YYYY-MM-DD HH:MM:SS TZ' in the given timezone."""
    moment = parse_timestamp(value)
    if moment is None:
        return None
    return moment.astimezone(ZoneInfo(tz)).strftime("%Y-%m-%d %H:%M:%S %Z")


@dataclass
class Thumbnail:
    """One resolution variant of a thumbnail."""
    url: str
    quality: str = "default"
    width: int | None = None
    height: int | None = None

    @property
    def extension(self) -> str:
        return PurePosixPath(urlparse(self.url).path).suffix or ".jpg"


def best_thumbnail(thumbnails: dict[str, Any] | None, ranks: tuple[str, ...]) -> Thumbnail | None:
    """Pick the highest ranked variant present in an API `thumbnails` mapping."""
    if not thumbnails:
        return None
    for quality in ranks:
        variant = thumbnails.get(quality)
        if variant and variant.get("url"):
            return Thumbnail(
                url=variant["url"],
                quality=quality,
                width=variant.get("width"),
                height=variant.get("height"),
            )
    return None


@dataclass
class Video:
    """A playlist item joined to the video it points at."""
    kind: ClassVar[str] = "youtube-video"

    item_id: str
    video_id: str
    playlist_id: str
    title: str
    channel_id: str
    channel_title: str
    thumbnail: Thumbnail | None = None
    added: str | None = None
    published: str | None = None
    description: str | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Video":
        """Build from a `playlistItems` resource."""
        snippet = item.get("snippet", {})
        details = item.get("contentDetails", {})
        return cls(
            item_id=item["id"],
            video_id=details.get("videoId") or snippet.get("resourceId", {}).get("videoId", ""),
            playlist_id=snippet.get("playlistId", ""),
            title=safe_title(snippet.get("title")) or "",
            channel_id=snippet.get("videoOwnerChannelId", ""),
            channel_title=safe_title(snippet.get("videoOwnerChannelTitle")) or "",
            thumbnail=best_thumbnail(snippet.get("thumbnails"), VIDEO_THUMBNAIL_RANKS),
            added=snippet.get("publishedAt"),
            published=details.get("videoPublishedAt"),
            description=sanitise(snippet.get("description")),
        )

    @property
    def id(self) -> str:
        return self.video_id

    @property
    def name(self) -> str:
        return f"{self.title} ({self.video_id})"

    @property
    def channel_name(self) -> str:
        return f"{self.channel_title} ({self.channel_id})"

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"

    @property
    def thumbnail_filename(self) -> str | None:
        if not self.thumbnail:
            return None
        return f"{self.kind}-thumbnail-{self.video_id}{self.thumbnail.extension}"


@dataclass
class Channel:
    """A channel that owns at least one synced video."""
    kind: ClassVar[str] = "youtube-channel"

    id: str
    title: str
    thumbnail: Thumbnail | None = None
    published: str | None = None
    description: str | None = None
    country: str | None = None
    custom_url: str | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Channel":
        """Build from a `channels` resource."""
        snippet = item.get("snippet", {})
        return cls(
            id=item["id"],
            title=safe_title(snippet.get("title")) or "",
            thumbnail=best_thumbnail(snippet.get("thumbnails"), CHANNEL_THUMBNAIL_RANKS),
            published=snippet.get("publishedAt"),
            description=sanitise(snippet.get("description")),
            country=snippet.get("country"),
            custom_url=snippet.get("customUrl"),
        )

    @property
    def name(self) -> str:
        return f"{self.title} ({self.id})"

    @property
    def url(self) -> str:
        if not self.custom_url:
            return f"https://www.youtube.com/channel/{self.id}"
        return f"https://www.youtube.com/{self.custom_url}"

    @property
    def thumbnail_filename(self) -> str | None:
        if not self.thumbnail:
            return None
        return f"{self.kind}-thumbnail-{self.id}{self.thumbnail.extension}"


def _vault_relative(path: Path | None, vault_path: Path | None) -> str | None:
    if path is None:
        return None
    if vault_path is not None:
        try:
            return path.relative_to(vault_path).as_posix()
        except ValueError:
            pass
    return path.as_posix()


@dataclass
class ChannelView:
    """Template context for a channel note."""
    id: str
    title: str
    name: str
    url: str
    description: str | None = None
    country: str | None = None
    custom_url: str | None = None
    published: str | None = None
    published_human: str | None = None
    thumbnail_url: str | None = None
    thumbnail: str | None = None
    synced: str = field(default_factory=lambda: date.today().isoformat())

    @classmethod
    def from_channel(cls, channel: Channel, thumbnail_path: Path | None = None,
                     vault_path: Path | None = None, tz: str = "Europe/London") -> "ChannelView":
        return cls(
            id=channel.id,
            title=channel.title,
            name=channel.name,
            url=channel.url,
            description=channel.description,
            country=channel.country,
            custom_url=channel.custom_url,
            published=channel.published,
            published_human=humanize_timestamp(channel.published, tz),
            thumbnail_url=channel.thumbnail.url if channel.thumbnail else None,
            thumbnail=_vault_relative(thumbnail_path, vault_path),
        )

    def to_context(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VideoView:
    """Template context for a video note."""
    id: str
    video_id: str
    item_id: str
    playlist_id: str
    title: str
    name: str
    url: str
    channel_id: str
    channel_title: str
    channel_name: str
    channel_note: str
    description: str | None = None
    added: str | None = None
    added_human: str | None = None
    published: str | None = None
    published_human: str | None = None
    thumbnail_url: str | None = None
    thumbnail: str | None = None
    synced: str = field(default_factory=lambda: date.today().isoformat())

    @classmethod
    def from_video(cls, video: Video, thumbnail_path: Path | None = None,
                   vault_path: Path | None = None, tz: str = "Europe/London") -> "VideoView":
        return cls(
            id=video.video_id,
            video_id=video.video_id,
            item_id=video.item_id,
            playlist_id=video.playlist_id,
            title=video.title,
            name=video.name,
            url=video.url,
            channel_id=video.channel_id,
            channel_title=video.channel_title,
            channel_name=video.channel_name,
            channel_note=make_safe_filename(video.channel_name),
            description=video.description,
            added=video.added,
            added_human=humanize_timestamp(video.added, tz),
            published=video.published,
            published_human=humanize_timestamp(video.published, tz),
            thumbnail_url=video.thumbnail.url if video.thumbnail else None,
            thumbnail=_vault_relative(thumbnail_path, vault_path),
        )

    def to_context(self) -> dict[str, Any]:
        return asdict(self)
