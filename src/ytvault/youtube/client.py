"""YouTube Data API v3 client: playlist items and channel details.

Wraps a googleapiclient `youtube` service. Playlist items come back through a
lazy `PlaylistCursor` that only requests the next page once the current one
has been consumed.
"""

import logging
from collections import deque
from typing import Any, Iterable, Iterator

import httplib2
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..errors import ApiError, AuthenticationError
from ..models import Channel, Video

logger = logging.getLogger(__name__)

PLAYLIST_ITEM_PARTS = "id,snippet,contentDetails,status"
CHANNEL_PARTS = "id,snippet,contentDetails,statistics,topicDetails,brandingSettings,status"
TRANSIENT_STATUSES = {429, 500, 502, 503, 504}
MAX_IDS_PER_REQUEST = 50

# httplib2 and google-auth transport failures are not OSErrors
TRANSPORT_ERRORS = (httplib2.HttpLib2Error, TransportError, OSError)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, HttpError):
        return exc.resp.status in TRANSIENT_STATUSES
    return isinstance(exc, TRANSPORT_ERRORS)


class YouTubeClient:
    """Thin, retrying wrapper over the `youtube` v3 service."""

    def __init__(self, service: Any, page_size: int = 10, retries: int = 3, backoff: float = 1.0):
        self.service = service
        self.page_size = page_size
        self.retries = max(1, retries)
        self.backoff = backoff

    @classmethod
    def from_credentials(cls, credentials: Any, **kwargs) -> "YouTubeClient":
        service = build("youtube", "v3", credentials=credentials, cache_discovery=False)
        return cls(service, **kwargs)

    def execute(self, request: Any) -> dict[str, Any]:
        """Execute an API request, retrying transient failures with exponential backoff."""
        retryer = Retrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.backoff, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            return retryer(request.execute)
        except HttpError as e:
            status = e.resp.status
            if status == 401:
                raise AuthenticationError(
                    "YouTube rejected the credentials (401). Run 'ytvault auth' to sign in again."
                ) from e
            raise ApiError(f"YouTube API error {status}: {e}", status=status) from e
        except RefreshError as e:
            raise AuthenticationError(
                f"Could not refresh the access token: {e}. Run 'ytvault auth' to sign in again."
            ) from e
        except TRANSPORT_ERRORS as e:
            raise ApiError(f"Could not reach the YouTube API: {e}") from e

    def playlist_videos(self, channel_id: str, playlist_id: str) -> "PlaylistCursor":
        """Lazy sequence of the videos in a playlist."""
        return PlaylistCursor(self, channel_id, playlist_id)

    def playlist_page(self, playlist_id: str, page_token: str | None = None) -> dict[str, Any]:
        request = self.service.playlistItems().list(
            part=PLAYLIST_ITEM_PARTS,
            playlistId=playlist_id,
            maxResults=self.page_size,
            pageToken=page_token,
        )
        return self.execute(request)

    def channel_details(self, ids: Iterable[str]) -> Iterator[Channel]:
        """Fetch channels one id at a time, yielding them in input order."""
        for channel_id in dict.fromkeys(ids):
            request = self.service.channels().list(part=CHANNEL_PARTS, id=channel_id, maxResults=1)
            items = self.execute(request).get("items") or []
            if not items:
                logger.warning(f"Channel {channel_id} not found, skipping")
                continue
            yield Channel.from_api(items[0])

    def channel_details_batch(self, ids: Iterable[str]) -> Iterator[Channel]:
        """Fetch channels up to 50 ids per request, yielding them in input order."""
        unique = list(dict.fromkeys(ids))
        for start in range(0, len(unique), MAX_IDS_PER_REQUEST):
            chunk = unique[start:start + MAX_IDS_PER_REQUEST]
            request = self.service.channels().list(
                part=CHANNEL_PARTS, id=",".join(chunk), maxResults=MAX_IDS_PER_REQUEST
            )
            found = {item["id"]: item for item in self.execute(request).get("items") or []}
            for channel_id in chunk:
                if channel_id not in found:
                    logger.warning(f"Channel {channel_id} not found, skipping")
                    continue
                yield Channel.from_api(found[channel_id])


class PlaylistCursor:
    """Iterator over a playlist's videos that fetches one page at a time.

    A page is requested only when the buffered items run out; iteration stops
    after a response without `nextPageToken`. A cursor can be consumed once.
    """

    def __init__(self, client: YouTubeClient, channel_id: str, playlist_id: str):
        self.client = client
        self.channel_id = channel_id
        self.playlist_id = playlist_id
        self.pages_fetched = 0
        self._buffer: deque[Video] = deque()
        self._next_token: str | None = None
        self._exhausted = False

    @property
    def has_more(self) -> bool:
        return bool(self._buffer) or not self._exhausted

    def fetch_next_page(self) -> list[Video]:
        """Request the next page. Returns [] once the playlist is exhausted."""
        if self._exhausted:
            return []
        response = self.client.playlist_page(self.playlist_id, self._next_token)
        self.pages_fetched += 1
        self._next_token = response.get("nextPageToken")
        if not self._next_token:
            self._exhausted = True

        videos = []
        for item in response.get("items") or []:
            video = Video.from_api(item)
            if not video.channel_id:
                # private and deleted videos have no owner
                logger.warning(f"Skipping playlist item {video.item_id} ({video.title!r}): no owner channel")
                continue
            videos.append(video)
        logger.debug(f"Playlist {self.playlist_id}: page {self.pages_fetched} with {len(videos)} video(s)")
        return videos

    def __iter__(self) -> "PlaylistCursor":
        return self

    def __next__(self) -> Video:
        while not self._buffer:
            if self._exhausted:
                raise StopIteration
            self._buffer.extend(self.fetch_next_page())
        return self._buffer.popleft()
