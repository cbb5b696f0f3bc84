"""Shared fakes for the YouTube service and HTTP session."""

import pytest
import requests


def make_playlist_item(video_id, channel_id="UC1", channel_title="Chan One", title=None,
                       thumbnails=None, added="2024-01-05T10:00:00Z",
                       published="2023-07-01T12:00:00Z", description="About this video"):
    if thumbnails is None:
        thumbnails = {
            "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg", "width": 120, "height": 90},
            "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg", "width": 480, "height": 360},
        }
    snippet = {
        "title": title or f"Video {video_id}",
        "description": description,
        "publishedAt": added,
        "playlistId": "PL1",
        "thumbnails": thumbnails,
        "videoOwnerChannelId": channel_id,
        "videoOwnerChannelTitle": channel_title,
    }
    details = {"videoId": video_id}
    if published:
        details["videoPublishedAt"] = published
    return {"id": f"item-{video_id}", "snippet": snippet, "contentDetails": details}


def make_channel_item(channel_id, title="Chan One", custom_url=None, country="GB", thumbnails=None):
    if thumbnails is None:
        thumbnails = {"medium": {"url": f"https://yt3.ggpht.com/{channel_id}.png"}}
    snippet = {
        "title": title,
        "description": "Channel #about text",
        "publishedAt": "2015-03-01T09:30:00Z",
        "thumbnails": thumbnails,
        "country": country,
    }
    if custom_url:
        snippet["customUrl"] = custom_url
    return {"id": channel_id, "snippet": snippet}


class FakeRequest:
    def __init__(self, execute):
        self._execute = execute

    def execute(self):
        return self._execute()


class FakeYouTubeService:
    """Serves playlist pages and channels from memory, recording every executed request."""

    def __init__(self, pages=None, channels=None):
        self.pages = pages or [[]]
        self.channels_by_id = {c["id"]: c for c in (channels or [])}
        self.page_requests = []
        self.channel_requests = []
        self.failures = []  # exceptions raised by the next executed requests, in order

    def _maybe_fail(self):
        if self.failures:
            raise self.failures.pop(0)

    def playlistItems(self):
        return _PlaylistItems(self)

    def channels(self):
        return _Channels(self)


class _PlaylistItems:
    def __init__(self, service):
        self.service = service

    def list(self, part, playlistId, maxResults, pageToken=None):
        def execute():
            self.service.page_requests.append(pageToken)
            self.service._maybe_fail()
            index = int(pageToken) if pageToken else 0
            response = {"items": self.service.pages[index], "pageInfo": {"resultsPerPage": maxResults}}
            if index + 1 < len(self.service.pages):
                response["nextPageToken"] = str(index + 1)
            return response
        return FakeRequest(execute)


class _Channels:
    def __init__(self, service):
        self.service = service

    def list(self, part, id, maxResults):
        def execute():
            self.service.channel_requests.append(id)
            self.service._maybe_fail()
            ids = id.split(",")
            # the real API does not promise input order
            items = [self.service.channels_by_id[i] for i in reversed(ids) if i in self.service.channels_by_id]
            return {"items": items}
        return FakeRequest(execute)


class FakeResponse:
    def __init__(self, content=b"image-bytes", status_code=200, fail_mid_stream=False):
        self.content = content
        self.status_code = status_code
        self.fail_mid_stream = fail_mid_stream

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def iter_content(self, chunk_size=1):
        yield self.content[: len(self.content) // 2]
        if self.fail_mid_stream:
            raise requests.ConnectionError("connection reset")
        yield self.content[len(self.content) // 2:]


class FakeSession:
    """Stand-in for requests.Session; pops queued responses, then serves `default`."""

    def __init__(self, responses=None, default=b"image-bytes"):
        self.responses = list(responses or [])
        self.default = default
        self.calls = []

    def get(self, url, stream=False, timeout=None):
        self.calls.append(url)
        if self.responses:
            return self.responses.pop(0)
        return FakeResponse(self.default)


@pytest.fixture
def playlist_item():
    return make_playlist_item


@pytest.fixture
def channel_item():
    return make_channel_item


@pytest.fixture
def fake_service():
    return FakeYouTubeService


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse
