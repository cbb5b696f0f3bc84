"""Tests for the thumbnail asset cache."""

import tempfile
from pathlib import Path

import pytest

from ytvault.errors import AssetDownloadError
from ytvault.models import Video
from ytvault.sync.assets import AssetCache


def test_ensure_downloads_once(fake_session):
    with tempfile.TemporaryDirectory() as tmpdir:
        session = fake_session(default=b"\x89PNG-bytes")
        cache = AssetCache(session=session)
        target = Path(tmpdir) / "thumbs" / "youtube-video-thumbnail-v1.jpg"

        first = cache.ensure("https://i.ytimg.com/vi/v1/hqdefault.jpg", target)
        content = first.read_bytes()
        second = cache.ensure("https://i.ytimg.com/vi/v1/hqdefault.jpg", target)

        assert first == second == target
        assert second.read_bytes() == content == b"\x89PNG-bytes"
        assert len(session.calls) == 1
        assert cache.downloads == 1


def test_existing_file_is_never_fetched(fake_session):
    with tempfile.TemporaryDirectory() as tmpdir:
        target = Path(tmpdir) / "cached.jpg"
        target.write_bytes(b"old")
        session = fake_session()
        AssetCache(session=session).ensure("https://example.com/new.jpg", target)
        assert session.calls == []
        assert target.read_bytes() == b"old"


def test_partial_file_removed_on_failure(fake_session, fake_response):
    with tempfile.TemporaryDirectory() as tmpdir:
        session = fake_session(responses=[fake_response(b"0123456789", fail_mid_stream=True)])
        cache = AssetCache(session=session, retries=1)
        target = Path(tmpdir) / "t.jpg"
        with pytest.raises(AssetDownloadError):
            cache.ensure("https://example.com/t.jpg", target)
        assert not target.exists()
        assert cache.downloads == 0


def test_not_found_is_not_retried(fake_session, fake_response):
    with tempfile.TemporaryDirectory() as tmpdir:
        session = fake_session(responses=[fake_response(status_code=404)])
        cache = AssetCache(session=session, retries=3, backoff=0)
        with pytest.raises(AssetDownloadError):
            cache.ensure("https://example.com/missing.jpg", Path(tmpdir) / "m.jpg")
        assert len(session.calls) == 1


def test_transient_failure_is_retried(fake_session, fake_response):
    with tempfile.TemporaryDirectory() as tmpdir:
        session = fake_session(responses=[
            fake_response(status_code=503),
            fake_response(b"abcdef", fail_mid_stream=True),
        ], default=b"good")
        cache = AssetCache(session=session, retries=3, backoff=0)
        target = cache.ensure("https://example.com/x.jpg", Path(tmpdir) / "x.jpg")
        assert target.read_bytes() == b"good"
        assert len(session.calls) == 3


def test_ensure_thumbnail(fake_session, playlist_item):
    with tempfile.TemporaryDirectory() as tmpdir:
        session = fake_session()
        cache = AssetCache(session=session)

        no_thumb = Video.from_api(playlist_item("v0", thumbnails={}))
        assert cache.ensure_thumbnail(no_thumb, tmpdir) is None
        assert session.calls == []

        video = Video.from_api(playlist_item("v1"))
        path = cache.ensure_thumbnail(video, tmpdir)
        assert path == Path(tmpdir) / "youtube-video-thumbnail-v1.jpg"
        assert session.calls == ["https://i.ytimg.com/vi/v1/hqdefault.jpg"]
