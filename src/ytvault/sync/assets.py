"""Local cache of downloaded thumbnails, keyed by deterministic filename."""

import logging
from pathlib import Path
from typing import Any

import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..errors import AssetDownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code == 429 or exc.response.status_code >= 500
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


class AssetCache:
    """Downloads remote files at most once per local path."""

    def __init__(self, session: requests.Session | None = None, timeout: float = 30,
                 retries: int = 3, backoff: float = 1.0):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self.downloads = 0

    def ensure(self, url: str, local_path: str | Path) -> Path:
        """Make sure `url` is stored at `local_path`, downloading only if it is missing."""
        local_path = Path(local_path)
        if local_path.exists():
            return local_path

        local_path.parent.mkdir(parents=True, exist_ok=True)
        retryer = Retrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.backoff, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            retryer(self._download, url, local_path)
        except (requests.RequestException, OSError) as e:
            local_path.unlink(missing_ok=True)
            raise AssetDownloadError(url, local_path, str(e)) from e

        self.downloads += 1
        return local_path

    def ensure_thumbnail(self, entity: Any, directory: str | Path) -> Path | None:
        """Cache an entity's best thumbnail in `directory`. None if it has no thumbnail."""
        if not entity.thumbnail:
            return None
        path = Path(directory) / entity.thumbnail_filename
        if not path.exists():
            logger.info(f"Downloading thumbnail for {entity.name}")
        return self.ensure(entity.thumbnail.url, path)

    def _download(self, url: str, local_path: Path) -> None:
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(local_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
        except Exception:
            local_path.unlink(missing_ok=True)
            raise
