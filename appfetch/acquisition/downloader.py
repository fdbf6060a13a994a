"""HTTP transport used to probe and fetch remote applications."""

from __future__ import annotations

from pathlib import Path
from time import perf_counter

import requests
from loguru import logger

from appfetch.utils import readable_size

from .errors import DownloadError

USER_AGENT = "appfetch/0.1"
DEFAULT_CHUNK_SIZE = 64 * 1024
SPEED_REPORT_THRESHOLD = 2.0


class HttpDownloader:
    """Streams remote resources to disk through a shared ``requests`` session."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.chunk_size = chunk_size
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def retrieve_headers(self, url: str, *, timeout: float) -> dict[str, str]:
        """Send a HEAD request and return lower-cased response headers.

        Any transport failure or timeout yields an empty mapping so callers can
        carry on without freshness information.
        """

        try:
            response = self.session.head(url, timeout=timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.debug("Cannot send HEAD request to '{}'. Original error: {}", url, exc)
            return {}
        return {name.lower(): value for name, value in response.headers.items()}

    def download(self, url: str, target: Path) -> Path:
        started = perf_counter()
        try:
            with self.session.get(url, stream=True) as response:
                if response.status_code >= 400:
                    raise DownloadError(url, f"{response.status_code} - {response.reason}")
                with target.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            handle.write(chunk)
        except DownloadError:
            target.unlink(missing_ok=True)
            raise
        except (requests.RequestException, OSError) as exc:
            target.unlink(missing_ok=True)
            raise DownloadError(url, str(exc)) from exc

        elapsed = perf_counter() - started
        size = target.stat().st_size
        logger.debug(
            "'{}' ({}) has been downloaded to '{}' in {:.3f}s",
            url,
            readable_size(size),
            target,
            elapsed,
        )
        if elapsed >= SPEED_REPORT_THRESHOLD:
            bytes_per_sec = int(size / elapsed)
            logger.debug("Approximate download speed: {}/s", readable_size(bytes_per_sec))
        return target


__all__ = ["HttpDownloader", "USER_AGENT", "DEFAULT_CHUNK_SIZE"]
