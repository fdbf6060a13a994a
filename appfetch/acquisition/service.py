"""Resolve application descriptors to ready-to-use local bundles."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Protocol
from urllib.parse import urlparse

from loguru import logger

from appfetch.cache import ApplicationCache, CacheEntry, KeyedLock
from appfetch.utils import file_hash, remove_path

from .archive import ArchiveExtractor
from .downloader import HttpDownloader
from .errors import NotFoundError, UnsupportedExtensionError, UnsupportedProtocolError
from .naming import ARCHIVE_EXTENSIONS, derive_download_name
from .validation import SupportedExtensions, normalize_extensions, verify_extension

if TYPE_CHECKING:
    from appfetch.config import AppConfig

DEFAULT_PROBE_TIMEOUT = 5.0
REMOTE_SCHEMES = ("http", "https")


class Downloader(Protocol):
    def retrieve_headers(self, url: str, *, timeout: float) -> Mapping[str, str]:
        """Return lower-cased response headers, or an empty mapping on failure."""

    def download(self, url: str, target: Path) -> Path:
        """Stream ``url`` into ``target`` and return it."""


class ApplicationAcquirer:
    """Downloads, unpacks and caches applications referenced by URL or path.

    Calls for the same descriptor are serialised for the whole
    check-download-extract-store sequence, so concurrent callers share one
    fetch and observe the cache state left by the first one.
    """

    def __init__(
        self,
        cache: ApplicationCache | None = None,
        *,
        downloader: Downloader | None = None,
        extractor: ArchiveExtractor | None = None,
        locks: KeyedLock | None = None,
        work_root: Path | None = None,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> None:
        self.cache = cache if cache is not None else ApplicationCache()
        self.downloader = downloader if downloader is not None else HttpDownloader()
        self.extractor = extractor if extractor is not None else ArchiveExtractor()
        self.locks = locks if locks is not None else KeyedLock()
        self.work_root = work_root.resolve() if work_root is not None else None
        self.probe_timeout = probe_timeout

    @classmethod
    def from_config(cls, config: AppConfig) -> "ApplicationAcquirer":
        return cls(
            ApplicationCache(config.cache.max_entries),
            downloader=HttpDownloader(
                chunk_size=config.http.chunk_size,
                user_agent=config.http.user_agent,
            ),
            extractor=ArchiveExtractor(scratch_root=config.work_dir),
            work_root=config.work_dir,
            probe_timeout=config.http.probe_timeout,
        )

    def acquire(self, descriptor: str, supported_extensions: str | Sequence[str]) -> Path:
        """Return the absolute local path of the bundle named by ``descriptor``."""

        extensions = normalize_extensions(supported_extensions)
        with self.locks.hold(descriptor):
            return self._acquire_locked(descriptor, extensions)

    def shutdown(self) -> None:
        self.cache.shutdown()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _acquire_locked(self, descriptor: str, extensions: SupportedExtensions) -> Path:
        cache_key = descriptor
        archive_hash: str | None = None
        last_modified: datetime | None = None
        work_dir: Path | None = None
        downloaded = False
        scheme = urlparse(descriptor).scheme

        if scheme in REMOTE_SCHEMES:
            logger.info("Using downloadable app '{}'", descriptor)
            headers = self.downloader.retrieve_headers(descriptor, timeout=self.probe_timeout)
            last_modified = _parse_last_modified(headers.get("last-modified"))
            cached_path = self._lookup_fresh(cache_key, last_modified)
            if cached_path is not None:
                return verify_extension(cached_path, extensions)

            file_name, should_unzip = derive_download_name(descriptor, headers, extensions)
            download_dir = self._new_work_dir()
            try:
                app_path = self.downloader.download(descriptor, download_dir / file_name)
            except Exception:
                remove_path(download_dir)
                raise
            downloaded = True
            work_dir = download_dir
        else:
            app_path = Path(descriptor)
            if not app_path.exists():
                # a single-letter scheme is a Windows drive such as C:\
                if len(scheme) > 1:
                    raise UnsupportedProtocolError(
                        f"The protocol '{scheme}:' used in '{descriptor}' is not supported. "
                        "Only http: and https: protocols are supported"
                    )
                raise NotFoundError(
                    f"The application at '{descriptor}' does not exist or is not accessible"
                )
            logger.info("Using local app '{}'", descriptor)
            should_unzip = app_path.suffix in ARCHIVE_EXTENSIONS

        if should_unzip:
            archive_path = app_path
            archive_hash = file_hash(archive_path)
            reused = self._lookup_extracted(cache_key, archive_hash)
            if reused is not None:
                if downloaded:
                    self._discard(archive_path.parent)
                logger.info("Will reuse previously cached application at '{}'", reused)
                return verify_extension(reused, extensions)
            dst_root = self._new_work_dir()
            try:
                app_path = self.extractor.extract(archive_path, dst_root, extensions)
            except Exception:
                remove_path(dst_root)
                raise
            finally:
                if downloaded:
                    self._discard(archive_path.parent)
            work_dir = dst_root
            logger.info("Unzipped local app to '{}'", app_path)
        elif not app_path.is_absolute():
            app_path = Path(os.path.abspath(app_path))
            logger.warning(
                "The current application path '{}' is not absolute and has been rewritten "
                "to '{}'. Consider using absolute paths rather than relative",
                descriptor,
                app_path,
            )
            cache_key = str(app_path)

        try:
            verify_extension(app_path, extensions)
        except UnsupportedExtensionError:
            if work_dir is not None:
                self._discard(work_dir)
            raise

        if str(app_path) != cache_key and (archive_hash or last_modified):
            self.cache.set(
                cache_key,
                CacheEntry(
                    full_path=app_path,
                    content_hash=archive_hash,
                    last_modified=last_modified,
                    work_dir=work_dir,
                ),
            )
        return app_path

    def _lookup_fresh(self, cache_key: str, last_modified: datetime | None) -> Path | None:
        if last_modified is None or cache_key not in self.cache:
            return None
        entry = self.cache.get(cache_key)
        if entry is None:
            return None
        if entry.last_modified is None or last_modified > entry.last_modified:
            logger.debug(
                "'Last-Modified' timestamp of '{}' has been updated. "
                "A fresh copy of the application is going to be downloaded.",
                cache_key,
            )
            return None
        if not entry.full_path.exists():
            logger.info(
                "The application at '{}' does not exist anymore. Deleting it from the cache",
                entry.full_path,
            )
            self.cache.delete(cache_key)
            return None
        logger.info("Reusing previously downloaded application at '{}'", entry.full_path)
        return entry.full_path

    def _lookup_extracted(self, cache_key: str, archive_hash: str) -> Path | None:
        entry = self.cache.get(cache_key)
        if entry is None or entry.content_hash != archive_hash:
            return None
        if not entry.full_path.exists():
            logger.info(
                "The application at '{}' does not exist anymore. Deleting it from the cache",
                entry.full_path,
            )
            self.cache.delete(cache_key)
            return None
        return entry.full_path

    def _new_work_dir(self) -> Path:
        if self.work_root is not None:
            self.work_root.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix="appfetch-", dir=self.work_root))

    def _discard(self, work_dir: Path) -> None:
        try:
            remove_path(work_dir)
        except OSError as exc:
            logger.warning("Cannot remove work directory '{}': {}", work_dir, exc)


def _parse_last_modified(value: str | None) -> datetime | None:
    if not value:
        return None
    logger.debug("App Last-Modified: {}", value)
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Cannot parse Last-Modified header value '{}'", value)
        return None
    # "-0000" yields a naive value; treat it as UTC so values stay comparable
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = ["ApplicationAcquirer", "Downloader", "DEFAULT_PROBE_TIMEOUT"]
