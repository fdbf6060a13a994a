"""Bounded, age-expiring cache of resolved application artifacts."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from threading import RLock
from typing import Callable

from loguru import logger

from appfetch.utils import pluralize, remove_path

CACHED_APPS_MAX_AGE = timedelta(hours=24)
DEFAULT_MAX_ENTRIES = 1024


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Resolved artifact stored for a descriptor."""

    full_path: Path
    content_hash: str | None = None
    last_modified: datetime | None = None
    work_dir: Path | None = None

    def disposal_path(self) -> Path:
        """Return the path removed when the entry leaves the cache."""

        return self.work_dir if self.work_dir is not None else self.full_path


class ApplicationCache:
    """Thread-safe LRU mapping from descriptor to :class:`CacheEntry`.

    Entries expire ``CACHED_APPS_MAX_AGE`` after their last access. Every
    eviction (capacity, age or explicit deletion) removes the artifact the
    entry points to, or its whole ``work_dir`` when the entry owns one. Disk
    removal happens outside the internal lock and is best-effort: failures are
    logged and never raised.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._max_age = CACHED_APPS_MAX_AGE.total_seconds()
        self._lock = RLock()
        self._entries: OrderedDict[str, tuple[CacheEntry, float]] = OrderedDict()
        self._closed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            item = self._entries.get(key)  # type: ignore[arg-type]
            return item is not None and not self._is_expired(item[1])

    def get(self, key: str) -> CacheEntry | None:
        expired: CacheEntry | None = None
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            entry, touched_at = item
            if self._is_expired(touched_at):
                del self._entries[key]
                expired = entry
            else:
                self._entries[key] = (entry, self._clock())
                self._entries.move_to_end(key)
                return entry

        self._dispose(key, expired, reason="has expired")
        return None

    def set(self, key: str, entry: CacheEntry) -> None:
        replaced: CacheEntry | None = None
        evicted: list[tuple[str, CacheEntry]] = []
        with self._lock:
            previous = self._entries.pop(key, None)
            if previous is not None and previous[0].full_path != entry.full_path:
                replaced = previous[0]
            self._entries[key] = (entry, self._clock())
            while len(self._entries) > self.max_entries:
                old_key, (old_entry, _) = self._entries.popitem(last=False)
                evicted.append((old_key, old_entry))

        if replaced is not None:
            self._dispose(key, replaced, reason="has been replaced")
        for old_key, old_entry in evicted:
            self._dispose(old_key, old_entry, reason="has been evicted")

    def delete(self, key: str) -> None:
        with self._lock:
            item = self._entries.pop(key, None)
        if item is not None:
            self._dispose(key, item[0], reason="has been removed from the cache")

    def prune(self) -> int:
        """Evict every expired entry and return how many were dropped."""

        with self._lock:
            expired = [
                (key, entry)
                for key, (entry, touched_at) in self._entries.items()
                if self._is_expired(touched_at)
            ]
            for key, _ in expired:
                del self._entries[key]

        for key, entry in expired:
            self._dispose(key, entry, reason="has expired")
        return len(expired)

    def paths(self) -> list[Path]:
        with self._lock:
            return [entry.full_path for entry, _ in self._entries.values()]

    def shutdown(self) -> None:
        """Synchronously delete every cached artifact.

        Meant to be called once from the host's teardown sequence. Later calls
        do nothing. Removal errors are logged as warnings.
        """

        with self._lock:
            if self._closed:
                return
            self._closed = True
            app_paths = [entry.disposal_path() for entry, _ in self._entries.values()]
            self._entries.clear()

        if not app_paths:
            return
        logger.debug(
            "Performing cleanup of {} cached {}",
            len(app_paths),
            pluralize("application", len(app_paths)),
        )
        for app_path in app_paths:
            try:
                remove_path(app_path)
            except OSError as exc:
                logger.warning("Cannot remove cached application at '{}': {}", app_path, exc)

    # ------------------------------------------------------------------
    def _is_expired(self, touched_at: float) -> bool:
        return self._clock() - touched_at > self._max_age

    def _dispose(self, key: str, entry: CacheEntry, *, reason: str) -> None:
        target = entry.disposal_path()
        if not target.exists():
            return
        logger.info("The application '{}' cached at '{}' {}", key, entry.full_path, reason)
        try:
            remove_path(target)
        except OSError as exc:
            logger.warning("Cannot remove '{}': {}", target, exc)


__all__ = ["ApplicationCache", "CacheEntry", "CACHED_APPS_MAX_AGE", "DEFAULT_MAX_ENTRIES"]
