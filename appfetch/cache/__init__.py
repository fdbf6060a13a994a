"""Application cache and per-key locking."""

from __future__ import annotations

from .lock import KeyedLock
from .store import CACHED_APPS_MAX_AGE, ApplicationCache, CacheEntry

__all__ = ["ApplicationCache", "CacheEntry", "CACHED_APPS_MAX_AGE", "KeyedLock"]
