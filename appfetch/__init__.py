"""Core package for fetching and caching application bundles.

Exposes the acquisition service together with the cache components it owns.
"""

from __future__ import annotations

from .acquisition import ApplicationAcquirer
from .cache import ApplicationCache, CacheEntry, KeyedLock

__all__ = ["ApplicationAcquirer", "ApplicationCache", "CacheEntry", "KeyedLock"]
