"""Application cache configuration."""

from __future__ import annotations

from pydantic import Field

from appfetch.config.base import BaseConfig


class CacheConfig(BaseConfig):
    """Bounds for the in-memory application cache."""

    max_entries: int = Field(1024, ge=1, description="Maximum number of cached applications")


__all__ = ["CacheConfig"]
