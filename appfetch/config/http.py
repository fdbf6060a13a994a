"""HTTP transport configuration."""

from __future__ import annotations

from pydantic import Field

from appfetch.config.base import BaseConfig


class HttpConfig(BaseConfig):
    """Network settings for probing and downloading applications."""

    probe_timeout: float = Field(5.0, gt=0, description="Timeout in seconds for the HEAD freshness probe")
    chunk_size: int = Field(64 * 1024, ge=1, description="Chunk size in bytes for streamed downloads")
    user_agent: str = Field("appfetch/0.1", description="User-Agent header sent with every request")


__all__ = ["HttpConfig"]
