"""Application-level configuration models."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator

from appfetch.config.base import BaseConfig
from appfetch.config.cache import CacheConfig
from appfetch.config.http import HttpConfig


class AppConfig(BaseConfig):
    """Top-level runtime configuration."""

    work_dir: Path | None = Field(
        None,
        description="Directory for downloads and extracted bundles (system temp dir when unset)",
    )
    default_extensions: list[str] = Field(
        default_factory=lambda: [".apk"],
        min_length=1,
        description="Supported bundle extensions used when the CLI gets no --ext",
    )
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Application cache settings")
    http: HttpConfig = Field(default_factory=HttpConfig, description="HTTP transport settings")

    @field_validator("default_extensions")
    @classmethod
    def _validate_extensions(cls, value: list[str]) -> list[str]:
        for extension in value:
            if not extension.startswith("."):
                raise ValueError(f"Extension '{extension}' must start with a dot")
        return value


__all__ = ["AppConfig"]
