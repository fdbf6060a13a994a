"""Configuration namespace for appfetch."""

from __future__ import annotations

from .app import AppConfig
from .base import BaseConfig, load_config
from .cache import CacheConfig
from .http import HttpConfig

__all__ = [
    "BaseConfig",
    "AppConfig",
    "load_config",
    "CacheConfig",
    "HttpConfig",
]
