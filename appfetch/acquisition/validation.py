"""Supported-extension normalisation and checks."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .errors import UnsupportedExtensionError

SupportedExtensions = tuple[str, ...]


def normalize_extensions(value: str | Sequence[str]) -> SupportedExtensions:
    """Convert a single extension or an ordered collection into a tuple.

    The first element is used as the fallback extension for downloads whose
    name does not carry a supported one.
    """

    extensions = (value,) if isinstance(value, str) else tuple(value)
    if not extensions:
        raise ValueError("At least one supported extension must be provided")
    return extensions


def verify_extension(app_path: Path, extensions: SupportedExtensions) -> Path:
    if app_path.suffix in extensions:
        return app_path
    raise UnsupportedExtensionError(str(app_path), extensions)


__all__ = ["SupportedExtensions", "normalize_extensions", "verify_extension"]
