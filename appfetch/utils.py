"""Filesystem and formatting helpers shared by the cache and acquisition code."""

from __future__ import annotations

import hashlib
import shutil
from pathlib import Path

_HASH_CHUNK_SIZE = 1024 * 1024
_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def remove_path(path: Path) -> None:
    """Remove a file or a directory tree; missing paths are ignored."""

    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def file_hash(path: Path, algorithm: str = "sha1") -> str:
    digest = hashlib.new(algorithm)
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def readable_size(num_bytes: float) -> str:
    """Format ``num_bytes`` using binary multiples, e.g. ``1.50 MB``."""

    value = float(num_bytes)
    for unit in _SIZE_UNITS:
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(value)} {unit}"
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} {_SIZE_UNITS[-1]}"  # pragma: no cover - loop always returns


def pluralize(word: str, count: int, *, include_count: bool = False) -> str:
    noun = word if count == 1 else f"{word}s"
    return f"{count} {noun}" if include_count else noun


__all__ = ["remove_path", "file_hash", "readable_size", "pluralize"]
