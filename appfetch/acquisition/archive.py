"""Zip validation and bundle discovery."""

from __future__ import annotations

import shutil
import tempfile
import zipfile
from pathlib import Path

from loguru import logger

from appfetch.utils import pluralize

from .errors import InvalidArchiveError, NoBundleFoundError
from .validation import SupportedExtensions


class ArchiveExtractor:
    """Extracts application bundles out of zip archives.

    Scratch directories are created under ``scratch_root`` (the system temp
    directory when omitted) and removed once extraction finishes.
    """

    def __init__(self, scratch_root: Path | None = None) -> None:
        self.scratch_root = scratch_root

    def assert_valid_zip(self, archive_path: Path) -> None:
        if not zipfile.is_zipfile(archive_path):
            raise InvalidArchiveError(f"The file at '{archive_path}' is not a valid zip archive")
        try:
            with zipfile.ZipFile(archive_path) as archive:
                broken = archive.testzip()
        except (zipfile.BadZipFile, OSError) as exc:
            raise InvalidArchiveError(f"The archive at '{archive_path}' cannot be read: {exc}") from exc
        if broken is not None:
            raise InvalidArchiveError(
                f"The archive at '{archive_path}' is corrupted: '{broken}' fails the CRC check"
            )

    def extract(
        self,
        archive_path: Path,
        dst_root: Path,
        extensions: SupportedExtensions,
    ) -> Path:
        """Move the top-most supported bundle from ``archive_path`` into ``dst_root``.

        Returns the full path of the bundle in the destination folder. Raises
        :class:`InvalidArchiveError` for broken archives and
        :class:`NoBundleFoundError` when nothing inside matches ``extensions``.
        """

        self.assert_valid_zip(archive_path)

        if self.scratch_root is not None:
            self.scratch_root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(
            prefix="appfetch-unzip-",
            dir=self.scratch_root,
            ignore_cleanup_errors=True,
        ) as tmp_dir:
            tmp_root = Path(tmp_dir)
            logger.debug("Unzipping '{}'", archive_path)
            with zipfile.ZipFile(archive_path) as archive:
                archive.extractall(tmp_root)

            extracted = sorted(item.relative_to(tmp_root) for item in tmp_root.rglob("*"))
            logger.debug(
                "Extracted {} from '{}'",
                pluralize("item", len(extracted), include_count=True),
                archive_path,
            )
            candidates = sorted(
                (item for item in extracted if item.suffix in extensions),
                key=lambda item: len(item.parts),
            )
            if not candidates:
                raise NoBundleFoundError(str(archive_path), extensions)

            matched = candidates[0]
            logger.debug(
                "Matched {} in the extracted archive. Assuming '{}' is the correct bundle",
                pluralize("item", len(candidates), include_count=True),
                matched,
            )
            dst_path = (dst_root / matched).resolve()
            dst_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(tmp_root / matched), str(dst_path))
            return dst_path


__all__ = ["ArchiveExtractor"]
