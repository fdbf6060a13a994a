"""Derive local file names for downloaded applications."""

from __future__ import annotations

import posixpath
import re
from collections.abc import Mapping
from urllib.parse import unquote, urlparse

from loguru import logger

from .validation import SupportedExtensions

ARCHIVE_EXTENSIONS = (".zip", ".ipa")
ARCHIVE_MIME_TYPES = (
    "application/zip",
    "application/x-zip-compressed",
    "multipart/x-zip",
)
DEFAULT_BASENAME = "appium-app"
SANITIZE_REPLACEMENT = "-"

_ILLEGAL_CHARS = re.compile(r'[/?<>\\:*|"]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x80-\x9f]")
_RESERVED_NAMES = re.compile(r"^\.+$")
_WINDOWS_RESERVED = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
_WINDOWS_TRAILING = re.compile(r"[. ]+$")
_MIME_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(mime_type)}\b") for mime_type in ARCHIVE_MIME_TYPES
)
_ATTACHMENT = re.compile(r"^attachment", re.IGNORECASE)
_DISPOSITION_FILENAME = re.compile(r'filename="([^"]+)', re.IGNORECASE)
_MAX_NAME_BYTES = 255


def sanitize_filename(name: str, replacement: str = SANITIZE_REPLACEMENT) -> str:
    """Map arbitrary text to a name that is safe on common filesystems."""

    sanitized = _ILLEGAL_CHARS.sub(replacement, name)
    sanitized = _CONTROL_CHARS.sub(replacement, sanitized)
    sanitized = _RESERVED_NAMES.sub(replacement, sanitized)
    sanitized = _WINDOWS_RESERVED.sub(replacement, sanitized)
    sanitized = _WINDOWS_TRAILING.sub(replacement, sanitized)
    encoded = sanitized.encode("utf-8")
    if len(encoded) > _MAX_NAME_BYTES:
        sanitized = encoded[:_MAX_NAME_BYTES].decode("utf-8", errors="ignore")
    return sanitized


def derive_download_name(
    url: str,
    headers: Mapping[str, str],
    extensions: SupportedExtensions,
) -> tuple[str, bool]:
    """Pick the local file name for ``url`` and tell whether it is an archive.

    Candidates are checked in order: an archive extension in the URL basename,
    an archive ``Content-Type``, an attachment ``Content-Disposition`` filename,
    and finally the URL basename with its extension coerced to the first
    supported one. Later checks only fill in what earlier ones left unset, but
    an archive content type marks the download for extraction regardless.
    """

    file_name: str | None = None
    should_unzip = False

    basename = sanitize_filename(posixpath.basename(unquote(urlparse(url).path)))
    stem, extname = posixpath.splitext(basename)
    if extname in ARCHIVE_EXTENSIONS:
        file_name = basename
        should_unzip = True

    content_type = headers.get("content-type")
    if content_type:
        logger.debug("Content-Type: {}", content_type)
        if any(pattern.search(content_type) for pattern in _MIME_PATTERNS):
            if not file_name:
                file_name = f"{DEFAULT_BASENAME}.zip"
            should_unzip = True

    disposition = headers.get("content-disposition")
    if disposition and _ATTACHMENT.match(disposition):
        logger.debug("Content-Disposition: {}", disposition)
        match = _DISPOSITION_FILENAME.search(disposition)
        if match:
            file_name = sanitize_filename(match.group(1))
            should_unzip = should_unzip or posixpath.splitext(file_name)[1] in ARCHIVE_EXTENSIONS

    if not file_name:
        resulting_name = stem if basename else DEFAULT_BASENAME
        resulting_ext = extname
        if resulting_ext not in extensions:
            logger.info(
                "The current file extension '{}' is not supported. Defaulting to '{}'",
                resulting_ext,
                extensions[0],
            )
            resulting_ext = extensions[0]
        file_name = f"{resulting_name}{resulting_ext}"

    return file_name, should_unzip


__all__ = [
    "ARCHIVE_EXTENSIONS",
    "ARCHIVE_MIME_TYPES",
    "DEFAULT_BASENAME",
    "SANITIZE_REPLACEMENT",
    "sanitize_filename",
    "derive_download_name",
]
