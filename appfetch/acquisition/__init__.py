"""Application acquisition package.

This package handles:
1. Probing and downloading remote applications
2. Extracting bundles from zip archives
3. Validating bundle extensions
4. Reusing cached artifacts when the remote content is unchanged
"""

from __future__ import annotations

from .archive import ArchiveExtractor
from .downloader import HttpDownloader
from .errors import (
    AcquisitionError,
    DownloadError,
    InvalidArchiveError,
    NoBundleFoundError,
    NotFoundError,
    UnsupportedExtensionError,
    UnsupportedProtocolError,
)
from .naming import derive_download_name, sanitize_filename
from .service import ApplicationAcquirer
from .validation import normalize_extensions, verify_extension

__all__ = [
    "AcquisitionError",
    "ApplicationAcquirer",
    "ArchiveExtractor",
    "DownloadError",
    "HttpDownloader",
    "InvalidArchiveError",
    "NoBundleFoundError",
    "NotFoundError",
    "UnsupportedExtensionError",
    "UnsupportedProtocolError",
    "derive_download_name",
    "normalize_extensions",
    "sanitize_filename",
    "verify_extension",
]
