"""Failure taxonomy for application acquisition."""

from __future__ import annotations

from collections.abc import Sequence


class AcquisitionError(RuntimeError):
    """Base class for every failure raised while resolving an application."""


class UnsupportedProtocolError(AcquisitionError):
    """Raised when a descriptor uses a scheme other than http(s)."""


class NotFoundError(AcquisitionError):
    """Raised when a local application path does not exist."""


class DownloadError(AcquisitionError):
    """Raised when fetching a remote application fails."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Problem downloading app from url {url}: {reason}")
        self.url = url
        self.reason = reason


class InvalidArchiveError(AcquisitionError):
    """Raised when an archive fails the zip integrity check."""


class UnsupportedExtensionError(AcquisitionError):
    """Raised when the resolved application has an unexpected extension."""

    def __init__(self, path: str, extensions: Sequence[str]) -> None:
        joined = ", ".join(extensions)
        noun = "extension" if len(extensions) == 1 else "extensions"
        super().__init__(f"New app path '{path}' did not have {noun}: {joined}")
        self.path = path
        self.extensions = tuple(extensions)


class NoBundleFoundError(UnsupportedExtensionError):
    """Raised when an archive holds no entry with a supported extension."""

    def __init__(self, archive: str, extensions: Sequence[str]) -> None:
        joined = ", ".join(extensions)
        AcquisitionError.__init__(
            self,
            f"App zip '{archive}' unzipped OK, but no bundle with any of "
            f"'{joined}' extensions was found in it",
        )
        self.path = archive
        self.extensions = tuple(extensions)


__all__ = [
    "AcquisitionError",
    "UnsupportedProtocolError",
    "NotFoundError",
    "DownloadError",
    "InvalidArchiveError",
    "NoBundleFoundError",
    "UnsupportedExtensionError",
]
