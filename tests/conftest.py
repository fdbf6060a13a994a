"""Shared pytest fixtures."""

from __future__ import annotations

import sys
import zipfile
from pathlib import Path
from typing import Callable, Mapping

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


ZipFactory = Callable[[Path, Mapping[str, bytes]], Path]


def write_zip(path: Path, entries: Mapping[str, bytes]) -> Path:
    """Write ``entries`` (archive name -> payload) into a zip at ``path``.

    Names ending with ``/`` become directory entries.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, payload in entries.items():
            if name.endswith("/"):
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, payload)
    return path


@pytest.fixture()
def zip_factory() -> ZipFactory:
    return write_zip
