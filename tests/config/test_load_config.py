from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from appfetch.config import AppConfig, BaseConfig, load_config


class ExampleConfig(BaseConfig):
    work_dir: Path
    feature_enabled: bool


def test_load_config_success(tmp_path: Path) -> None:
    sample = tmp_path / "config.toml"
    sample.write_text(
        """
        work_dir = "./cache"
        feature_enabled = true
        """.strip(),
        encoding="utf-8",
    )

    cfg = load_config(ExampleConfig, sample)

    assert cfg.work_dir == Path("./cache")
    assert cfg.feature_enabled is True


def test_load_config_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "missing.toml"
    with pytest.raises(FileNotFoundError):
        load_config(ExampleConfig, missing)


def test_app_config_defaults() -> None:
    cfg = AppConfig()

    assert cfg.work_dir is None
    assert cfg.default_extensions == [".apk"]
    assert cfg.cache.max_entries == 1024
    assert cfg.http.probe_timeout == 5.0
    assert cfg.http.chunk_size == 64 * 1024


def test_app_config_from_toml(tmp_path: Path) -> None:
    sample = tmp_path / "config.toml"
    sample.write_text(
        """
        work_dir = "/var/tmp/appfetch"
        default_extensions = [".app", ".ipa"]

        [cache]
        max_entries = 8

        [http]
        probe_timeout = 2.5
        user_agent = "ci-runner/1.0"
        """.strip(),
        encoding="utf-8",
    )

    cfg = load_config(AppConfig, sample)

    assert cfg.work_dir == Path("/var/tmp/appfetch")
    assert cfg.default_extensions == [".app", ".ipa"]
    assert cfg.cache.max_entries == 8
    assert cfg.http.probe_timeout == 2.5
    assert cfg.http.user_agent == "ci-runner/1.0"


@pytest.mark.parametrize(
    "payload",
    [
        "default_extensions = []",
        'default_extensions = ["apk"]',
        "[cache]\nmax_entries = 0",
        "[http]\nprobe_timeout = 0",
        "unknown_field = 1",
    ],
)
def test_app_config_rejects_invalid_values(tmp_path: Path, payload: str) -> None:
    sample = tmp_path / "config.toml"
    sample.write_text(payload, encoding="utf-8")

    with pytest.raises(ValidationError):
        load_config(AppConfig, sample)
