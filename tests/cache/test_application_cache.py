from __future__ import annotations

from pathlib import Path

import pytest

from appfetch.cache import CACHED_APPS_MAX_AGE, ApplicationCache, CacheEntry


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _artifact(root: Path, name: str) -> Path:
    path = root / name
    path.write_bytes(b"bundle")
    return path


@pytest.fixture()
def clock() -> _FakeClock:
    return _FakeClock()


def test_get_returns_stored_entry(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    entry = CacheEntry(full_path=_artifact(tmp_path, "app.apk"), content_hash="abc")

    cache.set("http://host/app.apk", entry)

    assert cache.get("http://host/app.apk") == entry
    assert "http://host/app.apk" in cache
    assert len(cache) == 1
    assert cache.get("missing") is None


def test_capacity_eviction_removes_least_recently_used(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(max_entries=2, clock=clock)
    first = _artifact(tmp_path, "first.apk")
    second = _artifact(tmp_path, "second.apk")
    third = _artifact(tmp_path, "third.apk")

    cache.set("first", CacheEntry(full_path=first))
    cache.set("second", CacheEntry(full_path=second))
    assert cache.get("first") is not None  # second becomes the LRU entry
    cache.set("third", CacheEntry(full_path=third))

    assert "second" not in cache
    assert not second.exists()
    assert first.exists()
    assert third.exists()
    assert len(cache) == 2


def test_expired_entry_is_evicted_and_disposed(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    artifact = _artifact(tmp_path, "old.apk")
    cache.set("old", CacheEntry(full_path=artifact))

    clock.advance(CACHED_APPS_MAX_AGE.total_seconds() + 1)

    assert cache.get("old") is None
    assert not artifact.exists()
    assert len(cache) == 0


def test_access_refreshes_age(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    artifact = _artifact(tmp_path, "app.apk")
    cache.set("key", CacheEntry(full_path=artifact))
    half_life = CACHED_APPS_MAX_AGE.total_seconds() / 2 + 60

    clock.advance(half_life)
    assert cache.get("key") is not None
    clock.advance(half_life)

    assert cache.get("key") is not None
    assert artifact.exists()


def test_prune_drops_expired_entries(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    stale = _artifact(tmp_path, "stale.apk")
    cache.set("stale", CacheEntry(full_path=stale))
    clock.advance(CACHED_APPS_MAX_AGE.total_seconds() + 1)
    fresh = _artifact(tmp_path, "fresh.apk")
    cache.set("fresh", CacheEntry(full_path=fresh))

    assert cache.prune() == 1
    assert not stale.exists()
    assert cache.paths() == [fresh]


def test_set_replaces_and_deletes_previous_artifact(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    old = _artifact(tmp_path, "old.apk")
    new = _artifact(tmp_path, "new.apk")

    cache.set("key", CacheEntry(full_path=old))
    cache.set("key", CacheEntry(full_path=new))

    assert not old.exists()
    assert new.exists()
    assert cache.get("key") == CacheEntry(full_path=new)


def test_set_with_same_path_keeps_artifact(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    artifact = _artifact(tmp_path, "app.apk")

    cache.set("key", CacheEntry(full_path=artifact, content_hash="one"))
    cache.set("key", CacheEntry(full_path=artifact, content_hash="two"))

    assert artifact.exists()
    entry = cache.get("key")
    assert entry is not None and entry.content_hash == "two"


def test_delete_removes_directory_artifact(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    bundle = tmp_path / "Demo.app"
    bundle.mkdir()
    (bundle / "Info.plist").write_text("<plist/>", encoding="utf-8")
    cache.set("key", CacheEntry(full_path=bundle))

    cache.delete("key")

    assert not bundle.exists()
    assert "key" not in cache


def test_delete_removes_owned_work_dir(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    work_dir = tmp_path / "appfetch-work"
    (work_dir / "Payload").mkdir(parents=True)
    bundle = _artifact(work_dir / "Payload", "app.apk")
    cache.set("key", CacheEntry(full_path=bundle, work_dir=work_dir))

    cache.delete("key")

    assert not work_dir.exists()
    assert tmp_path.exists()


def test_owned_work_dir_is_removed_even_if_bundle_vanished(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(max_entries=1, clock=clock)
    work_dir = tmp_path / "appfetch-work"
    work_dir.mkdir()
    cache.set("gone", CacheEntry(full_path=work_dir / "app.apk", work_dir=work_dir))

    cache.set("other", CacheEntry(full_path=_artifact(tmp_path, "other.apk")))

    assert not work_dir.exists()


def test_eviction_tolerates_missing_artifact(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(max_entries=1, clock=clock)
    cache.set("gone", CacheEntry(full_path=tmp_path / "never-created.apk"))

    cache.set("other", CacheEntry(full_path=_artifact(tmp_path, "other.apk")))

    assert "gone" not in cache


def test_shutdown_sweeps_all_artifacts_once(tmp_path: Path, clock: _FakeClock) -> None:
    cache = ApplicationCache(clock=clock)
    first = _artifact(tmp_path, "first.apk")
    second = tmp_path / "Second.app"
    second.mkdir()
    owned = tmp_path / "appfetch-owned"
    owned.mkdir()
    owned_bundle = _artifact(owned, "owned.apk")
    cache.set("first", CacheEntry(full_path=first))
    cache.set("second", CacheEntry(full_path=second))
    cache.set("owned", CacheEntry(full_path=owned_bundle, work_dir=owned))

    cache.shutdown()

    assert not first.exists()
    assert not second.exists()
    assert not owned.exists()
    assert len(cache) == 0

    third = _artifact(tmp_path, "third.apk")
    cache.set("third", CacheEntry(full_path=third))
    cache.shutdown()
    assert third.exists()


def test_shutdown_logs_failures(
    tmp_path: Path, clock: _FakeClock, monkeypatch: pytest.MonkeyPatch
) -> None:
    cache = ApplicationCache(clock=clock)
    cache.set("key", CacheEntry(full_path=_artifact(tmp_path, "app.apk")))

    def _failing_remove(path: Path) -> None:
        raise PermissionError(f"denied: {path}")

    monkeypatch.setattr("appfetch.cache.store.remove_path", _failing_remove)

    cache.shutdown()  # must not raise


def test_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        ApplicationCache(max_entries=0)
