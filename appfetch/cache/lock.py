"""Per-key mutual exclusion for concurrent acquisitions."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Iterator, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class _KeyState:
    lock: Lock = field(default_factory=Lock)
    users: int = 0


class KeyedLock:
    """Serialises work sharing a key while unrelated keys run in parallel."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._states: dict[str, _KeyState] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            state = self._states.get(key)
            if state is None:
                state = _KeyState()
                self._states[key] = state
            state.users += 1

        state.lock.acquire()
        try:
            yield
        finally:
            state.lock.release()
            with self._guard:
                state.users -= 1
                if state.users == 0:
                    del self._states[key]

    def acquire(self, key: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self.hold(key):
            return fn(*args, **kwargs)

    def is_locked(self, key: str) -> bool:
        with self._guard:
            state = self._states.get(key)
            return state is not None and state.lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._states)


__all__ = ["KeyedLock"]
