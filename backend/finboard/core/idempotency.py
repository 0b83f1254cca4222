from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from finboard.core.errors import DuplicateRequestError


@dataclass
class _Entry:
    started_at: float
    result: Any = None
    error: BaseException | None = None
    done: bool = False


class IdempotencyRegistry:
    """Remembers Idempotency-Key values per user for a short window.

    ``begin`` claims a key: it returns the stored result when the key already
    completed, raises ``DuplicateRequestError`` while the key is in flight and
    returns ``None`` when the caller owns the key and should do the work.
    The caller then calls ``complete`` on success, ``release`` on a failure
    that is safe to retry, or ``fail`` on a failure that must not be retried.
    A failed key re-raises its stored error and never expires.
    """

    def __init__(self, window_seconds: float = 600, clock: Callable[[], float] = time.monotonic) -> None:
        self._window = float(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[tuple[int, str], _Entry] = {}

    def begin(self, user_id: int, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            self._prune(now)
            entry = self._entries.get((user_id, key))
            if entry is None:
                self._entries[(user_id, key)] = _Entry(started_at=now)
                return None
            if not entry.done:
                raise DuplicateRequestError()
            if entry.error is not None:
                raise entry.error
            return entry.result

    def complete(self, user_id: int, key: str, result: Any) -> None:
        with self._lock:
            entry = self._entries.get((user_id, key))
            if entry is None:
                entry = self._entries[(user_id, key)] = _Entry(started_at=self._clock())
            entry.result = result
            entry.done = True

    def fail(self, user_id: int, key: str, error: BaseException) -> None:
        with self._lock:
            entry = self._entries.get((user_id, key))
            if entry is None:
                entry = self._entries[(user_id, key)] = _Entry(started_at=self._clock())
            entry.error = error
            entry.done = True

    def release(self, user_id: int, key: str) -> None:
        with self._lock:
            self._entries.pop((user_id, key), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _prune(self, now: float) -> None:
        expired = [
            k for k, e in self._entries.items() if e.error is None and now - e.started_at > self._window
        ]
        for k in expired:
            del self._entries[k]
