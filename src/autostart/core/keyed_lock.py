"""Per-key mutual exclusion for worker threads."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """Hands out one :class:`threading.Lock` per key.

    Locks are reference counted and dropped once no thread holds or waits
    on them, so the table does not grow with every path ever touched.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._waiters: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def active_keys(self) -> list[str]:
        """Keys currently held or awaited (for diagnostics/tests)."""
        with self._guard:
            return sorted(self._locks)
