"""Per-window mutual exclusion for check-then-write sequences.

One lock exists per ``(employee_ref, calendar_date)`` key while at least one
caller holds or waits on it. Requests for different keys never contend.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator

WindowKey = tuple[str, date]


class KeyedLockManager:
    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[WindowKey, threading.Lock] = {}
        self._refcounts: dict[WindowKey, int] = {}

    def _checkout(self, key: WindowKey) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            self._refcounts[key] = self._refcounts.get(key, 0) + 1
            return lock

    def _release(self, key: WindowKey) -> None:
        with self._registry_lock:
            remaining = self._refcounts[key] - 1
            if remaining:
                self._refcounts[key] = remaining
            else:
                del self._refcounts[key]
                del self._locks[key]

    @contextmanager
    def hold(self, keys: Iterable[WindowKey]) -> Iterator[None]:
        """Acquire every distinct key, in sorted order, for the duration of the block."""
        ordered = sorted(set(keys))
        acquired: list[tuple[WindowKey, threading.Lock]] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._release(key)
                    raise
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._release(key)

    def active_keys(self) -> list[WindowKey]:
        with self._registry_lock:
            return sorted(self._locks)
