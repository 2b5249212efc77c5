"""A ring-buffer cache of recent log entries in front of a log store."""

from __future__ import annotations

import dataclasses
import threading
from typing import Iterable

from raftcore.log import Log, LogStore


class LogCache:
    """Wraps a log store and caches recently written entries in memory."""

    def __init__(self, capacity: int, store: LogStore) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._store = store
        self._cache: list[Log | None] = [None] * capacity
        self._lock = threading.Lock()

    def is_monotonic(self) -> bool:
        """Report whether the underlying store forbids gaps between indexes."""
        check = getattr(self._store, "is_monotonic", None)
        if callable(check):
            return bool(check())
        return False

    def get_log(self, index: int) -> Log:
        with self._lock:
            cached = self._cache[index % len(self._cache)]
        if cached is not None and cached.index == index:
            return dataclasses.replace(cached)
        return self._store.get_log(index)

    def store_log(self, log: Log) -> None:
        self.store_logs([log])

    def store_logs(self, logs: Iterable[Log]) -> None:
        logs = list(logs)
        try:
            self._store.store_logs(logs)
        except Exception as err:
            raise RuntimeError(
                f'unable to store logs within log store, err: "{err}"'
            ) from err
        with self._lock:
            for entry in logs:
                self._cache[entry.index % len(self._cache)] = entry

    def first_index(self) -> int:
        return self._store.first_index()

    def last_index(self) -> int:
        return self._store.last_index()

    def delete_range(self, min_index: int, max_index: int) -> None:
        with self._lock:
            self._cache = [None] * len(self._cache)
        self._store.delete_range(min_index, max_index)