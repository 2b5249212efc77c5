"""An in-memory log and stable store, meant for tests only."""

from __future__ import annotations

import dataclasses
import threading
from typing import Iterable

from raftcore.log import Log, LogNotFoundError

_UINT64_MASK = (1 << 64) - 1


class InmemStore:
    """Keeps logs and key/value pairs in memory. Not for production use."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._low_index = 0
        self._high_index = 0
        self._logs: dict[int, Log] = {}
        self._kv: dict[bytes, bytes] = {}
        self._kv_int: dict[bytes, int] = {}

    def first_index(self) -> int:
        with self._lock:
            return self._low_index

    def last_index(self) -> int:
        with self._lock:
            return self._high_index

    def get_log(self, index: int) -> Log:
        with self._lock:
            try:
                entry = self._logs[index]
            except KeyError:
                raise LogNotFoundError() from None
            return dataclasses.replace(entry)

    def store_log(self, log: Log) -> None:
        self.store_logs([log])

    def store_logs(self, logs: Iterable[Log]) -> None:
        with self._lock:
            for entry in logs:
                self._logs[entry.index] = entry
                if self._low_index == 0:
                    self._low_index = entry.index
                if entry.index > self._high_index:
                    self._high_index = entry.index

    def delete_range(self, min_index: int, max_index: int) -> None:
        """Delete the entries with indexes in ``[min_index, max_index]``."""
        with self._lock:
            for index in [i for i in self._logs if min_index <= i <= max_index]:
                del self._logs[index]
            if min_index <= self._low_index:
                self._low_index = (max_index + 1) & _UINT64_MASK
            if max_index >= self._high_index:
                self._high_index = (min_index - 1) & _UINT64_MASK
            if self._low_index > self._high_index:
                self._low_index = 0
                self._high_index = 0

    def set(self, key: bytes, val: bytes | None) -> None:
        with self._lock:
            self._kv[bytes(key)] = val

    def get(self, key: bytes) -> bytes:
        """Return the value for ``key``; raise KeyError if it is not set."""
        with self._lock:
            val = self._kv.get(bytes(key))
        if val is None:
            raise KeyError("not found")
        return val

    def set_uint64(self, key: bytes, val: int) -> None:
        with self._lock:
            self._kv_int[bytes(key)] = val & _UINT64_MASK

    def get_uint64(self, key: bytes) -> int:
        """Return the integer for ``key``, or 0 if it is not set."""
        with self._lock:
            return self._kv_int.get(bytes(key), 0)