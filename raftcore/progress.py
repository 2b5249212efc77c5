"""Byte-counting readers and periodic reporting of snapshot restore progress."""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Protocol

SNAPSHOT_RESTORE_MONITOR_INTERVAL = 10.0


class _Counted(Protocol):
    def count(self) -> int: ...


class CountingReader:
    """Wraps a readable object and counts the bytes read through it."""

    def __init__(self, reader: Any) -> None:
        self._reader = reader
        self._lock = threading.Lock()
        self._count = 0

    def read(self, size: int = -1) -> bytes:
        data = self._reader.read(size)
        with self._lock:
            self._count += len(data)
        return data

    def count(self) -> int:
        with self._lock:
            return self._count


class CountingReadCloser(CountingReader):
    """A counting reader that also closes the object it wraps."""

    def close(self) -> None:
        self._reader.close()

    def wrapped(self) -> Any:
        """Return the underlying reader."""
        return self._reader

    def __enter__(self) -> "CountingReadCloser":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _percent(read: int, size: int) -> float:
    if size:
        return 100.0 * read / size
    if read == 0:
        return math.nan
    return math.inf if read > 0 else -math.inf


class SnapshotRestoreMonitor:
    """Logs how far a snapshot restore has got, at a fixed interval.

    Logs at least once, when stopped, if no interval has elapsed before.
    """

    def __init__(
        self,
        logger: logging.Logger,
        reader: _Counted,
        size: int,
        network_transfer: bool,
        interval: float = SNAPSHOT_RESTORE_MONITOR_INTERVAL,
    ) -> None:
        self._logger = logger
        self._reader = reader
        self._size = size
        self._network_transfer = network_transfer
        self._interval = interval
        self._stop = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopped = False
        self._thread = threading.Thread(target=self._run, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        ran_once = False
        while not self._stop.wait(self._interval):
            self._run_once()
            ran_once = True
        if not ran_once:
            self._run_once()

    def _run_once(self) -> None:
        read = self._reader.count()
        pct = _percent(read, self._size)
        if self._network_transfer:
            message = "snapshot network transfer progress"
        else:
            message = "snapshot restore progress"
        self._logger.info(
            "%s read-bytes=%d percent-complete=%s", message, read, f"{pct:0.2f}%"
        )

    def stop_and_wait(self) -> None:
        """Stop reporting and wait for the reporting thread; safe to call twice."""
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
            self._stop.set()
            if self._thread.is_alive():
                self._thread.join()

    def __enter__(self) -> "SnapshotRestoreMonitor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop_and_wait()


def start_snapshot_restore_monitor(
    logger: logging.Logger,
    reader: _Counted,
    size: int,
    network_transfer: bool,
    interval: float = SNAPSHOT_RESTORE_MONITOR_INTERVAL,
) -> SnapshotRestoreMonitor:
    """Create and start a monitor reporting the progress of ``reader``."""
    monitor = SnapshotRestoreMonitor(logger, reader, size, network_transfer, interval)
    monitor.start()
    return monitor