"""Log entries, the log store protocol and helpers built on top of it."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Callable, Protocol, Sequence, runtime_checkable


class LogType(IntEnum):
    """Kinds of entries that can appear in the replicated log."""

    COMMAND = 0
    NOOP = 1
    ADD_PEER_DEPRECATED = 2
    REMOVE_PEER_DEPRECATED = 3
    BARRIER = 4
    CONFIGURATION = 5

    def __str__(self) -> str:
        return _LOG_TYPE_NAMES[self]


_LOG_TYPE_NAMES = {
    LogType.COMMAND: "LogCommand",
    LogType.NOOP: "LogNoop",
    LogType.ADD_PEER_DEPRECATED: "LogAddPeerDeprecated",
    LogType.REMOVE_PEER_DEPRECATED: "LogRemovePeerDeprecated",
    LogType.BARRIER: "LogBarrier",
    LogType.CONFIGURATION: "LogConfiguration",
}


class LogNotFoundError(LookupError):
    """Raised when a requested log entry does not exist."""

    def __init__(self, message: str = "log not found") -> None:
        super().__init__(message)


@dataclass
class Log:
    """A single entry of the replicated log."""

    index: int = 0
    term: int = 0
    type: LogType = LogType.COMMAND
    data: bytes = b""
    extensions: bytes = b""
    appended_at: datetime | None = None


@runtime_checkable
class LogStore(Protocol):
    """Durable storage for log entries."""

    def first_index(self) -> int: ...

    def last_index(self) -> int: ...

    def get_log(self, index: int) -> Log: ...

    def store_log(self, log: Log) -> None: ...

    def store_logs(self, logs: Sequence[Log]) -> None: ...

    def delete_range(self, min_index: int, max_index: int) -> None: ...


def oldest_log(store: LogStore) -> Log:
    """Return the oldest entry in the store, retrying if it is truncated meanwhile."""
    last_fail_index = 0
    last_error: Exception | None = None
    while True:
        first = store.first_index()
        if first == 0:
            raise LogNotFoundError()
        if first == last_fail_index and last_error is not None:
            raise last_error
        try:
            return store.get_log(first)
        except Exception as err:  # the entry may have been truncated away
            last_fail_index = first
            last_error = err


def emit_log_store_metrics(
    store: LogStore,
    prefix: Sequence[str],
    interval: float,
    stop_event: threading.Event,
    set_gauge: Callable[[list[str], float], None],
) -> None:
    """Report the age in milliseconds of the oldest log every ``interval`` seconds.

    Runs until ``stop_event`` is set. An age of 0 is reported when the age is unknown.
    """
    while not stop_event.wait(interval):
        age_ms = 0.0
        try:
            entry = oldest_log(store)
        except Exception:
            entry = None
        if entry is not None and entry.appended_at is not None:
            now = datetime.now(entry.appended_at.tzinfo)
            age_ms = float(int((now - entry.appended_at).total_seconds() * 1000))
        set_gauge([*prefix, "oldestLogAge"], age_ms)