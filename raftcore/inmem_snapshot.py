"""An in-memory snapshot store that keeps only the most recent snapshot."""

from __future__ import annotations

import io
import threading
import time
from dataclasses import dataclass, field
from typing import Any

from raftcore.peersjson import Configuration, ServerSuffrage

SNAPSHOT_VERSION_MIN = 0
SNAPSHOT_VERSION_MAX = 1


def snapshot_name(term: int, index: int) -> str:
    """Build a snapshot id from the term, index and current time in milliseconds."""
    return f"{term}-{index}-{int(time.time() * 1000)}"


@dataclass
class SnapshotMeta:
    """Metadata describing a snapshot."""

    version: int = 0
    id: str = ""
    index: int = 0
    term: int = 0
    peers: tuple[bytes, ...] = ()
    configuration: Configuration = field(default_factory=Configuration)
    configuration_index: int = 0
    size: int = 0


def _encode_peers(configuration: Configuration, trans: Any) -> tuple[bytes, ...]:
    if trans is None:
        return ()
    return tuple(
        trans.encode_peer(server.id, server.address)
        for server in configuration.servers
        if server.suffrage is ServerSuffrage.VOTER
    )


class InmemSnapshotSink:
    """Collects the bytes of a snapshot in memory."""

    def __init__(self, meta: SnapshotMeta | None = None) -> None:
        self.meta = meta if meta is not None else SnapshotMeta()
        self._contents = bytearray()
        self.closed = False
        self.cancelled = False

    def write(self, data: bytes) -> int:
        self._contents.extend(data)
        self.meta.size += len(data)
        return len(data)

    def close(self) -> None:
        """Mark the sink finished; the data is already held in memory."""
        self.closed = True

    def id(self) -> str:
        return self.meta.id

    def cancel(self) -> None:
        """Mark the sink abandoned; the next create replaces it."""
        self.cancelled = True

    def contents(self) -> bytes:
        return bytes(self._contents)

    def __enter__(self) -> "InmemSnapshotSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.cancel()


class InmemSnapshotStore:
    """Snapshot store holding only the latest snapshot in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest = InmemSnapshotSink()
        self._has_snapshot = False

    def create(
        self,
        version: int,
        index: int,
        term: int,
        configuration: Configuration,
        configuration_index: int,
        trans: Any,
    ) -> InmemSnapshotSink:
        """Replace the stored snapshot with a new, empty one and return its sink."""
        if version != 1:
            raise ValueError(f"unsupported snapshot version {version}")
        name = snapshot_name(term, index)
        sink = InmemSnapshotSink(
            SnapshotMeta(
                version=version,
                id=name,
                index=index,
                term=term,
                peers=_encode_peers(configuration, trans),
                configuration=configuration,
                configuration_index=configuration_index,
            )
        )
        with self._lock:
            self._has_snapshot = True
            self._latest = sink
        return sink

    def list(self) -> list[SnapshotMeta]:
        with self._lock:
            if not self._has_snapshot:
                return []
            return [self._latest.meta]

    def open(self, snapshot_id: str) -> tuple[SnapshotMeta, io.BytesIO]:
        """Return the metadata and a fresh reader over the snapshot's contents."""
        with self._lock:
            if self._latest.meta.id != snapshot_id:
                raise LookupError(
                    f"[ERR] snapshot: failed to open snapshot id: {snapshot_id}"
                )
            return self._latest.meta, io.BytesIO(self._latest.contents())