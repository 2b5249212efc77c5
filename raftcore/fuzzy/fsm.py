"""A state machine that hashes every applied entry, for checking that nodes agree."""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from os import PathLike
from typing import Any, BinaryIO, Sequence, Union

from raftcore.log import Log

HASH_SIZE = 4
_UINT64 = struct.Struct("<Q")


class LogHash:
    """A running Adler-32 chain over every piece of data added."""

    def __init__(self) -> None:
        self.last_hash = b""

    def add(self, data: bytes) -> None:
        """Fold ``data`` into the chain: hash(previous hash + data)."""
        checksum = zlib.adler32(self.last_hash + bytes(data))
        self.last_hash = checksum.to_bytes(HASH_SIZE, "big")


@dataclass(frozen=True)
class _AppliedItem:
    index: int
    term: int
    data: bytes


class FuzzyFSM(LogHash):
    """Records applied entries and checks that indexes rise and terms never fall."""

    def __init__(self) -> None:
        super().__init__()
        self.last_term = 0
        self.last_index = 0
        self.applied: list[_AppliedItem] = []

    def apply(self, log: Log) -> None:
        """Apply one entry; raise ValueError if it is out of order."""
        if log.index <= self.last_index:
            raise ValueError(
                f"fsm.Apply received log entry with invalid Index {log} "
                f"(lastIndex we saw was {self.last_index})"
            )
        if log.term < self.last_term:
            raise ValueError(
                f"fsm.Apply received log entry with invalid Term {log} "
                f"(lastTerm we saw was {self.last_term})"
            )
        self.last_index = log.index
        self.last_term = log.term
        self.add(log.data)
        self.applied.append(_AppliedItem(log.index, log.term, bytes(log.data)))

    def apply_batch(self, logs: Sequence[Log]) -> list[None]:
        """Apply several entries in order; one (empty) result per entry."""
        for log in logs:
            self.apply(log)
        return [None] * len(logs)

    def write_to(self, path: Union[str, "PathLike[str]"]) -> None:
        """Write one line per applied entry: term, index and hex data."""
        with open(path, "w", encoding="ascii") as handle:
            for item in self.applied:
                handle.write(f"{item.term}.{item.index:8d}: {item.data.hex().upper()}\n")

    def snapshot(self) -> "FuzzyFSM":
        """Return a copy of the current state."""
        copy = FuzzyFSM()
        copy.last_hash = self.last_hash
        copy.last_term = self.last_term
        copy.last_index = self.last_index
        copy.applied = list(self.applied)
        return copy

    def restore(self, reader: BinaryIO) -> None:
        """Load term, index and hash as written by ``persist``."""
        self.last_term = _read_uint64(reader)
        self.last_index = _read_uint64(reader)
        data = reader.read(HASH_SIZE)
        if not data:
            raise EOFError("snapshot ended before the hash")
        self.last_hash = bytes(data).ljust(HASH_SIZE, b"\0")

    def persist(self, sink: Any) -> None:
        """Write term, index (little-endian 64-bit) and hash to ``sink``."""
        sink.write(_UINT64.pack(self.last_term))
        sink.write(_UINT64.pack(self.last_index))
        sink.write(self.last_hash)

    def release(self) -> None:
        """Nothing to release."""


def _read_uint64(reader: BinaryIO) -> int:
    data = reader.read(_UINT64.size)
    if len(data) < _UINT64.size:
        raise EOFError("snapshot ended early")
    return _UINT64.unpack(data)[0]