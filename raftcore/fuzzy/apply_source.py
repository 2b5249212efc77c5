"""A seeded source of pseudo-random entries to apply to a cluster."""

from __future__ import annotations

import random

ENTRY_SIZE = 33
_FNV32_OFFSET = 2166136261
_FNV32_PRIME = 16777619
_MASK32 = 0xFFFFFFFF


def _fnv32(data: bytes) -> int:
    value = _FNV32_OFFSET
    for byte in data:
        value = ((value * _FNV32_PRIME) & _MASK32) ^ byte
    return value


class ApplySource:
    """Sources built from the same seed string yield the same sequence of entries."""

    def __init__(self, seed: str) -> None:
        self.seed = _fnv32(seed.encode())
        self._rnd = random.Random(self.seed)

    def reset(self) -> None:
        """Go back to the start of the sequence."""
        self._rnd = random.Random(self.seed)

    def next_entry(self) -> bytes:
        return bytes(self._rnd.randrange(256) for _ in range(ENTRY_SIZE))

    def generate(self, count: int) -> list[bytes]:
        """Return the next ``count`` entries."""
        return [self.next_entry() for _ in range(count)]