"""Transport hooks that check only one leader sends AppendEntries per term."""

from __future__ import annotations

import threading
from typing import Any


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode()
    return str(value)


def _leader_of(request: Any) -> str:
    header = getattr(request, "rpc_header", None)
    addr = _as_text(getattr(header, "addr", None)) if header is not None else ""
    if addr:
        return addr
    return _as_text(getattr(request, "leader", None))


class AppendEntriesVerifier:
    """Collects an error whenever a term has more than one leader or a sender
    claims someone else is the leader."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.leader_for_term: dict[int, str] = {}
        self.errors: list[str] = []
        self.rpcs_seen = 0
        self.responses_seen = 0
        self.votes_seen = 0

    def report(self) -> list[str]:
        """Return the errors found so far."""
        with self._lock:
            return list(self.errors)

    def pre_rpc(self, src: str, target: str, rpc: Any) -> None:
        """Count the RPC; it is always let through."""
        with self._lock:
            self.rpcs_seen += 1
        return None

    def post_rpc(self, src: str, target: str, rpc: Any, result: Any) -> None:
        """Count the response; it is never altered."""
        with self._lock:
            self.responses_seen += 1
        return None

    def pre_request_vote(self, src: str, target: str, request: Any) -> None:
        """Count the vote request; the vote is never answered here."""
        with self._lock:
            self.votes_seen += 1
        return None

    def pre_append_entries(self, src: str, target: str, request: Any) -> None:
        term = request.term
        leader = _leader_of(request)
        with self._lock:
            if leader != src:
                self.errors.append(
                    f"Node {src} sent an appendEnties request for term {term} "
                    f"that said the leader was some other node {leader}"
                )
            known = self.leader_for_term.get(term)
            if known is None:
                self.leader_for_term[term] = leader
            elif known != leader:
                self.errors.append(
                    f"Node {src} sent an AppendEntries request for term {term}, "
                    f"but node {known} had already done some, multiple leaders for same term!"
                )
        return None