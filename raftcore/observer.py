"""Observers that receive notifications about events in a cluster node."""

from __future__ import annotations

import itertools
import queue
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from raftcore.peersjson import Server

_id_counter = itertools.count(1)
_id_lock = threading.Lock()


def _next_observer_id() -> int:
    with _id_lock:
        return next(_id_counter)


@dataclass
class Observation:
    """An event delivered to observers, with the node that produced it."""

    raft: Any
    data: Any


@dataclass(frozen=True)
class LeaderObservation:
    """Sent when leadership changes. ``leader`` is kept for older consumers."""

    leader: str = ""
    leader_addr: str = ""
    leader_id: str = ""


@dataclass(frozen=True)
class PeerObservation:
    """Sent when a peer is added or removed."""

    removed: bool
    peer: Server


@dataclass(frozen=True)
class FailedHeartbeatObservation:
    """Sent when a node fails to heartbeat with the leader."""

    peer_id: str
    last_contact: datetime


@dataclass(frozen=True)
class ResumedHeartbeatObservation:
    """Sent when a node resumes heartbeating after failures."""

    peer_id: str


FilterFn = Callable[[Observation], bool]


class Observer:
    """Receives observations on a queue, optionally filtered.

    A blocking observer waits for room on its queue; a non-blocking one
    drops observations when the queue is full.
    """

    def __init__(
        self,
        channel: Optional[queue.Queue],
        blocking: bool = False,
        filter_fn: Optional[FilterFn] = None,
    ) -> None:
        self.channel = channel
        self.blocking = blocking
        self.filter_fn = filter_fn
        self.id = _next_observer_id()
        self._lock = threading.Lock()
        self._observed = 0
        self._dropped = 0

    def num_observed(self) -> int:
        with self._lock:
            return self._observed

    def num_dropped(self) -> int:
        with self._lock:
            return self._dropped

    def _deliver(self, observation: Observation) -> None:
        if self.filter_fn is not None and not self.filter_fn(observation):
            return
        if self.channel is None:
            return
        if self.blocking:
            self.channel.put(observation)
            delivered = True
        else:
            try:
                self.channel.put_nowait(observation)
                delivered = True
            except queue.Full:
                delivered = False
        with self._lock:
            if delivered:
                self._observed += 1
            else:
                self._dropped += 1


class ObserverRegistry:
    """Holds the observers of one node and fans out observations to them."""

    def __init__(self, source: Any = None) -> None:
        self.source = source
        self._lock = threading.Lock()
        self._observers: dict[int, Observer] = {}

    def register(self, observer: Observer) -> None:
        with self._lock:
            self._observers[observer.id] = observer

    def deregister(self, observer: Observer) -> None:
        with self._lock:
            self._observers.pop(observer.id, None)

    def observe(self, data: Any) -> None:
        """Send ``data`` to every registered observer that accepts it."""
        with self._lock:
            observers = list(self._observers.values())
        for observer in observers:
            observer._deliver(Observation(raft=self.source, data=data))

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)