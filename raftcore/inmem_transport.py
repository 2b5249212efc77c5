"""An in-memory transport that routes RPCs between peers in the same process."""

from __future__ import annotations

import queue
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable

DEFAULT_TIMEOUT = 0.5
_POLL_INTERVAL = 0.01


class TransportError(Exception):
    """Raised when an RPC cannot be delivered or answered."""


class PipelineShutdownError(TransportError):
    """Raised when an append pipeline has been closed."""

    def __init__(self, message: str = "append pipeline closed") -> None:
        super().__init__(message)


class _Stopped(Exception):
    """Signals that a wait was cut short by a shutdown."""


def new_inmem_addr() -> str:
    """Return a fresh random address for an in-memory transport."""
    return str(uuid.uuid4())


def _as_exception(error: BaseException | str) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return TransportError(str(error))


def _put(q: queue.Queue, item: Any, stop: threading.Event, timeout: float | None = None) -> None:
    """Put ``item`` on ``q``; raise queue.Full on timeout, _Stopped on shutdown."""
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        if stop.is_set():
            raise _Stopped
        wait = _POLL_INTERVAL
        if deadline is not None:
            wait = min(wait, max(0.0, deadline - time.monotonic()))
        try:
            q.put(item, timeout=wait)
            return
        except queue.Full:
            if deadline is not None and time.monotonic() >= deadline:
                raise


def _get(q: queue.Queue, stop: threading.Event, timeout: float | None = None) -> Any:
    """Take an item from ``q``; raise queue.Empty on timeout, _Stopped on shutdown."""
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        if stop.is_set():
            raise _Stopped
        wait = _POLL_INTERVAL
        if deadline is not None:
            wait = min(wait, max(0.0, deadline - time.monotonic()))
        try:
            return q.get(timeout=wait)
        except queue.Empty:
            if deadline is not None and time.monotonic() >= deadline:
                raise


@dataclass
class RPCResponse:
    """The answer to an RPC: a response object and an optional error."""

    response: Any = None
    error: BaseException | str | None = None


@dataclass
class RPC:
    """A request delivered to a consumer, answered through ``respond``."""

    command: Any
    reader: BinaryIO | None = None
    resp_chan: "queue.Queue[RPCResponse]" = field(
        default_factory=lambda: queue.Queue(maxsize=1)
    )

    def respond(self, response: Any, error: BaseException | str | None = None) -> None:
        self.resp_chan.put(RPCResponse(response, error))


class AppendFuture:
    """The pending result of a pipelined AppendEntries request."""

    def __init__(self, args: Any, resp: Any = None) -> None:
        self.start = time.time()
        self.args = args
        self.resp = resp
        self._error: BaseException | None = None
        self._done = threading.Event()

    def respond(self, error: BaseException | None) -> None:
        self._error = error
        self._done.set()

    def _wait(self, timeout: float | None) -> None:
        if not self._done.wait(timeout):
            raise TimeoutError("append future not completed")

    def error(self, timeout: float | None = None) -> BaseException | None:
        """Wait for completion and return the error, if any."""
        self._wait(timeout)
        return self._error

    def response(self, timeout: float | None = None) -> Any:
        """Wait for completion and return the peer's response."""
        self._wait(timeout)
        return self.resp


@dataclass
class _Inflight:
    future: AppendFuture
    resp_chan: "queue.Queue[RPCResponse]"


class InmemPipeline:
    """Pipelines AppendEntries requests to a connected in-memory peer."""

    def __init__(self, trans: "InmemTransport", peer: "InmemTransport", peer_addr: str) -> None:
        self._trans = trans
        self._peer = peer
        self.peer_addr = peer_addr
        self._done: "queue.Queue[AppendFuture]" = queue.Queue(maxsize=16)
        self._inprogress: "queue.Queue[_Inflight]" = queue.Queue(maxsize=16)
        self._shutdown = threading.Event()
        self._shutdown_lock = threading.Lock()
        self._thread = threading.Thread(target=self._decode_responses, daemon=True)
        self._thread.start()

    def _decode_responses(self) -> None:
        timeout = self._trans.timeout if self._trans.timeout > 0 else None
        while True:
            try:
                inflight = _get(self._inprogress, self._shutdown)
                try:
                    rpc_resp = _get(inflight.resp_chan, self._shutdown, timeout)
                except queue.Empty:
                    inflight.future.respond(TransportError("command timed out"))
                else:
                    inflight.future.resp = rpc_resp.response
                    error = rpc_resp.error
                    inflight.future.respond(None if error is None else _as_exception(error))
                _put(self._done, inflight.future, self._shutdown)
            except _Stopped:
                return

    def append_entries(self, args: Any, resp: Any = None) -> AppendFuture:
        """Send a request and return a future completed when the peer answers."""
        future = AppendFuture(args, resp)
        timeout = self._trans.timeout if self._trans.timeout > 0 else None
        resp_chan: "queue.Queue[RPCResponse]" = queue.Queue(maxsize=1)
        rpc = RPC(command=args, resp_chan=resp_chan)

        if self._shutdown.is_set():
            raise PipelineShutdownError()
        try:
            _put(self._peer._consumer, rpc, self._shutdown, timeout)
        except queue.Full:
            raise TransportError("command enqueue timeout") from None
        except _Stopped:
            raise PipelineShutdownError() from None

        try:
            _put(self._inprogress, _Inflight(future, resp_chan), self._shutdown)
        except _Stopped:
            raise PipelineShutdownError() from None
        return future

    def consumer(self) -> "queue.Queue[AppendFuture]":
        """Queue of completed futures, in the order they were sent."""
        return self._done

    def close(self) -> None:
        with self._shutdown_lock:
            self._shutdown.set()


class InmemTransport:
    """Routes RPCs to other in-memory transports without a network."""

    def __init__(
        self,
        address: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        queue_size: int = 16,
    ) -> None:
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")
        self._lock = threading.Lock()
        self._consumer: "queue.Queue[RPC]" = queue.Queue(maxsize=queue_size)
        self._local_addr = address or new_inmem_addr()
        self._peers: dict[str, InmemTransport] = {}
        self._pipelines: list[InmemPipeline] = []
        self.timeout = timeout
        self.heartbeat_handler: Callable[[RPC], None] | None = None

    def set_heartbeat_handler(self, callback: Callable[[RPC], None] | None) -> None:
        """Record the handler; this transport still delivers heartbeats through
        the consumer queue, as it has no fast path."""
        with self._lock:
            self.heartbeat_handler = callback

    def consumer(self) -> "queue.Queue[RPC]":
        return self._consumer

    def local_addr(self) -> str:
        return self._local_addr

    def append_entries_pipeline(self, server_id: str, target: str) -> InmemPipeline:
        with self._lock:
            peer = self._peers.get(target)
            if peer is None:
                raise TransportError(f"failed to connect to peer: {target}")
            pipeline = InmemPipeline(self, peer, target)
            self._pipelines.append(pipeline)
            return pipeline

    def _make_rpc(self, target: str, args: Any, reader: BinaryIO | None, timeout: float) -> RPCResponse:
        with self._lock:
            peer = self._peers.get(target)
        if peer is None:
            raise TransportError(f"failed to connect to peer: {target}")

        rpc = RPC(command=args, reader=reader)
        try:
            peer._consumer.put(rpc, timeout=timeout)
        except queue.Full:
            raise TransportError("send timed out") from None
        try:
            rpc_resp = rpc.resp_chan.get(timeout=timeout)
        except queue.Empty:
            raise TransportError("command timed out") from None
        if rpc_resp.error is not None:
            raise _as_exception(rpc_resp.error)
        return rpc_resp

    def append_entries(self, server_id: str, target: str, args: Any) -> Any:
        return self._make_rpc(target, args, None, self.timeout).response

    def request_vote(self, server_id: str, target: str, args: Any) -> Any:
        return self._make_rpc(target, args, None, self.timeout).response

    def request_pre_vote(self, server_id: str, target: str, args: Any) -> Any:
        return self._make_rpc(target, args, None, self.timeout).response

    def install_snapshot(self, server_id: str, target: str, args: Any, data: BinaryIO) -> Any:
        return self._make_rpc(target, args, data, 10 * self.timeout).response

    def timeout_now(self, server_id: str, target: str, args: Any) -> Any:
        return self._make_rpc(target, args, None, 10 * self.timeout).response

    def encode_peer(self, server_id: str, address: str) -> bytes:
        return address.encode()

    def decode_peer(self, buf: bytes) -> str:
        return bytes(buf).decode()

    def connect(self, peer: str, transport: "InmemTransport") -> None:
        """Route RPCs addressed to ``peer`` to ``transport``."""
        if not isinstance(transport, InmemTransport):
            raise TypeError("an in-memory transport can only connect to another one")
        with self._lock:
            self._peers[peer] = transport

    def disconnect(self, peer: str) -> None:
        """Remove the route to ``peer`` and close its pipelines."""
        with self._lock:
            self._peers.pop(peer, None)
            remaining = []
            for pipeline in self._pipelines:
                if pipeline.peer_addr == peer:
                    pipeline.close()
                else:
                    remaining.append(pipeline)
            self._pipelines = remaining

    def disconnect_all(self) -> None:
        with self._lock:
            self._peers = {}
            for pipeline in self._pipelines:
                pipeline.close()
            self._pipelines = []

    def close(self) -> None:
        self.disconnect_all()

    def __enter__(self) -> "InmemTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()