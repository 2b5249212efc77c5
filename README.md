# raftcore

In-memory building blocks for the Raft consensus algorithm, plus helpers for
fuzz-testing a Raft cluster. Pure Python, no third-party dependencies.

## Modules

- `raftcore.log` — `Log` entries (index, term, type, data, extensions,
  appended_at), the `LogType` enum (its `str()` gives names such as
  `LogCommand`), `LogNotFoundError`, the `LogStore` protocol,
  `oldest_log(store)`, which returns the first entry of a store and retries if
  the store is truncated meanwhile, and
  `emit_log_store_metrics(store, prefix, interval, stop_event, set_gauge)`,
  which calls `set_gauge([*prefix, "oldestLogAge"], age_ms)` every `interval`
  seconds until `stop_event` is set.
- `raftcore.inmem_store` — `InmemStore`, a thread-safe in-memory log store and
  key/value store (`set`/`get` for bytes, `set_uint64`/`get_uint64` for
  integers). `get` raises `KeyError` for a missing key; `get_uint64` returns 0.
  Meant for tests.
- `raftcore.log_cache` — `LogCache(capacity, store)`, a fixed-size ring buffer
  in front of any log store. Writes go through to the store and are cached only
  if the store accepted them; `delete_range` empties the cache.
- `raftcore.inmem_snapshot` — `InmemSnapshotStore`, which keeps only the most
  recent snapshot, its `InmemSnapshotSink`, `SnapshotMeta` and
  `snapshot_name(term, index)`. Only snapshot version 1 is accepted; `open`
  returns a fresh `io.BytesIO` each time, so a snapshot can be read repeatedly.
- `raftcore.peersjson` — `Server`, `ServerSuffrage`, `Configuration`,
  `ConfigurationError`, and `read_peers_json(path)` (a JSON list of addresses,
  all voters) and `read_config_json(path)` (objects with `id`, `address` and
  optional `non_voter`). Both reject configurations without a voter or with
  empty or duplicate IDs or addresses.
- `raftcore.inmem_transport` — `InmemTransport`, which routes RPCs between
  transports in the same process after `connect(peer, transport)`. Requests
  arrive on the peer's `consumer()` queue as `RPC` objects and are answered
  with `rpc.respond(response, error)`. `append_entries_pipeline` returns an
  `InmemPipeline` whose `append_entries` returns `AppendFuture`s; completed
  futures appear on the pipeline's `consumer()` queue. Failures raise
  `TransportError` (for example `"send timed out"`) or `PipelineShutdownError`.
- `raftcore.observer` — `Observer` and `ObserverRegistry`, which deliver
  `Observation`s to queues, with optional filtering; non-blocking observers
  drop observations when their queue is full and count them in
  `num_dropped()`. Event payloads: `LeaderObservation`, `PeerObservation`,
  `FailedHeartbeatObservation`, `ResumedHeartbeatObservation`.
- `raftcore.progress` — `CountingReader` and `CountingReadCloser`, which count
  bytes read, and `start_snapshot_restore_monitor(logger, reader, size,
  network_transfer, interval)`, which logs progress at each interval (and at
  least once when stopped) until `stop_and_wait()` is called.
- `raftcore.fuzzy.fsm` — `FuzzyFSM`, a state machine that chains an Adler-32
  hash over applied data, rejects out-of-order entries with `ValueError`, and
  can `persist`, `restore`, `snapshot` and `write_to` a text file.
- `raftcore.fuzzy.verifier` — `AppendEntriesVerifier`, transport hooks that
  record an error when a term has more than one leader or a sender names
  another node as leader; `report()` returns the errors.
- `raftcore.fuzzy.apply_source` — `ApplySource(seed)`, a deterministic source
  of 33-byte entries; the same seed string gives the same sequence.
- `raftcore.fuzzy.resolve` — `resolve_directory(path, create)`, which makes a
  relative path absolute against the running program's directory.

## Install

```
pip install .
```

## Example

```python
from raftcore.inmem_store import InmemStore
from raftcore.log import Log, oldest_log
from raftcore.log_cache import LogCache

store = InmemStore()
cache = LogCache(16, store)
cache.store_logs([Log(index=1, term=1), Log(index=2, term=1)])

print(cache.last_index())        # 2
print(cache.get_log(1).term)     # 1
print(oldest_log(store).index)   # 1
```

Reading a recovery file:

```python
from raftcore.peersjson import read_config_json

configuration = read_config_json("peers.json")
for server in configuration.servers:
    print(server.id, server.address, server.suffrage)
```

Two transports talking in one process:

```python
import threading
from raftcore.inmem_transport import InmemTransport

a, b = InmemTransport(), InmemTransport()
a.connect(b.local_addr(), b)

def serve():
    rpc = b.consumer().get()
    rpc.respond({"success": True})

threading.Thread(target=serve).start()
print(a.append_entries("server1", b.local_addr(), {"term": 1}))  # {'success': True}
```

## What it does not do

This package provides the parts a Raft node is built from, not a Raft node.
There is no election, replication or commit logic, no network transport (only
the in-process `InmemTransport`), no on-disk log or snapshot storage, and no
command-line program. The `raftcore.fuzzy` helpers check and feed a cluster but
do not create or run one.

## Running the tests

```
pip install .[test]
pytest
```