import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from raftcore.inmem_store import InmemStore
from raftcore.log import (
    Log,
    LogNotFoundError,
    LogType,
    emit_log_store_metrics,
    oldest_log,
)


def test_oldest_log_empty():
    store = InmemStore()
    store.store_logs([])
    with pytest.raises(LogNotFoundError):
        oldest_log(store)


def test_oldest_log_simple_case():
    store = InmemStore()
    store.store_logs(
        [Log(index=1234, term=1), Log(index=1235, term=1), Log(index=1236, term=2)]
    )
    assert oldest_log(store).index == 1234


class _ShiftingStore:
    def __init__(self, firsts, good):
        self._firsts = list(firsts)
        self._good = good

    def first_index(self):
        if len(self._firsts) > 1:
            return self._firsts.pop(0)
        return self._firsts[0]

    def get_log(self, index):
        if index == self._good:
            return Log(index=index)
        raise LogNotFoundError()


def test_oldest_log_retries_after_truncation():
    store = _ShiftingStore([1, 2], good=2)
    assert oldest_log(store).index == 2


def test_oldest_log_gives_up_on_same_index():
    store = _ShiftingStore([1], good=99)
    with pytest.raises(LogNotFoundError):
        oldest_log(store)


@pytest.mark.parametrize(
    "value, name",
    [
        (0, "LogCommand"),
        (1, "LogNoop"),
        (2, "LogAddPeerDeprecated"),
        (3, "LogRemovePeerDeprecated"),
        (4, "LogBarrier"),
        (5, "LogConfiguration"),
    ],
)
def test_log_type_names(value, name):
    assert str(LogType(value)) == name


def test_emits_log_store_metrics():
    start = time.monotonic()
    store = InmemStore()
    store.store_logs(
        [
            Log(index=1234, term=1, appended_at=datetime.now(timezone.utc) - timedelta(milliseconds=5)),
            Log(index=1235, term=1),
            Log(index=1236, term=2),
        ]
    )
    gauges = []
    stop = threading.Event()
    worker = threading.Thread(
        target=emit_log_store_metrics,
        args=(store, ["foo"], 0.001, stop, lambda key, value: gauges.append((key, value))),
    )
    worker.start()
    time.sleep(0.05)
    stop.set()
    worker.join(timeout=1)
    elapsed_ms = (time.monotonic() - start) * 1000 + 5

    assert not worker.is_alive()
    assert gauges
    key, value = gauges[-1]
    assert key == ["foo", "oldestLogAge"]
    assert 1 <= value <= elapsed_ms


def test_emits_zero_when_store_empty():
    store = InmemStore()
    gauges = []
    stop = threading.Event()
    worker = threading.Thread(
        target=emit_log_store_metrics,
        args=(store, ["bar"], 0.001, stop, lambda key, value: gauges.append((list(key), value))),
    )
    worker.start()
    time.sleep(0.02)
    stop.set()
    worker.join(timeout=1)

    assert not worker.is_alive()
    assert len(gauges) >= 1
    assert gauges[0] == (["bar", "oldestLogAge"], 0.0)
    assert all(entry == (["bar", "oldestLogAge"], 0.0) for entry in gauges)