import pytest

from raftcore.inmem_store import InmemStore
from raftcore.log import Log, LogNotFoundError, LogType


def _filled(first, last):
    store = InmemStore()
    store.store_logs([Log(index=i, term=1) for i in range(first, last + 1)])
    return store


def test_empty_store_indexes():
    store = InmemStore()
    assert store.first_index() == 0
    assert store.last_index() == 0


def test_store_and_get_round_trip():
    store = InmemStore()
    entry = Log(index=7, term=3, type=LogType.NOOP, data=b"payload")
    store.store_log(entry)
    got = store.get_log(7)
    assert got == entry
    assert store.first_index() == 7
    assert store.last_index() == 7


def test_get_returns_copy():
    store = InmemStore()
    store.store_log(Log(index=1, term=1))
    got = store.get_log(1)
    got.term = 42
    assert store.get_log(1).term == 1


def test_missing_log_raises():
    store = _filled(1, 3)
    with pytest.raises(LogNotFoundError):
        store.get_log(4)


def test_delete_prefix_moves_first_index():
    store = _filled(1, 5)
    store.delete_range(1, 2)
    assert store.first_index() == 3
    assert store.last_index() == 5
    with pytest.raises(LogNotFoundError):
        store.get_log(2)
    assert store.get_log(3).index == 3


def test_delete_suffix_moves_last_index():
    store = _filled(1, 5)
    store.delete_range(4, 5)
    assert store.first_index() == 1
    assert store.last_index() == 3


def test_delete_everything_resets_indexes():
    store = _filled(1, 5)
    store.delete_range(1, 5)
    assert (store.first_index(), store.last_index()) == (0, 0)


def test_kv_round_trip():
    store = InmemStore()
    store.set(b"CurrentTerm", b"value")
    assert store.get(b"CurrentTerm") == b"value"


def test_kv_missing_raises():
    store = InmemStore()
    with pytest.raises(KeyError):
        store.get(b"absent")


def test_kv_none_value_is_missing():
    store = InmemStore()
    store.set(b"k", None)
    with pytest.raises(KeyError):
        store.get(b"k")


def test_uint64_round_trip_and_default():
    store = InmemStore()
    assert store.get_uint64(b"LastVoteTerm") == 0
    store.set_uint64(b"LastVoteTerm", 1234)
    assert store.get_uint64(b"LastVoteTerm") == 1234