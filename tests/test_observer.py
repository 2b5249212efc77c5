import queue
from datetime import datetime

from raftcore.observer import (
    FailedHeartbeatObservation,
    LeaderObservation,
    Observer,
    ObserverRegistry,
    PeerObservation,
)
from raftcore.peersjson import Server, ServerSuffrage


def test_observation_carries_source_and_data():
    source = object()
    registry = ObserverRegistry(source)
    channel = queue.Queue()
    registry.register(Observer(channel))
    data = LeaderObservation(leader_addr="addr-a", leader_id="id-a")
    registry.observe(data)
    got = channel.get_nowait()
    assert got.raft is source
    assert got.data == data


def test_non_blocking_drops_when_full():
    capacity = 1
    sent = 3
    channel = queue.Queue(maxsize=capacity)
    observer = Observer(channel, blocking=False)
    registry = ObserverRegistry()
    registry.register(observer)
    for n in range(sent):
        registry.observe(n)
    assert observer.num_observed() == capacity
    assert observer.num_dropped() == sent - capacity
    assert channel.get_nowait().data == 0


def test_blocking_observer_receives_all():
    channel = queue.Queue()
    observer = Observer(channel, blocking=True)
    registry = ObserverRegistry()
    registry.register(observer)
    items = ["a", "b", "c"]
    for item in items:
        registry.observe(item)
    assert [channel.get_nowait().data for _ in items] == items
    assert observer.num_observed() == len(items)
    assert observer.num_dropped() == 0


def test_filter_excludes_observations():
    channel = queue.Queue()
    observer = Observer(
        channel, filter_fn=lambda ob: isinstance(ob.data, PeerObservation)
    )
    registry = ObserverRegistry()
    registry.register(observer)
    peer = PeerObservation(
        removed=True, peer=Server(ServerSuffrage.VOTER, "id1", "addr1")
    )
    registry.observe(LeaderObservation(leader_id="x"))
    registry.observe(peer)
    assert channel.get_nowait().data == peer
    assert channel.empty()
    assert observer.num_observed() == 1
    assert observer.num_dropped() == 0


def test_deregister_stops_delivery():
    channel = queue.Queue()
    observer = Observer(channel)
    registry = ObserverRegistry()
    registry.register(observer)
    registry.deregister(observer)
    registry.observe("ignored")
    assert channel.empty()
    assert len(registry) == 0


def test_observer_without_channel_is_skipped():
    observer = Observer(None)
    registry = ObserverRegistry()
    registry.register(observer)
    registry.observe("event")
    assert observer.num_observed() == 0
    assert observer.num_dropped() == 0


def test_observer_ids_are_unique():
    observers = [Observer(queue.Queue()) for _ in range(10)]
    assert len({o.id for o in observers}) == len(observers)
    registry = ObserverRegistry()
    for o in observers:
        registry.register(o)
    assert len(registry) == len(observers)


def test_multiple_observers_each_get_observation():
    channels = [queue.Queue(), queue.Queue()]
    registry = ObserverRegistry()
    for channel in channels:
        registry.register(Observer(channel))
    event = FailedHeartbeatObservation(peer_id="p1", last_contact=datetime(2020, 1, 1))
    registry.observe(event)
    assert [c.get_nowait().data for c in channels] == [event, event]