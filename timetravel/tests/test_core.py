"""
Tests for identifiers, navigation state and the event bus.
"""

import pytest

from timetravel.core.canonical import canonical_json_bytes, content_hash
from timetravel.core.events import EventBus, StatsUpdated
from timetravel.core.ids import ChangeID, ChangeMeta, Frontier
from timetravel.core.state import NavigationState
from timetravel.core.stats import StatsAggregator


def test_change_id_str_and_parse():
    cid = ChangeID(peer=42, counter=7)

    assert str(cid) == "7@42"
    assert ChangeID.parse("7@42") == cid
    with pytest.raises(ValueError):
        ChangeID.parse("742")


def test_frontier_is_a_normalized_set():
    a, b = ChangeID(2, 0), ChangeID(1, 5)

    assert Frontier.of(a, b) == Frontier.of(b, a, a)
    assert len(Frontier.of(a, a)) == 1
    assert a in Frontier.of(a)
    assert Frontier().is_empty()
    assert str(Frontier.of(a, b)) == "[5@1, 0@2]"


def test_change_meta_contains():
    meta = ChangeMeta(id=ChangeID(1, 10), length=3, lamport=20)

    assert meta.contains(ChangeID(1, 12))
    assert not meta.contains(ChangeID(1, 13))
    assert not meta.contains(ChangeID(2, 11))
    assert meta.lamport_end == 23


def test_navigation_state():
    assert NavigationState.live().is_live
    assert str(NavigationState.live()) == "Live"
    assert str(NavigationState.at(3)) == "At(3)"
    with pytest.raises(ValueError):
        NavigationState.at(-1)


def test_event_bus_delivers_in_subscription_order():
    bus = EventBus()
    order = []
    bus.subscribe(lambda e: order.append("first"))
    unsubscribe = bus.subscribe(lambda e: order.append("second"))

    event = StatsUpdated(stats=StatsAggregator().snapshot())
    bus.emit(event)
    unsubscribe()
    unsubscribe()
    bus.emit(event)

    assert order == ["first", "second", "first"]
    assert len(bus) == 1


def test_canonical_json_is_key_order_independent():
    assert canonical_json_bytes({"b": 1, "a": (1, 2)}) == canonical_json_bytes({"a": [1, 2], "b": 1})
    assert content_hash("") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
