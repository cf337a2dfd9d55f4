"""
Tests for the Loro engine adapter.

Critical: ids and frontiers convert both ways, engine failures surface as
typed errors, and navigation over a real Loro history is causally ordered.
"""

import pytest

from timetravel.config import Settings
from timetravel.core.clock import ManualScheduler
from timetravel.core.errors import DocumentError, GraphTraversalError, SnapshotImportError
from timetravel.core.ids import EMPTY_FRONTIER, ChangeID, Frontier
from timetravel.doc import LoroDocument, open_document
from timetravel.doc.loro_doc import decode_frontiers, from_loro_frontiers, to_loro_frontiers
from timetravel.navigation import TimeTravelSession, VersionNavigator
from timetravel.timeline import build_timeline


def _linear_loro_doc():
    doc = LoroDocument()
    doc.set_peer(1)
    doc.insert(0, "hello")
    doc.commit()
    doc.insert(5, " world")
    doc.commit()
    return doc


def _branching_loro_doc():
    """
    Peer 1 writes 'abc', then peer 1 prepends 'Y' while peer 2 appends 'XW';
    peer 1 merges and appends 'Z'. 7 ops, head 4@1.
    """
    a = LoroDocument()
    a.set_peer(1)
    a.insert(0, "abc")
    a.commit()

    b = LoroDocument()
    b.set_peer(2)
    b.import_snapshot(a.export_snapshot())
    b.insert(3, "XW")
    b.commit()

    a.insert(0, "Y")
    a.commit()
    a.import_snapshot(b.export_snapshot())
    a.insert(len(a.get_text("text")), "Z")
    a.commit()
    return a


def test_frontier_conversion_round_trip():
    for frontier in (
        EMPTY_FRONTIER,
        Frontier.of(ChangeID(1, 4)),
        Frontier.of(ChangeID(1, 4), ChangeID(2, 0)),
        Frontier.of(ChangeID(2 ** 40, 300)),
    ):
        assert from_loro_frontiers(to_loro_frontiers(frontier)) == frontier


def test_decode_frontiers_layout():
    # two ids: (peer 1, counter 4), (peer 300, counter 0)
    data = bytes([2, 1, 8, 0xAC, 0x02, 0])

    assert decode_frontiers(data) == [ChangeID(1, 4), ChangeID(300, 0)]
    with pytest.raises(ValueError):
        decode_frontiers(data + b"\x00")


def test_open_document_defaults_to_loro():
    doc = open_document(peer=7)

    assert isinstance(doc, LoroDocument)
    assert doc.raw.peer_id == 7


def test_timeline_and_seek():
    doc = _linear_loro_doc()
    timeline = build_timeline(doc)

    assert len(timeline) == 11
    assert list(timeline) == [ChangeID(1, c) for c in range(11)]

    nav = VersionNavigator(doc, timeline)
    nav.seek(4)
    assert nav.text == "hello"
    nav.seek(10)
    assert nav.text == "hello world"
    nav.seek(-1)
    assert nav.text == ""
    nav.seek(-1)
    assert nav.text == ""
    assert nav.stats.count == 4


def test_head_survives_checkout():
    doc = _linear_loro_doc()
    doc.checkout(Frontier.of(ChangeID(1, 2)))

    assert doc.get_text("text") == "hel"
    assert doc.current_frontier() == Frontier.of(ChangeID(1, 10))
    assert len(build_timeline(doc)) == 11


def test_branching_history_is_causal():
    doc = _branching_loro_doc()
    timeline = build_timeline(doc)
    ids = list(timeline)

    assert len(ids) == 7
    assert ids[:3] == [ChangeID(1, 0), ChangeID(1, 1), ChangeID(1, 2)]
    assert set(ids[3:6]) == {ChangeID(1, 3), ChangeID(2, 0), ChangeID(2, 1)}
    assert ids.index(ChangeID(2, 1)) > ids.index(ChangeID(2, 0)) > ids.index(ChangeID(1, 2))
    assert ids[-1] == ChangeID(1, 4)


def test_branching_round_trip_head():
    doc = _branching_loro_doc()
    head_text = doc.get_text("text")
    timeline = build_timeline(doc)

    assert timeline.frontier_at(timeline.max_index) == doc.current_frontier()
    doc.checkout(timeline.frontier_at(timeline.max_index))
    assert doc.get_text("text") == head_text
    assert sorted(head_text) == sorted("YabcXWZ")


def test_session_open_and_seek():
    data = _linear_loro_doc().export_snapshot()
    session = TimeTravelSession.open(
        LoroDocument(),
        data,
        settings=Settings(engine="loro"),
        scheduler=ManualScheduler(),
    )

    assert session.max_index == 10
    assert session.seek_now(4).text == "hello"
    assert session.current_text == "hello"
    assert session.latency_stats.count == 1


def test_import_garbage_raises():
    with pytest.raises(SnapshotImportError):
        LoroDocument().import_snapshot(b"definitely not loro")


def test_session_open_garbage_raises():
    with pytest.raises(SnapshotImportError):
        TimeTravelSession.open(LoroDocument(), b"garbage", scheduler=ManualScheduler())


def test_walk_unknown_id_raises():
    doc = _linear_loro_doc()

    with pytest.raises(GraphTraversalError):
        doc.walk_ancestors(Frontier.of(ChangeID(9, 9)), lambda m: True)
    with pytest.raises(GraphTraversalError):
        build_timeline(doc, Frontier.of(ChangeID(9, 9)))


def test_checkout_unknown_id_raises():
    with pytest.raises(DocumentError):
        _linear_loro_doc().checkout(Frontier.of(ChangeID(9, 9)))
