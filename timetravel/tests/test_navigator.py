"""
Tests for the version navigator.

Critical: seeks are bounds-checked, failures leave state unchanged, and every
successful seek records exactly one latency sample.
"""

import pytest

from timetravel.core.errors import IndexOutOfRange
from timetravel.core.events import NavigationChanged, StatsUpdated
from timetravel.core.ids import ChangeID
from timetravel.core.state import LIVE_INDEX
from timetravel.navigation import VersionNavigator
from timetravel.timeline import build_timeline
from timetravel.tests.helpers import StepTimer


def _navigator(doc, timer=None):
    kwargs = {"timer": timer} if timer is not None else {}
    return VersionNavigator(doc, build_timeline(doc), **kwargs)


def test_starts_live_with_no_checkout(linear_doc):
    nav = _navigator(linear_doc)

    assert nav.index == LIVE_INDEX
    assert nav.state.is_live
    assert nav.text == ""
    assert nav.max_index == 11
    assert nav.stats.count == 0
    assert not linear_doc.is_detached


def test_seek_shows_text_after_each_operation(linear_doc):
    nav = _navigator(linear_doc)

    expected = {
        0: "h",
        4: "hello",
        5: "hello ",
        10: "hello world",
        11: "ello world",
    }
    for index, text in expected.items():
        event = nav.seek(index)
        assert nav.index == index
        assert nav.text == text
        assert event.text == text
        assert event.index == index

    assert nav.stats.count == len(expected)


def test_seek_live_displays_empty_text(linear_doc):
    nav = _navigator(linear_doc)
    nav.seek(10)

    event = nav.seek(LIVE_INDEX)

    assert event.state.is_live
    assert nav.index == -1
    assert nav.text == ""
    assert nav.stats.count == 2


def test_repeated_seek_is_idempotent_but_still_sampled(linear_doc):
    nav = _navigator(linear_doc)

    first = nav.seek(4)
    second = nav.seek(4)

    assert first.text == second.text == "hello"
    assert nav.stats.count == 2


@pytest.mark.parametrize("index", [-2, 12, 1000])
def test_out_of_range_leaves_state_unchanged(linear_doc, index):
    nav = _navigator(linear_doc)
    nav.seek(3)

    with pytest.raises(IndexOutOfRange) as excinfo:
        nav.seek(index)

    assert excinfo.value.index == index
    assert excinfo.value.max_index == 11
    assert nav.index == 3
    assert nav.text == "hell"
    assert nav.stats.count == 1


def test_out_of_range_is_an_index_error(linear_doc):
    nav = _navigator(linear_doc)
    with pytest.raises(IndexError):
        nav.seek(99)


def test_non_integer_index_rejected(linear_doc):
    nav = _navigator(linear_doc)
    with pytest.raises(TypeError):
        nav.seek("3")
    with pytest.raises(TypeError):
        nav.seek(True)


def test_latency_brackets_checkout_only(linear_doc):
    """Timer is read exactly twice per seek, around the checkout."""
    timer = StepTimer([2.0, 4.0, 6.0])
    nav = _navigator(linear_doc, timer=timer)

    events = [nav.seek(i) for i in (0, 5, 11)]

    assert [e.latency_ms for e in events] == [2.0, 4.0, 6.0]
    assert timer.reads == 6
    stats = nav.stats.snapshot()
    assert stats.count == 3
    assert stats.last == 6.0
    assert stats.min == 2.0
    assert stats.max == 6.0
    assert stats.mean == pytest.approx(4.0)
    assert stats.variance == pytest.approx(4.0)


def test_rejected_seek_does_not_read_timer(linear_doc):
    timer = StepTimer([1.0])
    nav = _navigator(linear_doc, timer=timer)

    with pytest.raises(IndexOutOfRange):
        nav.seek(50)

    assert timer.reads == 0


def test_empty_timeline_only_allows_live():
    from timetravel.doc import MemoryDocument

    doc = MemoryDocument()
    nav = _navigator(doc)

    assert nav.max_index == -1
    nav.seek(LIVE_INDEX)
    assert nav.text == ""
    with pytest.raises(IndexOutOfRange):
        nav.seek(0)


def test_branching_document_seeks(branching_doc):
    nav = _navigator(branching_doc)

    assert nav.timeline[4] == ChangeID(2, 0)
    nav.seek(2)
    assert nav.text == "abc"
    nav.seek(4)
    assert nav.text == "abcX"
    nav.seek(nav.max_index)
    assert nav.text == branching_doc.get_text("text")


def test_publishes_navigation_then_stats(linear_doc):
    nav = _navigator(linear_doc)
    received = []
    nav.bus.subscribe(received.append)

    nav.seek(1)

    assert [type(e) for e in received] == [NavigationChanged, StatsUpdated]
    assert received[0].text == "he"
    assert received[1].stats.count == 1


def test_engine_failure_leaves_state_unchanged(linear_doc):
    nav = _navigator(linear_doc)
    nav.seek(4)
    received = []
    nav.bus.subscribe(received.append)

    def broken_checkout(frontier):
        raise RuntimeError("engine exploded")

    linear_doc.checkout = broken_checkout

    with pytest.raises(RuntimeError, match="engine exploded"):
        nav.seek(7)

    assert nav.index == 4
    assert nav.text == "hello"
    assert nav.stats.count == 1
    assert received == []


def test_repeated_live_seeks_are_idempotent(linear_doc):
    """seek(-1) from Live keeps empty text and only adds its own samples."""
    timer = StepTimer([5.0, 2.0, 8.0])
    nav = _navigator(linear_doc, timer=timer)

    bounds = []
    for _ in range(3):
        event = nav.seek(LIVE_INDEX)
        assert event.state.is_live
        assert nav.index == -1
        assert nav.text == ""
        stats = nav.stats.snapshot()
        bounds.append((stats.count, stats.min, stats.max))

    assert bounds == [(1, 5.0, 5.0), (2, 2.0, 5.0), (3, 2.0, 8.0)]
