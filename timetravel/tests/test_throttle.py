"""
Tests for the throttled dispatcher.

Critical: at most one forwarded call per window, and the newest argument
always wins.
"""

import pytest

from timetravel.core.clock import ManualScheduler
from timetravel.navigation import ThrottledDispatcher


class Recorder:
    def __init__(self, scheduler):
        self.scheduler = scheduler
        self.calls = []

    def __call__(self, arg):
        self.calls.append((arg, self.scheduler.now()))


def _setup(**kwargs):
    sched = ManualScheduler()
    rec = Recorder(sched)
    return sched, rec, ThrottledDispatcher(rec, scheduler=sched, **kwargs)


def test_trailing_edge_last_value_wins():
    """A@0, B@30, C@250 with a 100 ms window -> B@100, C@350."""
    sched, rec, throttle = _setup(window_ms=100)

    throttle("A")
    sched.advance_to(30)
    throttle("B")
    sched.advance_to(250)
    throttle("C")
    sched.advance_to(1000)

    assert rec.calls == [("B", 100), ("C", 350)]
    assert throttle.forwarded == 2


def test_single_call_forwarded_after_window():
    sched, rec, throttle = _setup(window_ms=100)

    throttle(1)
    assert rec.calls == []
    assert throttle.pending

    sched.advance(99)
    assert rec.calls == []
    sched.advance(1)
    assert rec.calls == [(1, 100)]
    assert not throttle.pending


def test_burst_collapses_to_one_call_per_window():
    sched, rec, throttle = _setup(window_ms=100)

    for t in range(0, 300, 10):
        sched.advance_to(t)
        throttle(t)
    sched.advance_to(1000)

    assert [arg for arg, _ in rec.calls] == [90, 190, 290]
    times = [at for _, at in rec.calls]
    assert all(b - a >= 100 for a, b in zip(times, times[1:]))


def test_leading_mode_forwards_first_call_immediately():
    sched, rec, throttle = _setup(window_ms=100, leading=True)

    throttle("A")
    assert rec.calls == [("A", 0)]
    sched.advance_to(30)
    throttle("B")
    sched.advance_to(60)
    throttle("C")
    sched.advance_to(1000)

    assert rec.calls == [("A", 0), ("C", 100)]


def test_leading_mode_without_followup_sends_nothing_more():
    sched, rec, throttle = _setup(window_ms=100, leading=True)

    throttle("A")
    sched.advance_to(500)
    throttle("B")

    assert rec.calls == [("A", 0), ("B", 500)]


def test_leading_mode_cools_down_after_trailing_fire():
    sched, rec, throttle = _setup(window_ms=100, leading=True)

    throttle("A")
    sched.advance_to(50)
    throttle("B")
    sched.advance_to(150)
    throttle("C")
    sched.advance_to(1000)

    assert rec.calls == [("A", 0), ("B", 100), ("C", 200)]


def test_flush_forwards_pending_now():
    sched, rec, throttle = _setup(window_ms=100)

    throttle("A")
    sched.advance_to(20)
    throttle.flush()

    assert rec.calls == [("A", 20)]
    assert sched.pending == 0
    sched.advance_to(500)
    assert rec.calls == [("A", 20)]


def test_cancel_discards_pending():
    sched, rec, throttle = _setup(window_ms=100)

    throttle("A")
    throttle.cancel()
    sched.advance_to(500)

    assert rec.calls == []
    assert not throttle.pending


def test_on_error_receives_argument_and_exception():
    sched = ManualScheduler()
    errors = []

    def target(arg):
        raise ValueError(f"bad {arg}")

    throttle = ThrottledDispatcher(target, scheduler=sched, window_ms=50, on_error=lambda a, e: errors.append((a, e)))
    throttle("x")
    sched.advance(50)

    assert len(errors) == 1
    assert errors[0][0] == "x"
    assert str(errors[0][1]) == "bad x"


def test_error_propagates_without_handler():
    sched = ManualScheduler()

    def target(arg):
        raise ValueError("boom")

    throttle = ThrottledDispatcher(target, scheduler=sched, window_ms=50)
    throttle("x")
    with pytest.raises(ValueError, match="boom"):
        sched.advance(50)


@pytest.mark.parametrize("window", [0, -5])
def test_rejects_non_positive_window(window):
    with pytest.raises(ValueError):
        ThrottledDispatcher(lambda a: None, scheduler=ManualScheduler(), window_ms=window)


def test_manual_scheduler_refuses_to_go_backwards():
    sched = ManualScheduler(start=10)
    with pytest.raises(ValueError):
        sched.advance_to(5)
