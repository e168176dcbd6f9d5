import pytest

from fractals.base import CalculationParameters
from rendering.events import ChangeNotifier
from rendering.history import SessionHistory


@pytest.fixture
def views():
    base = CalculationParameters.default(4, 4)
    return [base.with_max_iterations(n) for n in (10, 20, 30, 40)]


def test_fresh_history(views):
    h = SessionHistory(views[0])
    assert h.current is views[0]
    assert not h.can_undo()
    assert not h.can_redo()
    assert len(h) == 1


def test_step_back_and_forward(views):
    h = SessionHistory(views[0])
    h.push(views[1])
    h.push(views[2])
    assert h.peek_back() is views[1]
    assert h.step_back() == (views[2], views[1])
    assert h.can_redo()
    assert h.peek_forward() is views[2]
    assert h.step_forward() == (views[1], views[2])
    assert not h.can_redo()
    assert len(h) == 3


def test_push_clears_future(views):
    h = SessionHistory(views[0])
    h.push(views[1])
    h.step_back()
    h.push(views[3])
    assert not h.can_redo()
    assert h.past == [views[0], views[3]]


def test_notifier_order_and_sequence(views):
    n = ChangeNotifier()
    seen = []
    n.add(lambda e: seen.append(("a", e.seq, e.operation)))
    n.add(lambda e: seen.append(("b", e.seq, e.operation)))
    n.dispatch(views[0], views[1], "pan")
    evt = n.dispatch(views[1], views[2], "undo")
    assert seen == [("a", 1, "pan"), ("b", 1, "pan"), ("a", 2, "undo"), ("b", 2, "undo")]
    assert (evt.previous, evt.current, evt.seq) == (views[1], views[2], 2)


def test_notifier_add_remove(views):
    n = ChangeNotifier()
    with pytest.raises(TypeError):
        n.add("not callable")
    cb = n.add(lambda e: None)
    assert len(n) == 1
    assert n.remove(cb)
    assert not n.remove(cb)
    assert len(n) == 0


def test_listener_added_during_dispatch_waits_for_next_change(views):
    n = ChangeNotifier()
    late = []

    def first(evt):
        n.add(late.append)

    n.add(first)
    n.dispatch(views[0], views[1], "pan")
    assert late == []
    n.remove(first)
    n.dispatch(views[1], views[2], "pan")
    assert len(late) == 1


def test_listener_exception_propagates_and_clears_flag(views):
    n = ChangeNotifier()
    calls = []

    def boom(evt):
        raise ValueError("listener failed")

    n.add(boom)
    n.add(calls.append)
    with pytest.raises(ValueError):
        n.dispatch(views[0], views[1], "pan")
    assert calls == []
    assert not n.dispatching
