import json

import numpy as np
import pytest

from fractals.base import CalculationParameters
from fractals.validation import InvalidResolution, ParameterError
from rendering.core import compute
from rendering.executor import CancelToken, RenderCancelled
from rendering.service import FractalSessionController
from storage.state_io import StateFormatError


def snapshot(controller):
    return controller.current_parameters(), controller.current_grid().copy()


def test_initial_state(controller, small_params):
    assert controller.current_parameters() == small_params
    assert controller.current_grid().shape == (12, 16)
    assert not controller.can_undo()
    assert not controller.can_redo()


def test_constructor_rejects_non_parameters(engine):
    with pytest.raises(ParameterError):
        FractalSessionController({"x_res": 4}, engine=engine)


def test_grid_is_read_only(controller):
    with pytest.raises(ValueError):
        controller.current_grid()[0, 0] = 7


def test_grid_matches_standalone_compute(controller, small_params):
    np.testing.assert_array_equal(controller.current_grid(), compute(small_params))


def test_undo_restores_exact_state(controller):
    before_params, before_grid = snapshot(controller)
    controller.pan(1, 0, 1.0)
    assert controller.current_parameters() != before_params
    controller.undo()
    assert controller.current_parameters() == before_params
    np.testing.assert_array_equal(controller.current_grid(), before_grid)
    assert controller.can_redo()


def test_redo_reapplies_exact_state(controller):
    controller.set_max_iterations(80)
    after_params, after_grid = snapshot(controller)
    controller.undo()
    controller.redo()
    assert controller.current_parameters() == after_params
    np.testing.assert_array_equal(controller.current_grid(), after_grid)
    assert not controller.can_redo()


def test_new_change_clears_redo(controller):
    controller.set_max_iterations(80)
    controller.undo()
    controller.set_max_iterations(20)
    assert not controller.can_redo()


def test_undo_and_redo_on_empty_stacks_are_noops(controller):
    seen = []
    controller.add_observer(seen.append)
    controller.undo()
    controller.redo()
    assert seen == []


def test_reset_adds_a_history_entry(controller, small_params):
    controller.set_max_iterations(5)
    controller.reset()
    assert controller.current_parameters() == small_params
    controller.reset()
    assert len(controller.history.past) == 4
    controller.undo()
    assert controller.current_parameters() == small_params
    controller.undo()
    assert controller.current_parameters().max_iterations == 5


@pytest.mark.parametrize("x_res,y_res", [(0, 5), (-1, 5), (5, 0)])
def test_rejected_resolution_leaves_session_untouched(controller, x_res, y_res):
    seen = []
    controller.add_observer(seen.append)
    before_params, before_grid = snapshot(controller)
    with pytest.raises(InvalidResolution):
        controller.set_resolution(x_res, y_res)
    assert controller.current_parameters() == before_params
    np.testing.assert_array_equal(controller.current_grid(), before_grid)
    assert not controller.can_undo()
    assert seen == []


def test_set_resolution_resizes_grid(controller):
    controller.set_resolution(7, 3)
    assert controller.current_grid().shape == (3, 7)


def test_set_state_rejects_wrong_type(controller):
    with pytest.raises(ParameterError):
        controller.set_state("not parameters")
    assert not controller.can_undo()


def test_set_bounds_and_radius(controller):
    controller.set_bounds(-1.0, 1.0, -0.5, 0.5)
    controller.set_escape_radius_squared(16.0)
    p = controller.current_parameters()
    assert (p.min_real, p.max_real, p.min_imaginary, p.max_imaginary) == (-1.0, 1.0, -0.5, 0.5)
    assert p.sq_radius == 16.0
    assert len(controller.history.past) == 3


def test_zoom_to_pixel_rect_is_recorded_as_bounds_change(controller):
    seen = []
    controller.add_observer(seen.append)
    controller.zoom_to_pixel_rect(4, 3, 12, 9)
    assert [e.operation for e in seen] == ["set_bounds"]
    assert controller.magnification() >= 0


def test_observers_called_in_order_with_event(controller, small_params):
    order = []
    controller.add_observer(lambda e: order.append(("first", e)))
    controller.add_observer(lambda e: order.append(("second", e)))
    controller.set_max_iterations(60)
    assert [name for name, _ in order] == ["first", "second"]
    evt = order[0][1]
    assert evt.previous == small_params
    assert evt.current.max_iterations == 60
    assert evt.operation == "set_max_iterations"
    assert order[1][1] is evt


def test_observer_sees_committed_state(controller):
    seen = []
    controller.add_observer(lambda e: seen.append(controller.current_parameters() == e.current))
    controller.pan(2, 2)
    assert seen == [True]


def test_undo_event_carries_popped_and_new_top(controller, small_params):
    controller.set_max_iterations(60)
    top = controller.current_parameters()
    events = []
    controller.add_observer(events.append)
    controller.undo()
    assert events[0].previous == top
    assert events[0].current == small_params
    assert events[0].operation == "undo"


def test_removed_observer_is_not_called(controller):
    seen = []
    cb = controller.add_observer(seen.append)
    assert controller.remove_observer(cb)
    controller.set_max_iterations(60)
    assert seen == []


def test_mutation_from_listener_is_rejected(controller):
    def nested(evt):
        controller.set_max_iterations(1)

    controller.add_observer(nested)
    with pytest.raises(RuntimeError):
        controller.set_max_iterations(70)
    # the outer change was already committed before listeners ran
    assert controller.current_parameters().max_iterations == 70


def test_cancelled_change_is_not_committed(controller):
    before_params, before_grid = snapshot(controller)
    seen = []
    controller.add_observer(seen.append)
    token = CancelToken()
    token.cancel()
    with pytest.raises(RenderCancelled):
        controller.pan(3, 0, cancel=token)
    assert controller.current_parameters() == before_params
    np.testing.assert_array_equal(controller.current_grid(), before_grid)
    assert not controller.can_undo()
    assert seen == []


def test_cancelled_undo_keeps_position(controller):
    controller.set_max_iterations(60)
    token = CancelToken()
    token.cancel()
    with pytest.raises(RenderCancelled):
        controller.undo(cancel=token)
    assert controller.current_parameters().max_iterations == 60
    assert controller.can_undo()
    assert not controller.can_redo()


def test_save_and_load(controller, tmp_path, small_params):
    controller.set_bounds(-0.75, -0.25, 0.1, 0.35)
    saved = controller.current_parameters()
    path = tmp_path / "view.json"
    controller.save(path)
    controller.reset()
    controller.load(path)
    assert controller.current_parameters() == saved
    controller.undo()
    assert controller.current_parameters() == small_params


def test_load_failure_leaves_session_untouched(controller, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    before = controller.current_parameters()
    with pytest.raises(StateFormatError):
        controller.load(path)
    assert controller.current_parameters() == before
    assert not controller.can_undo()


def test_format_grid(engine):
    params = CalculationParameters(x_res=3, y_res=2, max_iterations=50,
                                   min_real=-2.0, max_real=1.0,
                                   min_imaginary=-1.5, max_imaginary=1.5, sq_radius=4.0)
    c = FractalSessionController(params, engine=engine)
    text = c.format_grid()
    lines = text.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("[1 ")
    assert all(line.startswith("[") and line.endswith(" ]") for line in lines)
    assert str(c) == text


def test_from_config(engine):
    from utils.config import SessionConfig
    c = FractalSessionController.from_config(SessionConfig(x_res=8, y_res=5), engine=engine)
    assert c.current_grid().shape == (5, 8)
    assert c.current_parameters().max_iterations == 50


@pytest.mark.parametrize("max_iterations", [2 ** 31, 2 ** 63, 2 ** 100, -2 ** 63, -2 ** 100])
def test_iteration_cap_outside_grid_range(engine, max_iterations):
    params = CalculationParameters.default(4, 3).with_sq_radius(-1.0)
    c = FractalSessionController(params, engine=engine)
    c.set_max_iterations(max_iterations)
    assert c.current_parameters().max_iterations == max_iterations
    assert c.current_grid().shape == (3, 4)
    assert not c.current_grid().any()


def test_load_huge_iteration_cap(engine, tmp_path):
    from storage.state_io import to_dict
    params = CalculationParameters.default(4, 3).with_sq_radius(-1.0)
    doc = to_dict(params)
    doc["parameters"]["max_iterations"] = 2 ** 64
    path = tmp_path / "huge.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    c = FractalSessionController(params, engine=engine)
    c.load(path)
    assert c.current_parameters().max_iterations == 2 ** 64
    assert not c.current_grid().any()


def test_load_with_invalid_resolution_leaves_session_untouched(controller, tmp_path):
    from storage.state_io import to_dict
    doc = to_dict(controller.current_parameters())
    doc["parameters"]["x_res"] = 0
    path = tmp_path / "zero.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    seen = []
    controller.add_observer(seen.append)
    before_params, before_grid = snapshot(controller)
    with pytest.raises(InvalidResolution):
        controller.load(path)
    assert controller.current_parameters() == before_params
    np.testing.assert_array_equal(controller.current_grid(), before_grid)
    assert not controller.can_undo()
    assert not controller.can_redo()
    assert seen == []
