import numpy as np
import pytest

from processing.session import EditingSession, MAX_BRUSH
from processing.pixel_buffer import EMPTY_RECT
from processing.coordinates import CoordinateMapper
from processing.effects import EFFECT_SMEAR, EFFECT_BLUR, EFFECT_PIXELATE, QUALITY_GAUSSIAN

from conftest import RED, checkerboard, solid


def test_pixelate_scenario_on_red_image():
    session = EditingSession()
    session.load(solid(100, 100, RED))
    session.set_effect(EFFECT_PIXELATE)
    session.set_brush_size(24)
    assert session.history_depth() == 1

    session.pointer_down(50, 50)
    session.pointer_move(50, 50)
    session.pointer_up(50, 50)

    assert (session.current_pixels() == RED).all()
    assert session.history_depth() == 2

    assert session.request_undo()
    assert session.history_depth() == 1
    assert (session.current_pixels() == RED).all()


def test_stationary_smear_still_records_history():
    data = checkerboard(50, 50)
    session = EditingSession()
    session.load(data)
    session.set_effect(EFFECT_SMEAR)

    session.pointer_down(10, 10)
    session.pointer_move(10, 10)
    assert session.pointer_up(10, 10) == EMPTY_RECT

    assert session.history_depth() == 2
    assert np.array_equal(session.history.latest.pixels, data)
    assert np.array_equal(session.current_pixels(), data)


def _stroke(session, effect, points):
    session.set_effect(effect)
    session.pointer_down(*points[0])
    for point in points[1:]:
        session.pointer_move(*point)
    session.pointer_up(*points[-1])


def test_n_strokes_then_n_undos_restore_load_state(noisy_image):
    session = EditingSession()
    session.load(noisy_image)
    session.set_quality(QUALITY_GAUSSIAN)

    strokes = [
        (EFFECT_SMEAR, [(10, 10), (30, 25)]),
        (EFFECT_BLUR, [(40, 30), (42, 31), (45, 33)]),
        (EFFECT_PIXELATE, [(70, 50), (75, 55)]),
        (EFFECT_SMEAR, [(79, 59), (0, 0)]),
        (EFFECT_BLUR, [(0, 0), (-5, 70)]),
    ]
    for effect, points in strokes:
        _stroke(session, effect, points)

    assert session.history_depth() == len(strokes) + 1
    assert not np.array_equal(session.current_pixels(), noisy_image)

    for _ in strokes:
        assert session.request_undo()

    assert session.history_depth() == 1
    assert np.array_equal(session.current_pixels(), noisy_image)


def test_history_depth_never_drops_below_one(noisy_image):
    session = EditingSession()
    session.load(noisy_image)
    rng = np.random.default_rng(7)
    effects = [EFFECT_SMEAR, EFFECT_BLUR, EFFECT_PIXELATE]

    for _ in range(40):
        if rng.random() < 0.4:
            session.request_undo()
        else:
            x, y = rng.uniform(-10, 90, size=2)
            _stroke(session, effects[rng.integers(3)], [(x, y), (x + 5, y - 3)])
        assert session.history_depth() >= 1


def test_undo_during_stroke_finishes_it_first():
    session = EditingSession()
    data = checkerboard(40, 40)
    session.load(data)
    session.set_effect(EFFECT_BLUR)

    session.pointer_down(20, 20)
    session.pointer_move(20, 20)
    assert session.request_undo()

    assert not session.stroke.is_active()
    assert session.history_depth() == 1
    assert np.array_equal(session.current_pixels(), data)


def test_reset_restores_loaded_image_as_new_entry():
    session = EditingSession()
    data = checkerboard(30, 30)
    session.load(data)
    session.set_effect(EFFECT_PIXELATE)
    _stroke(session, EFFECT_PIXELATE, [(15, 15), (16, 15)])

    assert session.reset()
    assert session.history_depth() == 3
    assert np.array_equal(session.current_pixels(), data)

    session.request_undo()
    assert not np.array_equal(session.current_pixels(), data)


def test_operations_before_load_are_noops():
    session = EditingSession()
    assert not session.is_stroke_active()
    assert session.pointer_down(1, 1) == EMPTY_RECT
    assert session.pointer_move(2, 2) == EMPTY_RECT
    assert session.pointer_up(2, 2) == EMPTY_RECT
    assert session.pointer_leave() == EMPTY_RECT
    assert not session.request_undo()
    assert not session.reset()
    assert session.history_depth() == 0
    assert session.current_pixels().size == 0


def test_load_replaces_buffer_and_history():
    session = EditingSession()
    session.load(checkerboard(10, 10))
    _stroke(session, EFFECT_BLUR, [(5, 5), (5, 5)])
    session.load(solid(20, 8, RED))
    assert session.history_depth() == 1
    assert session.buffer.get_size() == (20, 8)


def test_brush_size_is_clamped():
    session = EditingSession(max_brush=100)
    assert session.set_brush_size(0) == 1
    assert session.set_brush_size(250) == 100
    assert session.set_brush_size(42) == 42
    assert session.adjust_brush_size(1) == 43
    assert session.adjust_brush_size(-1000) == 1


def test_default_max_brush():
    session = EditingSession()
    assert session.set_brush_size(10_000) == MAX_BRUSH


def test_rejects_unknown_effect_and_quality():
    session = EditingSession()
    with pytest.raises(ValueError):
        session.set_effect('sharpen')
    with pytest.raises(ValueError):
        session.set_quality(4)


def test_brush_params_are_a_copy():
    session = EditingSession()
    params = session.brush_params
    params['size'] = 999
    assert session.brush_size != 999


def test_brush_outline_follows_display_scale():
    session = EditingSession()
    session.set_brush_size(40)
    mapper = CoordinateMapper(200, 100, 400, 400)
    assert session.brush_outline_size(mapper) == (20.0, 10.0)


def test_out_of_range_pointer_is_clamped_silently():
    session = EditingSession()
    data = checkerboard(20, 20)
    session.load(data)
    for effect in (EFFECT_BLUR, EFFECT_PIXELATE, EFFECT_SMEAR):
        _stroke(session, effect, [(-50, -50), (500, 500), (-1, 21)])
    assert session.current_pixels().shape == (20, 20, 4)
    assert session.history_depth() == 4


def test_stroke_activity_follows_press_and_release():
    session = EditingSession()
    session.load(checkerboard(20, 20))
    assert not session.is_stroke_active()
    session.pointer_down(5, 5)
    assert session.is_stroke_active()
    session.pointer_up(5, 5)
    assert not session.is_stroke_active()
