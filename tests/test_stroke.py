import numpy as np

from processing.pixel_buffer import PixelBuffer, EMPTY_RECT
from processing.history import HistoryManager
from processing.stroke import (
    StrokeController, STATE_IDLE, STATE_ACTIVE, union_rect,
)
from processing.effects import EFFECT_SMEAR, EFFECT_BLUR, EFFECT_PIXELATE, QUALITY_RAW

from conftest import WHITE, checkerboard, solid

GREEN = (0, 200, 0, 255)


def make_controller(data, effect, size=10):
    buffer = PixelBuffer.from_array(data)
    history = HistoryManager(buffer)
    params = {'size': size, 'effect': effect, 'quality': QUALITY_RAW}
    return buffer, history, params, StrokeController(buffer, history, params)


def test_union_rect():
    assert union_rect(EMPTY_RECT, (1, 2, 3, 4)) == (1, 2, 3, 4)
    assert union_rect((0, 0, 2, 2), (5, 5, 1, 1)) == (0, 0, 6, 6)


def test_press_starts_active_session():
    _, _, _, controller = make_controller(checkerboard(20, 20), EFFECT_BLUR)
    assert controller.state == STATE_IDLE
    controller.press(5, 6)
    assert controller.state == STATE_ACTIVE
    assert controller.session.start == (5, 6)


def test_continuous_effect_mutates_on_move_and_commits_once():
    data = checkerboard(30, 30)
    buffer, history, _, controller = make_controller(data, EFFECT_PIXELATE, size=12)

    controller.press(15, 15)
    assert np.array_equal(buffer.pixels, data)

    affected = controller.move(15, 15)
    assert affected != EMPTY_RECT
    assert not np.array_equal(buffer.pixels, data)
    assert history.depth() == 1

    second = controller.move(18, 15)
    assert controller.release(20, 15) == union_rect(affected, second)
    assert controller.state == STATE_IDLE
    assert controller.session is None
    assert history.depth() == 2
    assert np.array_equal(history.latest.pixels, buffer.pixels)


def test_smear_waits_for_release():
    data = solid(40, 40, WHITE)
    data[15:25, 8:13] = GREEN
    buffer, history, _, controller = make_controller(data, EFFECT_SMEAR)

    controller.press(10, 20)
    controller.move(20, 20)
    controller.move(30, 20)
    assert np.array_equal(buffer.pixels, data)
    assert controller.preview_segment() == ((10, 20), (30, 20))

    affected = controller.release()
    assert affected == (10, 15, 20, 10)
    assert (buffer.pixels[15:25, 10:30] == GREEN).all()
    assert history.depth() == 2


def test_smear_uses_brush_size_from_press():
    data = solid(40, 40, WHITE)
    data[:, 8:13] = GREEN
    _, _, params, controller = make_controller(data, EFFECT_SMEAR, size=10)

    controller.press(10, 20)
    params['size'] = 30
    affected = controller.release(30, 20)
    assert affected[3] == 10


def test_continuous_effect_follows_live_brush_size():
    _, _, params, controller = make_controller(checkerboard(60, 60), EFFECT_BLUR, size=10)
    controller.press(30, 30)
    assert controller.move(30, 30)[2] == 10
    params['size'] = 20
    assert controller.move(30, 30)[2] == 20


def test_release_without_press_is_noop(capsys):
    data = checkerboard(10, 10)
    buffer, history, _, controller = make_controller(data, EFFECT_BLUR)
    assert controller.release(3, 3) == EMPTY_RECT
    assert history.depth() == 1
    assert np.array_equal(buffer.pixels, data)
    assert "Warning" in capsys.readouterr().out


def test_move_without_press_is_ignored():
    data = checkerboard(20, 20)
    buffer, _, _, controller = make_controller(data, EFFECT_BLUR)
    assert controller.move(10, 10) == EMPTY_RECT
    assert np.array_equal(buffer.pixels, data)


def test_leave_while_dragging_finalizes():
    data = solid(40, 40, WHITE)
    data[15:25, 8:13] = GREEN
    buffer, history, _, controller = make_controller(data, EFFECT_SMEAR)

    controller.press(10, 20)
    controller.move(30, 20)
    controller.leave()

    assert controller.state == STATE_IDLE
    assert history.depth() == 2
    assert (buffer.pixels[15:25, 10:30] == GREEN).all()


def test_leave_when_idle_does_nothing():
    _, history, _, controller = make_controller(checkerboard(10, 10), EFFECT_BLUR)
    assert controller.leave() == EMPTY_RECT
    assert history.depth() == 1


def test_press_while_active_finishes_previous_stroke():
    _, history, _, controller = make_controller(checkerboard(20, 20), EFFECT_BLUR)
    controller.press(5, 5)
    controller.press(10, 10)
    assert history.depth() == 2
    assert controller.session.start == (10, 10)
