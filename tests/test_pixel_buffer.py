import numpy as np
import pytest

from processing.pixel_buffer import PixelBuffer, EMPTY_RECT, clamp_rect, fit_to_max_size, to_rgba

from conftest import RED, solid


def test_new_buffer_is_filled():
    buffer = PixelBuffer(7, 3, RED)
    assert buffer.get_size() == (7, 3)
    assert buffer.pixels.shape == (3, 7, 4)
    assert (buffer.pixels == RED).all()


@pytest.mark.parametrize("width, height", [(0, 5), (5, 0), (-1, 3)])
def test_invalid_dimensions_raise(width, height):
    with pytest.raises(ValueError):
        PixelBuffer(width, height)


def test_clamp_rect():
    assert clamp_rect((-5, -5, 10, 10), 20, 20) == (0, 0, 5, 5)
    assert clamp_rect((15, 18, 10, 10), 20, 20) == (15, 18, 5, 2)
    assert clamp_rect((25, 0, 3, 3), 20, 20) == EMPTY_RECT
    assert clamp_rect((3, 3, 0, 4), 20, 20) == EMPTY_RECT


def test_crop_area_clamps_and_copies():
    buffer = PixelBuffer(10, 10, RED)
    crop = buffer.crop_area((-3, 8, 6, 6))
    assert crop.shape == (2, 3, 4)
    crop[:] = 0
    assert (buffer.pixels == RED).all()


def test_crop_area_outside_is_empty():
    buffer = PixelBuffer(10, 10)
    assert buffer.crop_area((20, 20, 5, 5)).shape == (0, 0, 4)


def test_paste_area_writes_region():
    buffer = PixelBuffer(10, 10)
    buffer.paste_area((2, 3, 4, 2), np.zeros((2, 4, 4), dtype=np.uint8))
    assert (buffer.pixels[3:5, 2:6] == 0).all()
    assert (buffer.pixels[0:3] == 255).all()


def test_paste_area_shape_mismatch_is_skipped(capsys):
    buffer = PixelBuffer(10, 10)
    buffer.paste_area((8, 8, 4, 4), np.zeros((4, 4, 4), dtype=np.uint8))
    assert (buffer.pixels == 255).all()
    assert "Warning" in capsys.readouterr().out


def test_set_canvas_data_requires_same_shape():
    buffer = PixelBuffer(4, 4)
    with pytest.raises(ValueError):
        buffer.set_canvas_data(np.zeros((5, 4, 4), dtype=np.uint8))


def test_from_array_copies_input():
    data = solid(6, 4, RED)
    buffer = PixelBuffer.from_array(data)
    data[:] = 0
    assert (buffer.pixels == RED).all()


def test_to_rgba_adds_opaque_alpha():
    rgb = np.zeros((2, 3, 3), dtype=np.uint8)
    rgb[:, :, 0] = 200
    rgba = to_rgba(rgb)
    assert rgba.shape == (2, 3, 4)
    assert (rgba[:, :, 0] == 200).all()
    assert (rgba[:, :, 3] == 255).all()

    gray = np.full((2, 2), 90, dtype=np.uint8)
    assert (to_rgba(gray)[:, :, :3] == 90).all()


def test_to_rgba_rejects_empty():
    with pytest.raises(ValueError):
        to_rgba(np.empty((0, 0, 4), dtype=np.uint8))


def test_fit_to_max_size_keeps_aspect():
    data = solid(1600, 400, RED)
    fitted = fit_to_max_size(data, 800)
    assert fitted.shape[:2] == (200, 800)
    assert fit_to_max_size(data, 2000) is data
