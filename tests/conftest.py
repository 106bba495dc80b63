import numpy as np
import pytest

from processing.pixel_buffer import PixelBuffer

RED = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def solid(width, height, color):
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:, :] = color
    return data


def checkerboard(width, height):
    data = np.zeros((height, width, 4), dtype=np.uint8)
    yy, xx = np.indices((height, width))
    data[(xx + yy) % 2 == 0, :3] = 255
    data[:, :, 3] = 255
    return data


@pytest.fixture
def red_buffer():
    return PixelBuffer(100, 100, RED)


@pytest.fixture
def noisy_image():
    rng = np.random.default_rng(1234)
    data = rng.integers(0, 256, size=(60, 80, 4), dtype=np.uint8)
    data[:, :, 3] = 255
    return data
