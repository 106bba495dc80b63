# processing/pixel_buffer.py

import numpy as np
import cv2

EMPTY_RECT = (0, 0, 0, 0)


def clamp_rect(rect: tuple[int, int, int, int], width: int, height: int) -> tuple[int, int, int, int]:
    """Intersects an (x, y, w, h) rectangle with [0, width) x [0, height)."""
    x, y, w, h = rect
    x1 = max(0, x)
    y1 = max(0, y)
    x2 = min(width, x + w)
    y2 = min(height, y + h)
    if x2 <= x1 or y2 <= y1:
        return EMPTY_RECT
    return (x1, y1, x2 - x1, y2 - y1)


def to_rgba(data: np.ndarray) -> np.ndarray:
    """Converts grayscale, RGB or RGBA data of any numeric dtype to HxWx4 uint8 RGBA."""
    if data is None or data.size == 0:
        raise ValueError("Cannot convert empty image data to RGBA.")

    if data.dtype != np.uint8:
        data = np.clip(data, 0, 255).astype(np.uint8)

    if len(data.shape) == 2:
        return cv2.cvtColor(data, cv2.COLOR_GRAY2RGBA)
    if len(data.shape) == 3:
        if data.shape[2] == 1:
            return cv2.cvtColor(data, cv2.COLOR_GRAY2RGBA)
        if data.shape[2] == 3:
            return cv2.cvtColor(data, cv2.COLOR_RGB2RGBA)
        if data.shape[2] == 4:
            return np.ascontiguousarray(data)
    raise ValueError(f"Unsupported image data shape {data.shape}.")


def fit_to_max_size(data: np.ndarray, max_size: int) -> np.ndarray:
    """Scales image data down so its longer side is at most max_size, keeping aspect."""
    height, width = data.shape[:2]
    longest = max(width, height)
    if longest <= max_size:
        return data

    scale = max_size / longest
    target_width = max(1, int(width * scale))
    target_height = max(1, int(height * scale))
    return cv2.resize(data, (target_width, target_height), interpolation=cv2.INTER_AREA)


class PixelBuffer:
    """Mutable RGBA8 raster held as a NumPy array of shape (height, width, 4).

    Dimensions are fixed at construction. All effects mutate the array in place
    through ``pixels``, or through the clamped ``crop_area`` / ``paste_area`` pair.
    """
    def __init__(self, width: int, height: int, color: tuple[int, int, int, int] = (255, 255, 255, 255)):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid buffer size: {width}x{height}.")
        if not isinstance(color, (tuple, list)) or len(color) != 4:
            raise ValueError(f"Invalid fill color {color}, expected an RGBA tuple.")

        self._width = int(width)
        self._height = int(height)
        self._data = np.empty((self._height, self._width, 4), dtype=np.uint8)
        self._data[:, :] = np.clip(color, 0, 255)

    @classmethod
    def from_array(cls, data: np.ndarray) -> "PixelBuffer":
        """Creates a buffer holding a copy of the given image data (converted to RGBA)."""
        rgba = to_rgba(data)
        height, width = rgba.shape[:2]
        buffer = cls(width, height)
        buffer._data[:] = rgba
        return buffer

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixels(self) -> np.ndarray:
        """The live array. Writes through it mutate the buffer."""
        return self._data

    def get_size(self) -> tuple[int, int]:
        """Returns the buffer dimensions (width, height)."""
        return self._width, self._height

    def get_canvas_data(self) -> np.ndarray:
        """Returns a copy of the current pixel data (RGBA uint8)."""
        return self._data.copy()

    def set_canvas_data(self, data: np.ndarray):
        """Replaces the pixel data. The shape must match the buffer exactly."""
        if data is None or data.shape != self._data.shape:
            shape = None if data is None else data.shape
            raise ValueError(f"Data shape {shape} does not match buffer shape {self._data.shape}.")
        self._data[:] = data

    def clamp_rect(self, rect: tuple[int, int, int, int]) -> tuple[int, int, int, int]:
        return clamp_rect(rect, self._width, self._height)

    def crop_area(self, rect: tuple[int, int, int, int]) -> np.ndarray:
        """Returns a copy of the region clamped to the buffer (RGBA uint8)."""
        x, y, w, h = self.clamp_rect(rect)
        if w == 0 or h == 0:
            return np.empty((0, 0, 4), dtype=np.uint8)
        return self._data[y:y + h, x:x + w].copy()

    def paste_area(self, rect: tuple[int, int, int, int], data: np.ndarray):
        """Writes data into the region. The rect must already lie inside the buffer."""
        if data is None or data.size == 0:
            return

        x, y, w, h = rect
        if self.clamp_rect(rect) != (x, y, w, h) or data.shape != (h, w, 4):
            print(f"Warning: Paste data shape {data.shape} mismatch with target region {rect}. Skipping paste.")
            return

        if data.dtype != np.uint8:
            data = np.clip(np.rint(data), 0, 255).astype(np.uint8)

        self._data[y:y + h, x:x + w] = data

    def fill(self, color: tuple[int, int, int, int] = (255, 255, 255, 255)):
        """Fills the entire buffer with an RGBA color."""
        self._data[:, :] = np.clip(color, 0, 255)
