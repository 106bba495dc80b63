# processing/session.py

import numpy as np

from processing.pixel_buffer import PixelBuffer, EMPTY_RECT
from processing.history import HistoryManager, MAX_HISTORY_STATES
from processing.stroke import StrokeController
from processing.coordinates import CoordinateMapper
from processing.effects import EFFECTS, EFFECT_SMEAR, QUALITY_LEVELS, QUALITY_BLOCK_AVERAGE

MIN_BRUSH = 1
MAX_BRUSH = 200
DEFAULT_BRUSH_SIZE = 20


class EditingSession:
    """One image being edited: buffer, history, stroke controller and brush settings.

    Pointer operations take buffer coordinates and return the rectangle that was
    rewritten. Every operation is a no-op until ``load`` has been called.
    """
    def __init__(self, max_brush: int = MAX_BRUSH, max_history_states: int = MAX_HISTORY_STATES):
        if max_brush < MIN_BRUSH:
            raise ValueError(f"max_brush must be at least {MIN_BRUSH}, got {max_brush}.")
        self.max_brush = max_brush
        self.max_history_states = max_history_states

        self._brush_params = {
            'size': min(DEFAULT_BRUSH_SIZE, max_brush),
            'effect': EFFECT_SMEAR,
            'quality': QUALITY_BLOCK_AVERAGE,
        }

        self._buffer = None
        self._history = None
        self._stroke = None

    # --- Loading ---

    def load(self, data: np.ndarray):
        """Replaces the buffer with a copy of the image data and seeds a new history."""
        self._buffer = PixelBuffer.from_array(data)
        self._history = HistoryManager(self._buffer, self.max_history_states)
        self._stroke = StrokeController(self._buffer, self._history, self._brush_params)

    def is_loaded(self) -> bool:
        return self._buffer is not None

    def is_stroke_active(self) -> bool:
        """True while a press is being dragged. Always False before an image is loaded."""
        return self.is_loaded() and self._stroke.is_active()

    @property
    def buffer(self) -> PixelBuffer:
        return self._buffer

    @property
    def history(self) -> HistoryManager:
        return self._history

    @property
    def stroke(self) -> StrokeController:
        return self._stroke

    # --- Brush parameters ---

    @property
    def brush_params(self) -> dict:
        return dict(self._brush_params)

    @property
    def brush_size(self) -> int:
        return self._brush_params['size']

    @property
    def effect(self) -> str:
        return self._brush_params['effect']

    @property
    def quality(self) -> int:
        return self._brush_params['quality']

    def set_brush_size(self, size: int) -> int:
        """Sets the brush size, clamped to [MIN_BRUSH, max_brush]. Returns the applied size."""
        size = max(MIN_BRUSH, min(self.max_brush, int(size)))
        self._brush_params['size'] = size
        return size

    def adjust_brush_size(self, delta: int) -> int:
        return self.set_brush_size(self._brush_params['size'] + delta)

    def set_effect(self, effect: str):
        if effect not in EFFECTS:
            raise ValueError(f"Unknown effect '{effect}'. Expected one of {EFFECTS}.")
        self._brush_params['effect'] = effect

    def set_quality(self, quality: int):
        if quality not in QUALITY_LEVELS:
            raise ValueError(f"Unknown smear quality level {quality}. Expected one of {QUALITY_LEVELS}.")
        self._brush_params['quality'] = quality

    def brush_outline_size(self, mapper: CoordinateMapper) -> tuple[float, float]:
        """On-screen size of the brush outline for the given display mapping."""
        return mapper.outline_size(self._brush_params['size'])

    # --- Pointer input (buffer coordinates) ---

    def pointer_down(self, x: float, y: float) -> tuple[int, int, int, int]:
        if not self.is_loaded():
            print("Warning: No image loaded. Ignoring press.")
            return EMPTY_RECT
        return self._stroke.press(x, y)

    def pointer_move(self, x: float, y: float) -> tuple[int, int, int, int]:
        if not self.is_loaded():
            return EMPTY_RECT
        return self._stroke.move(x, y)

    def pointer_up(self, x: float = None, y: float = None) -> tuple[int, int, int, int]:
        if not self.is_loaded():
            return EMPTY_RECT
        return self._stroke.release(x, y)

    def pointer_leave(self) -> tuple[int, int, int, int]:
        if not self.is_loaded():
            return EMPTY_RECT
        return self._stroke.leave()

    # --- History ---

    def request_undo(self) -> bool:
        """Undoes the last completed stroke. An in-progress stroke is finished first."""
        if not self.is_loaded():
            return False
        if self._stroke.is_active():
            self._stroke.release()
        return self._history.undo()

    def reset(self) -> bool:
        """Restores the load-time image and records it as a new history entry."""
        if not self.is_loaded():
            return False
        if self._stroke.is_active():
            self._stroke.release()
        self._buffer.set_canvas_data(self._history.seed.pixels)
        self._history.snapshot()
        return True

    def can_undo(self) -> bool:
        return self.is_loaded() and self._history.can_undo()

    def history_depth(self) -> int:
        if not self.is_loaded():
            return 0
        return self._history.depth()

    # --- Export ---

    def current_pixels(self) -> np.ndarray:
        """Copy of the buffer's RGBA pixels, for external encoding."""
        if not self.is_loaded():
            return np.empty((0, 0, 4), dtype=np.uint8)
        return self._buffer.get_canvas_data()
