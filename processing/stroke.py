# processing/stroke.py

from processing.pixel_buffer import PixelBuffer, EMPTY_RECT
from processing.history import HistoryManager
from processing.effects import EFFECT_SMEAR, CONTINUOUS_EFFECTS, apply_dab, apply_smear

STATE_IDLE = 'idle'
STATE_SAMPLING = 'sampling'
STATE_ACTIVE = 'active'
STATE_COMMITTING = 'committing'


def union_rect(a: tuple[int, int, int, int], b: tuple[int, int, int, int]) -> tuple[int, int, int, int]:
    if a[2] <= 0 or a[3] <= 0:
        return b
    if b[2] <= 0 or b[3] <= 0:
        return a
    x1 = min(a[0], b[0])
    y1 = min(a[1], b[1])
    x2 = max(a[0] + a[2], b[0] + b[2])
    y2 = max(a[1] + a[3], b[1] + b[3])
    return (x1, y1, x2 - x1, y2 - y1)


class StrokeSession:
    """State of one press-move-release interaction. Discarded on release."""
    def __init__(self, start: tuple[float, float], brush_params: dict):
        self.start = start
        self.last = start
        self.brush_params = dict(brush_params)
        self.affected = EMPTY_RECT

    @property
    def effect(self) -> str:
        return self.brush_params['effect']


class StrokeController:
    """Drives effects against the buffer for one stroke at a time.

    Idle -> Sampling -> Active on press, Active -> Committing -> Idle on release
    or leave. Blur and Pixelate dab the buffer on every move. Smear only records
    the latest point and is applied once at release. Every completed stroke
    appends one history snapshot.

    ``brush_params`` is the live parameter dict owned by the caller: the effect,
    quality and smear size are fixed at press, continuous effects read the live
    size on every sample.
    """
    def __init__(self, buffer: PixelBuffer, history: HistoryManager, brush_params: dict):
        self._buffer = buffer
        self._history = history
        self._brush_params = brush_params
        self._session = None
        self.state = STATE_IDLE

    @property
    def session(self) -> StrokeSession:
        return self._session

    def is_active(self) -> bool:
        return self.state == STATE_ACTIVE

    def preview_segment(self):
        """(start, current) of an in-progress smear, else None."""
        if self._session is None or self._session.effect != EFFECT_SMEAR:
            return None
        return self._session.start, self._session.last

    def press(self, x: float, y: float) -> tuple[int, int, int, int]:
        affected = EMPTY_RECT
        if self.state != STATE_IDLE:
            affected = self.release()

        self.state = STATE_SAMPLING
        self._session = StrokeSession((x, y), self._brush_params)
        self.state = STATE_ACTIVE
        return affected

    def move(self, x: float, y: float) -> tuple[int, int, int, int]:
        if self.state != STATE_ACTIVE:
            return EMPTY_RECT

        session = self._session
        session.last = (x, y)

        if session.effect not in CONTINUOUS_EFFECTS:
            return EMPTY_RECT

        affected = apply_dab(self._buffer, session.effect, x, y, self._brush_params['size'])
        session.affected = union_rect(session.affected, affected)
        return affected

    def release(self, x: float = None, y: float = None) -> tuple[int, int, int, int]:
        """Finishes the stroke, applying a pending smear and recording a snapshot.

        Returns the area written by the whole stroke: the smear rect, or the union
        of every dab for Blur and Pixelate.
        """
        if self.state != STATE_ACTIVE:
            print("Warning: Release without a matching press. Ignoring.")
            return EMPTY_RECT

        session = self._session
        if x is not None and y is not None:
            session.last = (x, y)

        self.state = STATE_COMMITTING
        affected = session.affected
        if session.effect == EFFECT_SMEAR:
            affected = apply_smear(self._buffer, session.start, session.last,
                                   session.brush_params['size'], session.brush_params['quality'])
        self._history.snapshot()

        self._session = None
        self.state = STATE_IDLE
        return affected

    def leave(self) -> tuple[int, int, int, int]:
        """Pointer left the surface: a dragging stroke is finalized as on release."""
        if self.state != STATE_ACTIVE:
            return EMPTY_RECT
        return self.release()
