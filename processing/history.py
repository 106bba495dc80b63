# processing/history.py

import itertools
import time

import numpy as np

from processing.pixel_buffer import PixelBuffer

MAX_HISTORY_STATES = 100


class HistoryEntry:
    """Immutable full copy of a buffer's pixels."""
    __slots__ = ('pixels', 'sequence', 'timestamp')

    def __init__(self, pixels: np.ndarray, sequence: int, timestamp: float):
        frozen = pixels.copy()
        frozen.setflags(write=False)
        object.__setattr__(self, 'pixels', frozen)
        object.__setattr__(self, 'sequence', sequence)
        object.__setattr__(self, 'timestamp', timestamp)

    def __setattr__(self, name, value):
        raise AttributeError("HistoryEntry is immutable")

    def __repr__(self):
        height, width = self.pixels.shape[:2]
        return f"HistoryEntry(sequence={self.sequence}, size={width}x{height})"


class HistoryManager:
    """Ordered snapshots of a buffer, seeded at load time.

    Entries are appended on every completed stroke and removed only by ``undo``,
    which pops the newest entry and restores the one before it. The seed entry
    is never removed, so ``depth()`` is always at least 1. When ``max_states``
    is exceeded the oldest entry after the seed is dropped.
    """
    def __init__(self, buffer: PixelBuffer, max_states: int = MAX_HISTORY_STATES):
        if max_states is not None and max_states < 2:
            raise ValueError(f"max_states must be at least 2, got {max_states}.")
        self._buffer = buffer
        self._max_states = max_states
        self._sequence = itertools.count()
        self._entries = [self._make_entry()]

    def _make_entry(self) -> HistoryEntry:
        return HistoryEntry(self._buffer.pixels, next(self._sequence), time.monotonic())

    @property
    def seed(self) -> HistoryEntry:
        return self._entries[0]

    @property
    def latest(self) -> HistoryEntry:
        return self._entries[-1]

    def depth(self) -> int:
        return len(self._entries)

    def can_undo(self) -> bool:
        return len(self._entries) > 1

    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def snapshot(self) -> HistoryEntry:
        """Appends a copy of the buffer's current pixels."""
        entry = self._make_entry()
        self._entries.append(entry)

        if self._max_states is not None:
            while len(self._entries) > self._max_states:
                del self._entries[1]

        return entry

    def undo(self) -> bool:
        """Drops the newest entry and restores the buffer to the one before it.

        Returns False, leaving everything untouched, when only the seed remains.
        """
        if not self.can_undo():
            print("Warning: Nothing to undo, history holds only the initial state.")
            return False

        self._entries.pop()
        self._buffer.set_canvas_data(self._entries[-1].pixels)
        return True
