from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .errors import make_memory_error
from .state import Tracer

TAPE_START_SIZE = 0x100
TAPE_FACTOR = 0x2
CELL_MASK = 0xFF


class Tape:
    """
    Unbounded tape of byte cells.

    The cells live in one uint8 arena. `origin` is the arena index of tape
    offset 0 and `pos` is the arena index of the cursor. Stepping off either
    end of the arena doubles it on that side, so moves stay O(1) amortized.
    `low`/`high` bound the cells the cursor has actually visited.
    """

    def __init__(self, capacity: int = TAPE_START_SIZE, tracer: Optional[Tracer] = None):
        if capacity < 1:
            raise ValueError("Tape capacity must be positive.")
        self.tracer = tracer if tracer is not None else Tracer()
        self.cells = self._allocate(capacity)
        self.origin = capacity // 2
        self.pos = self.origin
        self.low = self.origin
        self.high = self.origin

    def _allocate(self, capacity: int) -> np.ndarray:
        try:
            return np.zeros(capacity, dtype=np.uint8)
        except MemoryError:
            raise make_memory_error(message='memory overflow while growing the tape', what='tape') from None

    def _grow(self, *, left: bool) -> None:
        old = self.cells
        size = len(old)
        cells = self._allocate(size * TAPE_FACTOR)
        if left:
            shift = len(cells) - size
            cells[shift:] = old
            self.origin += shift
            self.pos += shift
            self.low += shift
            self.high += shift
        else:
            cells[:size] = old
        self.cells = cells
        self.tracer.add_trace(f"memory: resized tape to {len(cells)}")

    # ===== Cursor =====

    @property
    def position(self) -> int:
        """Signed offset of the cursor from the starting cell."""
        return self.pos - self.origin

    def move_right(self) -> None:
        if self.pos + 1 >= len(self.cells):
            self._grow(left=False)
        self.pos += 1
        if self.pos > self.high:
            self.high = self.pos

    def move_left(self) -> None:
        if self.pos == 0:
            self._grow(left=True)
        self.pos -= 1
        if self.pos < self.low:
            self.low = self.pos

    def seek(self, pos: int, low: int, high: int) -> None:
        """Adopt a cursor and visited range computed outside the tape (JIT path)."""
        if not (0 <= low <= pos <= high < len(self.cells)):
            raise ValueError(f"Tape: invalid seek pos={pos} low={low} high={high}")
        self.pos = pos
        self.low = min(self.low, low)
        self.high = max(self.high, high)

    # ===== Data =====

    def current(self) -> int:
        return int(self.cells[self.pos])

    def set(self, value: int) -> None:
        self.cells[self.pos] = int(value) & CELL_MASK

    def increment(self) -> None:
        # Python int arithmetic, numpy uint8 scalars warn on overflow.
        self.cells[self.pos] = (int(self.cells[self.pos]) + 1) & CELL_MASK

    def decrement(self) -> None:
        self.cells[self.pos] = (int(self.cells[self.pos]) - 1) & CELL_MASK

    # ===== Inspection =====

    def __getitem__(self, offset: int) -> int:
        idx = self.origin + offset
        if self.low <= idx <= self.high:
            return int(self.cells[idx])
        return 0

    def __len__(self) -> int:
        """Number of materialized (visited) cells."""
        return self.high - self.low + 1

    def snapshot(self) -> Tuple[int, np.ndarray]:
        """(offset of the first visited cell, copy of all visited cells)."""
        return self.low - self.origin, self.cells[self.low:self.high + 1].copy()
