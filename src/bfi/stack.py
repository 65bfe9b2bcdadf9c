from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .errors import make_bracket_error, make_memory_error

STACK_START_SIZE = 0x10


class BracketStack:
    """LIFO of LOOP_START program counters, stored in a growable int64 array."""

    def __init__(self, capacity: int = STACK_START_SIZE, ops: Optional[Sequence[int]] = None):
        self.items = self._allocate(max(1, capacity))
        self.size = 0
        self.ops = ops  # only used for error context

    def _allocate(self, capacity: int) -> np.ndarray:
        try:
            return np.zeros(capacity, dtype=np.int64)
        except MemoryError:
            raise make_memory_error(message='memory overflow while growing the bracket stack', what='bracket stack') from None

    def grow(self) -> None:
        items = self._allocate(len(self.items) * 2)
        items[:self.size] = self.items[:self.size]
        self.items = items

    def push(self, pc: int) -> None:
        if self.size >= len(self.items):
            self.grow()
        self.items[self.size] = pc
        self.size += 1

    def peek(self, pc: int = -1) -> int:
        if self.size == 0:
            raise make_bracket_error(message='no matching bracket found for unopened "]"', ops=self.ops, pc=pc)
        return int(self.items[self.size - 1])

    def pop(self, pc: int = -1) -> int:
        value = self.peek(pc)
        self.size -= 1
        return value

    def __len__(self) -> int:
        return self.size

    def __bool__(self) -> bool:
        return self.size > 0
