from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

import numpy as np


class Status(enum.Enum):
    RUNNING = 'running'
    HALTED = 'halted'
    FAILED = 'failed'


@dataclass
class Tracer:
    is_tracing: bool = False
    stream: Optional[TextIO] = None
    lines: List[str] = field(default_factory=list)

    def add_trace(self, message: str) -> None:
        if not self.is_tracing:
            return
        if self.stream is not None:
            self.stream.write(message + '\n')
        else:
            self.lines.append(message)

    def clear(self) -> None:
        self.lines.clear()


@dataclass(frozen=True)
class RunResult:
    status: Status
    steps: int
    position: int
    first_offset: int
    cells: np.ndarray
    program_size: int

    def cell(self, offset: int) -> int:
        """Value of the cell at a signed tape offset, zero outside the visited range."""
        idx = offset - self.first_offset
        if 0 <= idx < len(self.cells):
            return int(self.cells[idx])
        return 0

    @property
    def halted(self) -> bool:
        return self.status is Status.HALTED
