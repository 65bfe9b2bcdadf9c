"""
Source-to-opcode compilation.

Every byte of the source is looked up in a fixed 128-entry table. The eight
command characters map to an opcode; everything else (and every byte outside
the ASCII range) is a comment and is dropped. The result is a compact uint8
array terminated by a single EXIT sentinel.

Brackets are not validated here. The engine resolves them lazily while it runs.
"""
from __future__ import annotations

import enum
from typing import Iterable, Iterator, Optional, Union

import numpy as np

from .errors import make_memory_error
from .state import Tracer

WORD_SIZE = 0x80
BUFFER_FACTOR = 0x2
BUFFER_START_SIZE = 0xF
CHUNK_SIZE = 1 << 16


class Op(enum.IntEnum):
    EXIT = 0x0
    INCR_PTR = 0x1
    DECR_PTR = 0x2
    INCR_DATA = 0x3
    DECR_DATA = 0x4
    OUTPUT = 0x5
    INPUT = 0x6
    LOOP_START = 0x7
    LOOP_END = 0x8


COMMANDS = {
    '>': Op.INCR_PTR,     # move to next cell
    '<': Op.DECR_PTR,     # move to previous cell
    '+': Op.INCR_DATA,
    '-': Op.DECR_DATA,
    '.': Op.OUTPUT,
    ',': Op.INPUT,
    '[': Op.LOOP_START,   # zero: skip past matching ]
    ']': Op.LOOP_END,     # nonzero: back to matching [
}

OPERATION = np.zeros(WORD_SIZE, dtype=np.uint8)
for _ch, _op in COMMANDS.items():
    OPERATION[ord(_ch)] = _op
OPERATION.flags.writeable = False

_SYMBOLS = np.zeros(len(Op), dtype=np.uint8)
for _ch, _op in COMMANDS.items():
    _SYMBOLS[_op] = ord(_ch)

Source = Union[bytes, bytearray, memoryview, str, Iterable[Union[bytes, str]]]


class OpcodeBuffer:
    """Growable opcode storage. Capacity doubles whenever it fills up."""

    def __init__(self, capacity: int = BUFFER_START_SIZE, tracer: Optional[Tracer] = None):
        self.capacity = capacity
        self.size = 0
        self.tracer = tracer if tracer is not None else Tracer()
        self._data = self._allocate(capacity)
        self._finished = False

    def _allocate(self, capacity: int) -> np.ndarray:
        try:
            return np.zeros(capacity, dtype=np.uint8)
        except MemoryError:
            raise make_memory_error(message='failed to resize memory for program', what='program') from None

    def _resize(self, capacity: int) -> None:
        data = self._allocate(capacity)
        data[:self.size] = self._data[:self.size]
        self._data = data
        self.capacity = capacity
        self.tracer.add_trace(f"memory: resized program to {capacity}")

    def extend(self, codes: np.ndarray) -> None:
        if self._finished:
            raise ValueError("OpcodeBuffer: cannot extend a finished program.")
        needed = self.size + len(codes)
        # One slot always stays free for the EXIT sentinel.
        while needed >= self.capacity:
            self._resize(self.capacity * BUFFER_FACTOR)
        self._data[self.size:needed] = codes
        self.size = needed

    def finish(self) -> np.ndarray:
        if not self._finished:
            self._data[self.size] = Op.EXIT
            self._finished = True
            self.tracer.add_trace(f"memory: program size is {self.size}")
        ops = self._data[:self.size + 1]
        ops.flags.writeable = False
        return ops

    def __len__(self) -> int:
        return self.size


def _iter_chunks(source: Source, chunk_size: int) -> Iterator[bytes]:
    if isinstance(source, str):
        source = source.encode('utf-8')
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        for start in range(0, len(data), chunk_size):
            yield data[start:start + chunk_size]
        return
    for chunk in source:
        if isinstance(chunk, str):
            chunk = chunk.encode('utf-8')
        yield bytes(chunk)


def map_bytes(chunk: bytes) -> np.ndarray:
    """Opcodes for the command bytes of `chunk`, comments removed."""
    raw = np.frombuffer(chunk, dtype=np.uint8)
    raw = raw[raw < WORD_SIZE]
    codes = OPERATION[raw]
    return codes[codes != Op.EXIT]


def compile(source: Source, *, tracer: Optional[Tracer] = None, chunk_size: int = CHUNK_SIZE) -> np.ndarray:
    """
    Compile source text into a read-only opcode array.

    Args:
        source: bytes, str, or an iterable of byte/str chunks (e.g. a file
            opened in binary mode).
        tracer: receives the accepted characters and buffer growth events.

    Returns:
        uint8 array of opcodes ending with exactly one Op.EXIT.
    """
    tracer = tracer if tracer is not None else Tracer()
    buf = OpcodeBuffer(tracer=tracer)
    for chunk in _iter_chunks(source, chunk_size):
        codes = map_bytes(chunk)
        if len(codes) == 0:
            continue
        if tracer.is_tracing:
            tracer.add_trace(_SYMBOLS[codes].tobytes().decode('ascii'))
        buf.extend(codes)
    return buf.finish()


def disassemble(ops) -> str:
    """Render opcodes back to command characters. EXIT renders as nothing."""
    arr = np.asarray(ops, dtype=np.uint8)
    arr = arr[arr != Op.EXIT]
    return _SYMBOLS[arr].tobytes().decode('ascii')
