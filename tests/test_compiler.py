#!/usr/bin/env python3
"""
Test source-to-opcode compilation.
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import numpy as np
import pytest

from bfi import Op, OpcodeBuffer, Tracer, compile, disassemble
from bfi.errors import OutOfMemoryError


def test_comments_are_dropped():
    """Non-command bytes produce no opcodes."""
    assert list(compile("abc+xyz")) == list(compile("+"))
    assert list(compile("+")) == [Op.INCR_DATA, Op.EXIT]


def test_empty_source():
    ops = compile(b"")
    assert len(ops) == 1
    assert ops[0] == Op.EXIT


def test_all_commands_in_order():
    ops = compile("><+-.,[]")
    assert list(ops) == [
        Op.INCR_PTR, Op.DECR_PTR, Op.INCR_DATA, Op.DECR_DATA,
        Op.OUTPUT, Op.INPUT, Op.LOOP_START, Op.LOOP_END, Op.EXIT,
    ]


def test_exactly_one_exit():
    ops = compile("hello + world\n[ - ] \x00 done")
    assert int(np.count_nonzero(ops == Op.EXIT)) == 1
    assert ops[-1] == Op.EXIT


def test_non_ascii_bytes_dropped():
    """Bytes >= 128 never index the table, including UTF-8 continuation bytes."""
    source = bytes(range(128, 256)) + b"+" + "é→[]".encode('utf-8')
    assert disassemble(compile(source)) == "+[]"


def test_unbalanced_brackets_compile():
    """Bracket balance is checked at run time, not here."""
    assert disassemble(compile("[[[+")) == "[[[+"
    assert disassemble(compile("]")) == "]"


def test_compile_is_read_only():
    ops = compile("+-")
    with pytest.raises(ValueError):
        ops[0] = Op.OUTPUT


def test_chunked_source():
    chunks = [b"++ comment", "[>", b"+<-]", b""]
    assert disassemble(compile(iter(chunks))) == "++[>+<-]"
    assert list(compile(iter(chunks))) == list(compile(b"".join(c if isinstance(c, bytes) else c.encode() for c in chunks)))


def test_small_chunk_size_matches():
    source = "+[->+<]>." * 50
    assert list(compile(source, chunk_size=3)) == list(compile(source))


def test_buffer_doubles():
    tracer = Tracer(is_tracing=True)
    buf = OpcodeBuffer(capacity=15, tracer=tracer)
    buf.extend(np.full(14, Op.INCR_DATA, dtype=np.uint8))
    # 14 opcodes plus the sentinel still fit.
    assert buf.capacity == 15
    buf.extend(np.full(1, Op.INCR_DATA, dtype=np.uint8))
    assert buf.capacity == 30
    buf.extend(np.full(16, Op.INCR_DATA, dtype=np.uint8))
    assert buf.capacity == 60
    ops = buf.finish()
    assert len(ops) == 32
    assert "memory: resized program to 30" in tracer.lines
    assert "memory: resized program to 60" in tracer.lines


def test_buffer_rejects_extend_after_finish():
    buf = OpcodeBuffer()
    buf.finish()
    with pytest.raises(ValueError):
        buf.extend(np.array([Op.INCR_DATA], dtype=np.uint8))


def test_buffer_resize_failure(monkeypatch):
    buf = OpcodeBuffer(capacity=2)

    def fail(capacity, **kwargs):
        raise MemoryError()

    monkeypatch.setattr(np, 'zeros', fail)
    with pytest.raises(OutOfMemoryError) as info:
        buf.extend(np.array([Op.INCR_DATA] * 4, dtype=np.uint8))
    assert info.value.what == 'program'
    # Nothing was truncated into the old buffer.
    assert len(buf) == 0


def test_large_source():
    source = "+" * 100000 + "comment" * 1000
    ops = compile(source)
    assert len(ops) == 100001


def test_verbose_echoes_commands():
    tracer = Tracer(is_tracing=True)
    compile("a+b[c]d", tracer=tracer)
    assert "+[]" in tracer.lines
    assert "memory: program size is 3" in tracer.lines


def main():
    print("=== Compiler Tests ===\n")
    test_comments_are_dropped()
    test_empty_source()
    test_all_commands_in_order()
    test_exactly_one_exit()
    test_non_ascii_bytes_dropped()
    test_unbalanced_brackets_compile()
    test_chunked_source()
    test_small_chunk_size_matches()
    test_buffer_doubles()
    test_large_source()
    test_verbose_echoes_commands()
    print("✓ Compiler tests passed")


if __name__ == "__main__":
    main()
