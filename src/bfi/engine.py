from __future__ import annotations

import sys
from typing import BinaryIO, Optional

import numpy as np

from .errors import BFError, make_bracket_error
from .opcodes import Op
from .stack import BracketStack
from .state import RunResult, Status, Tracer
from .tape import Tape

INPUT_EOF = 0x0


def _printable(value: int) -> str:
    return chr(value) if 32 <= value < 127 else f"\\x{value:02x}"


class Engine:
    """
    Fetch-decode-execute loop over a compiled opcode array.

    One Engine is one run: it owns its tape and bracket stack, starts at pc 0
    and ends either HALTED (EXIT reached) or FAILED (an error was raised).

    Loop protocol:
    - LOOP_START on a zero cell scans forward, counting nesting depth, to the
      matching LOOP_END. On a nonzero cell it pushes its own pc.
    - LOOP_END on a nonzero cell jumps to the pc on top of the stack (so the
      next instruction is the first one of the loop body). On a zero cell it
      pops that entry.
    """

    def __init__(
        self,
        program: np.ndarray,
        *,
        input: Optional[BinaryIO] = None,
        output: Optional[BinaryIO] = None,
        tracer: Optional[Tracer] = None,
    ):
        self.program = program
        self.input = input
        self.output = output
        self.tracer = tracer if tracer is not None else Tracer()
        self.tape = Tape(tracer=self.tracer)
        self.brackets = BracketStack(ops=program)
        self.pc = 0
        self.steps = 0
        self.status = Status.RUNNING
        self.error: Optional[BFError] = None

    # ===== I/O =====

    def _input(self) -> BinaryIO:
        return self.input if self.input is not None else sys.stdin.buffer

    def _output(self) -> BinaryIO:
        return self.output if self.output is not None else sys.stdout.buffer

    def _read_byte(self) -> int:
        data = self._input().read(1)
        if not data:
            return INPUT_EOF
        return data[0]

    def _write_byte(self, value: int) -> None:
        self._output().write(bytes((value,)))

    # ===== Execution =====

    def _skip_loop(self) -> None:
        start = self.pc
        depth = 1
        while depth > 0:
            self.pc += 1
            op = self.program[self.pc]
            if op == Op.LOOP_START:
                depth += 1
            elif op == Op.LOOP_END:
                depth -= 1
            elif op == Op.EXIT:
                raise make_bracket_error(message='no matching bracket found for "["', ops=self.program, pc=start)

    def step(self) -> bool:
        """Execute the instruction at pc. Returns False once the run has halted."""
        if self.status is not Status.RUNNING:
            return False
        try:
            self._execute(int(self.program[self.pc]))
        except BFError as e:
            self.status = Status.FAILED
            self.error = e
            raise
        return self.status is Status.RUNNING

    def _execute(self, op: int) -> None:
        tape = self.tape
        trace = self.tracer.add_trace if self.tracer.is_tracing else None

        if op == Op.EXIT:
            self.status = Status.HALTED
            return

        self.steps += 1
        if op == Op.INCR_PTR:
            tape.move_right()
            if trace:
                trace("eval: increase pointer by one")
        elif op == Op.DECR_PTR:
            tape.move_left()
            if trace:
                trace("eval: decrease pointer by one")
        elif op == Op.INCR_DATA:
            tape.increment()
            if trace:
                trace(f"eval: increase storage by one to {tape.current()}")
        elif op == Op.DECR_DATA:
            tape.decrement()
            if trace:
                trace(f"eval: decrease storage by one to {tape.current()}")
        elif op == Op.OUTPUT:
            value = tape.current()
            self._write_byte(value)
            if trace:
                trace(f"eval: write output {_printable(value)}")
        elif op == Op.INPUT:
            value = self._read_byte()
            tape.set(value)
            if trace:
                trace(f"eval: read input {_printable(value)}")
        elif op == Op.LOOP_START:
            if tape.current() == 0:
                self._skip_loop()
                if trace:
                    trace(f"eval: jump to {self.pc}")
            else:
                self.brackets.push(self.pc)
                if trace:
                    trace("eval: start loop")
        elif op == Op.LOOP_END:
            if tape.current() != 0:
                self.pc = self.brackets.peek(self.pc)
                if trace:
                    trace(f"eval: jump to {self.pc}")
            else:
                self.brackets.pop(self.pc)
                if trace:
                    trace("eval: end loop")
        else:
            raise ValueError(f"Engine: unknown opcode {op} at {self.pc}")
        self.pc += 1

    def _run_jit(self) -> None:
        from .jit import JIT_BATCH_STEPS, STOP_MAX_STEPS, jit_run

        tape = self.tape
        stack = self.brackets
        while self.status is Status.RUNNING:
            pc, pos, low, high, sp, stop_reason, steps = jit_run(
                self.program, tape.cells, tape.pos, tape.low, tape.high,
                stack.items, stack.size, self.pc, JIT_BATCH_STEPS,
            )
            self.pc = int(pc)
            tape.seek(int(pos), int(low), int(high))
            stack.size = int(sp)
            self.steps += int(steps)
            if stop_reason != STOP_MAX_STEPS:
                # I/O, growth, bracket errors and EXIT are all handled by the Python path.
                self.step()

    def run(self, *, jit: bool = False) -> RunResult:
        """Run until EXIT. Raises UnbalancedBracketsError or OutOfMemoryError on failure."""
        try:
            if jit and not self.tracer.is_tracing:
                self._run_jit()
            else:
                while self.step():
                    pass
        finally:
            self._flush()
        return self.result()

    def _flush(self) -> None:
        output = self.output if self.output is not None else getattr(sys.stdout, 'buffer', None)
        if output is not None and not getattr(output, 'closed', False):
            output.flush()

    def result(self) -> RunResult:
        first_offset, cells = self.tape.snapshot()
        return RunResult(
            status=self.status,
            steps=self.steps,
            position=self.tape.position,
            first_offset=first_offset,
            cells=cells,
            program_size=len(self.program) - 1,
        )
