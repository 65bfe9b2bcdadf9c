from __future__ import annotations

import contextlib
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, TextIO

from .engine import Engine
from .errors import make_resource_error
from .opcodes import Source, compile
from .state import RunResult, Tracer


@dataclass(frozen=True)
class RunConfig:
    """
    Settings for one run. With `verbose` set, trace lines go to `trace`, or to
    stderr when no stream is given.
    """

    input: Optional[BinaryIO] = None
    output: Optional[BinaryIO] = None
    verbose: bool = False
    trace: Optional[TextIO] = None
    jit: bool = False


def _trace_stream(verbose: bool, trace: Optional[TextIO]) -> Optional[TextIO]:
    if verbose and trace is None:
        return sys.stderr
    return trace


def run(source: Source, config: Optional[RunConfig] = None, *, tracer: Optional[Tracer] = None) -> RunResult:
    """Compile `source` and run it to completion. Errors abort the run and propagate."""
    config = RunConfig() if config is None else config
    if tracer is None:
        tracer = Tracer(is_tracing=config.verbose, stream=_trace_stream(config.verbose, config.trace))
    program = compile(source, tracer=tracer)
    engine = Engine(program, input=config.input, output=config.output, tracer=tracer)
    return engine.run(jit=config.jit)


def _open(path: str | Path, mode: str, *, role: str):
    try:
        return open(path, mode)
    except OSError as e:
        raise make_resource_error(role=role, path=str(path), reason=e.strerror or str(e)) from e


@contextlib.contextmanager
def open_streams(
    program_path: str | Path,
    *,
    input_path: str | Path | None = None,
    output_path: str | Path | None = None,
    tracer: Optional[Tracer] = None,
) -> Iterator[tuple]:
    """
    Open the program, input and output files, closing all of them on exit.

    Everything is opened before the caller runs anything, so a missing file
    means the interpreter is never invoked.
    """
    tracer = tracer if tracer is not None else Tracer()
    with contextlib.ExitStack() as stack:
        input_file = output_file = None
        if input_path is not None:
            tracer.add_trace(f"load: input source is {input_path}")
            input_file = stack.enter_context(_open(input_path, 'rb', role='input'))
        if output_path is not None:
            tracer.add_trace(f"load: output target is {output_path}")
            output_file = stack.enter_context(_open(output_path, 'wb', role='output'))
        tracer.add_trace(f"load: program is {program_path}")
        program_file = stack.enter_context(_open(program_path, 'rb', role='program'))
        yield program_file, input_file, output_file


def run_file(
    path: str | Path,
    *,
    input_path: str | Path | None = None,
    output_path: str | Path | None = None,
    verbose: bool = False,
    trace: Optional[TextIO] = None,
    jit: bool = False,
    input: Optional[BinaryIO] = None,
    output: Optional[BinaryIO] = None,
) -> RunResult:
    tracer = Tracer(is_tracing=verbose, stream=_trace_stream(verbose, trace))
    with open_streams(path, input_path=input_path, output_path=output_path, tracer=tracer) as (program_file, input_file, output_file):
        config = RunConfig(
            input=input_file if input_file is not None else input,
            output=output_file if output_file is not None else output,
            verbose=verbose,
            trace=trace,
            jit=jit,
        )
        return run(iter(lambda: program_file.read(1 << 16), b''), config, tracer=tracer)
