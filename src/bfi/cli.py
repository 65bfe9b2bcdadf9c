from __future__ import annotations

import argparse
import sys
import time
from typing import List, Optional

from .api import RunConfig, open_streams, run
from .errors import BFError
from .state import RunResult, Tracer


def format_dump(result: RunResult, count: int, *, per_row: int = 8) -> str:
    values = [int(v) for v in result.cells[:count]]
    rows = []
    for i in range(0, len(values), per_row):
        offset = result.first_offset + i
        rows.append(f"{offset:6d}: " + " ".join(f"{v:3d}" for v in values[i:i + per_row]))
    return "\n".join(rows)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfi",
        description="Brainfuck interpreter with an unbounded tape.",
    )
    parser.add_argument("program", help="Program file to run")
    parser.add_argument("-i", "--input", metavar="FILE", help="Read program input from FILE instead of stdin")
    parser.add_argument("-o", "--output", metavar="FILE", help="Write program output to FILE instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Trace every compiler decision and executed opcode to stderr")
    parser.add_argument("--jit", action="store_true", help="Run with the numba kernel (ignored with --verbose)")
    parser.add_argument("--time", action="store_true", help="Print compile and execution timings to stderr")
    parser.add_argument("--dump", type=int, default=0, metavar="N", help="Print the first N visited cells after the run")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    tracer = Tracer(is_tracing=args.verbose, stream=sys.stderr)

    start = time.time()
    try:
        with open_streams(args.program, input_path=args.input, output_path=args.output, tracer=tracer) as (program_file, input_file, output_file):
            config = RunConfig(
                input=input_file,
                output=output_file,
                verbose=args.verbose,
                trace=sys.stderr,
                jit=args.jit,
            )
            result = run(iter(lambda: program_file.read(1 << 16), b''), config, tracer=tracer)
    except BFError as e:
        sys.stdout.flush()
        print(e, file=sys.stderr)
        return 1
    end = time.time()

    if args.time:
        print(f"\nExecution took {(end - start) * 1000:.2f} ms ({result.steps} steps)", file=sys.stderr)
    if args.dump > 0:
        print(format_dump(result, args.dump), file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
