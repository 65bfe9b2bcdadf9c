
from .api import RunConfig, open_streams, run, run_file
from .engine import Engine
from .errors import BFError, OutOfMemoryError, ResourceError, UnbalancedBracketsError
from .opcodes import Op, OpcodeBuffer, compile, disassemble
from .stack import BracketStack
from .state import RunResult, Status, Tracer
from .tape import Tape

__all__ = [
    'Engine',
    'Op',
    'OpcodeBuffer',
    'compile',
    'disassemble',
    'Tape',
    'BracketStack',
    'Tracer',
    'Status',
    'RunResult',
    'RunConfig',
    'run',
    'run_file',
    'open_streams',
    'BFError',
    'UnbalancedBracketsError',
    'OutOfMemoryError',
    'ResourceError',
]
