from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


def _build_context(ops: str, pc: int, *, context: int = 8) -> str:
    start = max(0, pc - context)
    end = min(len(ops), pc + context + 1)
    window = ops[start:end]
    marker = ' ' * (pc - start) + '^'
    return f"  {start:6d} | {window}\n         | {marker}"


def _hint_for(message: str, *, kind: str) -> Optional[str]:
    msg = message.lower()
    if kind == 'brackets':
        if 'unopened' in msg:
            return 'Check for an extra "]" or a missing "[" before it.'
        if 'no matching' in msg:
            return 'Every "[" needs a closing "]" later in the program.'
        return None
    if kind == 'memory':
        if 'tape' in msg:
            return 'The program keeps moving the pointer in one direction. Check for a runaway [>] or [<] scan.'
        if 'program' in msg:
            return 'The program file is too large to load.'
        return None
    if kind == 'resource':
        if 'input' in msg or 'program' in msg:
            return 'Check that the file exists and is readable.'
        if 'output' in msg:
            return 'Check that the directory exists and is writable.'
        return None
    return None


@dataclass
class BFError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class UnbalancedBracketsError(BFError):
    pc: int
    context: str


@dataclass
class OutOfMemoryError(BFError):
    what: str


@dataclass
class ResourceError(BFError):
    role: str
    path: str


def make_bracket_error(*, message: str, ops: Optional[Sequence[int]], pc: int) -> UnbalancedBracketsError:
    ctx = ''
    if ops is not None:
        from .opcodes import disassemble

        ctx = _build_context(disassemble(ops), pc)
    hint = _hint_for(message, kind='brackets')
    ctx_block = f"\n{ctx}" if ctx else ""
    hint_block = f"\nHint: {hint}" if hint else ""
    return UnbalancedBracketsError(
        message=f"error: {message} (opcode {pc}){ctx_block}{hint_block}",
        pc=pc,
        context=ctx,
    )


def make_memory_error(*, message: str, what: str) -> OutOfMemoryError:
    hint = _hint_for(message, kind='memory')
    hint_block = f"\nHint: {hint}" if hint else ""
    return OutOfMemoryError(message=f"error: {message}{hint_block}", what=what)


def make_resource_error(*, role: str, path: str, reason: str = '') -> ResourceError:
    message = f"failed to open {role} file"
    hint = _hint_for(message, kind='resource')
    reason_block = f": {reason}" if reason else ""
    hint_block = f"\nHint: {hint}" if hint else ""
    return ResourceError(
        message=f"error: {message} {path!r}{reason_block}{hint_block}",
        role=role,
        path=path,
    )
