from __future__ import annotations

from numba import njit

from .opcodes import Op

JIT_BATCH_STEPS = 1 << 20

# Plain ints so numba folds them as compile-time constants.
OP_EXIT = int(Op.EXIT)
OP_INCR_PTR = int(Op.INCR_PTR)
OP_DECR_PTR = int(Op.DECR_PTR)
OP_INCR_DATA = int(Op.INCR_DATA)
OP_DECR_DATA = int(Op.DECR_DATA)
OP_OUTPUT = int(Op.OUTPUT)
OP_INPUT = int(Op.INPUT)
OP_LOOP_START = int(Op.LOOP_START)
OP_LOOP_END = int(Op.LOOP_END)

STOP_EXIT = 0
STOP_OUTPUT = 1
STOP_INPUT = 2
STOP_GROW_LEFT = 3
STOP_GROW_RIGHT = 4
STOP_STACK_FULL = 5
STOP_UNBALANCED = 6
STOP_MAX_STEPS = 7


@njit(cache=True)
def jit_run(program, cells, pos, low, high, stack, sp, pc, max_steps):
    """
    Execute opcodes until something needs the Python side.

    The kernel never performs I/O and never reallocates. It stops *before*
    executing an instruction that needs either (OUTPUT, INPUT, a move off the
    arena, a push onto a full stack, an unresolvable bracket) and before EXIT,
    leaving pc on that instruction so the caller can execute it.

    Returns:
        (pc, pos, low, high, sp, stop_reason, steps)
    """
    cell_count = len(cells)
    stack_size = len(stack)
    steps = 0
    stop_reason = STOP_MAX_STEPS

    while steps < max_steps:
        command = program[pc]

        if command == OP_INCR_PTR:
            if pos + 1 >= cell_count:
                stop_reason = STOP_GROW_RIGHT
                break
            pos += 1
            if pos > high:
                high = pos
        elif command == OP_DECR_PTR:
            if pos == 0:
                stop_reason = STOP_GROW_LEFT
                break
            pos -= 1
            if pos < low:
                low = pos
        elif command == OP_INCR_DATA:
            cells[pos] = (cells[pos] + 1) & 255
        elif command == OP_DECR_DATA:
            cells[pos] = (cells[pos] + 255) & 255
        elif command == OP_LOOP_START:
            if cells[pos] == 0:
                depth = 1
                scan = pc
                while depth > 0:
                    scan += 1
                    code = program[scan]
                    if code == OP_LOOP_START:
                        depth += 1
                    elif code == OP_LOOP_END:
                        depth -= 1
                    elif code == OP_EXIT:
                        break
                if depth > 0:
                    stop_reason = STOP_UNBALANCED
                    break
                pc = scan
            else:
                if sp >= stack_size:
                    stop_reason = STOP_STACK_FULL
                    break
                stack[sp] = pc
                sp += 1
        elif command == OP_LOOP_END:
            if sp == 0:
                stop_reason = STOP_UNBALANCED
                break
            if cells[pos] != 0:
                pc = stack[sp - 1]
            else:
                sp -= 1
        elif command == OP_OUTPUT:
            stop_reason = STOP_OUTPUT
            break
        elif command == OP_INPUT:
            stop_reason = STOP_INPUT
            break
        else:
            stop_reason = STOP_EXIT
            break

        pc += 1
        steps += 1

    return pc, pos, low, high, sp, stop_reason, steps
