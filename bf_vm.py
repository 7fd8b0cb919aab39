#!/usr/bin/env python3
# bf_vm.py - Brainfuck machine: linear program, signed 8-bit tape
# Cells wrap like a two's-complement byte (127 + 1 -> -128). Any character
# outside the eight commands is a comment.

import logging
import sys

from grid import FatalError
from grid_vm import read_byte
from tape import Tape

log = logging.getLogger(__name__)


def wrap8(n):
    return (n + 0x80) % 0x100 - 0x80


class BrainfuckVM:
    def __init__(self, program, inp=None, out=None):
        self.program = program
        self.ip = 0         # Instruction pointer
        self.mp = 0         # Memory pointer
        self.tape = Tape()

        self.inp = inp
        self.out = out if out is not None else sys.stdout
        self.cycles = 0
        self.trace = log.isEnabledFor(logging.DEBUG)

        self.ops = {
            ">": BrainfuckVM.right,
            "<": BrainfuckVM.left,
            "+": BrainfuckVM.increment,
            "-": BrainfuckVM.decrement,
            ".": BrainfuckVM.output,
            ",": BrainfuckVM.input,
            "[": BrainfuckVM.jump_right,
            "]": BrainfuckVM.jump_left,
        }

    def finished(self):
        return self.ip >= len(self.program)

    def cycle(self):
        op = self.program[self.ip]
        if self.trace:
            log.debug("ip=%d %r mp=%d cell=%d", self.ip, op, self.mp, self.tape[self.mp])
        fn = self.ops.get(op)
        if fn is None:
            self.ip += 1    # comment
        else:
            fn(self)
        self.cycles += 1

    def run(self, max_cycles=None):
        try:
            while not self.finished():
                if max_cycles is not None and self.cycles >= max_cycles:
                    raise FatalError(f"cycle limit of {max_cycles} reached")
                self.cycle()
        except FatalError as e:
            self.out.flush()
            print("ERR:", e, file=sys.stderr)
            raise SystemExit(1)
        self.out.flush()

    # ====== Commands ======
    def right(self):
        self.mp += 1; self.ip += 1

    def left(self):
        self.mp -= 1; self.ip += 1

    def increment(self):
        self.tape[self.mp] = wrap8(self.tape[self.mp] + 1); self.ip += 1

    def decrement(self):
        self.tape[self.mp] = wrap8(self.tape[self.mp] - 1); self.ip += 1

    def output(self):
        self.out.write(chr(self.tape[self.mp] & 0xFF)); self.ip += 1

    def input(self):
        """Store the next input byte; end of input stores 0."""
        self.out.flush()
        self.tape[self.mp] = wrap8(read_byte(self.inp))
        self.ip += 1

    def jump_right(self):
        """Skip past the matching ] when the current cell is 0."""
        if self.tape[self.mp] != 0:
            self.ip += 1; return
        depth = 1
        while depth:
            self.ip += 1
            if self.ip >= len(self.program):
                raise FatalError("unmatched [")
            c = self.program[self.ip]
            if c == "[": depth += 1
            elif c == "]": depth -= 1
        self.ip += 1

    def jump_left(self):
        """Go back to the matching [ when the current cell is not 0."""
        if self.tape[self.mp] == 0:
            self.ip += 1; return
        depth = 1
        while depth:
            self.ip -= 1
            if self.ip < 0:
                raise FatalError("unmatched ]")
            c = self.program[self.ip]
            if c == "]": depth += 1
            elif c == "[": depth -= 1
        # lands on the [, which re-tests the cell next cycle


if __name__ == "__main__":
    with open(sys.argv[1], encoding="latin-1") as f:
        BrainfuckVM(f.read()).run()
