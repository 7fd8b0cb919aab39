#!/usr/bin/env python3
# befunge_vm.py - Befunge-93 machine on top of GridVM
# Stack cells are signed 32-bit. Missing operands read as 0, except for
# p and g, which abort the run when the stack is short.

import sys

from coord import Coord, Direction
from grid import FatalError, SilentBounds
from grid_vm import GridVM

QUOTE = ord('"')


def wrap32(n):
    return (n + 0x80000000) % 0x100000000 - 0x80000000


def trunc_div(b, a):
    """b / a rounded towards zero."""
    if a == 0:
        raise FatalError("division by zero")
    q = abs(b) // abs(a)
    return q if (a < 0) == (b < 0) else -q


def trunc_mod(b, a):
    """Remainder of trunc_div, carrying the sign of b."""
    if a == 0:
        raise FatalError("modulo by zero")
    return b - a * trunc_div(b, a)


class BefungeVM(GridVM):
    default_bounds = SilentBounds

    def _install_kernel(self):
        # ----- Flow control -----
        self.add_fn(">", lambda vm: setattr(vm, "dir", Direction.RIGHT))
        self.add_fn("<", lambda vm: setattr(vm, "dir", Direction.LEFT))
        self.add_fn("^", lambda vm: setattr(vm, "dir", Direction.UP))
        self.add_fn("v", lambda vm: setattr(vm, "dir", Direction.DOWN))
        self.add_fn("?", lambda vm: setattr(vm, "dir", Direction.random(vm.rng)))

        # Pop a value; zero goes right/down, anything else left/up
        def RIGHT_IF(vm): vm.dir = Direction.RIGHT if vm.pop() == 0 else Direction.LEFT
        def DOWN_IF(vm):  vm.dir = Direction.DOWN if vm.pop() == 0 else Direction.UP
        self.add_fn("_", RIGHT_IF)
        self.add_fn("|", DOWN_IF)

        def STRING(vm):
            # Push every cell up to the closing quote; the implicit step
            # after this handler moves past it.
            vm.step()
            while True:
                if not vm.grid.contains(vm.ptr):
                    raise FatalError(f"unterminated string, left the grid at ({vm.ptr.x}, {vm.ptr.y})")
                c = vm.grid[vm.ptr]
                if c == QUOTE:
                    break
                vm.push(c)
                vm.step()
        self.add_fn('"', STRING)

        self.add_fn("#", lambda vm: vm.step())     # bridge
        self.add_fn("@", lambda vm: vm.quit())

        # ----- Stack -----
        def DUP(vm): v = vm.pop(); vm.push(v); vm.push(v)
        def SWAP(vm): a = vm.pop(); b = vm.pop(); vm.push(a); vm.push(b)
        self.add_fn(":", DUP)
        self.add_fn("\\", SWAP)
        self.add_fn("$", lambda vm: vm.pop())

        for d in "0123456789":
            self.add_fn(d, lambda vm, n=int(d): vm.push(n))

        # ----- Arithmetic: pop a, pop b, push b op a -----
        def binary(fn):
            def op(vm):
                a = vm.pop(); b = vm.pop()
                vm.push(wrap32(fn(b, a)))
            return op
        self.add_fn("+", binary(lambda b, a: b + a))
        self.add_fn("-", binary(lambda b, a: b - a))
        self.add_fn("*", binary(lambda b, a: b * a))
        self.add_fn("/", binary(trunc_div))
        self.add_fn("%", binary(trunc_mod))
        self.add_fn("`", binary(lambda b, a: 1 if b > a else 0))
        self.add_fn("!", lambda vm: vm.push(1 if vm.pop() == 0 else 0))

        # ----- Self-modifying code -----
        # Befunge-93 order: y is on top, then x (then v for p)
        def PUT(vm):
            vm.need(3, "p")
            y = vm.pop(); x = vm.pop(); v = vm.pop()
            vm.grid[Coord(x, y)] = v
        def GET(vm):
            vm.need(2, "g")
            y = vm.pop(); x = vm.pop()
            vm.push(vm.grid[Coord(x, y)])
        self.add_fn("p", PUT)
        self.add_fn("g", GET)

        # ----- I/O -----
        self.add_fn(".", lambda vm: vm.emit(str(vm.pop()) + " "))
        self.add_fn(",", lambda vm: vm.emit(chr(vm.pop() & 0xFF)))

        def ASK_NUM(vm):
            vm.emit("Input a number: \n")
            vm.push(vm.read_byte())
        self.add_fn("&", ASK_NUM)
        self.add_fn("~", lambda vm: vm.push(vm.read_byte()))


# Run a program file directly: python befunge_vm.py prog.bf
if __name__ == "__main__":
    with open(sys.argv[1], encoding="utf-8") as f:
        BefungeVM.from_source(f).run()
