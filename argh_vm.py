#!/usr/bin/env python3
# argh_vm.py - Argh! machine on top of GridVM
#
# Lower-case letters act on the cell below the pointer, upper-case on the
# cell above. Stack opcodes do nothing when the stack is empty. The grid is
# strict: touching a cell outside it ends the run.

import sys

from coord import Direction
from grid import FatalError, StrictBounds
from grid_vm import GridVM

BANG = ord("!")

DOWN, UP = Direction.DOWN, Direction.UP


class ArghVM(GridVM):
    default_bounds = StrictBounds

    def _install_kernel(self):
        # ----- Flow control -----
        for ch, d in (("h", Direction.LEFT), ("j", Direction.DOWN),
                      ("k", Direction.UP), ("l", Direction.RIGHT)):
            self.add_fn(ch, lambda vm, d=d: setattr(vm, "dir", d))
            self.add_fn(ch.upper(), lambda vm, d=d: vm.jump(d))

        def RIGHT_TURN(vm):
            if vm.S and vm.S[-1] > 0: vm.dir = vm.dir.turned_right()
        def LEFT_TURN(vm):
            if vm.S and vm.S[-1] < 0: vm.dir = vm.dir.turned_left()
        self.add_fn("x", RIGHT_TURN)
        self.add_fn("X", LEFT_TURN)
        self.add_fn("q", lambda vm: vm.quit())

        # ----- Stack -----
        def DUP(vm):
            if vm.S: vm.push(vm.S[-1])
        def DROP(vm):
            if vm.S: vm.S.pop()
        self.add_fn("d", DUP)
        self.add_fn("D", DROP)

        for ch, d in (("s", DOWN), ("S", UP)):
            self.add_fn(ch, lambda vm, d=d: vm.push(vm.cell(d)))

        def ADD(vm, d):
            if vm.S: vm.S[-1] += vm.cell(d)
        def REDUCE(vm, d):
            if vm.S: vm.S[-1] -= vm.cell(d)
        # f/F pop the stored value, per the Argh! reference ("fetch (pop)")
        def FETCH(vm, d):
            if vm.S: vm.grid[vm.ptr + d] = vm.S.pop()
        for fn, lo in ((ADD, "a"), (REDUCE, "r"), (FETCH, "f")):
            self.add_fn(lo, lambda vm, fn=fn: fn(vm, DOWN))
            self.add_fn(lo.upper(), lambda vm, fn=fn: fn(vm, UP))

        # ----- I/O -----
        def PRINT(vm, d): vm.emit(chr(vm.cell(d) & 0xFF))
        def READ(vm, d): vm.grid[vm.ptr + d] = vm.read_byte()
        def EOF(vm, d): vm.grid[vm.ptr + d] = 0
        for fn, lo in ((PRINT, "p"), (READ, "g"), (EOF, "e")):
            self.add_fn(lo, lambda vm, fn=fn: fn(vm, DOWN))
            self.add_fn(lo.upper(), lambda vm, fn=fn: fn(vm, UP))

        self.add_fn("#", ArghVM.sha_bang)

    def jump(self, direction):
        """Head `direction` and slide to the next cell equal to the top of stack.

        The search starts on the current cell, so a match here means no move.
        """
        self.dir = direction
        if not self.S:
            return
        target = self.S[-1]
        while True:
            if not self.grid.contains(self.ptr):
                raise FatalError(f"jump found no {target} before leaving the grid at ({self.ptr.x}, {self.ptr.y})")
            if self.grid[self.ptr] == target:
                break
            self.step()

    def sha_bang(self):
        # '#' at the origin followed by '!' turns the first line into a
        # comment by heading down. Anywhere else it is a no-op.
        if self.ptr.is_origin() and self.cell(Direction.RIGHT) == BANG:
            self.dir = Direction.DOWN


if __name__ == "__main__":
    with open(sys.argv[1], encoding="utf-8") as f:
        ArghVM.from_source(f).run()
