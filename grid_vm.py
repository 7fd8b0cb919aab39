# grid_vm.py
# Shared core of the 2D stack machines: state, opcode table, cycle loop.
# The concrete languages live in befunge_vm.py and argh_vm.py; each one
# fills the opcode table from its own _install_kernel().

import logging
import random
import sys

from coord import Direction, ORIGIN
from grid import FatalError, StrictBounds, WIDTH, load_grid

log = logging.getLogger(__name__)


class GridVM:
    # Bounds policy used by from_source() when the caller gives none
    default_bounds = StrictBounds

    def __init__(self, grid, inp=None, out=None, rng=None):
        self.grid = grid
        self.ptr = ORIGIN
        self.dir = Direction.RIGHT
        self.S = []     # Evaluation stack

        # Host I/O: bytes in (stdin when None), text out
        self.inp = inp
        self.out = out if out is not None else sys.stdout
        self.rng = rng if rng is not None else random.Random()

        self.cycles = 0
        self.trace = log.isEnabledFor(logging.DEBUG)

        # Opcode table: cell value -> handler(vm)
        self.ops = {}
        self._install_kernel()

    @classmethod
    def from_source(cls, source, width=WIDTH, bounds=None, **kwargs):
        if bounds is None:
            bounds = cls.default_bounds()
        return cls(load_grid(source, width=width, bounds=bounds), **kwargs)

    def _install_kernel(self):
        raise NotImplementedError

    # ====== Stack ======
    def push(self, x): self.S.append(x)

    def pop(self):
        # An empty stack reads as an endless supply of zeros
        return self.S.pop() if self.S else 0

    def need(self, n, what):
        if len(self.S) < n:
            raise FatalError(f"{what}: not enough elements in the stack")

    # ====== Opcode table ======
    def add_fn(self, ch, fn):
        self.ops[ord(ch)] = fn

    # ====== Pointer ======
    def step(self):
        self.ptr += self.dir

    def cell(self, direction):
        """Value of the neighbouring cell in `direction`."""
        return self.grid[self.ptr + direction]

    # ====== I/O ======
    def emit(self, text):
        self.out.write(text)

    def read_byte(self):
        """Next input byte, or 0 at end of input."""
        self.out.flush()
        return read_byte(self.inp)

    def quit(self):
        self.out.flush()
        raise SystemExit(0)

    # ====== Execution engine ======
    def cycle(self):
        # Code is only fetched from stored cells, whatever the bounds policy;
        # the policy covers data access (p/g style opcodes) alone.
        if not self.grid.contains(self.ptr):
            raise FatalError(f"instruction pointer outside the grid at ({self.ptr.x}, {self.ptr.y})")
        op = self.grid[self.ptr]
        if self.trace:
            log.debug("(%d, %d) %r dir=%s stack=%s", self.ptr.x, self.ptr.y,
                      _show(op), self.dir.name, self.S[-8:])
        fn = self.ops.get(op)
        if fn is not None:
            fn(self)
        self.step()
        self.cycles += 1

    def run(self, max_cycles=None):
        """Cycle until the program quits. Fatal faults end the process."""
        try:
            while True:
                if max_cycles is not None and self.cycles >= max_cycles:
                    raise FatalError(f"cycle limit of {max_cycles} reached")
                self.cycle()
        except FatalError as e:
            self._panic(e)

    def _panic(self, e):
        self.out.flush()
        log.debug("fatal at (%d, %d) after %d cycles", self.ptr.x, self.ptr.y, self.cycles)
        print("ERR:", e, file=sys.stderr)
        raise SystemExit(1)


def read_byte(inp=None):
    """One byte from `inp` (stdin when None) as an int, 0 at end of input."""
    if inp is None:
        inp = sys.stdin.buffer
    b = inp.read(1)
    if not b:
        return 0
    return ord(b) if isinstance(b, str) else b[0]


def _show(op):
    return chr(op) if 32 <= op < 127 else op
