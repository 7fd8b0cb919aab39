# grid.py
# Fixed-size, mutable 2D cell store shared by the grid machines.
#
# Cells hold integers (character code points), so the same storage is read
# as code by the instruction pointer and as data by put/get style opcodes.
# What happens outside the stored extent is decided by a bounds policy
# object handed to the Grid, never by Python's own indexing rules.

import io
import logging

log = logging.getLogger(__name__)

WIDTH = 80
FILLER = ord(" ")


class FatalError(RuntimeError):
    """Unrecoverable program fault: the run ends with a non-zero status."""
    pass


class StrictBounds:
    """Any access outside the grid aborts the program."""

    def read(self, grid, coord):
        raise FatalError(f"read outside the grid at ({coord.x}, {coord.y})")

    def write(self, grid, coord, value):
        raise FatalError(f"write outside the grid at ({coord.x}, {coord.y})")

    def __repr__(self): return "StrictBounds()"


class SilentBounds:
    """Reads outside the grid see the filler value, writes are dropped."""

    def __init__(self, filler=FILLER):
        self.filler = filler

    def read(self, grid, coord):
        return self.filler

    def write(self, grid, coord, value):
        log.debug("dropped write of %d at (%d, %d)", value, coord.x, coord.y)

    def __repr__(self): return f"SilentBounds(filler={self.filler})"


class Grid:
    def __init__(self, rows, bounds=None):
        self.rows = rows
        self.bounds = bounds if bounds is not None else StrictBounds()

    @property
    def height(self): return len(self.rows)

    def width(self, y):
        if 0 <= y < len(self.rows):
            return len(self.rows[y])
        return 0

    def contains(self, coord):
        # negative indexes must never reach the lists
        x, y = coord
        return 0 <= y < len(self.rows) and 0 <= x < len(self.rows[y])

    def __getitem__(self, coord):
        if not self.contains(coord):
            return self.bounds.read(self, coord)
        x, y = coord
        return self.rows[y][x]

    def __setitem__(self, coord, value):
        if not self.contains(coord):
            self.bounds.write(self, coord, value)
            return
        x, y = coord
        self.rows[y][x] = value

    def read(self, coord): return self[coord]

    def write(self, coord, value): self[coord] = value

    def __repr__(self):
        return f"Grid({self.height} rows, bounds={self.bounds!r})"


def load_grid(source, width=WIDTH, filler=" ", bounds=None):
    """Build a Grid from program text.

    `source` is a string or any iterable of lines (an open text file works).
    Line-end characters are trimmed, nothing else. Each line becomes one row,
    cut or padded with `filler` to exactly `width` cells. No rows are added
    beyond the ones in the source.
    """
    if isinstance(source, str):
        source = io.StringIO(source)
    pad = ord(filler)
    rows = []
    for line in source:
        line = line.rstrip("\r\n")
        row = [ord(ch) for ch in line[:width]]
        row.extend([pad] * (width - len(row)))
        rows.append(row)
    return Grid(rows, bounds)
