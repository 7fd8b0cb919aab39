# coord.py
# Coordinates and compass directions for the grid machines.

from collections import namedtuple
from enum import Enum


class Direction(Enum):
    LEFT = (-1, 0)
    DOWN = (0, 1)
    UP = (0, -1)
    RIGHT = (1, 0)

    @property
    def dx(self): return self.value[0]

    @property
    def dy(self): return self.value[1]

    def turned_right(self):
        return _RIGHT_TURN[self]

    def turned_left(self):
        return _LEFT_TURN[self]

    @classmethod
    def random(cls, rng):
        """Uniform pick among the four compass directions."""
        return rng.choice(COMPASS)


COMPASS = (Direction.LEFT, Direction.DOWN, Direction.RIGHT, Direction.UP)

_RIGHT_TURN = {
    Direction.LEFT: Direction.UP,
    Direction.DOWN: Direction.LEFT,
    Direction.UP: Direction.RIGHT,
    Direction.RIGHT: Direction.DOWN,
}
_LEFT_TURN = {v: k for k, v in _RIGHT_TURN.items()}


class Coord(namedtuple("Coord", "x y")):
    """A grid cell. Adding a Direction gives the neighbouring cell.

    No clamping or wrapping happens here: moving left of column 0 gives
    x == -1, and the grid's bounds policy decides what that means.
    """
    __slots__ = ()

    def __add__(self, other):
        if isinstance(other, Direction):
            return Coord(self.x + other.dx, self.y + other.dy)
        return NotImplemented

    def is_origin(self):
        return self.x == 0 and self.y == 0


ORIGIN = Coord(0, 0)


def advance(coord, direction):
    return coord + direction
