# tape.py
# Doubly infinite memory tape backed by a single growable list.
#
#   .---+----+---+----+---+----+---+----.
#   | 0 | -1 | 1 | -2 | 2 | -3 | 3 | -4 |   index on the tape
#   '---+----+---+----+---+----+---+----'
#     0   1    2   3    4   5    6   7      slot in the list


def slot(i):
    """Map a signed tape index to a non-negative list slot."""
    return 2 * i if i >= 0 else -2 * i - 1


def index(s):
    """Inverse of slot()."""
    return s // 2 if s % 2 == 0 else -(s + 1) // 2


class Tape:
    def __init__(self):
        self.cells = []

    def __getitem__(self, i):
        # reading never grows the list
        s = slot(i)
        return self.cells[s] if s < len(self.cells) else 0

    def __setitem__(self, i, value):
        s = slot(i)
        if s >= len(self.cells):
            self.cells.extend([0] * (s - len(self.cells) + 1))
        self.cells[s] = value

    def __len__(self): return len(self.cells)
