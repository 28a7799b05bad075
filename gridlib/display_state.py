import numpy as np

from gridlib.errors import PoolExhausted


class Cell:
    """An identity parked on one grid coordinate."""

    __slots__ = ('identity', 'row', 'col')

    def __init__(self, identity, row, col):
        self.identity = identity
        self.row = row
        self.col = col

    def __eq__(self, other):
        if not isinstance(other, Cell):
            return NotImplemented
        return (self.identity, self.row, self.col) == (other.identity, other.row, other.col)

    def __repr__(self):
        return f"Cell({self.identity!r}, {self.row}, {self.col})"


class IdentityPool:
    """Stack of identities that are not on the grid right now.

    The last identity released is the first one handed out again. No
    attempt is made to hand out an identity that was parked close to
    where it is going next.
    """

    def __init__(self, identities=()):
        self._free = list(identities)

    @classmethod
    def fresh(cls, size):
        return cls(str(i) for i in range(size))

    def acquire(self):
        if not self._free:
            raise PoolExhausted("no free identities left in pool")
        return self._free.pop()

    def release(self, identity):
        self._free.append(identity)

    def __len__(self):
        return len(self._free)

    def __contains__(self, identity):
        return identity in self._free

    def __iter__(self):
        return iter(list(self._free))


class DisplayState:
    """Which identity sits on which coordinate of a rows x cols grid."""

    def __init__(self, rows, cols):
        self.rows = rows
        self.cols = cols
        self._grid = [[None] * cols for _ in range(rows)]

    @property
    def shape(self):
        return (self.rows, self.cols)

    def get(self, row, col):
        return self._grid[row][col]

    def set(self, cell):
        self._grid[cell.row][cell.col] = cell

    def clear(self, row, col):
        self._grid[row][col] = None

    def occupied(self):
        """Occupied cells in row-major order."""
        for row in self._grid:
            for cell in row:
                if cell is not None:
                    yield cell

    def occupied_count(self):
        return sum(1 for _ in self.occupied())

    def identities(self):
        return [cell.identity for cell in self.occupied()]

    def copy(self):
        clone = DisplayState(self.rows, self.cols)
        for cell in self.occupied():
            clone.set(Cell(cell.identity, cell.row, cell.col))
        return clone

    def to_bitmap(self):
        bitmap = np.zeros((self.rows, self.cols), dtype=np.uint8)
        for cell in self.occupied():
            bitmap[cell.row, cell.col] = 1
        return bitmap
