from enum import Enum
from typing import NamedTuple, Optional


class OpType(Enum):
    ADD = "add"
    DELETE = "delete"
    MOVE = "move"


class CellOperation(NamedTuple):
    """One change to the grid. old_row/old_col are only set for MOVE."""
    type: OpType
    identity: str
    row: int
    col: int
    old_row: Optional[int] = None
    old_col: Optional[int] = None

    @classmethod
    def add(cls, identity, row, col):
        return cls(OpType.ADD, identity, row, col)

    @classmethod
    def delete(cls, identity, row, col):
        return cls(OpType.DELETE, identity, row, col)

    @classmethod
    def move(cls, identity, row, col, old_row, old_col):
        return cls(OpType.MOVE, identity, row, col, old_row, old_col)


def summarize(ops):
    """Count operations per type."""
    counts = {'add': 0, 'delete': 0, 'move': 0}
    for op in ops:
        counts[op.type.value] += 1
    return counts
