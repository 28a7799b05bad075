"""
Turns a new frame into the ADD / DELETE / MOVE operations that bring the
display from its current layout to the frame, and applies those operations
to a display state.
"""

import numpy as np

from gridlib.display_state import Cell
from gridlib.errors import DimensionMismatch, InvalidCellValue, PoolExhausted
from gridlib.operations import CellOperation, OpType


def validate_bitmap(bitmap, rows=None, cols=None):
    """
    Check a frame and return it as a 2-D numpy array of 0/1.

    Args:
        bitmap: nested sequence or numpy array
        rows, cols: locked grid shape, or None to accept any non-empty shape

    Raises:
        DimensionMismatch: ragged, empty, non 2-D or wrongly sized frame
        InvalidCellValue: any value other than 0 or 1
    """
    try:
        arr = np.asarray(bitmap)
    except ValueError as e:
        raise DimensionMismatch(f"frame rows have different lengths: {e}") from e

    if arr.ndim != 2:
        raise DimensionMismatch(f"frame must be 2-D, got {arr.ndim} dimension(s)")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DimensionMismatch(f"frame must not be empty, got shape {arr.shape}")
    if rows is not None and arr.shape[0] != rows:
        raise DimensionMismatch(
            f"number of rows in frame ({arr.shape[0]}) does not match renderer ({rows})")
    if cols is not None and arr.shape[1] != cols:
        raise DimensionMismatch(
            f"number of cols in frame ({arr.shape[1]}) does not match renderer ({cols})")

    if arr.dtype.kind not in 'biuf':
        raise InvalidCellValue(f"frame values must be 0 or 1, got dtype {arr.dtype}")
    bad = ~np.isin(arr, (0, 1))
    if bad.any():
        r, c = np.argwhere(bad)[0]
        raise InvalidCellValue(f"invalid value {arr[r, c]!r} at ({r}, {c})")

    return arr.astype(np.uint8)


def diff(state, bitmap, pool):
    """
    Compute the operations that turn `state` into `bitmap`.

    Occupied coordinates that must empty are paired with empty coordinates
    that must fill, last-found first on both sides, and each pair becomes a
    MOVE. Leftovers become DELETEs (identity goes back to the pool) or ADDs
    (identity comes out of the pool). The pool is only touched once the
    whole change is known to fit.
    """
    arr = validate_bitmap(bitmap, state.rows, state.cols)

    unmatched_occupied = []
    unmatched_target = []
    for r in range(state.rows):
        for c in range(state.cols):
            cell = state.get(r, c)
            wanted = arr[r, c] == 1
            if cell is not None and not wanted:
                unmatched_occupied.append(cell)
            elif cell is None and wanted:
                unmatched_target.append((r, c))

    adds_needed = max(0, len(unmatched_target) - len(unmatched_occupied))
    if adds_needed > len(pool):
        raise PoolExhausted(
            f"frame needs {adds_needed} new identities but only {len(pool)} are free")

    operations = []
    while unmatched_occupied and unmatched_target:
        cell = unmatched_occupied.pop()
        r, c = unmatched_target.pop()
        operations.append(CellOperation.move(cell.identity, r, c, cell.row, cell.col))

    while unmatched_occupied:
        cell = unmatched_occupied.pop()
        pool.release(cell.identity)
        operations.append(CellOperation.delete(cell.identity, cell.row, cell.col))

    while unmatched_target:
        r, c = unmatched_target.pop()
        operations.append(CellOperation.add(pool.acquire(), r, c))

    return operations


def apply_operations(state, ops):
    """Return a copy of `state` with `ops` applied. The pool is not touched."""
    result = state.copy()
    for op in ops:
        if op.type is OpType.MOVE:
            result.clear(op.old_row, op.old_col)
            result.set(Cell(op.identity, op.row, op.col))
        elif op.type is OpType.ADD:
            result.set(Cell(op.identity, op.row, op.col))
        elif op.type is OpType.DELETE:
            result.clear(op.row, op.col)
    return result
