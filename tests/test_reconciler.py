import numpy as np
import pytest

from gridlib.display_state import DisplayState, IdentityPool
from gridlib.errors import DimensionMismatch, InvalidCellValue, PoolExhausted
from gridlib.operations import CellOperation, OpType, summarize
from gridlib.reconciler import apply_operations, diff, validate_bitmap


def render(state, pool, bitmap):
    ops = diff(state, bitmap, pool)
    return apply_operations(state, ops), ops


def check_invariants(state, pool):
    cells = list(state.occupied())
    identities = [cell.identity for cell in cells]
    assert len(identities) == len(set(identities))
    assert len({(cell.row, cell.col) for cell in cells}) == len(cells)
    assert not set(identities) & set(pool)
    assert len(cells) + len(pool) == state.rows * state.cols


def test_render_from_empty_fills_every_one():
    state = DisplayState(3, 3)
    pool = IdentityPool.fresh(9)
    bitmap = [[1, 0, 1], [0, 1, 0], [1, 1, 0]]

    state, ops = render(state, pool, bitmap)

    assert all(op.type is OpType.ADD for op in ops)
    assert state.occupied_count() == 5
    assert len(pool) == 4
    assert state.to_bitmap().tolist() == bitmap
    check_invariants(state, pool)


def test_same_frame_twice_is_a_no_op():
    state = DisplayState(2, 3)
    pool = IdentityPool.fresh(6)
    bitmap = [[1, 1, 0], [0, 0, 1]]

    state, _ = render(state, pool, bitmap)
    _, ops = render(state, pool, bitmap)

    assert ops == []


def test_single_cell_moves_across_grid():
    state = DisplayState(2, 2)
    pool = IdentityPool.fresh(4)

    state, ops = render(state, pool, [[1, 0], [0, 0]])
    assert ops == [CellOperation.add('3', 0, 0)]

    state, ops = render(state, pool, [[0, 0], [0, 1]])
    assert ops == [CellOperation.move('3', 1, 1, 0, 0)]
    assert state.get(0, 0) is None
    assert state.get(1, 1).identity == '3'
    assert len(pool) == 3


def test_untouched_cell_keeps_identity():
    state = DisplayState(1, 3)
    pool = IdentityPool.fresh(3)
    state, _ = render(state, pool, [[1, 1, 0]])
    middle = state.get(0, 1).identity
    first = state.get(0, 0).identity

    state, ops = render(state, pool, [[0, 1, 1]])

    assert ops == [CellOperation.move(first, 0, 2, 0, 0)]
    assert state.get(0, 1).identity == middle


def test_clearing_full_row_returns_identities():
    state = DisplayState(1, 2)
    pool = IdentityPool.fresh(2)
    state, _ = render(state, pool, [[1, 1]])
    assert len(pool) == 0

    state, ops = render(state, pool, [[0, 0]])

    assert [op.type for op in ops] == [OpType.DELETE, OpType.DELETE]
    assert len(pool) == 2
    assert state.occupied_count() == 0


def test_operation_count_is_minimal():
    state = DisplayState(2, 4)
    pool = IdentityPool.fresh(8)
    state, _ = render(state, pool, [[1, 1, 1, 0], [0, 0, 0, 0]])

    # three cells must empty, two must fill
    state, ops = render(state, pool, [[0, 0, 0, 1], [1, 0, 0, 0]])

    assert summarize(ops) == {'add': 0, 'delete': 1, 'move': 2}
    check_invariants(state, pool)


def test_wrong_shape_leaves_state_alone():
    state = DisplayState(2, 2)
    pool = IdentityPool.fresh(4)
    state, _ = render(state, pool, [[1, 0], [0, 1]])
    before = state.to_bitmap().copy()

    with pytest.raises(DimensionMismatch):
        diff(state, [[1, 0], [0, 1], [1, 1]], pool)

    assert (state.to_bitmap() == before).all()
    assert len(pool) == 2


@pytest.mark.parametrize('bitmap', [
    [[1, 0], [1]],
    [],
    [[]],
    [1, 0, 1],
])
def test_malformed_frames_are_dimension_errors(bitmap):
    with pytest.raises(DimensionMismatch):
        validate_bitmap(bitmap)


@pytest.mark.parametrize('bitmap', [
    [[1, 2]],
    [[0, -1]],
    [[0.5, 1]],
    [['a', 'b']],
])
def test_values_other_than_zero_or_one_are_rejected(bitmap):
    state = DisplayState(1, 2)
    pool = IdentityPool.fresh(2)
    with pytest.raises(InvalidCellValue):
        diff(state, bitmap, pool)
    assert len(pool) == 2


def test_boolean_frames_are_accepted():
    arr = validate_bitmap(np.array([[True, False]]))
    assert arr.tolist() == [[1, 0]]


def test_pool_exhaustion_does_not_touch_pool():
    state = DisplayState(1, 3)
    pool = IdentityPool(['a'])

    with pytest.raises(PoolExhausted):
        diff(state, [[1, 1, 0]], pool)

    assert list(pool) == ['a']


def test_random_sequences_conserve_identities():
    rng = np.random.default_rng(1234)
    rows, cols = 6, 7
    state = DisplayState(rows, cols)
    pool = IdentityPool.fresh(rows * cols)

    for _ in range(200):
        density = rng.random()
        bitmap = (rng.random((rows, cols)) < density).astype(int)
        state, ops = render(state, pool, bitmap)
        check_invariants(state, pool)
        assert (state.to_bitmap() == bitmap).all()
