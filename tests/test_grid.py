import itertools

import pytest

from models import CELL_VALUES, ConsistencyError
from solver.grid import Grid
from tiles import DEFAULT_TILES, Tile, create_group

from tests.data import L0_TILE, L1_TILE, cells_of


def _reference_can_place(grid, row, col, tile):
    if tile.color != (row + col) % 2:
        return False
    return all(
        grid.cells[row + i][col + j] & tile.data[i][j] == 0
        for i in range(3)
        for j in range(3)
    )


def _assert_invariants(grid):
    assert all(v in CELL_VALUES for row in grid.cells for v in row)
    assert all(grid.cells[r][c] == 3 for r, c in grid.frame())


def test_blank_grid_has_blocked_frame_and_empty_interior():
    grid = Grid.blank(9, 9, 2)
    _assert_invariants(grid)
    assert sum(1 for _ in grid.interior()) == 25
    assert grid.interior_bits() == 50
    assert grid.filled_bits() == 0
    assert not grid.is_complete()


def test_from_rows_forces_frame_to_blocked():
    rows = [[0] * 6 for _ in range(6)]
    grid = Grid.from_rows(rows, 1)
    _assert_invariants(grid)
    assert rows[0][0] == 0  # input is copied


def test_can_place_checks_parity_then_overlap():
    grid = Grid.blank(7, 7, 2)
    assert grid.can_place(2, 2, L0_TILE)
    assert not grid.can_place(2, 3, L0_TILE)
    grid.place(2, 2, L0_TILE)
    assert not grid.can_place(2, 2, L0_TILE)
    assert grid.can_place(2, 2, L1_TILE)


def test_can_place_rejects_border_overlap_and_out_of_range_anchor():
    bar = Tile.from_pattern(0, [[1, 1, 1], [0, 0, 0]])
    grid = Grid.blank(7, 7, 2)
    assert grid.can_place(4, 2, bar)       # empty footprint rows may hang over the frame
    assert not grid.can_place(2, 4, bar)   # reaches column 5, part of the frame
    assert not grid.can_place(-1, 1, bar)
    assert not grid.can_place(5, 5, bar)


def test_can_place_matches_definition_for_every_anchor():
    grid = Grid.blank(9, 9, 2)
    grid.place(2, 2, DEFAULT_TILES[0])
    for tile in create_group(DEFAULT_TILES[1]):
        for row, col in itertools.product(range(7), range(7)):
            assert grid.can_place(row, col, tile) == _reference_can_place(grid, row, col, tile)


def test_place_then_unplace_restores_exact_state():
    grid = Grid.blank(9, 9, 2)
    grid.place(2, 2, DEFAULT_TILES[0])
    before = cells_of(grid)
    for tile in create_group(DEFAULT_TILES[4]):
        for row, col in itertools.product(range(7), range(7)):
            if grid.can_place(row, col, tile):
                grid.place(row, col, tile)
                _assert_invariants(grid)
                grid.unplace(row, col, tile)
                assert cells_of(grid) == before


def test_place_onto_occupied_bits_is_a_fault():
    grid = Grid.blank(7, 7, 2)
    grid.place(2, 2, L0_TILE)
    before = cells_of(grid)
    with pytest.raises(ConsistencyError):
        grid.place(2, 2, L0_TILE)
    assert cells_of(grid) == before


def test_unplace_missing_bits_is_a_fault():
    grid = Grid.blank(7, 7, 2)
    grid.place(2, 2, L0_TILE)
    with pytest.raises(ConsistencyError):
        grid.unplace(2, 2, L1_TILE)
    grid.unplace(2, 2, L0_TILE)
    assert grid.cells[2][2] == 0


def test_unplace_clears_only_the_tile_bits():
    grid = Grid.blank(7, 7, 2)
    grid.place(2, 2, L0_TILE)
    grid.place(2, 2, L1_TILE)
    assert grid.cells[2][2] == 3
    grid.unplace(2, 2, L0_TILE)
    assert grid.cells[2][2] == 2


def test_copy_is_independent():
    grid = Grid.blank(7, 7, 2)
    other = grid.copy()
    other.place(2, 2, L0_TILE)
    assert grid.cells[2][2] == 0
    assert other != grid
