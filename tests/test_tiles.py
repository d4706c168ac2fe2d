import pytest

from models import ConsistencyError
from tiles import (
    DEFAULT_TILES,
    Piece,
    Tile,
    build_pieces,
    create_group,
    parse_board,
    parse_pieces,
    parse_puzzle,
)


def test_from_pattern_reserves_empty_last_row():
    t = Tile.from_pattern(1, [[1, 2, 3], [0, 1, 0]])
    assert t.color == 1
    assert t.data == ((1, 2, 3), (0, 1, 0), (0, 0, 0))
    assert t.cells == ((0, 0, 1), (0, 1, 2), (0, 2, 3), (1, 1, 1))


def test_rotate_moves_columns_into_rows():
    t = Tile.from_pattern(0, [[1, 2, 3], [0, 1, 0]])
    r = t.rotate()
    assert r.color == 0
    assert r.data == ((0, 0, 1), (0, 1, 2), (0, 0, 3))


def test_rotate_four_times_is_identity():
    for t in DEFAULT_TILES:
        assert t.rotate().rotate().rotate().rotate() == t


def test_flip_exchanges_layers_between_rows():
    t = Tile.from_pattern(0, [[1, 1, 1], [0, 3, 0]])
    f = t.flip()
    assert f.color == 1
    assert f.data == ((2, 3, 2), (0, 1, 0), (0, 0, 0))


def test_flip_twice_restores_color_and_four_times_restores_tile():
    for t in DEFAULT_TILES:
        twice = t.flip().flip()
        assert twice.color == t.color
        assert twice.flip().flip() == t


def test_flip_preserves_bit_count():
    for t in DEFAULT_TILES:
        assert t.flip().bit_count() == t.bit_count()


def test_flip_rejects_occupied_last_row():
    t = Tile.from_pattern(0, [[1, 1, 1], [0, 3, 0]]).rotate()
    assert any(t.data[2])
    with pytest.raises(ConsistencyError):
        t.flip()


def test_create_group_order_and_size():
    t = DEFAULT_TILES[0]
    group = create_group(t)
    assert len(group) == 16
    assert group[0] == t
    assert group[1] == t.rotate()
    assert group[4] == t.flip()
    assert group[6] == t.flip().rotate().rotate()
    assert group[8] == t.flip().flip()
    assert [g.color for g in group] == [t.color] * 4 + [1 - t.color] * 4 + [t.color] * 4 + [1 - t.color] * 4
    assert t.create_group() == group


def test_symmetric_tile_keeps_duplicates_in_orbit():
    slab = Tile.from_pattern(0, [[3, 3, 3], [3, 3, 3]])
    piece = Piece.build(0, slab)
    assert len(piece.orbit) == 16
    assert piece.orbit[0] == piece.orbit[8]
    assert piece.distinct == tuple(range(8))
    assert list(piece.orientation_ids()) == list(range(16))
    assert piece.orientation_ids(dedupe=True) == tuple(range(8))


def test_build_pieces_names_and_indices():
    pieces = build_pieces(DEFAULT_TILES, ["first"])
    assert len(pieces) == 10
    assert pieces[0].name == "first"
    assert pieces[3].name == "P3"
    assert [p.index for p in pieces] == list(range(10))


def test_default_pieces_fill_five_by_five_interior_exactly():
    assert sum(t.bit_count() for t in DEFAULT_TILES) == 2 * 5 * 5


def test_parse_pieces_accepts_objects_and_pairs():
    tiles, names, err = parse_pieces([
        {"color": 0, "rows": [[1, 1, 1], [0, 3, 0]], "name": "tee"},
        [1, [["2", 0, 0], [3, 1, 1]]],
        {"color": "1", "pattern": [[0, 0, 1], [1, 1, 3]]},
    ])
    assert err is None
    assert names == ["tee", "P1", "P2"]
    assert tiles[1] == Tile.from_pattern(1, [[2, 0, 0], [3, 1, 1]])
    assert tiles[2].color == 1


@pytest.mark.parametrize(
    "raw, fragment",
    [
        ([], "no pieces"),
        ([{"color": 2, "rows": [[1, 0, 0], [0, 0, 0]]}], "color"),
        ([{"color": 0, "rows": [[1, 0], [0, 0]]}], "2 rows of 3"),
        ([{"color": 0, "rows": [[4, 0, 0], [0, 0, 0]]}], "0..3"),
        ([{"color": 0, "rows": [[0, 0, 0], [0, 0, 0]]}], "empty"),
        (["tile"], "expected"),
    ],
)
def test_parse_pieces_rejects_malformed(raw, fragment):
    tiles, names, err = parse_pieces(raw)
    assert tiles == []
    assert err and fragment in err


def test_parse_board_defaults_to_blank_nine_by_nine():
    grid, err = parse_board(None)
    assert err is None
    assert (grid.rows, grid.cols, grid.border) == (9, 9, 2)
    assert all(grid.cells[r][c] == 0 for r, c in grid.interior())


def test_parse_board_rejects_open_border_and_missing_interior():
    cells = [[3] * 5 for _ in range(5)]
    cells[2][2] = 0
    grid, err = parse_board({"cells": cells, "border": 2})
    assert err is None and grid.cells[2][2] == 0

    cells[0][0] = 0
    grid, err = parse_board({"cells": cells, "border": 2})
    assert grid is None and "border cell (0,0)" in err

    _, err = parse_board({"rows": 4, "cols": 4, "border": 2})
    assert "no interior" in err
    _, err = parse_board({"rows": 4, "cols": 4, "border": 0})
    assert "at least 1" in err


def test_parse_puzzle_falls_back_to_default_pieces():
    pieces, grid, err = parse_puzzle(None)
    assert err is None
    assert len(pieces) == 10
    assert all(len(p.orbit) == 16 for p in pieces)
    assert grid.rows == 9


def test_parse_puzzle_reports_section():
    pieces, grid, err = parse_puzzle({"pieces": [{"color": 5, "rows": [[1, 0, 0], [0, 0, 0]]}]})
    assert pieces is None and grid is None
    assert err.startswith("Bad pieces:")
