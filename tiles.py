# tiles.py — dual-layer tiles, their orbits, and the puzzle loader
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import CFG
from models import BLOCKED, CELL_VALUES, ConsistencyError, LAYER_BITS
from solver.grid import Grid

L0, L1 = LAYER_BITS
Rows = Tuple[Tuple[int, int, int], ...]

# ======= Static puzzle definition (color, 2x3 pattern) =======
DEFAULT_PIECE_DEFS: List[Tuple[int, List[List[int]]]] = [
    (0, [[1, 1, 1],
         [0, 3, 0]]),
    (0, [[3, 1, 1],
         [2, 0, 0]]),
    (1, [[2, 0, 0],
         [3, 1, 1]]),
    (1, [[3, 1, 0],
         [0, 1, 1]]),
    (1, [[0, 0, 1],
         [1, 1, 3]]),
    (1, [[1, 1, 3],
         [0, 1, 0]]),
    (0, [[0, 1, 0],
         [2, 3, 1]]),
    (1, [[1, 0, 0],
         [1, 3, 1]]),
    (0, [[0, 1, 3],
         [1, 1, 0]]),
    (1, [[1, 3, 0],
         [0, 1, 1]]),
]


@dataclass(frozen=True)
class Tile:
    color: int
    data: Rows
    # non-empty footprint cells as (i, j, value), row-major
    cells: Tuple[Tuple[int, int, int], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "cells",
            tuple((i, j, v) for i, row in enumerate(self.data) for j, v in enumerate(row) if v),
        )

    @classmethod
    def from_pattern(cls, color: int, rows: Sequence[Sequence[int]]) -> "Tile":
        """Build a canonical tile from a 2x3 pattern; the third row is left empty."""
        top, bottom = rows
        return cls(int(color), (tuple(top), tuple(bottom), (0, 0, 0)))

    def rotate(self) -> "Tile":
        d = self.data
        return Tile(self.color, tuple(tuple(d[2 - k][i] for k in range(3)) for i in range(3)))

    def flip(self) -> "Tile":
        """Turn the tile over, swapping which layer each of its first two rows occupies.

        Only defined while the reserved third row is empty.
        """
        d = self.data
        if any(d[2]):
            raise ConsistencyError(f"cannot flip a tile whose last row is occupied: {d!r}")
        row0 = tuple((d[1][c] & L0) | ((d[0][c] & L0) << 1) for c in range(3))
        row1 = tuple(((d[1][c] & L1) >> 1) | (d[0][c] & L1) for c in range(3))
        return Tile(1 - self.color, (row0, row1, (0, 0, 0)))

    def create_group(self) -> List["Tile"]:
        return create_group(self)

    def bit_count(self) -> int:
        return sum((v & 1) + (v >> 1) for _, _, v in self.cells)


def create_group(tile: Tile) -> List[Tile]:
    """Return the 16 orientations of ``tile`` in (flip, rotation) order.

    Orientation ``4 * flips + turns`` is ``tile`` flipped ``flips`` times and
    then rotated ``turns`` times. Symmetric tiles produce repeated entries;
    they are kept so orientation ids stay stable.
    """
    group: List[Tile] = []
    flipped = tile
    for flips in range(4):
        turned = flipped
        for _ in range(4):
            group.append(turned)
            turned = turned.rotate()
        if flips < 3:
            flipped = flipped.flip()
    return group


@dataclass(frozen=True)
class Piece:
    index: int
    tile: Tile
    orbit: Tuple[Tile, ...]
    distinct: Tuple[int, ...]
    name: str = ""

    @classmethod
    def build(cls, index: int, tile: Tile, name: Optional[str] = None) -> "Piece":
        orbit = tuple(create_group(tile))
        seen = set()
        distinct: List[int] = []
        for k, t in enumerate(orbit):
            if t not in seen:
                seen.add(t)
                distinct.append(k)
        return cls(index, tile, orbit, tuple(distinct), name or f"P{index}")

    def orientation_ids(self, dedupe: bool = False) -> Sequence[int]:
        return self.distinct if dedupe else range(len(self.orbit))


def build_pieces(tiles: Sequence[Tile], names: Optional[Sequence[str]] = None) -> List[Piece]:
    names = list(names or [])
    return [
        Piece.build(i, t, names[i] if i < len(names) else None)
        for i, t in enumerate(tiles)
    ]


DEFAULT_TILES: Tuple[Tile, ...] = tuple(Tile.from_pattern(c, rows) for c, rows in DEFAULT_PIECE_DEFS)


# ---------------- loader ----------------

def _to_int(x: Any) -> Optional[int]:
    if isinstance(x, bool):
        return None
    try:
        f = float(x)
    except (TypeError, ValueError):
        return None
    if f != int(f):
        return None
    return int(f)


def _int_matrix(raw: Any, n_rows: int, n_cols: int) -> Optional[List[List[int]]]:
    if not isinstance(raw, (list, tuple)) or len(raw) != n_rows:
        return None
    out: List[List[int]] = []
    for row in raw:
        if not isinstance(row, (list, tuple)) or len(row) != n_cols:
            return None
        vals = [_to_int(v) for v in row]
        if any(v is None for v in vals):
            return None
        out.append(vals)  # type: ignore[arg-type]
    return out


def parse_pieces(raw: Any) -> Tuple[List[Tile], List[str], Optional[str]]:
    """
    Return (tiles, names, error_message_or_None).
    Accepts a list of ``{"color": c, "rows": [[..],[..]]}`` dicts (``pattern``
    or ``data`` also work for the rows key) or ``[color, rows]`` pairs.
    """
    if not isinstance(raw, (list, tuple)) or not raw:
        return [], [], "no pieces given"

    tiles: List[Tile] = []
    names: List[str] = []
    for idx, item in enumerate(raw):
        name = ""
        if isinstance(item, dict):
            color = _to_int(item.get("color"))
            rows_raw = next(
                (item[k] for k in ("rows", "pattern", "data") if k in item),
                None,
            )
            name = str(item.get("name") or "")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            color = _to_int(item[0])
            rows_raw = item[1]
        else:
            return [], [], f"piece {idx}: expected an object or a [color, rows] pair"

        if color not in (0, 1):
            return [], [], f"piece {idx}: color must be 0 or 1"
        rows = _int_matrix(rows_raw, 2, 3)
        if rows is None:
            return [], [], f"piece {idx}: pattern must be 2 rows of 3 integers"
        if any(v not in CELL_VALUES for row in rows for v in row):
            return [], [], f"piece {idx}: cell values must be in 0..3"
        if not any(v for row in rows for v in row):
            return [], [], f"piece {idx}: pattern is empty"

        tiles.append(Tile.from_pattern(color, rows))
        names.append(name or f"P{idx}")
    return tiles, names, None


def parse_board(raw: Any) -> Tuple[Optional[Grid], Optional[str]]:
    """
    Return (grid, error_message_or_None).
    ``raw`` may be None (default blank board) or a dict with any of
    ``rows``, ``cols``, ``border`` and ``cells``.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return None, "board must be an object"

    cells_raw = raw.get("cells")
    if isinstance(cells_raw, list) and cells_raw and isinstance(cells_raw[0], (list, tuple)):
        shape = (len(cells_raw), len(cells_raw[0]))
    else:
        shape = (CFG.BOARD_ROWS, CFG.BOARD_COLS)
    n_rows = _to_int(raw.get("rows", shape[0]))
    n_cols = _to_int(raw.get("cols", shape[1]))
    border = _to_int(raw.get("border", CFG.BORDER))
    if n_rows is None or n_cols is None or border is None:
        return None, "board rows/cols/border must be integers"
    if border < 1:
        return None, "board border must be at least 1"
    if n_rows <= 2 * border or n_cols <= 2 * border:
        return None, "board has no interior inside its border"

    if cells_raw is None:
        return Grid.blank(n_rows, n_cols, border), None

    cells = _int_matrix(cells_raw, n_rows, n_cols)
    if cells is None:
        return None, f"board cells must be {n_rows} rows of {n_cols} integers"
    if any(v not in CELL_VALUES for row in cells for v in row):
        return None, "board cell values must be in 0..3"
    for r in range(n_rows):
        for c in range(n_cols):
            on_border = r < border or c < border or r >= n_rows - border or c >= n_cols - border
            if on_border and cells[r][c] != BLOCKED:
                return None, f"border cell ({r},{c}) must be {BLOCKED}"
    return Grid.from_rows(cells, border), None


def parse_puzzle(payload: Any) -> Tuple[Optional[List[Piece]], Optional[Grid], Optional[str]]:
    """Return (pieces, grid, error). Missing parts fall back to the default puzzle."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return None, None, "puzzle must be an object"

    if payload.get("pieces") is None:
        tiles, names = list(DEFAULT_TILES), []
    else:
        tiles, names, err = parse_pieces(payload.get("pieces"))
        if err:
            return None, None, f"Bad pieces: {err}"

    grid, err = parse_board(payload.get("board"))
    if err:
        return None, None, f"Bad board: {err}"
    return build_pieces(tiles, names), grid, None


def describe_pieces(pieces: Sequence[Piece]) -> List[Dict[str, Any]]:
    return [
        {"name": p.name, "color": p.tile.color, "rows": [list(r) for r in p.tile.data[:2]]}
        for p in pieces
    ]


__all__ = [
    "Tile", "Piece", "create_group", "build_pieces",
    "DEFAULT_PIECE_DEFS", "DEFAULT_TILES",
    "parse_pieces", "parse_board", "parse_puzzle", "describe_pieces",
]
