# solver/grid.py
from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from models import BLOCKED, ConsistencyError, complement, popcount


class Grid:
    """Occupancy matrix with a permanently blocked border frame.

    Every cell holds a 2-bit layer mask. The frame is set to ``BLOCKED`` once
    and never written again, so any placement hanging over the edge of the
    interior collides with it through the ordinary overlap test.
    """

    def __init__(self, cells: List[List[int]], border: int):
        self.cells = cells
        self.border = border
        self.rows = len(cells)
        self.cols = len(cells[0]) if cells else 0

    @classmethod
    def blank(cls, rows: int, cols: int, border: int) -> "Grid":
        cells = [
            [
                BLOCKED if (r < border or c < border or r >= rows - border or c >= cols - border) else 0
                for c in range(cols)
            ]
            for r in range(rows)
        ]
        return cls(cells, border)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]], border: int) -> "Grid":
        grid = cls([list(r) for r in rows], border)
        for r, c in grid.frame():
            grid.cells[r][c] = BLOCKED
        return grid

    def copy(self) -> "Grid":
        return Grid([list(r) for r in self.cells], self.border)

    def __eq__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        return self.border == other.border and self.cells == other.cells

    def __repr__(self) -> str:
        return f"Grid({self.rows}x{self.cols}, border={self.border})"

    # ---------------- regions ----------------

    def interior(self) -> Iterator[Tuple[int, int]]:
        b = self.border
        for r in range(b, self.rows - b):
            for c in range(b, self.cols - b):
                yield r, c

    def frame(self) -> Iterator[Tuple[int, int]]:
        b = self.border
        for r in range(self.rows):
            for c in range(self.cols):
                if r < b or c < b or r >= self.rows - b or c >= self.cols - b:
                    yield r, c

    def interior_bits(self) -> int:
        return 2 * sum(1 for _ in self.interior())

    def filled_bits(self) -> int:
        return sum(popcount(self.cells[r][c]) for r, c in self.interior())

    def is_complete(self) -> bool:
        return all(self.cells[r][c] == BLOCKED for r, c in self.interior())

    # ---------------- placement ----------------

    def can_place(self, row: int, col: int, tile) -> bool:
        if (row + col) % 2 != tile.color:
            return False
        # Python would wrap negative indices instead of failing
        if row < 0 or col < 0 or row + 3 > self.rows or col + 3 > self.cols:
            return False
        cells = self.cells
        for i, j, v in tile.cells:
            if cells[row + i][col + j] & v:
                return False
        return True

    def place(self, row: int, col: int, tile) -> None:
        cells = self.cells
        for i, j, v in tile.cells:
            if cells[row + i][col + j] & v:
                raise ConsistencyError(
                    f"place at ({row},{col}) overlaps occupied bits in cell ({row + i},{col + j})"
                )
        for i, j, v in tile.cells:
            cells[row + i][col + j] |= v

    def unplace(self, row: int, col: int, tile) -> None:
        cells = self.cells
        for i, j, v in tile.cells:
            if cells[row + i][col + j] & v != v:
                raise ConsistencyError(
                    f"unplace at ({row},{col}) clears bits missing from cell ({row + i},{col + j})"
                )
        for i, j, v in tile.cells:
            cells[row + i][col + j] &= complement(v)


__all__ = ["Grid"]
