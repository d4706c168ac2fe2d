# solver/selector.py
from typing import Optional, Tuple

from models import LAYER_BITS, popcount

Target = Tuple[int, int, int]  # (row, col, layer bit)


def cell_score(grid, row: int, col: int, bit: int) -> int:
    cells = grid.cells
    return (
        popcount(cells[row][col] ^ bit)
        + popcount(cells[row - 1][col])
        + popcount(cells[row + 1][col])
        + popcount(cells[row][col - 1])
        + popcount(cells[row][col + 1])
    )


def find_most_constrained_cell(grid) -> Optional[Target]:
    """Pick the open (cell, bit) with the densest occupied neighbourhood.

    Interior cells are scanned row-major with L0 before L1; the first strict
    maximum wins. Returns ``None`` once every interior bit is set.
    """
    best: Optional[Target] = None
    best_score = -1
    cells = grid.cells
    for r, c in grid.interior():
        value = cells[r][c]
        for bit in LAYER_BITS:
            if value & bit:
                continue
            score = cell_score(grid, r, c, bit)
            if score > best_score:
                best_score = score
                best = (r, c, bit)
    return best


__all__ = ["find_most_constrained_cell", "cell_score"]
