import enum
from dataclasses import dataclass
from typing import Tuple


class Cell(enum.IntFlag):
    """Two independent occupancy layers packed into one cell value."""

    EMPTY = 0
    L0 = 1
    L1 = 2
    BOTH = 3


BLOCKED = int(Cell.BOTH)
LAYER_BITS: Tuple[int, int] = (int(Cell.L0), int(Cell.L1))
CELL_VALUES = frozenset(int(c) for c in Cell.__members__.values())


class ConsistencyError(RuntimeError):
    """Raised when the engine's own bookkeeping is violated."""


def popcount(value: int) -> int:
    return (value & 1) + (value >> 1)


def complement(value: int) -> int:
    # complement within the two layer bits
    return value ^ BLOCKED


@dataclass(frozen=True)
class Placement:
    piece: int
    orientation: int
    row: int
    col: int

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.piece, self.orientation, self.row, self.col)
