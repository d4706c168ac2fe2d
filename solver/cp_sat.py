import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import LAYER_BITS, Placement
from solver.grid import Grid

LOGGER = logging.getLogger(__name__)

Option = Tuple[int, int, int, int]  # (piece, orientation, row, col)


def build_options(grid: Grid, pieces: Sequence) -> List[Option]:
    """Every placement that is legal on ``grid`` as it stands.

    Only the first occurrence of each distinct orientation is kept; repeats in
    an orbit would add interchangeable variables.
    """
    options: List[Option] = []
    for pi, piece in enumerate(pieces):
        for oi in piece.distinct:
            tile = piece.orbit[oi]
            for r in range(grid.rows - 2):
                for c in range(grid.cols - 2):
                    if grid.can_place(r, c, tile):
                        options.append((pi, oi, r, c))
    return options


def try_pack_exact_cover(
    grid: Grid,
    pieces: Sequence,
    max_seconds: float = 30.0,
) -> Tuple[bool, List[Placement], Optional[str]]:
    """Exact-cover model over every open (cell, layer bit) of ``grid``.

    Each piece is used at most once and every open interior bit is covered
    exactly once. ``grid`` is not modified.
    """
    t0 = time.time()
    meta: Dict[str, object] = {"pieces": len(pieces)}
    setattr(try_pack_exact_cover, "last_meta", meta)

    options = build_options(grid, pieces)
    meta["options"] = len(options)

    cover: Dict[Tuple[int, int, int], List[int]] = defaultdict(list)
    for k, (pi, oi, r, c) in enumerate(options):
        for i, j, v in pieces[pi].orbit[oi].cells:
            for bit in LAYER_BITS:
                if v & bit:
                    cover[(r + i, c + j, bit)].append(k)

    open_bits = [
        (r, c, bit)
        for r, c in grid.interior()
        for bit in LAYER_BITS
        if not grid.cells[r][c] & bit
    ]
    meta["open_bits"] = len(open_bits)
    if not open_bits:
        return True, [], None
    for key in open_bits:
        if not cover.get(key):
            meta["uncoverable"] = key
            return False, [], "Proven infeasible: an open cell cannot be covered"

    m = _cp.CpModel()
    x = [m.NewBoolVar(f"x_{pi}_{oi}_{r}_{c}") for (pi, oi, r, c) in options]

    by_piece: Dict[int, List[int]] = defaultdict(list)
    for k, (pi, _oi, _r, _c) in enumerate(options):
        by_piece[pi].append(k)
    for ks in by_piece.values():
        m.AddAtMostOne([x[k] for k in ks])

    for key in open_bits:
        m.AddExactlyOne([x[k] for k in cover[key]])

    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = float(max_seconds)
    solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
    solver.parameters.num_search_workers = int(getattr(CFG, "WORKERS", 1))
    solver.parameters.random_seed = int(getattr(CFG, "RANDOM_SEED", 0))
    solver.parameters.log_search_progress = False

    res = solver.Solve(m)
    meta["status"] = solver.StatusName(res)
    meta["elapsed"] = round(time.time() - t0, 3)
    LOGGER.info("CP-SAT finished: %s in %.2fs (%s options)", meta["status"], meta["elapsed"], len(options))

    if res in (_cp.OPTIMAL, _cp.FEASIBLE):
        trace = [
            Placement(pi, oi, r, c)
            for k, (pi, oi, r, c) in enumerate(options)
            if solver.BooleanValue(x[k])
        ]
        trace.sort(key=lambda p: p.piece)
        return True, trace, None
    if res == _cp.INFEASIBLE:
        return False, [], "Proven infeasible under current constraints"
    if res == _cp.MODEL_INVALID:
        return False, [], "Model invalid (configuration error)"
    return False, [], "Stopped before solution (timebox)"


__all__ = ["build_options", "try_pack_exact_cover"]
