# solver/backtrack.py
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from models import Placement
from solver.grid import Grid
from solver.selector import Target, find_most_constrained_cell

LOGGER = logging.getLogger(__name__)

Candidate = Tuple[int, int, int, int]  # (piece, orientation, row, col)
ProgressFn = Callable[[Dict[str, object]], None]


def iter_candidates(
    grid: Grid,
    pieces: Sequence,
    used: List[bool],
    target: Target,
    *,
    dedupe: bool = False,
) -> Iterator[Candidate]:
    """Yield every legal placement covering ``target``.

    Order is piece, then orientation, then footprint cell (row-major). The
    generator is lazy: usage flags and ``can_place`` are read against the grid
    as it is when each candidate is reached, after the previous one has been
    rolled back.
    """
    row, col, bit = target
    for pi, piece in enumerate(pieces):
        if used[pi]:
            continue
        for oi in piece.orientation_ids(dedupe):
            tile = piece.orbit[oi]
            for i, j, v in tile.cells:
                if not v & bit:
                    continue
                r, c = row - i, col - j
                if grid.can_place(r, c, tile):
                    yield pi, oi, r, c


class _Frame:
    __slots__ = ("candidates", "committed")

    def __init__(self, candidates: Iterator[Candidate]):
        self.candidates = candidates
        self.committed: Optional[Candidate] = None


def backtrack(
    grid: Grid,
    pieces: Sequence,
    used: List[bool],
    trace: List[Placement],
    *,
    dedupe: bool = False,
    node_limit: Optional[int] = None,
    on_progress: Optional[ProgressFn] = None,
    progress_every: int = 0,
) -> bool:
    """Depth-first packing search.

    Returns True with the solution committed on ``grid`` and recorded in
    ``trace``. Returns False with ``grid``, ``used`` and ``trace`` exactly as
    they were passed in, either because the tree is exhausted or because the
    optional ``node_limit`` on committed placements was reached. Counters land
    on ``backtrack.last_stats``.
    """
    stats: Dict[str, object] = {
        "nodes": 0,
        "max_depth": 0,
        "limit_hit": False,
        "reason": None,
    }
    setattr(backtrack, "last_stats", dict(stats))

    limit = int(node_limit) if node_limit and int(node_limit) > 0 else None
    every = max(0, int(progress_every or 0))
    base_depth = len(trace)
    nodes = 0
    max_depth = 0

    def _rollback(frame: _Frame) -> None:
        pi, oi, r, c = frame.committed
        used[pi] = False
        grid.unplace(r, c, pieces[pi].orbit[oi])
        trace.pop()
        frame.committed = None

    def _finish(solved: bool, reason: Optional[str]) -> bool:
        stats.update({
            "nodes": nodes,
            "max_depth": max_depth,
            "reason": reason,
        })
        setattr(backtrack, "last_stats", dict(stats))
        return solved

    target = find_most_constrained_cell(grid)
    if target is None:
        return _finish(True, "solved")

    stack: List[_Frame] = [_Frame(iter_candidates(grid, pieces, used, target, dedupe=dedupe))]
    while stack:
        frame = stack[-1]
        if frame.committed is not None:
            _rollback(frame)

        cand = next(frame.candidates, None)
        if cand is None:
            stack.pop()
            continue

        if limit is not None and nodes >= limit:
            while stack:
                top = stack.pop()
                if top.committed is not None:
                    _rollback(top)
            stats["limit_hit"] = True
            LOGGER.info("Search stopped at node limit %s (max depth %s)", limit, max_depth)
            return _finish(False, "node_limit")

        pi, oi, r, c = cand
        grid.place(r, c, pieces[pi].orbit[oi])
        used[pi] = True
        trace.append(Placement(pi, oi, r, c))
        frame.committed = cand
        nodes += 1
        depth = len(trace) - base_depth
        if depth > max_depth:
            max_depth = depth

        if on_progress is not None and every and nodes % every == 0:
            on_progress({"nodes": nodes, "depth": depth, "max_depth": max_depth})

        target = find_most_constrained_cell(grid)
        if target is None:
            LOGGER.debug("Packing complete after %s nodes", nodes)
            return _finish(True, "solved")
        stack.append(_Frame(iter_candidates(grid, pieces, used, target, dedupe=dedupe)))

    return _finish(False, "exhausted")


def replay(trace: Sequence[Placement], pieces: Sequence, grid: Grid) -> Grid:
    """Apply ``trace`` to ``grid`` in order and return it."""
    for p in trace:
        grid.place(p.row, p.col, pieces[p.piece].orbit[p.orientation])
    return grid


__all__ = ["backtrack", "iter_candidates", "replay"]
