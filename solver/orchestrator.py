# Orchestrator: backtracking search with optional CP-SAT cross-check / rescue
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import CFG
from models import Placement
from progress import (
    log_attempt_detail, set_coverage_pct, set_elapsed, set_message,
    set_phase, set_piece_count, set_search_state, set_status,
)
from solver.backtrack import backtrack, replay
from solver.cp_isolate import run_cp_sat_isolated
from solver.grid import Grid
from tiles import Piece, build_pieces, parse_puzzle

LOGGER = logging.getLogger(__name__)

Result = Tuple[bool, List[Placement], Optional[Grid], str, Optional[str], Dict[str, Any]]


def _coverage_pct(grid: Grid) -> float:
    total = grid.interior_bits()
    return (100.0 * grid.filled_bits() / total) if total else 100.0


def _coerce_pieces(pieces: Sequence[Any]) -> List[Piece]:
    if all(isinstance(p, Piece) for p in pieces):
        return list(pieces)
    return build_pieces(pieces)


def _run_cp_sat(grid: Grid, pieces: Sequence[Piece], seconds: float) -> Tuple[bool, List[Placement], Optional[str], Dict[str, Any]]:
    ok, raw_trace, reason, crash_note = run_cp_sat_isolated(grid, pieces, seconds)
    meta: Dict[str, Any] = {"ok": bool(ok), "reason": reason}
    if crash_note:
        meta["crash"] = crash_note
    trace = [Placement(*t) for t in raw_trace]
    return bool(ok), trace, reason, meta


def solve_pieces(
    pieces: Sequence[Any],
    grid: Grid,
    *,
    node_limit: Optional[int] = None,
    dedupe: Optional[bool] = None,
    cross_check: Optional[bool] = None,
    cp_sat_rescue: Optional[bool] = None,
) -> Result:
    """
    Solve one packing. ``grid`` is the initial board and is left untouched.
    Returns: (ok, trace, final_grid, strategy, reason, meta)
    Strategy is ``backtracking`` or ``cp_sat`` for solved runs.
    """
    t0 = time.time()
    pieces = _coerce_pieces(pieces)
    node_limit = CFG.NODE_LIMIT if node_limit is None else node_limit
    dedupe = CFG.DEDUPE_ORIENTATIONS if dedupe is None else dedupe
    cross_check = CFG.CROSS_CHECK if cross_check is None else cross_check
    cp_sat_rescue = CFG.CP_SAT_RESCUE if cp_sat_rescue is None else cp_sat_rescue

    work = grid.copy()
    used = [False] * len(pieces)
    trace: List[Placement] = []
    meta: Dict[str, Any] = {
        "pieces": len(pieces),
        "board": {"rows": grid.rows, "cols": grid.cols, "border": grid.border},
        "node_limit": int(node_limit or 0),
        "dedupe": bool(dedupe),
    }

    log_attempt_detail(
        "Run setup",
        pieces=len(pieces),
        board=f"{grid.rows}x{grid.cols}",
        border=grid.border,
        node_limit=int(node_limit or 0),
        dedupe=int(bool(dedupe)),
    )
    set_status("Solving")
    set_piece_count(len(pieces))
    set_phase("backtrack")
    set_coverage_pct(_coverage_pct(work))

    def _on_progress(info: Dict[str, object]) -> None:
        set_search_state(info["nodes"], info["depth"], _coverage_pct(work))

    ok = backtrack(
        work,
        pieces,
        used,
        trace,
        dedupe=bool(dedupe),
        node_limit=node_limit,
        on_progress=_on_progress,
        progress_every=int(getattr(CFG, "PROGRESS_EVERY", 0)),
    )
    stats = dict(getattr(backtrack, "last_stats", {}) or {})
    meta["backtracking"] = stats
    set_search_state(stats.get("nodes", 0), len(trace), _coverage_pct(work))
    LOGGER.info(
        "Backtracking %s after %s nodes (max depth %s)",
        stats.get("reason"), stats.get("nodes"), stats.get("max_depth"),
    )

    if ok:
        set_elapsed(time.time() - t0)
        meta["elapsed"] = round(time.time() - t0, 3)
        return True, trace, work, "backtracking", None, meta

    if stats.get("limit_hit"):
        reason = f"Stopped at node limit ({node_limit})"
        if not cp_sat_rescue:
            set_message(reason)
            meta["elapsed"] = round(time.time() - t0, 3)
            return False, [], None, "error", reason, meta
        set_phase("cp_sat")
        cp_ok, cp_trace, cp_reason, cp_meta = _run_cp_sat(grid, pieces, CFG.TIME_CP_SAT)
        meta["cp_sat"] = cp_meta
        meta["elapsed"] = round(time.time() - t0, 3)
        set_elapsed(time.time() - t0)
        if cp_ok:
            final = replay(cp_trace, pieces, grid.copy())
            return True, cp_trace, final, "cp_sat", None, meta
        return False, [], None, "error", f"{reason}; CP-SAT: {cp_reason}", meta

    reason = "No solution"
    if cross_check:
        set_phase("cross_check")
        cp_ok, cp_trace, cp_reason, cp_meta = _run_cp_sat(grid, pieces, CFG.TIME_CP_SAT)
        meta["cp_sat"] = cp_meta
        if cp_ok:
            # The exhaustive search missed a packing the model found.
            LOGGER.error("CP-SAT found a packing the search reported as exhausted: %s", cp_trace)
            meta["cross_check"] = "disagree"
        elif cp_reason and cp_reason.startswith("Proven infeasible"):
            meta["cross_check"] = "confirmed"
        else:
            meta["cross_check"] = "inconclusive"
    set_message(reason)
    set_elapsed(time.time() - t0)
    meta["elapsed"] = round(time.time() - t0, 3)
    return False, [], None, "exhausted", reason, meta


def solve_orchestrator(payload: Any = None, **kwargs: Any) -> Result:
    """
    Parse a puzzle payload (or use the default puzzle) and solve it.
    Returns: (ok, trace, final_grid, strategy, reason, meta)
    """
    pieces, grid, err = parse_puzzle(payload)
    if err:
        set_status("Error")
        return False, [], None, "error", err, {}
    return solve_pieces(pieces, grid, **kwargs)


__all__ = ["solve_pieces", "solve_orchestrator"]
