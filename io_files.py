"""Helpers for reading puzzles from and writing solver outputs to disk."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import CFG
from models import Placement
from solver.grid import Grid
from tiles import Piece, describe_pieces, parse_puzzle


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def load_puzzle(path: str) -> Tuple[Optional[List[Piece]], Optional[Grid], Optional[str]]:
    """Read a JSON puzzle file; returns (pieces, grid, error)."""

    try:
        with open(path, "r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except OSError as e:
        return None, None, f"cannot read puzzle file: {e}"
    except ValueError as e:
        return None, None, f"puzzle file is not valid JSON: {e}"
    return parse_puzzle(payload)


def solution_payload(
    ok: bool,
    trace: Sequence[Placement],
    grid: Optional[Grid],
    *,
    strategy: str = "",
    reason: Optional[str] = None,
    pieces: Optional[Sequence[Piece]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ok": bool(ok),
        "strategy": strategy,
        "reason": reason,
        "trace": [list(p.as_tuple()) for p in trace],
        "grid": [list(r) for r in grid.cells] if grid is not None else None,
    }
    if pieces is not None:
        payload["pieces"] = describe_pieces(pieces)
    return payload


def write_solution(payload: Dict[str, Any], base_dir: str, out: Optional[str] = None) -> str:
    """Write the solution payload to ``out``, or to the configured JSON file."""

    path = _resolve_output_path(base_dir, out or CFG.SOLUTION_OUT, "solution.json")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
        f.write("\n")
    return path


__all__ = ["load_puzzle", "solution_payload", "write_solution"]
