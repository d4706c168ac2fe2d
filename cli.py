import argparse
import logging
import os
import time
from typing import List, Optional

from io_files import load_puzzle, solution_payload, write_solution
from solver.orchestrator import solve_pieces
from tiles import parse_puzzle

LOGGER = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Pack dual-layer tiles into a bordered grid and write the placement trace."
    )
    parser.add_argument("--puzzle", default="", help="puzzle JSON file (default: built-in ten-piece puzzle)")
    parser.add_argument("--out", default="", help="solution JSON path (default: BP_SOLUTION_OUT)")
    parser.add_argument("--node-limit", type=int, default=None, help="stop after N committed placements (0 = no limit)")
    parser.add_argument("--dedupe", action="store_true", help="skip repeated orientations within a piece's orbit")
    parser.add_argument("--cross-check", action="store_true", help="confirm 'no solution' with the CP-SAT model")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        if args.puzzle:
            pieces, grid, err = load_puzzle(args.puzzle)
        else:
            pieces, grid, err = parse_puzzle(None)
        if err:
            LOGGER.error("%s", err)
            return 1

        start_time = time.time()
        ok, trace, final_grid, strategy, reason, meta = solve_pieces(
            pieces,
            grid,
            node_limit=args.node_limit,
            dedupe=True if args.dedupe else None,
            cross_check=True if args.cross_check else None,
        )
        elapsed = time.time() - start_time

        payload = solution_payload(ok, trace, final_grid, strategy=strategy, reason=reason, pieces=pieces)
        path = write_solution(payload, os.getcwd(), args.out or None)

        nodes = (meta.get("backtracking") or {}).get("nodes", 0)
        if ok:
            LOGGER.info("solved via %s: %s placements, %s nodes, %.2fs", strategy, len(trace), f"{nodes:,}", elapsed)
        else:
            LOGGER.info("no solution (%s): %s nodes, %.2fs", reason, f"{nodes:,}", elapsed)
        if meta.get("cross_check"):
            LOGGER.info("cross-check: %s", meta["cross_check"])
        LOGGER.info("wrote %s", path)
        return 0 if ok else 1
    except Exception:
        LOGGER.exception("Failed to solve puzzle")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
