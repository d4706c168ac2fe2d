# solver/cp_isolate.py
import multiprocessing as mp
from typing import List, Tuple, Optional
import traceback

# Worker must be top-level (picklable on Windows spawn)
def _solve_worker(q, cells, border: int, pieces, max_seconds: float):
    try:
        from solver.cp_sat import try_pack_exact_cover  # import inside child
        from solver.grid import Grid
        ok, trace, reason = try_pack_exact_cover(Grid(cells, border), pieces, max_seconds)
        q.put(("ok", ok, [p.as_tuple() for p in trace], reason))
    except MemoryError:
        q.put(("err", False, [], "Child ran out of memory"))
    except Exception as e:
        q.put(("exc", False, [], f"{e}\n{traceback.format_exc()}"))

def run_cp_sat_isolated(grid, pieces, max_seconds: float) -> Tuple[bool, List[Tuple[int, int, int, int]], Optional[str], Optional[str]]:
    """
    Returns (ok, trace_tuples, reason, crash_note).
    crash_note is non-empty only if the child crashed/was killed/timed out.
    """
    ctx = mp.get_context("spawn")  # safest on Windows
    q = ctx.Queue()
    cells = [list(r) for r in grid.cells]
    p = ctx.Process(target=_solve_worker, args=(q, cells, grid.border, list(pieces), float(max_seconds)))
    p.daemon = True
    p.start()

    # Allow a small buffer beyond model time for teardown
    timeout = float(max_seconds) + 5.0
    try:
        tag, ok, trace, reason = q.get(timeout=timeout)
    except Exception:
        tag = None
    p.join(2.0)

    if p.is_alive():
        p.terminate()
        p.join(2.0)
        if tag is None:
            return False, [], "Stopped before solution (timebox)", "killed: timeout"

    if tag is None:
        if p.exitcode not in (0, None):
            return False, [], f"Stopped before solution (child exit {p.exitcode})", "child crashed"
        return False, [], "No result from child process", "no-result"

    if tag == "ok":
        return ok, trace, reason, None
    return False, [], reason, None
