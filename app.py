# app.py — JSON API around the packing orchestrator; progress no-cache
from __future__ import annotations
import os
import time
from typing import Any, Dict, Tuple

from flask import Flask, request, send_from_directory, jsonify, url_for

from solver.orchestrator import solve_orchestrator
from config import CFG
from io_files import solution_payload, write_solution

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_done, set_result_url,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_SOLUTION_FULL_PATH, SOLUTION_DIR, SOLUTION_FILENAME = _resolve_output_paths(
    CFG.SOLUTION_OUT, "solution.json"
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "strategy": "error",
    "reason": "No run yet",
    "trace": [],
    "grid": None,
    "elapsed_str": "0s",
    "solution_filename": SOLUTION_FILENAME,
}

app = Flask(__name__)


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress3":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _solver_overrides(like: Dict[str, Any]) -> Dict[str, Any]:
    """Pick per-request search knobs from the payload or the query string."""
    out: Dict[str, Any] = {}
    for key in ("node_limit",):
        raw = like.get(key, request.args.get(key))
        if raw not in (None, ""):
            try:
                out[key] = int(raw)
            except (TypeError, ValueError):
                pass
    for key in ("dedupe", "cross_check"):
        raw = like.get(key, request.args.get(key))
        if raw not in (None, ""):
            out[key] = str(raw).lower() in ("1", "true", "yes", "on")
    return out


def _store_result(payload: Dict[str, Any], t0: float) -> Dict[str, Any]:
    LAST_RESULT.clear()
    LAST_RESULT.update(payload)
    LAST_RESULT["elapsed_str"] = _fmt_elapsed(time.time() - t0)
    LAST_RESULT.setdefault("solution_filename", SOLUTION_FILENAME)
    set_result_url(url_for("result_latest"))
    return LAST_RESULT


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    progress_start()
    set_status("Solving")
    t0 = time.time()

    like = request.get_json(silent=True)
    if like is None:
        like = {}
    if not isinstance(like, dict):
        reason = "Bad puzzle: request body must be a JSON object"
        set_status("error"); set_done(False, reason=reason)
        return jsonify(_store_result(solution_payload(False, [], None, strategy="error", reason=reason), t0)), 400

    try:
        ok, trace, grid, strategy, reason, meta = solve_orchestrator(like, **_solver_overrides(like))
    except Exception as e:
        reason = f"orchestrator exception: {type(e).__name__}: {e}"
        app.logger.exception("Solve failed")
        set_status("error"); set_done(False, reason=reason)
        return jsonify(_store_result(solution_payload(False, [], None, strategy="error", reason=reason), t0)), 500

    if strategy == "error" and not meta:
        set_status("error"); set_done(False, reason=reason)
        return jsonify(_store_result(solution_payload(False, [], None, strategy=strategy, reason=reason), t0)), 400

    set_done(ok, reason=reason or strategy)
    payload = solution_payload(ok, trace, grid, strategy=strategy, reason=reason)
    payload["nodes"] = (meta.get("backtracking") or {}).get("nodes", 0)
    try:
        path = write_solution(payload, BASE_DIR)
        payload["solution_filename"] = os.path.basename(path) or SOLUTION_FILENAME
    except OSError:
        app.logger.warning("Could not write solution file", exc_info=True)
    return jsonify(_store_result(payload, t0))


@app.route("/result/latest")
def result_latest():
    return jsonify(LAST_RESULT)


@app.route("/download/solution")
def download_solution():
    return send_from_directory(SOLUTION_DIR, SOLUTION_FILENAME, as_attachment=True)


@app.route("/progress3")
def progress3():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
