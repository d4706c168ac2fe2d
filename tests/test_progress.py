import importlib
import json
import os
import time

from progress import reset, set_status, set_done, set_result_url, set_search_state, snapshot


def test_set_done_no_args_defaults_to_solved():
    reset()
    set_done()
    snap = snapshot()
    assert snap["status"] == "Solved"
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["result_url"] == ""


def test_set_done_failure_keeps_message():
    reset()
    set_status("error")
    set_done(False, reason="No solution")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["message"] == "No solution"
    assert snap["done"] is True
    assert snap["ok"] is False


def test_set_result_url_tracks_navigation_target():
    reset()
    set_result_url("/result/latest")
    snap = snapshot()
    assert snap["result_url"] == "/result/latest"
    assert snap["done"] is False


def test_reset_increments_run_identifier():
    reset()
    first = snapshot()["run_id"]
    reset()
    second = snapshot()["run_id"]
    assert isinstance(first, int)
    assert second == first + 1


def test_best_depth_only_grows():
    reset()
    set_search_state(10, 3, 30.0)
    set_search_state(20, 1, 10.0)
    snap = snapshot()
    assert snap["nodes"] == 20
    assert snap["depth"] == 1
    assert snap["best_depth"] == 3
    assert snap["coverage_pct"] == 30.0


def test_snapshot_reads_state_written_by_other_process(tmp_path, monkeypatch):
    import progress as progress_module

    state_path = tmp_path / "state.json"
    monkeypatch.setenv("PROGRESS_STATE_FILE", str(state_path))
    progress = importlib.reload(progress_module)

    progress.reset()
    progress.set_phase("backtrack")
    first = progress.snapshot()
    assert first["phase"] == "backtrack"

    data = dict(first)
    data["phase"] = "cp_sat"
    data["nodes"] = 1234
    state_path.write_text(json.dumps(data))
    os.utime(state_path, None)

    with progress.PROGRESS_LOCK:
        progress.PROGRESS["phase"] = ""
        progress.PROGRESS["nodes"] = 0
        progress._LAST_STATE_MTIME = 0.0

    time.sleep(0.01)
    updated = progress.snapshot()
    assert updated["phase"] == "cp_sat"
    assert updated["nodes"] == 1234

    monkeypatch.delenv("PROGRESS_STATE_FILE", raising=False)
    importlib.reload(progress_module)
