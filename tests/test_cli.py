import json

import cli
from config import CFG

from tests.data import SCENARIO_B_PAYLOAD


def test_cli_solves_puzzle_file(tmp_path):
    configured = CFG.SOLUTION_OUT
    puzzle = tmp_path / "puzzle.json"
    puzzle.write_text(json.dumps(SCENARIO_B_PAYLOAD))
    out = tmp_path / "out.json"

    code = cli.main(["--puzzle", str(puzzle), "--out", str(out)])

    assert code == 0
    data = json.loads(out.read_text())
    assert data["ok"] is True
    assert data["trace"] == [[0, 0, 2, 2]]
    assert data["pieces"][0]["name"] == "slab"
    assert CFG.SOLUTION_OUT == configured


def test_cli_exit_code_for_no_solution(tmp_path):
    puzzle = tmp_path / "puzzle.json"
    puzzle.write_text(json.dumps({
        "pieces": [[0, [[1, 0, 0], [0, 0, 0]]]],
        "board": {"rows": 5, "cols": 5, "border": 2},
    }))
    out = tmp_path / "out.json"

    assert cli.main(["--puzzle", str(puzzle), "--out", str(out)]) == 1
    assert json.loads(out.read_text())["strategy"] == "exhausted"


def test_cli_rejects_bad_puzzle(tmp_path):
    puzzle = tmp_path / "puzzle.json"
    puzzle.write_text("[]")
    assert cli.main(["--puzzle", str(puzzle)]) == 1
