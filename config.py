# config.py
import os

# ======= Default board =======
BOARD_ROWS = int(os.getenv("BP_BOARD_ROWS", "9"))
BOARD_COLS = int(os.getenv("BP_BOARD_COLS", "9"))
BORDER     = int(os.getenv("BP_BORDER", "2"))

# ======= Search knobs =======
# The search itself carries no budget; a positive NODE_LIMIT caps the number
# of committed placements per solve.
NODE_LIMIT          = int(os.getenv("BP_NODE_LIMIT", "0"))
DEDUPE_ORIENTATIONS = int(os.getenv("BP_DEDUPE_ORIENTATIONS", "0")) != 0
PROGRESS_EVERY      = int(os.getenv("BP_PROGRESS_EVERY", "2000"))

# ======= CP-SAT oracle =======
CROSS_CHECK   = int(os.getenv("BP_CROSS_CHECK", "0")) != 0
CP_SAT_RESCUE = int(os.getenv("BP_CP_SAT_RESCUE", "1")) != 0
TIME_CP_SAT   = float(os.getenv("BP_TIME_CP_SAT", "60"))
WORKERS       = int(os.getenv("BP_WORKERS", "1"))
MAX_MEMORY_MB = int(os.getenv("BP_MAX_MEMORY_MB", "2048"))
RANDOM_SEED   = int(os.getenv("BP_RANDOM_SEED", "0"))

# ======= Output names =======
SOLUTION_OUT = os.getenv("BP_SOLUTION_OUT", "solution.json")


class CFG:
    BOARD_ROWS = BOARD_ROWS
    BOARD_COLS = BOARD_COLS
    BORDER     = BORDER

    NODE_LIMIT          = NODE_LIMIT
    DEDUPE_ORIENTATIONS = DEDUPE_ORIENTATIONS
    PROGRESS_EVERY      = PROGRESS_EVERY

    CROSS_CHECK   = CROSS_CHECK
    CP_SAT_RESCUE = CP_SAT_RESCUE
    TIME_CP_SAT   = TIME_CP_SAT
    WORKERS       = WORKERS
    MAX_MEMORY_MB = MAX_MEMORY_MB
    RANDOM_SEED   = RANDOM_SEED

    SOLUTION_OUT = SOLUTION_OUT


__all__ = ["CFG"]
