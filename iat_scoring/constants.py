"""
Shared constants for OpenSesame IAT scoring.

Directory defaults, trial-log layout, and the scoring constants used by
the correction/clipping/summary stages.
"""

from pathlib import Path

# Directory paths
BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / "data"
RAW_DIR = DATA_DIR / "raw"
RESULTS_DIR = DATA_DIR / "results"

RESULTS_FILENAME = "opensesameResults.csv"
TRIAL_LOG_GLOB = "*.csv"

# Filename markers
PARTICIPANT_PATTERN = r"(?<![A-Za-z])P(\d{2})(?!\d)"   # data_P05_..., p05_...
BLOCK_PATTERN = r"block[_\- ]?(\d+)"                   # block1, Block_2
BLOCK_SUFFIX_PATTERN = r"[_\- ](\d)$"                  # stem ending in _1 / -2
VALID_BLOCKS = (1, 2)

# OpenSesame columns
RT_WITH_RETRY_COL = "response_time"
RT_KEYBOARD_COL = "response_time_keyboard_response"

# Trial segments, 1-based inclusive data-row ranges
CONGRUENT_ROWS = (51, 90)
INCONGRUENT_ROWS = (121, 160)

# Scoring constants
RETRY_PENALTY_MS = 600        # ms; second-chance response cost
CLIP_MIN_MS = 300             # ms; anticipatory floor
CLIP_MAX_MS = 3000            # ms; lapse ceiling
EXCLUDE_LEADING_TRIALS = 1    # warm-up trials dropped before summarizing

# Output columns
SUMMARY_FIELDS = (
    "congruent_RT",
    "incongruent_RT",
    "dscore",
    "congruent_std",
    "incongruent_std",
    "congruent_NBerrors",
    "incongruent_NBerrors",
)
COUNT_FIELDS = ("congruent_NBerrors", "incongruent_NBerrors")


def block_columns(block: int) -> list:
    """Return the seven output column names for one block."""
    return [f"block{block}_{name}" for name in SUMMARY_FIELDS]


RESULT_COLUMNS = ["participant_id"] + [
    col for block in VALID_BLOCKS for col in block_columns(block)
]


def format_participant_id(number: int) -> str:
    return f"p{int(number):02d}"
