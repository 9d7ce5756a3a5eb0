"""
OpenSesame IAT Scoring
======================

Response-time metrics for Implicit Association Test blocks logged by
OpenSesame: second-chance correction, clipping, mean/SD and D-score per
participant and block, collected into one results table.

Python:
    from iat_scoring import build_results_table
    results = build_results_table(data_dir=Path("data/raw"), output_dir=Path("data/results"))

    from iat_scoring import load_trial_log, score_block
    summary = score_block(load_trial_log("data/raw/data_P05_block1.csv"))

CLI:
    python -m iat_scoring --data-dir data/raw --output-dir data/results
    python -m iat_scoring --config configs/iat_scoring.yml
    python -m iat_scoring --list
"""

# Constants
from .constants import (
    RAW_DIR,
    RESULTS_DIR,
    RESULTS_FILENAME,
    RESULT_COLUMNS,
    RETRY_PENALTY_MS,
    CLIP_MIN_MS,
    CLIP_MAX_MS,
    EXCLUDE_LEADING_TRIALS,
    CONGRUENT_ROWS,
    INCONGRUENT_ROWS,
    format_participant_id,
)

# Configuration
from .config import IATScoringConfig, load_config, scoring_config_from_dict

# Core stages and errors
from .core import (
    BlockSummary,
    IATDataError,
    FilenamePatternError,
    MissingDataError,
    SkippedFileWarning,
    UnexpectedBlockWarning,
    apply_retry_penalty,
    clip_rts,
    summarize_rts,
)

# Loaders
from .loaders import (
    TrialLogFile,
    find_trial_log_files,
    parse_participant_number,
    parse_block_number,
    locate_trial_logs,
    load_trial_log,
)

# Features
from .features import extract_trial_segments, score_block

# Results table
from .dataset_builder import (
    ResultsTable,
    score_trial_log,
    build_results_table,
    print_trial_log_summary,
)

__all__ = [
    # Constants
    'RAW_DIR',
    'RESULTS_DIR',
    'RESULTS_FILENAME',
    'RESULT_COLUMNS',
    'RETRY_PENALTY_MS',
    'CLIP_MIN_MS',
    'CLIP_MAX_MS',
    'EXCLUDE_LEADING_TRIALS',
    'CONGRUENT_ROWS',
    'INCONGRUENT_ROWS',
    'format_participant_id',
    # Configuration
    'IATScoringConfig',
    'load_config',
    'scoring_config_from_dict',
    # Core
    'BlockSummary',
    'IATDataError',
    'FilenamePatternError',
    'MissingDataError',
    'SkippedFileWarning',
    'UnexpectedBlockWarning',
    'apply_retry_penalty',
    'clip_rts',
    'summarize_rts',
    # Loaders
    'TrialLogFile',
    'find_trial_log_files',
    'parse_participant_number',
    'parse_block_number',
    'locate_trial_logs',
    'load_trial_log',
    # Features
    'extract_trial_segments',
    'score_block',
    # Results table
    'ResultsTable',
    'score_trial_log',
    'build_results_table',
    'print_trial_log_summary',
]
