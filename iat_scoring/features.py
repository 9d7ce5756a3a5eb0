"""IAT block feature derivation."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .config import IATScoringConfig
from .core import (
    BlockSummary,
    MissingDataError,
    apply_retry_penalty,
    clip_rts,
    summarize_rts,
)


def extract_trial_segments(
    trials: pd.DataFrame,
    config: Optional[IATScoringConfig] = None,
    source: Optional[Path] = None,
) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
    """
    Slice the congruent and incongruent segments out of one trial log.

    Args:
        trials: trial log, one row per trial (header excluded)
        config: segment boundaries and RT column names
        source: log path, used in error messages

    Returns:
        {"congruent": (with_retry, keyboard_only),
         "incongruent": (with_retry, keyboard_only)}

    Raises:
        MissingDataError: a column, a row range or a value is missing
    """
    if config is None:
        config = IATScoringConfig()

    rt_cols = (config.rt_with_retry_col, config.rt_keyboard_col)
    missing_cols = [c for c in rt_cols if c not in trials.columns]
    if missing_cols:
        raise MissingDataError(f"missing column(s) {missing_cols}", path=source)

    if len(trials) < config.n_rows_required:
        raise MissingDataError(
            f"expected at least {config.n_rows_required} trial rows, found {len(trials)}",
            path=source,
        )

    segments: Dict[str, Tuple[np.ndarray, np.ndarray]] = {}
    for name, (first, last) in config.segments.items():
        rows = trials.iloc[first - 1:last]
        channels = []
        for col in rt_cols:
            values = pd.to_numeric(rows[col], errors="coerce")
            if values.isna().any():
                bad_rows = [int(first + i) for i in np.flatnonzero(values.isna().to_numpy())]
                raise MissingDataError(
                    f"{name} rows {first}-{last}: column '{col}' has empty or "
                    f"non-numeric values at row(s) {bad_rows}",
                    path=source,
                )
            channels.append(values.to_numpy(dtype=float))
        segments[name] = (channels[0], channels[1])
    return segments


def score_block(
    trials: pd.DataFrame,
    config: Optional[IATScoringConfig] = None,
    source: Optional[Path] = None,
) -> BlockSummary:
    """Score one block: retry penalty, clipping, then mean/SD after warm-up."""
    if config is None:
        config = IATScoringConfig()

    stats: Dict[str, Tuple[float, float, int]] = {}
    for name, (with_retry, keyboard_only) in extract_trial_segments(trials, config, source).items():
        corrected, n_errors = apply_retry_penalty(
            with_retry, keyboard_only, penalty_ms=config.retry_penalty_ms
        )
        clipped = clip_rts(corrected, config.clip_min, config.clip_max)
        mean_rt, sd_rt = summarize_rts(clipped, config.exclude_leading_trials)
        stats[name] = (mean_rt, sd_rt, n_errors)

    return BlockSummary(
        congruent_RT=stats["congruent"][0],
        incongruent_RT=stats["incongruent"][0],
        congruent_std=stats["congruent"][1],
        incongruent_std=stats["incongruent"][1],
        congruent_NBerrors=stats["congruent"][2],
        incongruent_NBerrors=stats["incongruent"][2],
    )
