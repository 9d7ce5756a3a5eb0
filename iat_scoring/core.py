"""
Core helpers for IAT scoring.

Error types, the per-block summary record, and the pure numeric stages
(retry correction, clipping, summary statistics).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import (
    CLIP_MAX_MS,
    CLIP_MIN_MS,
    EXCLUDE_LEADING_TRIALS,
    RETRY_PENALTY_MS,
)


# =============================================================================
# Errors and warnings
# =============================================================================

class IATDataError(ValueError):
    """Input data cannot be scored as-is; `path` names the offending file."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{self.path}: {message}"
        super().__init__(message)


class FilenamePatternError(IATDataError):
    """Participant or block number cannot be resolved from a filename."""


class MissingDataError(IATDataError):
    """A trial log lacks the rows, columns or values needed for scoring."""


class SkippedFileWarning(UserWarning):
    """A candidate file was left out of the run."""


class UnexpectedBlockWarning(UserWarning):
    """A block number has no column group in the results table."""


# =============================================================================
# Block summary
# =============================================================================

@dataclass(frozen=True)
class BlockSummary:
    """Summary statistics for one participant's one block."""
    congruent_RT: float
    incongruent_RT: float
    congruent_std: float
    incongruent_std: float
    congruent_NBerrors: int
    incongruent_NBerrors: int

    @property
    def dscore(self) -> float:
        # Positive when congruent responses were slower than incongruent ones.
        return self.congruent_RT - self.incongruent_RT

    def as_record(self, prefix: str = "") -> Dict[str, float]:
        return {
            f"{prefix}congruent_RT": self.congruent_RT,
            f"{prefix}incongruent_RT": self.incongruent_RT,
            f"{prefix}dscore": self.dscore,
            f"{prefix}congruent_std": self.congruent_std,
            f"{prefix}incongruent_std": self.incongruent_std,
            f"{prefix}congruent_NBerrors": self.congruent_NBerrors,
            f"{prefix}incongruent_NBerrors": self.incongruent_NBerrors,
        }


# =============================================================================
# Numeric stages
# =============================================================================

def apply_retry_penalty(
    with_retry: Sequence[float],
    keyboard_only: Sequence[float],
    penalty_ms: float = RETRY_PENALTY_MS,
) -> Tuple[np.ndarray, int]:
    """
    Add the second-chance penalty to every trial whose two RT channels differ.

    The channels are raw logged values, so any inequality means a retry.

    Args:
        with_retry: RT including the retry (OpenSesame ``response_time``)
        keyboard_only: RT of the keyboard-response item alone
        penalty_ms: cost added per retried trial

    Returns:
        (corrected RTs, number of retried trials)
    """
    rt = np.asarray(with_retry, dtype=float)
    keyboard = np.asarray(keyboard_only, dtype=float)
    if rt.shape != keyboard.shape:
        raise ValueError(
            f"RT channels differ in length: {rt.shape[0]} with-retry vs {keyboard.shape[0]} keyboard-only"
        )
    retried = rt != keyboard
    corrected = np.where(retried, rt + penalty_ms, rt)
    return corrected, int(retried.sum())


def clip_rts(
    values: Sequence[float],
    rt_min: float = CLIP_MIN_MS,
    rt_max: float = CLIP_MAX_MS,
) -> np.ndarray:
    """Clamp RTs into the closed range [rt_min, rt_max]."""
    if rt_min > rt_max:
        raise ValueError(f"rt_min ({rt_min}) must not exceed rt_max ({rt_max})")
    return np.clip(np.asarray(values, dtype=float), rt_min, rt_max)


def summarize_rts(
    values: Sequence[float],
    exclude_leading: int = EXCLUDE_LEADING_TRIALS,
) -> Tuple[float, float]:
    """Mean and sample SD (ddof=1) after dropping the leading warm-up trials."""
    kept = pd.Series(np.asarray(values, dtype=float)[exclude_leading:])
    if len(kept) < 2:
        raise ValueError(
            f"Need at least 2 trials after excluding {exclude_leading}, got {len(kept)}"
        )
    return float(kept.mean()), float(kept.std(ddof=1))
