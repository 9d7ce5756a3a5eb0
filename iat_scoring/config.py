"""
Scoring configuration.

Defaults reproduce the fixed OpenSesame IAT layout; a YAML file can
override them:

    paths:
      data_dir: data/raw
      output_dir: data/results
    scoring:
      retryPenaltyMs: 600
      clipMin: 300
      clipMax: 3000
      excludeLeadingTrials: 1
      exclude_participants: [17]
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .constants import (
    BLOCK_PATTERN,
    BLOCK_SUFFIX_PATTERN,
    CLIP_MAX_MS,
    CLIP_MIN_MS,
    CONGRUENT_ROWS,
    EXCLUDE_LEADING_TRIALS,
    INCONGRUENT_ROWS,
    PARTICIPANT_PATTERN,
    RETRY_PENALTY_MS,
    RT_KEYBOARD_COL,
    RT_WITH_RETRY_COL,
    TRIAL_LOG_GLOB,
)


@dataclass
class IATScoringConfig:
    """Scoring constants and trial-log layout."""
    retry_penalty_ms: float = RETRY_PENALTY_MS
    clip_min: float = CLIP_MIN_MS
    clip_max: float = CLIP_MAX_MS
    exclude_leading_trials: int = EXCLUDE_LEADING_TRIALS
    congruent_rows: Tuple[int, int] = CONGRUENT_ROWS      # 1-based, inclusive
    incongruent_rows: Tuple[int, int] = INCONGRUENT_ROWS  # 1-based, inclusive
    rt_with_retry_col: str = RT_WITH_RETRY_COL
    rt_keyboard_col: str = RT_KEYBOARD_COL
    file_glob: str = TRIAL_LOG_GLOB
    participant_pattern: str = PARTICIPANT_PATTERN
    block_pattern: str = BLOCK_PATTERN
    block_suffix_pattern: str = BLOCK_SUFFIX_PATTERN
    exclude_participants: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        self.congruent_rows = tuple(int(v) for v in self.congruent_rows)
        self.incongruent_rows = tuple(int(v) for v in self.incongruent_rows)
        self.exclude_participants = tuple(int(v) for v in self.exclude_participants)
        self.exclude_leading_trials = int(self.exclude_leading_trials)

        if self.clip_min > self.clip_max:
            raise ValueError(f"clip_min ({self.clip_min}) must not exceed clip_max ({self.clip_max})")
        if self.exclude_leading_trials < 0:
            raise ValueError("exclude_leading_trials must be >= 0")
        for name in ("congruent_rows", "incongruent_rows"):
            rows = getattr(self, name)
            if len(rows) != 2 or rows[0] < 1 or rows[1] < rows[0]:
                raise ValueError(f"{name} must be a 1-based (first, last) row range, got {rows}")
            n_trials = rows[1] - rows[0] + 1
            if n_trials - self.exclude_leading_trials < 2:
                raise ValueError(
                    f"{name} {rows} leaves fewer than 2 trials after excluding "
                    f"{self.exclude_leading_trials}"
                )
        for name in ("participant_pattern", "block_pattern", "block_suffix_pattern"):
            try:
                re.compile(getattr(self, name))
            except re.error as exc:
                raise ValueError(f"{name} is not a valid regular expression: {exc}") from exc

    @property
    def n_rows_required(self) -> int:
        return max(self.congruent_rows[1], self.incongruent_rows[1])

    @property
    def segments(self) -> Dict[str, Tuple[int, int]]:
        return {"congruent": self.congruent_rows, "incongruent": self.incongruent_rows}


# camelCase keys used in lab config files
CONFIG_KEY_ALIASES = {
    "retryPenaltyMs": "retry_penalty_ms",
    "clipMin": "clip_min",
    "clipMax": "clip_max",
    "excludeLeadingTrials": "exclude_leading_trials",
    "congruentRows": "congruent_rows",
    "incongruentRows": "incongruent_rows",
    "excludeParticipants": "exclude_participants",
}

PATH_KEYS = ("data_dir", "output_dir", "output_name")


def scoring_config_from_dict(values: Optional[Dict[str, Any]]) -> IATScoringConfig:
    """Build a config from a mapping, accepting camelCase aliases."""
    if not values:
        return IATScoringConfig()
    valid = {f.name for f in fields(IATScoringConfig)}
    kwargs: Dict[str, Any] = {}
    for key, value in values.items():
        name = CONFIG_KEY_ALIASES.get(key, key)
        if name not in valid:
            raise ValueError(f"Unknown scoring option: {key}. Valid options: {sorted(valid)}")
        kwargs[name] = value
    return IATScoringConfig(**kwargs)


def load_config(path: str | Path) -> Tuple[IATScoringConfig, Dict[str, Any]]:
    """Load scoring options and path settings from a YAML file.

    Args:
        path: YAML file with optional ``paths`` and ``scoring`` sections

    Returns:
        (scoring config, path settings). Directory values are ``Path``
        objects resolved relative to the YAML file.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at top level")

    unknown = set(raw) - {"paths", "scoring"}
    if unknown:
        raise ValueError(f"{path}: unknown sections {sorted(unknown)} (expected 'paths', 'scoring')")

    paths: Dict[str, Any] = {}
    for key, value in (raw.get("paths") or {}).items():
        if key not in PATH_KEYS:
            raise ValueError(f"{path}: unknown path setting {key}. Valid settings: {list(PATH_KEYS)}")
        if value is None:
            continue
        if key == "output_name":
            paths[key] = str(value)
        else:
            value = Path(value)
            paths[key] = value if value.is_absolute() else (path.parent / value).resolve()

    return scoring_config_from_dict(raw.get("scoring")), paths
