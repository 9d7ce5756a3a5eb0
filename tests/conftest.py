from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd
import pytest


def make_trial_frame(
    congruent_rt: float = 500.0,
    incongruent_rt: float = 800.0,
    overrides: Optional[Dict[int, Tuple[float, float]]] = None,
    n_rows: int = 160,
) -> pd.DataFrame:
    """OpenSesame-like log: rows 51-90 congruent, 121-160 incongruent.

    ``overrides`` maps a 1-based row to (response_time, keyboard_response).
    """
    overrides = overrides or {}
    records = []
    for row in range(1, n_rows + 1):
        if 51 <= row <= 90:
            rt, block = congruent_rt, "congruent"
        elif 121 <= row <= 160:
            rt, block = incongruent_rt, "incongruent"
        else:
            rt, block = 650.0, "practice"
        with_retry, keyboard = overrides.get(row, (rt, rt))
        records.append({
            "subject_nr": 1,
            "count_trial_sequence": row - 1,
            "block": block,
            "correct": 1,
            "response_time": with_retry,
            "response_time_keyboard_response": keyboard,
        })
    return pd.DataFrame(records)


@pytest.fixture
def write_trial_log(tmp_path: Path):
    """Write a trial log under tmp_path/raw and return its path."""
    raw_dir = tmp_path / "raw"

    def _write(filename: str, subdir: str = "", **kwargs) -> Path:
        target_dir = raw_dir / subdir if subdir else raw_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / filename
        make_trial_frame(**kwargs).to_csv(path, index=False)
        return path

    return _write


@pytest.fixture
def raw_dir(tmp_path: Path) -> Path:
    path = tmp_path / "raw"
    path.mkdir(parents=True, exist_ok=True)
    return path
