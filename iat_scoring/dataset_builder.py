"""
IAT results table builder.

Locates every participant's block logs, scores each block and collects the
summaries into one wide table (one row per participant, block1_*/block2_*
column groups), saved as ``opensesameResults.csv``.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .config import IATScoringConfig
from .constants import (
    COUNT_FIELDS,
    RAW_DIR,
    RESULT_COLUMNS,
    RESULTS_DIR,
    RESULTS_FILENAME,
    SUMMARY_FIELDS,
    VALID_BLOCKS,
    format_participant_id,
)
from .core import BlockSummary, IATDataError, SkippedFileWarning, UnexpectedBlockWarning
from .features import score_block
from .loaders import TrialLogFile, load_trial_log, locate_trial_logs


class ResultsTable:
    """Per-run results keyed by participant number.

    Rows start empty; block summaries fill the block1_* / block2_* groups.
    Columns of blocks that were never scored stay NaN so that a missing
    block is distinguishable from a zero effect.
    """

    def __init__(self, participant_numbers: Iterable[int] = ()):
        self._rows: Dict[int, Dict[str, object]] = {}
        for number in participant_numbers:
            self.add_participant(number)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, number: int) -> bool:
        return int(number) in self._rows

    @property
    def participant_ids(self) -> List[str]:
        return [format_participant_id(n) for n in sorted(self._rows)]

    def add_participant(self, number: int) -> str:
        number = int(number)
        if number not in self._rows:
            self._rows[number] = {col: np.nan for col in RESULT_COLUMNS}
            self._rows[number]["participant_id"] = format_participant_id(number)
        return self._rows[number]["participant_id"]

    def add_block_summary(self, number: int, block: int, summary: BlockSummary) -> bool:
        """Store a block summary; returns False when the block has no column group."""
        participant_id = self.add_participant(number)
        if block not in VALID_BLOCKS:
            warnings.warn(
                f"{participant_id}: block {block} is not one of {list(VALID_BLOCKS)}, summary not stored",
                UnexpectedBlockWarning,
            )
            return False
        self._rows[int(number)].update(summary.as_record(prefix=f"block{block}_"))
        return True

    def to_frame(self) -> pd.DataFrame:
        records = [self._rows[n] for n in sorted(self._rows)]
        df = pd.DataFrame.from_records(records, columns=RESULT_COLUMNS)
        for block in VALID_BLOCKS:
            for name in SUMMARY_FIELDS:
                col = f"block{block}_{name}"
                if name in COUNT_FIELDS:
                    df[col] = pd.to_numeric(df[col]).astype("Int64")
                else:
                    df[col] = pd.to_numeric(df[col]).astype(float)
        return df

    def save(self, output_dir: str | Path, filename: str = RESULTS_FILENAME) -> Path:
        output_dir = Path(output_dir)
        os.makedirs(output_dir, exist_ok=True)
        output_path = output_dir / filename
        self.to_frame().to_csv(output_path, index=False, encoding="utf-8")
        return output_path


def score_trial_log(log_file: TrialLogFile, config: Optional[IATScoringConfig] = None) -> BlockSummary:
    """Load and score one located trial log."""
    trials = load_trial_log(log_file.path)
    return score_block(trials, config=config, source=log_file.path)


def build_results_table(
    data_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    config: Optional[IATScoringConfig] = None,
    output_name: str = RESULTS_FILENAME,
    save: bool = True,
    verbose: bool = True,
    skip_invalid: bool = False,
) -> pd.DataFrame:
    """
    Score every participant's IAT blocks and build the results table.

    By default the first unreadable filename or trial log aborts the run and
    nothing is written. With ``skip_invalid`` the offending file is reported
    with a SkippedFileWarning, its block columns stay empty, and the table is
    still saved. When no trial log is found at all, a UserWarning is raised
    and a header-only table is saved.

    Args:
        data_dir: root of the OpenSesame logs (default: RAW_DIR)
        output_dir: where the results CSV is written (default: RESULTS_DIR)
        config: scoring config (default: IATScoringConfig())
        output_name: results filename
        save: write the table to output_dir
        verbose: print progress
        skip_invalid: report and skip invalid files instead of raising

    Returns:
        Results table, one row per participant
    """
    if data_dir is None:
        data_dir = RAW_DIR
    if output_dir is None:
        output_dir = RESULTS_DIR
    if config is None:
        config = IATScoringConfig()

    if verbose:
        print("=" * 60)
        print("IAT scoring")
        print("=" * 60)

    located = locate_trial_logs(
        data_dir,
        config,
        strict=not skip_invalid,
        verbose=verbose,
        ignore_names=(RESULTS_FILENAME, output_name),
    )
    if not located:
        warnings.warn(
            f"no participant trial logs found in {data_dir}; results table is empty",
            UserWarning,
        )
        empty = ResultsTable()
        if save:
            output_path = empty.save(output_dir, output_name)
            if verbose:
                print(f"[WARN] no participant trial logs found, header-only table saved: {output_path}")
        elif verbose:
            print(f"[WARN] no participant trial logs found in {data_dir}")
        return empty.to_frame()

    if verbose:
        print(f"\nParticipants: {len(located)}")

    table = ResultsTable(located)
    for number, log_files in located.items():
        for log_file in log_files:
            try:
                summary = score_trial_log(log_file, config)
            except IATDataError as exc:
                if not skip_invalid:
                    raise
                warnings.warn(f"{exc}; block left empty", SkippedFileWarning)
                if verbose:
                    print(f"  [SKIP] {log_file.participant_id} block {log_file.block}: {exc}")
                continue

            stored = table.add_block_summary(number, log_file.block, summary)
            if verbose and stored:
                print(
                    f"  [OK] {log_file.participant_id} block {log_file.block}: "
                    f"D = {summary.dscore:.1f} ms "
                    f"(errors {summary.congruent_NBerrors}/{summary.incongruent_NBerrors})"
                )
            elif verbose:
                print(f"  [WARN] {log_file.participant_id} block {log_file.block}: not stored")

    results = table.to_frame()
    if save:
        output_path = table.save(output_dir, output_name)
        if verbose:
            print(f"\n[OK] results saved: {output_path}")
    elif verbose:
        print(f"\n[INFO] results: {len(results)} rows, {len(results.columns)} cols")
    return results


def print_trial_log_summary(
    data_dir: Optional[Path] = None,
    config: Optional[IATScoringConfig] = None,
    output_name: str = RESULTS_FILENAME,
) -> None:
    """Print the located trial logs per participant without scoring them."""
    if data_dir is None:
        data_dir = RAW_DIR

    print("=" * 60)
    print(f"Trial logs in {data_dir}")
    print("=" * 60)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        located = locate_trial_logs(
            data_dir, config, strict=False, ignore_names=(RESULTS_FILENAME, output_name)
        )

    for number, log_files in located.items():
        blocks = ", ".join(
            f"block{f.block} ({f.path.name}{', suffix' if f.block_source == 'suffix' else ''})"
            for f in log_files
        )
        print(f"  {format_participant_id(number)}: {blocks if blocks else 'no usable files'}")
    for warning in caught:
        print(f"  [SKIP] {warning.message}")
    print(f"\n  N={len(located)}")
