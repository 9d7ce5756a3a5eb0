"""
Trial-log discovery and loading.

Each OpenSesame CSV holds one participant's one IAT block. The participant
number and block number are read from the filename, e.g.
``data_P05_block1.csv`` or ``subject_P05_2.csv``.
"""

from __future__ import annotations

import fnmatch
import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .config import IATScoringConfig
from .constants import (
    BLOCK_PATTERN,
    BLOCK_SUFFIX_PATTERN,
    PARTICIPANT_PATTERN,
    RESULTS_FILENAME,
    TRIAL_LOG_GLOB,
    format_participant_id,
)
from .core import FilenamePatternError, MissingDataError, SkippedFileWarning


@dataclass(frozen=True)
class TrialLogFile:
    """A located trial log and the identity resolved from its filename."""
    path: Path
    participant_number: int
    block: int
    block_source: str  # "pattern" or "suffix"

    @property
    def participant_id(self) -> str:
        return format_participant_id(self.participant_number)


def find_trial_log_files(data_dir: str | Path, pattern: str = TRIAL_LOG_GLOB) -> List[Path]:
    """Recursively list candidate trial logs under data_dir, sorted by path.

    The pattern is matched case-insensitively, so ``*.csv`` also finds
    ``*.CSV`` exports.
    """
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")
    pattern = pattern.lower()
    return sorted(
        p for p in data_dir.rglob("*")
        if p.is_file() and fnmatch.fnmatchcase(p.name.lower(), pattern)
    )


def parse_participant_number(filename: str, pattern: str = PARTICIPANT_PATTERN) -> Optional[int]:
    """Return the 2-digit participant code from a filename, or None."""
    match = re.search(pattern, Path(filename).name, flags=re.IGNORECASE)
    if match is None:
        return None
    return int(match.group(1))


def parse_block_number(
    filename: str,
    pattern: str = BLOCK_PATTERN,
    suffix_pattern: str = BLOCK_SUFFIX_PATTERN,
) -> Tuple[int, str]:
    """
    Resolve the block number of a trial log from its filename.

    The ``block<N>`` token wins. Without it, the stem must end in a single
    digit after a separator (``..._2.csv``).

    Returns:
        (block number, "pattern" | "suffix")

    Raises:
        FilenamePatternError: neither form is present
    """
    name = Path(filename).name
    match = re.search(pattern, name, flags=re.IGNORECASE)
    if match is not None:
        return int(match.group(1)), "pattern"

    match = re.search(suffix_pattern, Path(filename).stem)
    if match is not None:
        return int(match.group(1)), "suffix"

    raise FilenamePatternError(
        f"cannot resolve block number from '{name}' "
        "(expected a 'block<N>' token or a stem ending in '_<digit>')",
        path=filename,
    )


def locate_trial_logs(
    data_dir: str | Path,
    config: Optional[IATScoringConfig] = None,
    strict: bool = True,
    verbose: bool = False,
    ignore_names: Iterable[str] = (RESULTS_FILENAME,),
) -> Dict[int, List[TrialLogFile]]:
    """
    Group the trial logs under data_dir by participant number.

    Files without a participant code are skipped with a SkippedFileWarning.
    A file whose block cannot be resolved, or a second file for an already
    seen (participant, block), raises FilenamePatternError when strict;
    otherwise it is skipped with a warning.

    Args:
        data_dir: root directory, searched recursively
        config: scoring config (filename patterns, excluded participants)
        strict: raise on unresolvable filenames instead of skipping
        verbose: print one line per skipped file
        ignore_names: filenames never treated as logs (the results table)

    Returns:
        {participant number: [TrialLogFile, ...]} in ascending participant
        order, files ordered by block
    """
    if config is None:
        config = IATScoringConfig()

    ignored = {name.lower() for name in ignore_names}
    located: Dict[int, Dict[int, TrialLogFile]] = {}
    for path in find_trial_log_files(data_dir, config.file_glob):
        if path.name.lower() in ignored:
            continue

        number = parse_participant_number(path.name, config.participant_pattern)
        if number is None:
            warnings.warn(
                f"{path}: no participant code in filename, file excluded",
                SkippedFileWarning,
            )
            if verbose:
                print(f"  [SKIP] {path.name}: no participant code")
            continue

        if number in config.exclude_participants:
            if verbose:
                print(f"  [SKIP] {path.name}: {format_participant_id(number)} excluded by config")
            continue

        blocks = located.setdefault(number, {})
        try:
            block, source = parse_block_number(
                path, config.block_pattern, config.block_suffix_pattern
            )
            if block in blocks:
                raise FilenamePatternError(
                    f"{format_participant_id(number)} block {block} is already provided by "
                    f"'{blocks[block].path.name}'",
                    path=path,
                )
        except FilenamePatternError as exc:
            if strict:
                raise
            warnings.warn(f"{exc}; file excluded", SkippedFileWarning)
            if verbose:
                print(f"  [SKIP] {path.name}: {exc}")
            continue

        blocks[block] = TrialLogFile(
            path=path, participant_number=number, block=block, block_source=source
        )

    return {
        number: [blocks[b] for b in sorted(blocks)]
        for number, blocks in sorted(located.items())
    }


def load_trial_log(path: str | Path) -> pd.DataFrame:
    """Read one comma-delimited OpenSesame log (header row + trial rows)."""
    path = Path(path)
    try:
        return pd.read_csv(path, sep=",", encoding="utf-8-sig")
    except pd.errors.EmptyDataError:
        raise MissingDataError("file is empty", path=path) from None
    except pd.errors.ParserError as exc:
        raise MissingDataError(f"not a comma-delimited table ({exc})", path=path) from None
    except UnicodeDecodeError as exc:
        raise MissingDataError(
            f"not UTF-8 text ({exc.reason} at byte {exc.start})", path=path
        ) from None
