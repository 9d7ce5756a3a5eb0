"""
Command-line entry point for IAT scoring.

Usage:
    python -m iat_scoring --data-dir D:/DATA_EcoRenew --output-dir D:/DATA_EcoRenew
    python -m iat_scoring --config configs/iat_scoring.yml
    python -m iat_scoring --data-dir data/raw --list
"""

import argparse
import sys
from pathlib import Path

from .config import IATScoringConfig, load_config
from .constants import RAW_DIR, RESULTS_DIR, RESULTS_FILENAME
from .dataset_builder import build_results_table, print_trial_log_summary


if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute IAT response-time metrics from OpenSesame trial logs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m iat_scoring --data-dir data/raw --output-dir data/results
    python -m iat_scoring --config configs/iat_scoring.yml
    python -m iat_scoring --data-dir data/raw --exclude 17 --skip-invalid
    python -m iat_scoring --data-dir data/raw --list
        """,
    )

    parser.add_argument(
        "--data-dir",
        type=Path,
        help=f"Root directory of the OpenSesame CSV logs (default: {RAW_DIR})",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help=f"Directory for the results table (default: {RESULTS_DIR})",
    )
    parser.add_argument(
        "--output-name",
        help=f"Results filename (default: {RESULTS_FILENAME})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with 'paths' and 'scoring' sections",
    )
    parser.add_argument(
        "--exclude",
        type=int,
        nargs="+",
        metavar="N",
        help="Participant numbers to leave out (e.g. 17)",
    )
    parser.add_argument(
        "--skip-invalid",
        action="store_true",
        help="Warn about and skip malformed files instead of stopping the run",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List located trial logs per participant and block, then exit",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Score without writing the results table",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress verbose output",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    config = IATScoringConfig()
    paths = {}
    if args.config:
        config, paths = load_config(args.config)
    if args.exclude:
        config.exclude_participants = tuple(sorted(set(config.exclude_participants) | set(args.exclude)))

    data_dir = args.data_dir or paths.get("data_dir") or RAW_DIR
    output_dir = args.output_dir or paths.get("output_dir") or RESULTS_DIR
    output_name = args.output_name or paths.get("output_name") or RESULTS_FILENAME

    if args.list:
        print_trial_log_summary(data_dir, config, output_name)
        return

    build_results_table(
        data_dir=data_dir,
        output_dir=output_dir,
        config=config,
        output_name=output_name,
        save=not args.no_save,
        verbose=not args.quiet,
        skip_invalid=args.skip_invalid,
    )


if __name__ == "__main__":
    main()
