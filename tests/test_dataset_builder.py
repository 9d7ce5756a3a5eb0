"""
Tests for the results table and the end-to-end build.
"""

import pandas as pd
import pytest

from iat_scoring.constants import RESULT_COLUMNS
from iat_scoring.core import (
    BlockSummary,
    FilenamePatternError,
    MissingDataError,
    SkippedFileWarning,
    UnexpectedBlockWarning,
)
from iat_scoring.dataset_builder import ResultsTable, build_results_table

from conftest import make_trial_frame


SUMMARY = BlockSummary(
    congruent_RT=600.0,
    incongruent_RT=750.0,
    congruent_std=40.0,
    incongruent_std=55.0,
    congruent_NBerrors=2,
    incongruent_NBerrors=4,
)


class TestResultsTable:

    def test_columns_and_order(self):
        table = ResultsTable([12, 3])
        table.add_participant(7)
        df = table.to_frame()
        assert list(df.columns) == RESULT_COLUMNS
        assert df["participant_id"].tolist() == ["p03", "p07", "p12"]

    def test_block_groups(self):
        table = ResultsTable([1])
        assert table.add_block_summary(1, 2, SUMMARY)
        row = table.to_frame().iloc[0]
        assert row["block2_dscore"] == pytest.approx(-150.0)
        assert row["block2_incongruent_NBerrors"] == 4
        assert pd.isna(row["block1_congruent_RT"])
        assert pd.isna(row["block1_congruent_NBerrors"])

    def test_unexpected_block_warns_and_is_ignored(self):
        table = ResultsTable([1])
        with pytest.warns(UnexpectedBlockWarning, match="block 3"):
            stored = table.add_block_summary(1, 3, SUMMARY)
        assert stored is False
        df = table.to_frame()
        assert df.drop(columns="participant_id").isna().all(axis=None)

    def test_participant_rows_unique(self):
        table = ResultsTable([4, 4])
        table.add_block_summary(4, 1, SUMMARY)
        table.add_block_summary(4, 2, SUMMARY)
        assert len(table) == 1
        assert table.participant_ids == ["p04"]

    def test_error_counts_are_integers(self):
        table = ResultsTable([1])
        table.add_block_summary(1, 1, SUMMARY)
        df = table.to_frame()
        assert str(df["block1_congruent_NBerrors"].dtype) == "Int64"

    def test_save_writes_empty_cells(self, tmp_path):
        table = ResultsTable([1])
        table.add_block_summary(1, 1, SUMMARY)
        path = table.save(tmp_path / "out")
        assert path.name == "opensesameResults.csv"

        header, row = path.read_text(encoding="utf-8").splitlines()
        assert header.split(",") == RESULT_COLUMNS
        cells = row.split(",")
        assert cells[0] == "p01"
        assert cells[6] == "2" and cells[7] == "4"
        assert cells[8:] == [""] * 7


class TestBuildResultsTable:

    def test_end_to_end(self, write_trial_log, tmp_path):
        # p05: warm-up trial slow, every other trial 500 ms with no retry
        write_trial_log("data_P05_block1.csv", overrides={51: (2000.0, 2000.0)})
        write_trial_log(
            "data_P05_block2.csv",
            overrides={122: (100.0, 400.0), 130: (250.0, 250.0)},
        )
        write_trial_log("data_P02_1.csv", congruent_rt=450.0, incongruent_rt=700.0)

        output_dir = tmp_path / "results"
        results = build_results_table(
            data_dir=tmp_path / "raw", output_dir=output_dir, verbose=False
        )

        assert results["participant_id"].tolist() == ["p02", "p05"]
        p05 = results.set_index("participant_id").loc["p05"]
        assert p05["block1_congruent_RT"] == pytest.approx(500.0)
        assert p05["block1_congruent_std"] == pytest.approx(0.0)
        assert p05["block1_congruent_NBerrors"] == 0
        assert p05["block1_dscore"] == pytest.approx(500.0 - 800.0)
        assert p05["block2_incongruent_NBerrors"] == 1
        assert p05["block2_incongruent_RT"] == pytest.approx((700.0 + 300.0 + 37 * 800.0) / 39)

        saved = pd.read_csv(output_dir / "opensesameResults.csv")
        assert list(saved.columns) == RESULT_COLUMNS
        assert saved["participant_id"].tolist() == ["p02", "p05"]

    def test_missing_block2_left_empty(self, write_trial_log, tmp_path):
        write_trial_log("data_P01_block1.csv")
        results = build_results_table(
            data_dir=tmp_path / "raw", output_dir=tmp_path / "results", verbose=False
        )
        row = results.iloc[0]
        assert row["block1_congruent_RT"] == pytest.approx(500.0)
        block2 = [c for c in results.columns if c.startswith("block2_")]
        assert results[block2].isna().all(axis=None)

        saved = pd.read_csv(tmp_path / "results" / "opensesameResults.csv")
        assert saved[block2].isna().all(axis=None)

    def test_malformed_filename_creates_no_row(self, write_trial_log, tmp_path):
        write_trial_log("data_P01_block1.csv")
        write_trial_log("pilot_block1.csv")
        with pytest.warns(SkippedFileWarning):
            results = build_results_table(data_dir=tmp_path / "raw", save=False, verbose=False)
        assert results["participant_id"].tolist() == ["p01"]

    def test_unexpected_block_warns(self, write_trial_log, tmp_path):
        write_trial_log("data_P01_condition_3.csv")
        with pytest.warns(UnexpectedBlockWarning):
            results = build_results_table(data_dir=tmp_path / "raw", save=False, verbose=False)
        assert results["participant_id"].tolist() == ["p01"]
        assert results.drop(columns="participant_id").isna().all(axis=None)

    def test_short_log_aborts_without_output(self, write_trial_log, tmp_path):
        write_trial_log("data_P01_block1.csv")
        write_trial_log("data_P02_block1.csv", n_rows=120)
        output_dir = tmp_path / "results"
        with pytest.raises(MissingDataError, match="data_P02_block1.csv"):
            build_results_table(data_dir=tmp_path / "raw", output_dir=output_dir, verbose=False)
        assert not (output_dir / "opensesameResults.csv").exists()

    def test_short_log_skipped_when_requested(self, write_trial_log, tmp_path):
        write_trial_log("data_P01_block1.csv")
        write_trial_log("data_P02_block1.csv", n_rows=120)
        output_dir = tmp_path / "results"
        with pytest.warns(SkippedFileWarning, match="data_P02_block1.csv"):
            results = build_results_table(
                data_dir=tmp_path / "raw", output_dir=output_dir, verbose=False, skip_invalid=True
            )
        assert results["participant_id"].tolist() == ["p01", "p02"]
        assert pd.isna(results.iloc[1]["block1_congruent_RT"])
        assert (output_dir / "opensesameResults.csv").exists()

    def test_ambiguous_filename_aborts(self, write_trial_log, tmp_path):
        write_trial_log("data_P01_final.csv")
        with pytest.raises(FilenamePatternError):
            build_results_table(data_dir=tmp_path / "raw", save=False, verbose=False)

    def test_no_logs(self, raw_dir, tmp_path):
        output_dir = tmp_path / "results"
        with pytest.warns(UserWarning, match="no participant trial logs"):
            results = build_results_table(data_dir=raw_dir, output_dir=output_dir, verbose=False)
        assert results.empty
        assert list(results.columns) == RESULT_COLUMNS

        saved = pd.read_csv(output_dir / "opensesameResults.csv")
        assert saved.empty
        assert list(saved.columns) == RESULT_COLUMNS

    def test_no_logs_without_save(self, raw_dir, tmp_path):
        with pytest.warns(UserWarning, match="no participant trial logs"):
            build_results_table(data_dir=raw_dir, output_dir=tmp_path / "results", save=False, verbose=False)
        assert not (tmp_path / "results").exists()

    def test_latin1_log_skipped_when_requested(self, write_trial_log, raw_dir, tmp_path):
        write_trial_log("data_P01_block1.csv")
        trials = make_trial_frame()
        trials["stimulus"] = "caf\xe9"
        trials.to_csv(raw_dir / "data_P02_block1.csv", index=False, encoding="latin-1")

        with pytest.warns(SkippedFileWarning, match="data_P02_block1.csv.*not UTF-8"):
            results = build_results_table(
                data_dir=raw_dir, output_dir=tmp_path / "results", verbose=False, skip_invalid=True
            )
        assert results["participant_id"].tolist() == ["p01", "p02"]
        assert results.iloc[1].drop("participant_id").isna().all()

    def test_results_table_in_data_dir_not_rescored(self, write_trial_log, raw_dir):
        write_trial_log("data_P01_block1.csv")
        build_results_table(data_dir=raw_dir, output_dir=raw_dir, output_name="iat_P99.csv", verbose=False)

        results = build_results_table(
            data_dir=raw_dir, output_dir=raw_dir, output_name="iat_P99.csv", verbose=False
        )
        assert results["participant_id"].tolist() == ["p01"]

    def test_verbose_output(self, write_trial_log, tmp_path, capsys):
        write_trial_log("data_P01_block1.csv")
        build_results_table(data_dir=tmp_path / "raw", save=False, verbose=True)
        out = capsys.readouterr().out
        assert "[OK] p01 block 1" in out
        assert "[INFO] results: 1 rows" in out
