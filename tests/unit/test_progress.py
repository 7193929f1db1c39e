"""Unit tests for lmepower.progress: sweep progress counting and reporters."""

import io
import sys
from unittest.mock import MagicMock, patch

import pytest

from lmepower import ParameterSet, grid_labels
from lmepower.progress import PrintReporter, SweepProgress, TqdmReporter, combination_of


class TestCombinationOf:
    @pytest.mark.parametrize(
        "current, expected",
        [(0, 0), (1, 0), (4, 0), (5, 1), (8, 1), (9, 2), (12, 2)],
    )
    def test_maps_replication_count_to_grid_point(self, current, expected):
        # 3 combinations x 4 replications
        assert combination_of(current, 12, 3) == expected

    def test_empty_sweep(self):
        assert combination_of(0, 0, 0) == 0


class TestSweepProgress:
    def test_total_is_reps_times_combinations(self):
        progress = SweepProgress(50, 3, MagicMock())
        assert progress.total == 150

    def test_start_reports_zero(self):
        cb = MagicMock()
        SweepProgress(10, 2, cb).start()
        cb.assert_called_once_with(0, 20)

    def test_combination_boundary_forces_update(self):
        cb = MagicMock()
        progress = SweepProgress(3, 2, cb, update_every=100)
        progress.start()
        for _ in range(6):
            progress.replication_done()
        reported = [c.args[0] for c in cb.call_args_list]
        assert reported == [0, 3, 6]

    def test_throttled_between_boundaries(self):
        cb = MagicMock()
        progress = SweepProgress(100, 1, cb, update_every=10)
        for _ in range(25):
            progress.replication_done()
        assert [c.args[0] for c in cb.call_args_list] == [10, 20]

    def test_default_update_every(self):
        assert SweepProgress(200, 5, MagicMock()).update_every == 5

    def test_tracks_grid_position(self):
        progress = SweepProgress(4, 3, MagicMock())
        for _ in range(6):
            progress.replication_done()
        assert progress.completed_combinations == 1
        assert progress.combination_index == 1

    def test_last_replication_reports_total(self):
        cb = MagicMock()
        progress = SweepProgress(7, 3, cb, update_every=1000)
        for _ in range(21):
            progress.replication_done()
        cb.assert_called_with(21, 21)


class TestGridLabels:
    def test_labels_list_varying_parameters_only(self):
        combos = [ParameterSet(n_subj=2, beta_1=10.0), ParameterSet(n_subj=5, beta_1=10.0)]
        assert grid_labels(combos, ["n_subj"]) == ["n_subj=2", "n_subj=5"]

    def test_two_dimensions(self):
        combos = [ParameterSet(n_subj=2, beta_1=10.0)]
        assert grid_labels(combos, ["n_subj", "beta_1"]) == ["n_subj=2, beta_1=10.0"]

    def test_nothing_varying(self):
        assert grid_labels([ParameterSet()], []) == [""]


def _stderr_of(reporter, *updates):
    buf = io.StringIO()
    with patch.object(sys, "stderr", buf):
        for current, total in updates:
            reporter(current, total)
    return buf.getvalue()


class TestPrintReporter:
    def test_counts_replications(self):
        output = _stderr_of(PrintReporter(), (50, 100))
        assert "50.0%" in output
        assert "(50/100 replications)" in output

    def test_shows_current_grid_point(self):
        reporter = PrintReporter(["n_subj=2", "n_subj=5"])
        assert "[n_subj=2]" in _stderr_of(reporter, (3, 10))
        assert "[n_subj=5]" in _stderr_of(reporter, (6, 10))

    def test_empty_label_not_bracketed(self):
        assert "[" not in _stderr_of(PrintReporter([""]), (1, 4))

    def test_shorter_line_overwrites_longer(self):
        reporter = PrintReporter(["n_subj=10, beta_1=30.0", "n_subj=2"])
        output = _stderr_of(reporter, (1, 4), (3, 4))
        first, second = output.split("\r")[1:]
        assert len(second) >= len(first)

    def test_newline_after_last_replication(self):
        assert _stderr_of(PrintReporter(), (10, 10)).endswith("\n")

    def test_empty_sweep_prints_nothing(self):
        assert _stderr_of(PrintReporter(), (0, 0)) == ""


class TestTqdmReporter:
    def _fake_tqdm(self):
        bar = MagicMock()
        bar.n = 0
        module = MagicMock()
        module.tqdm = MagicMock(return_value=bar)
        return module, bar

    def test_missing_tqdm_raises(self):
        with patch.dict("sys.modules", {"tqdm": None}):
            with pytest.raises(ImportError, match="tqdm"):
                TqdmReporter()(0, 10)

    def test_bar_counts_replications(self):
        module, bar = self._fake_tqdm()
        reporter = TqdmReporter()
        with patch.dict("sys.modules", {"tqdm": module}):
            reporter(0, 10)
            module.tqdm.assert_called_once_with(total=10, unit="rep")
            reporter(4, 10)
            bar.update.assert_called_with(4)
            bar.n = 4
            reporter(10, 10)
            bar.update.assert_called_with(6)
            bar.close.assert_called_once()

    def test_postfix_is_grid_point(self):
        module, bar = self._fake_tqdm()
        reporter = TqdmReporter(["n_subj=2", "n_subj=5"])
        with patch.dict("sys.modules", {"tqdm": module}):
            reporter(6, 10)
        bar.set_postfix_str.assert_called_with("n_subj=5")
