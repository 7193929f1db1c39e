"""Unit tests for parameter-grid expansion and sweep configuration."""

import numpy as np
import pytest

from lmepower import InvalidParameters, ParameterSet, SweepRunner, expand_grid


class TestExpandGrid:
    def test_scalars_give_one_combination(self):
        combinations, varying = expand_grid({"n_subj": 12, "beta_1": 25.0})
        assert combinations == [ParameterSet(n_subj=12, beta_1=25.0)]
        assert varying == []

    def test_empty_grid_is_the_defaults(self):
        combinations, varying = expand_grid({})
        assert combinations == [ParameterSet()]
        assert varying == []

    def test_single_dimension(self):
        combinations, varying = expand_grid({"n_subj": [2, 5, 10]})
        assert [c.n_subj for c in combinations] == [2, 5, 10]
        assert varying == ["n_subj"]

    def test_cartesian_product_order(self):
        combinations, varying = expand_grid({"n_subj": [2, 5], "beta_1": [10.0, 20.0, 30.0]})
        assert len(combinations) == 6
        assert [(c.n_subj, c.beta_1) for c in combinations] == [
            (2, 10.0),
            (2, 20.0),
            (2, 30.0),
            (5, 10.0),
            (5, 20.0),
            (5, 30.0),
        ]
        assert varying == ["n_subj", "beta_1"]

    def test_unnamed_parameters_keep_defaults(self):
        combinations, _ = expand_grid({"n_subj": [3, 4]})
        for combo in combinations:
            assert combo.sigma == ParameterSet().sigma
            assert combo.rho == ParameterSet().rho

    @pytest.mark.parametrize(
        "values",
        [range(2, 5), (2, 3, 4), np.array([2, 3, 4])],
        ids=["range", "tuple", "ndarray"],
    )
    def test_sequence_types(self, values):
        combinations, varying = expand_grid({"n_subj": values})
        assert [c.n_subj for c in combinations] == [2, 3, 4]
        assert varying == ["n_subj"]

    def test_numpy_values_unwrapped(self):
        combinations, _ = expand_grid({"n_subj": np.array([4]), "sigma": np.float64(100.0)})
        assert type(combinations[0].n_subj) is int
        assert type(combinations[0].sigma) is float

    def test_unknown_parameter(self):
        with pytest.raises(InvalidParameters, match="n_subjects"):
            expand_grid({"n_subjects": [2, 5]})

    def test_empty_dimension(self):
        with pytest.raises(InvalidParameters, match="no values"):
            expand_grid({"n_subj": []})

    def test_one_bad_combination_rejects_grid(self):
        with pytest.raises(InvalidParameters, match="rho"):
            expand_grid({"rho": [0.0, 0.5, 1.2]})


class TestSweepRunnerSettings:
    def test_defaults(self):
        runner = SweepRunner(n_reps=100)
        assert runner.n_reps == 100
        assert runner.seed is None
        assert runner.parallel is False
        assert runner.fit_options == {}

    @pytest.mark.parametrize("n_reps", [0, -5, 2.5, "100", True])
    def test_invalid_replications(self, n_reps):
        with pytest.raises(InvalidParameters):
            SweepRunner(n_reps=n_reps)

    def test_low_replication_warning(self, capsys):
        SweepRunner(n_reps=10)
        assert "Low replication count" in capsys.readouterr().out

    @pytest.mark.parametrize("seed", [-1, 2**32, 1.5])
    def test_invalid_seed(self, seed):
        with pytest.raises(InvalidParameters):
            SweepRunner(n_reps=100, seed=seed)

    def test_invalid_alpha(self):
        with pytest.raises(InvalidParameters):
            SweepRunner(n_reps=100, alpha=0.0)

    def test_invalid_parallel_flag(self):
        with pytest.raises(InvalidParameters, match="parallel"):
            SweepRunner(n_reps=100, parallel="yes")

    def test_replication_seeds_are_distinct_and_order_free(self):
        runner = SweepRunner(n_reps=3, seed=100)
        seeds = [runner._replication_seed(c, r) for c in range(2) for r in range(3)]
        assert seeds == [100, 101, 102, 103, 104, 105]

    def test_replication_seed_wraps(self):
        runner = SweepRunner(n_reps=100, seed=2**32 - 1)
        assert runner._replication_seed(0, 1) == 0

    def test_no_seed_means_fresh_entropy(self):
        assert SweepRunner(n_reps=100)._replication_seed(3, 7) is None
