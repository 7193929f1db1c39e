"""
Distributional checks for the simulator.

Draws many subjects and trials and compares sample moments with the
generating parameters, using Monte Carlo tolerances of ``MC_Z`` standard
errors.
"""

import numpy as np
import pytest

from lmepower import ParameterSet, simulate
from lmepower.core.simulation import simulate_subjects
from tests.config import MC_Z, SEED, TUTORIAL_PARAMS

N_SUBJECTS = 20000


@pytest.fixture(scope="module")
def subjects():
    params = ParameterSet(**{**TUTORIAL_PARAMS, "n_subj": N_SUBJECTS})
    return params, simulate_subjects(params, np.random.RandomState(SEED))


class TestSubjectEffects:
    def test_intercepts_centred(self, subjects):
        params, draws = subjects
        tolerance = MC_Z * params.tau_0 / np.sqrt(N_SUBJECTS)
        assert abs(draws["subj_intercept"].mean()) < tolerance

    def test_slopes_centred(self, subjects):
        params, draws = subjects
        tolerance = MC_Z * params.tau_1 / np.sqrt(N_SUBJECTS)
        assert abs(draws["subj_slope"].mean()) < tolerance

    def test_standard_deviations(self, subjects):
        params, draws = subjects
        # SE of a sample SD is about sd / sqrt(2n)
        rel_tolerance = MC_Z / np.sqrt(2 * N_SUBJECTS)
        assert draws["subj_intercept"].std() == pytest.approx(params.tau_0, rel=rel_tolerance)
        assert draws["subj_slope"].std() == pytest.approx(params.tau_1, rel=rel_tolerance)

    def test_correlation(self, subjects):
        params, draws = subjects
        observed = np.corrcoef(draws["subj_intercept"], draws["subj_slope"])[0, 1]
        tolerance = MC_Z * (1 - params.rho**2) / np.sqrt(N_SUBJECTS)
        assert observed == pytest.approx(params.rho, abs=tolerance)

    @pytest.mark.parametrize("rho", [-0.8, 0.0, 0.6])
    def test_correlation_follows_rho(self, rho):
        params = ParameterSet(n_subj=N_SUBJECTS, tau_0=50.0, tau_1=20.0, rho=rho)
        draws = simulate_subjects(params, np.random.RandomState(SEED))
        observed = np.corrcoef(draws["subj_intercept"], draws["subj_slope"])[0, 1]
        assert observed == pytest.approx(rho, abs=MC_Z * (1 - rho**2) / np.sqrt(N_SUBJECTS) + 1e-9)


class TestTrialOutcomes:
    @pytest.fixture(scope="class")
    def trials(self):
        params = ParameterSet(n_subj=400, n_present=100, n_absent=100, tau_0=0.0, tau_1=0.0)
        return params, simulate(params, seed=SEED)

    def test_noise_scale(self, trials):
        params, data = trials
        n = len(data)
        assert abs(data["noise"].mean()) < MC_Z * params.sigma / np.sqrt(n)
        assert data["noise"].std() == pytest.approx(params.sigma, rel=MC_Z / np.sqrt(2 * n))

    def test_condition_means(self, trials):
        params, data = trials
        means = data.groupby("distractor")["rt"].mean()
        n_per_condition = len(data) / 2
        tolerance = MC_Z * params.sigma / np.sqrt(n_per_condition)
        assert means["absent"] == pytest.approx(params.beta_0 - params.beta_1 / 2, abs=tolerance)
        assert means["present"] == pytest.approx(params.beta_0 + params.beta_1 / 2, abs=tolerance)
