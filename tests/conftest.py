"""
Shared pytest fixtures for LMEPower tests.
"""

import pytest

from lmepower import ParameterSet, simulate
from tests.config import SEED, SMALL_PARAMS, TUTORIAL_PARAMS


def pytest_configure(config):
    config.addinivalue_line("markers", "lme: tests that fit mixed models with statsmodels")
    config.addinivalue_line("markers", "slow: long-running statistical property checks")


@pytest.fixture
def tutorial_params():
    """The documented 10-subject configuration."""
    return ParameterSet(**TUTORIAL_PARAMS)


@pytest.fixture
def small_params():
    """Few subjects and trials; fits in well under a second."""
    return ParameterSet(**SMALL_PARAMS)


@pytest.fixture
def small_dataset(small_params):
    """One seeded dataset from ``small_params``."""
    return simulate(small_params, seed=SEED)


@pytest.fixture
def results_path(tmp_path):
    """Path for a results CSV that does not exist yet."""
    return tmp_path / "sims" / "results.csv"


@pytest.fixture
def suppress_output(capsys):
    """Swallow console notices (low-replication warnings, skip messages)."""
    yield
    capsys.readouterr()
