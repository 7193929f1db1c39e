"""LMEPower - Monte Carlo power analysis for subjects x trials mixed models.

Simulates reaction-time data from a random-intercept, random-slope model,
refits the model to every simulated dataset, and aggregates the fraction of
significant replications into power curves.

Example:
    >>> from lmepower import ParameterSet, run_sweep, summarize_power
    >>>
    >>> rows = run_sweep({"n_subj": [5, 10, 15]}, n_reps=100, seed=2137)
    >>> summarize_power(rows)
"""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _get_version

from .core import (
    PARAMETER_NAMES,
    ParameterSet,
    ResultsProcessor,
    SweepRunner,
    expand_grid,
    fit_and_record,
    grid_labels,
    run_sweep,
    simulate,
    summarize_power,
)
from .errors import FitConvergenceWarning, InvalidParameters, IOFailure
from .progress import PrintReporter, SimulationCancelled, SweepProgress, TqdmReporter
from .stats.mixed_models import FitResult, fit_mixed_model
from .stats.pilot import estimate_parameters
from .utils.results_log import ResultsLog, read_results

try:
    __version__ = _get_version("LMEPower")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "ParameterSet",
    "PARAMETER_NAMES",
    "simulate",
    "fit_and_record",
    "fit_mixed_model",
    "FitResult",
    "estimate_parameters",
    "SweepRunner",
    "run_sweep",
    "expand_grid",
    "grid_labels",
    "ResultsProcessor",
    "summarize_power",
    "ResultsLog",
    "read_results",
    "InvalidParameters",
    "FitConvergenceWarning",
    "IOFailure",
    "SimulationCancelled",
    "SweepProgress",
    "PrintReporter",
    "TqdmReporter",
]
