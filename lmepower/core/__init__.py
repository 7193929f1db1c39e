"""Core components for the LMEPower framework.

Re-exports the foundational building blocks:

- ``ParameterSet``, ``PARAMETER_NAMES`` — validated generating parameters.
- ``simulate``, ``build_items``, ``simulate_subjects`` — trial simulation.
- ``fit_and_record`` — one replication's fit turned into result rows.
- ``SweepRunner``, ``run_sweep``, ``expand_grid``, ``grid_labels`` — sensitivity sweep.
- ``ResultsProcessor``, ``summarize_power`` — power aggregation.
"""

from .parameters import PARAMETER_NAMES, ParameterSet
from .simulation import build_items, simulate, simulate_subjects
from .fitting import RESULT_COLUMNS, build_result_rows, fit_and_record
from .results import SUMMARY_COLUMNS, ResultsProcessor, summarize_power
from .sweep import SweepRunner, expand_grid, grid_labels, run_sweep

__all__ = [
    # Parameters
    "ParameterSet",
    "PARAMETER_NAMES",
    # Simulation
    "simulate",
    "build_items",
    "simulate_subjects",
    # Fitting
    "fit_and_record",
    "build_result_rows",
    "RESULT_COLUMNS",
    # Sweep
    "SweepRunner",
    "run_sweep",
    "expand_grid",
    "grid_labels",
    # Results
    "ResultsProcessor",
    "summarize_power",
    "SUMMARY_COLUMNS",
]
