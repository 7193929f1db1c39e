"""
Sensitivity sweep for LMEPower.

Runs simulate -> fit for every combination of a parameter grid, ``n_reps``
times each, and collects the result rows. A results file that already
exists short-circuits the whole sweep: its rows are read back instead of
recomputed (delete the file to force a rerun).
"""

import itertools
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..progress import PrintReporter, SimulationCancelled, SweepProgress, TqdmReporter
from ..utils.results_log import PathLike, ResultsLog, read_results
from ..utils.validators import (
    _validate_alpha,
    _validate_known_options,
    _validate_parallel_settings,
    _validate_replications,
    _validate_seed,
    _ValidationResult,
)
from .fitting import fit_and_record
from .parameters import PARAMETER_NAMES, ParameterSet
from .results import ResultsProcessor
from .simulation import simulate

REP_COLUMN = "rep"

_SEQUENCE_TYPES = (list, tuple, range, np.ndarray, pd.Series, pd.Index)


def _to_python(value: Any) -> Any:
    """Unwrap numpy scalars so parameter values serialise cleanly."""
    return value.item() if isinstance(value, np.generic) else value


def expand_grid(parameter_grid: Mapping[str, Any]) -> Tuple[List[ParameterSet], List[str]]:
    """Enumerate the Cartesian product of a parameter grid.

    Scalars are fixed; lists, tuples, ranges and arrays are grid dimensions.
    Every combination is validated before anything is simulated.

    Args:
        parameter_grid: ``{parameter_name: value_or_values}``. Parameters not
            named take their ``ParameterSet`` defaults.

    Returns:
        (combinations, varying): the validated parameter sets, in
        ``itertools.product`` order over the grid's key order, and the names
        of the parameters given as sequences.

    Raises:
        InvalidParameters: For unknown names, empty sequences, or any
            combination that fails ``ParameterSet`` validation.
    """
    _validate_known_options(parameter_grid, PARAMETER_NAMES, "parameter(s)").raise_if_invalid()

    keys = list(parameter_grid)
    axes: List[List[Any]] = []
    varying: List[str] = []
    errors: List[str] = []
    for key in keys:
        value = parameter_grid[key]
        if isinstance(value, _SEQUENCE_TYPES):
            values = [_to_python(v) for v in value]
            if not values:
                errors.append(f"Grid dimension '{key}' has no values")
            varying.append(key)
        else:
            values = [_to_python(value)]
        axes.append(values)
    _ValidationResult(not errors, errors, []).raise_if_invalid()

    combinations = [ParameterSet.from_dict(dict(zip(keys, combo, strict=True))) for combo in itertools.product(*axes)]
    return combinations, varying


def grid_labels(combinations: Sequence[ParameterSet], varying: Sequence[str]) -> List[str]:
    """One ``name=value`` label per combination, over the *varying* parameters."""
    return [", ".join(f"{name}={getattr(params, name)}" for name in varying) for params in combinations]


def _run_replication(params: ParameterSet, rep: int, seed: Optional[int], fit_options: Dict[str, Any]) -> pd.DataFrame:
    """Simulate and fit one replication (module level so loky can pickle it)."""
    dataset = simulate(params, seed=seed)
    return fit_and_record(dataset, params, tags={REP_COLUMN: rep}, **fit_options)


def _results_exist(sink: Optional[PathLike]) -> bool:
    if sink is None:
        return False
    path = Path(sink)
    return path.is_file() and path.stat().st_size > 0


class SweepRunner:
    """Executes the Monte Carlo sensitivity sweep.

    Each (combination, replication) pair draws a fresh dataset with its own
    seed, fits the mixed model once, and yields one row per fixed-effect
    term. Fit problems are recorded on the rows; they never stop the sweep.
    """

    def __init__(
        self,
        n_reps: int,
        seed: Optional[int] = None,
        alpha: float = 0.05,
        parallel: bool = False,
        n_cores: Optional[int] = None,
        fit_options: Optional[Mapping[str, Any]] = None,
    ):
        """Initialise the sweep runner.

        Args:
            n_reps: Replications per grid combination.
            seed: Base random seed. Replication ``r`` of combination ``c``
                uses ``seed + c * n_reps + r``, so results do not depend on
                execution order. ``None`` draws fresh entropy.
            alpha: Significance threshold used by ``summarize``.
            parallel: Run replications in worker processes via joblib.
            n_cores: Worker count (defaults to half the CPUs).
            fit_options: Forwarded to ``fit_mixed_model``.

        Raises:
            InvalidParameters: If any setting is out of range.
        """
        n_reps, result = _validate_replications(n_reps)
        for warning in result.warnings:
            print(f"Warning: {warning}")
        result.raise_if_invalid()
        _validate_seed(seed).raise_if_invalid()
        _validate_alpha(alpha).raise_if_invalid()
        (parallel, n_cores), result = _validate_parallel_settings(parallel, n_cores)
        result.raise_if_invalid()

        self.n_reps = n_reps
        self.seed = seed
        self.alpha = alpha
        self.parallel = parallel
        self.n_cores = n_cores
        self.fit_options = dict(fit_options or {})

    def _replication_seed(self, combo_index: int, rep_index: int) -> Optional[int]:
        if self.seed is None:
            return None
        return (self.seed + combo_index * self.n_reps + rep_index) % 2**32

    def _tasks(self, combinations: Sequence[ParameterSet]):
        for combo_index, params in enumerate(combinations):
            for rep_index in range(self.n_reps):
                yield params, rep_index + 1, self._replication_seed(combo_index, rep_index)

    def _iter_replications(self, combinations: Sequence[ParameterSet], cancel_check: Optional[Callable[[], bool]]):
        parallel = self.parallel
        if parallel:
            try:
                from joblib import Parallel, delayed
            except ImportError:
                print("Warning: joblib not available. Install with: pip install joblib")
                print("Warning: Continuing with sequential processing.")
                parallel = False

        if parallel:
            results = Parallel(n_jobs=self.n_cores, backend="loky", verbose=0, return_as="generator")(
                delayed(_run_replication)(params, rep, seed, self.fit_options) for params, rep, seed in self._tasks(combinations)
            )
            for rows in results:
                if cancel_check is not None and cancel_check():
                    raise SimulationCancelled("Sweep cancelled by user")
                yield rows
        else:
            for params, rep, seed in self._tasks(combinations):
                if cancel_check is not None and cancel_check():
                    raise SimulationCancelled("Sweep cancelled by user")
                yield _run_replication(params, rep, seed, self.fit_options)

    def run(
        self,
        parameter_grid: Mapping[str, Any],
        sink: Optional[PathLike] = None,
        progress=None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> pd.DataFrame:
        """Run the full sweep.

        Args:
            parameter_grid: See ``expand_grid``.
            sink: Optional results CSV. If it already holds rows the sweep is
                skipped and those rows are returned. Otherwise every
                replication's rows are appended as soon as they are ready.
            progress: Optional ``SweepProgress`` sized for this grid and
                ``n_reps``; told about every finished replication.
            cancel_check: Optional callable returning ``True`` to abort.

        Returns:
            All result rows, in task order.

        Raises:
            InvalidParameters: If the grid is invalid (nothing is simulated).
            IOFailure: If *sink* cannot be written or read back.
            SimulationCancelled: If *cancel_check* requests it; rows already
                appended stay in *sink*.
        """
        combinations, _ = expand_grid(parameter_grid)

        if _results_exist(sink):
            print(f"Results file '{sink}' already exists; skipping sweep. Delete it to recompute.")
            return read_results(sink)

        collected: List[pd.DataFrame] = []
        log = ResultsLog(sink).open() if sink is not None else None
        try:
            for rows in self._iter_replications(combinations, cancel_check):
                if log is not None:
                    log.append(rows)
                collected.append(rows)
                if progress is not None:
                    progress.replication_done()
        finally:
            if log is not None:
                log.close()

        return pd.concat(collected, ignore_index=True)

    def summarize(self, rows: pd.DataFrame, by: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """Power summary of *rows* at this runner's ``alpha``."""
        return ResultsProcessor(alpha=self.alpha).summarize(rows, by=by)


def run_sweep(
    parameter_grid: Mapping[str, Any],
    n_reps: int,
    sink: Optional[PathLike] = None,
    seed: Optional[int] = None,
    alpha: float = 0.05,
    parallel: bool = False,
    n_cores: Optional[int] = None,
    fit_options: Optional[Mapping[str, Any]] = None,
    print_progress: bool = False,
    progress_callback=None,
    cancel_check: Optional[Callable[[], bool]] = None,
) -> pd.DataFrame:
    """
    Run simulate -> fit ``n_reps`` times for every grid combination.

    Args:
        parameter_grid: ``{parameter: value or sequence of values}``.
        n_reps: Replications per combination.
        sink: Optional results CSV (skips the sweep if it already exists).
        seed: Base random seed for reproducible sweeps.
        alpha: Significance threshold (kept for ``SweepRunner.summarize``).
        parallel: Run replications in parallel worker processes.
        n_cores: Number of worker processes.
        fit_options: Forwarded to ``fit_mixed_model``.
        print_progress: Show console progress when no callback is given.
        progress_callback: Progress reporting control:
            - ``None`` (default): ``PrintReporter`` if *print_progress*.
            - a ``PrintReporter`` or ``TqdmReporter`` without labels: gets
              one ``grid_labels`` entry per combination.
            - ``False``: explicitly disable progress.
            - callable ``(current, total)``: custom callback.
        cancel_check: Optional callable returning ``True`` to abort.

    Returns:
        DataFrame of result rows (``n_combinations * n_reps * 2`` rows for a
        fresh sweep).
    """
    runner = SweepRunner(
        n_reps,
        seed=seed,
        alpha=alpha,
        parallel=parallel,
        n_cores=n_cores,
        fit_options=fit_options,
    )

    if progress_callback is None:
        effective_cb = PrintReporter() if print_progress else None
    elif progress_callback is False:
        effective_cb = None
    else:
        effective_cb = progress_callback

    reporter = None
    if effective_cb is not None and not _results_exist(sink):
        combinations, varying = expand_grid(parameter_grid)
        if isinstance(effective_cb, (PrintReporter, TqdmReporter)) and not effective_cb.labels:
            effective_cb.labels = grid_labels(combinations, varying)
        reporter = SweepProgress(runner.n_reps, len(combinations), effective_cb)
        reporter.start()

    return runner.run(parameter_grid, sink=sink, progress=reporter, cancel_check=cancel_check)
