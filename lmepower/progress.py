"""
Progress reporting for LMEPower sweeps.

A sweep runs ``n_reps`` replications of every grid combination in
combination-major order (the joblib generator yields in task order too), so
the count of finished replications alone tells which grid point is being
worked on. ``SweepProgress`` keeps that count and forwards it to a plain
``callback(current, total)``; the reporters below turn it back into a grid
point label for display.
"""

import sys
from typing import Callable, List, Optional, Sequence


class SimulationCancelled(Exception):
    """Raised when ``cancel_check`` asks a running sweep to stop."""

    pass


def combination_of(current: int, total: int, n_combinations: int) -> int:
    """Grid combination (0-based) that replication number *current* belongs to.

    *current* is the 1-based count of finished replications; ``0`` maps to
    the first combination.
    """
    if total <= 0 or n_combinations <= 0:
        return 0
    n_reps = max(1, total // n_combinations)
    return min(max(current - 1, 0) // n_reps, n_combinations - 1)


class SweepProgress:
    """Counts finished replications of a grid sweep.

    The callback fires on ``start``, every *update_every* replications, and
    whenever a grid combination finishes its last replication, so every grid
    point is reported as complete even when updates are throttled.

    Args:
        n_reps: Replications per grid combination.
        n_combinations: Number of grid combinations.
        callback: Called as ``callback(current, total)``.
        update_every: Minimum spacing between throttled updates. Defaults to
            ``max(1, total // 200)``.
    """

    def __init__(
        self,
        n_reps: int,
        n_combinations: int,
        callback: Callable[[int, int], None],
        update_every: Optional[int] = None,
    ):
        self.n_reps = n_reps
        self.n_combinations = n_combinations
        self.total = n_reps * n_combinations
        self.current = 0
        self._callback = callback
        self.update_every = update_every if update_every is not None else max(1, self.total // 200)

    @property
    def completed_combinations(self) -> int:
        return self.current // self.n_reps if self.n_reps else 0

    @property
    def combination_index(self) -> int:
        """Grid combination of the most recently finished replication."""
        return combination_of(self.current, self.total, self.n_combinations)

    def start(self):
        self.current = 0
        self._callback(0, self.total)

    def replication_done(self):
        self.current += 1
        combination_finished = self.current % self.n_reps == 0
        if combination_finished or self.current % self.update_every == 0:
            self._callback(self.current, self.total)


class PrintReporter:
    """Console reporter writing to stderr.

    Prints ``\\rProgress:  45.0% (9/20 replications) [n_subj=5]``. The
    bracketed grid point is shown when *labels* (one per combination, as
    built by ``lmepower.core.sweep.grid_labels``) are given.
    """

    def __init__(self, labels: Optional[Sequence[str]] = None):
        self.labels: List[str] = list(labels or [])
        self._width = 0

    def __call__(self, current: int, total: int):
        if total <= 0:
            return
        line = f"Progress: {100.0 * current / total:5.1f}% ({current}/{total} replications)"
        if self.labels:
            label = self.labels[combination_of(current, total, len(self.labels))]
            if label:
                line += f" [{label}]"
        # Pad over a longer previous line
        padded = line.ljust(self._width)
        self._width = len(line)
        sys.stderr.write("\r" + padded)
        if current >= total:
            sys.stderr.write("\n")
            self._width = 0
        sys.stderr.flush()


class TqdmReporter:
    """tqdm progress bar with the current grid point as postfix (lazy import).

    Usage::

        from lmepower.progress import TqdmReporter
        run_sweep({"n_subj": [5, 10, 20]}, n_reps=200, progress_callback=TqdmReporter())
    """

    def __init__(self, labels: Optional[Sequence[str]] = None, **tqdm_kwargs):
        self.labels: List[str] = list(labels or [])
        self._tqdm_kwargs = tqdm_kwargs
        self._bar = None

    def __call__(self, current: int, total: int):
        from tqdm import tqdm

        if self._bar is None:
            self._bar = tqdm(total=total, unit="rep", **self._tqdm_kwargs)

        if self.labels:
            self._bar.set_postfix_str(self.labels[combination_of(current, total, len(self.labels))])

        delta = current - self._bar.n
        if delta > 0:
            self._bar.update(delta)

        if current >= total:
            self._bar.close()
            self._bar = None
