"""
Results processing for LMEPower.

This module aggregates per-replication result rows into power summaries:
one row per (swept parameter values, term) with the mean estimate, mean
standard error and the fraction of significant replications.
"""

from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..utils.validators import _validate_alpha, _validate_confidence, _validate_target_power
from .parameters import PARAMETER_NAMES

SUMMARY_COLUMNS = [
    "n_reps",
    "mean_estimate",
    "mean_std_error",
    "power",
    "power_ci_lower",
    "power_ci_upper",
    "n_warnings",
]


def varying_parameters(rows: pd.DataFrame) -> List[str]:
    """Parameter columns that take more than one value in *rows*."""
    return [name for name in PARAMETER_NAMES if name in rows.columns and rows[name].nunique(dropna=False) > 1]


class ResultsProcessor:
    """Converts result rows into power estimates.

    Power for a group is the fraction of replications whose p-value is
    below ``alpha``. Replications whose fit failed (NaN p-value) count as
    non-significant, so power is never inflated by dropped runs.
    """

    def __init__(self, alpha: float = 0.05, target_power: float = 0.8, confidence: float = 0.95):
        """Initialise the results processor.

        Args:
            alpha: Significance threshold.
            target_power: Target power as a fraction (0-1), used by
                ``first_achieved``.
            confidence: Coverage of the Monte Carlo interval around power.
        """
        _validate_alpha(alpha).raise_if_invalid()
        _validate_target_power(target_power).raise_if_invalid()
        _validate_confidence(confidence).raise_if_invalid()
        self.alpha = alpha
        self.target_power = target_power
        self.confidence = confidence

    def summarize(self, rows: pd.DataFrame, by: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Aggregate result rows into a power summary.

        Args:
            rows: Result rows (``term``, ``estimate``, ``std_error``,
                ``p_value``, ``convergence_warning`` plus parameter columns).
            by: Columns to group on in addition to ``term``. Defaults to the
                parameters that vary across *rows*.

        Returns:
            DataFrame with the *by* columns, ``term`` and ``SUMMARY_COLUMNS``.
        """
        from scipy.stats import norm

        by = list(varying_parameters(rows) if by is None else by)
        missing = [c for c in by + ["term"] if c not in rows.columns]
        if missing:
            raise KeyError(f"Columns not found in result rows: {', '.join(missing)}")

        frame = rows.copy()
        frame["_significant"] = (frame["p_value"] < self.alpha).astype(float)
        if "convergence_warning" in frame.columns:
            marker = frame["convergence_warning"].fillna("").astype(str)
            frame["_warned"] = (marker != "").astype(int)
        else:
            frame["_warned"] = 0

        summary = (
            frame.groupby(by + ["term"], sort=True)
            .agg(
                n_reps=("p_value", "size"),
                mean_estimate=("estimate", "mean"),
                mean_std_error=("std_error", "mean"),
                power=("_significant", "mean"),
                n_warnings=("_warned", "sum"),
            )
            .reset_index()
        )

        # Normal-approximation Monte Carlo interval for a binomial proportion
        z = norm.ppf(1 - (1 - self.confidence) / 2)
        half_width = z * np.sqrt(summary["power"] * (1 - summary["power"]) / summary["n_reps"])
        summary["power_ci_lower"] = (summary["power"] - half_width).clip(lower=0.0)
        summary["power_ci_upper"] = (summary["power"] + half_width).clip(upper=1.0)

        return summary[by + ["term"] + SUMMARY_COLUMNS]

    def first_achieved(self, summary: pd.DataFrame, parameter: str, term: str) -> Optional[Any]:
        """Smallest *parameter* value whose power for *term* reaches the target.

        Returns:
            The grid value, or ``None`` if no value reaches ``target_power``.
        """
        subset = summary[(summary["term"] == term) & (summary["power"] >= self.target_power)]
        if subset.empty:
            return None
        value = subset[parameter].min()
        return value.item() if hasattr(value, "item") else value


def summarize_power(
    rows: pd.DataFrame,
    by: Optional[Sequence[str]] = None,
    alpha: float = 0.05,
) -> pd.DataFrame:
    """Group result rows by *by* and term and compute power at *alpha*."""
    return ResultsProcessor(alpha=alpha).summarize(rows, by=by)
