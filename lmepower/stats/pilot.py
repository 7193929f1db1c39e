"""Parameter estimation from pilot data.

Fits the same random-intercept, random-slope model the simulator draws
from to real trial data, and converts the estimates into a
``ParameterSet`` that can seed a sensitivity sweep.
"""

from typing import Optional, Tuple

import numpy as np
import pandas as pd

from ..core.parameters import ParameterSet
from ..utils.columns import (
    ABSENT_LABEL,
    EFFECT_CODE_COLUMN,
    EFFECT_CODES,
    OUTCOME_COLUMN,
    PRESENT_LABEL,
    SUBJECT_COLUMN,
)
from ..utils.validators import _ValidationResult
from .mixed_models import INTERCEPT_TERM, SLOPE_TERM, FitResult, fit_mixed_model


def _prepare_pilot_trials(
    trials: pd.DataFrame,
    set_size: Optional[int],
    accuracy: Optional[str],
    set_size_column: str,
    condition: str,
    subject: str,
    outcome: str,
    present_label: str,
    absent_label: str,
) -> pd.DataFrame:
    required = [condition, subject, outcome]
    if accuracy is not None:
        required.append(accuracy)
    if set_size is not None:
        required.append(set_size_column)
    missing = [c for c in required if c not in trials.columns]
    if missing:
        _ValidationResult(False, [f"Pilot data is missing columns: {', '.join(missing)}"], []).raise_if_invalid()

    mask = trials[condition].isin([present_label, absent_label])
    if accuracy is not None:
        mask &= trials[accuracy] == 1
    if set_size is not None:
        mask &= trials[set_size_column] == set_size
    kept = trials.loc[mask].dropna(subset=[outcome])

    if kept.empty:
        _ValidationResult(False, ["No pilot trials left after filtering on accuracy, set size and condition"], []).raise_if_invalid()

    codes = {present_label: EFFECT_CODES[PRESENT_LABEL], absent_label: EFFECT_CODES[ABSENT_LABEL]}
    return pd.DataFrame(
        {
            SUBJECT_COLUMN: kept[subject].to_numpy(),
            EFFECT_CODE_COLUMN: kept[condition].map(codes).to_numpy(dtype=float),
            OUTCOME_COLUMN: kept[outcome].to_numpy(dtype=float),
            "_label": kept[condition].to_numpy(),
        }
    )


def estimate_parameters(
    trials: pd.DataFrame,
    set_size: Optional[int] = None,
    accuracy: Optional[str] = "acc",
    set_size_column: str = "set_size",
    condition: str = "distractor",
    subject: str = "subj_id",
    outcome: str = "rt",
    present_label: str = PRESENT_LABEL,
    absent_label: str = ABSENT_LABEL,
    **fit_options,
) -> Tuple[ParameterSet, FitResult]:
    """Estimate generating parameters from pilot trial data.

    Only correct trials (``accuracy == 1``) are used, optionally restricted
    to one display set size. The condition is effect-coded (absent -0.5,
    present +0.5) before fitting.

    Args:
        trials: One row per trial.
        set_size: Keep only trials with this set size (``None`` keeps all).
        accuracy: Accuracy flag column, or ``None`` to keep every trial.
        set_size_column: Set-size column name.
        condition: Distractor condition label column.
        subject: Subject identifier column.
        outcome: Reaction time column.
        present_label: Label of the distractor-present level.
        absent_label: Label of the distractor-absent level.
        **fit_options: Forwarded to ``fit_mixed_model``.

    Returns:
        ``(params, fit)``: the estimated ``ParameterSet`` and the raw fit.
        Trial counts are the median per subject and condition.

    Raises:
        InvalidParameters: If columns are missing, no trials survive the
            filters, or the fit failed so no estimates exist.
    """
    data = _prepare_pilot_trials(
        trials, set_size, accuracy, set_size_column, condition, subject, outcome, present_label, absent_label
    )
    fit = fit_mixed_model(data, **fit_options)
    if fit.failed:
        _ValidationResult(False, [f"Pilot model could not be fitted: {fit.convergence_warning}"], []).raise_if_invalid()

    cov = fit.random_effects_cov
    tau_0 = float(np.sqrt(max(cov[0, 0], 0.0)))
    tau_1 = float(np.sqrt(max(cov[1, 1], 0.0)))
    rho = float(cov[0, 1] / (tau_0 * tau_1)) if tau_0 > 0 and tau_1 > 0 else 0.0

    counts = data.groupby([SUBJECT_COLUMN, "_label"]).size().unstack(fill_value=0)
    n_present = int(np.median(counts[present_label])) if present_label in counts else 0
    n_absent = int(np.median(counts[absent_label])) if absent_label in counts else 0

    params = ParameterSet(
        n_subj=int(data[SUBJECT_COLUMN].nunique()),
        n_present=max(n_present, 1),
        n_absent=max(n_absent, 1),
        beta_0=fit.coefficient(INTERCEPT_TERM),
        beta_1=fit.coefficient(SLOPE_TERM),
        tau_0=tau_0,
        tau_1=tau_1,
        rho=float(np.clip(rho, -1.0, 1.0)),
        sigma=float(np.sqrt(fit.residual_variance)),
    )
    return params, fit
