"""
Trial simulation for LMEPower.

Generates one synthetic subjects x trials dataset from a ``ParameterSet``:
correlated per-subject random intercepts and slopes, crossed with the item
template, plus independent trial-level noise.
"""

from typing import Any, Mapping, Optional, Union

import numpy as np
import pandas as pd

from ..utils.columns import (
    ABSENT_LABEL,
    CONDITION_COLUMN,
    EFFECT_CODE_COLUMN,
    EFFECT_CODES,
    ITEM_COLUMN,
    OUTCOME_COLUMN,
    PRESENT_LABEL,
    SUBJECT_COLUMN,
)
from .parameters import ParameterSet


def _as_parameter_set(params: Union[ParameterSet, Mapping[str, Any]]) -> ParameterSet:
    if isinstance(params, ParameterSet):
        return params
    return ParameterSet.from_dict(params)


def _resolve_random_state(seed: Optional[int], random_state: Optional[np.random.RandomState]) -> np.random.RandomState:
    if random_state is not None:
        return random_state
    return np.random.RandomState(seed)


def build_items(params: ParameterSet) -> pd.DataFrame:
    """Build the item template: one row per trial a subject sees.

    Absent rows come first, then present rows.

    Returns:
        DataFrame with ``item_id``, ``distractor`` and ``distractor_ec``.
    """
    params = _as_parameter_set(params)
    labels = [ABSENT_LABEL] * params.n_absent + [PRESENT_LABEL] * params.n_present
    return pd.DataFrame(
        {
            ITEM_COLUMN: np.arange(1, params.n_trials + 1),
            CONDITION_COLUMN: labels,
            EFFECT_CODE_COLUMN: [EFFECT_CODES[label] for label in labels],
        }
    )


def simulate_subjects(params: ParameterSet, random_state: np.random.RandomState) -> pd.DataFrame:
    """Draw correlated (intercept, slope) offsets for every subject.

    Args:
        params: Generating parameters.
        random_state: Source of randomness; advanced by ``n_subj`` bivariate draws.

    Returns:
        DataFrame with ``subj_id``, ``subj_intercept`` and ``subj_slope``.
    """
    params = _as_parameter_set(params)
    offsets = random_state.multivariate_normal(np.zeros(2), params.covariance_matrix, size=params.n_subj)
    return pd.DataFrame(
        {
            SUBJECT_COLUMN: np.arange(1, params.n_subj + 1),
            "subj_intercept": offsets[:, 0],
            "subj_slope": offsets[:, 1],
        }
    )


def simulate(
    params: Union[ParameterSet, Mapping[str, Any]],
    seed: Optional[int] = None,
    random_state: Optional[np.random.RandomState] = None,
) -> pd.DataFrame:
    """Simulate one trial-level dataset.

    Every subject sees every item, so the result has exactly
    ``n_subj * (n_present + n_absent)`` rows.

    Args:
        params: A ``ParameterSet`` or a mapping accepted by
            ``ParameterSet.from_dict``.
        seed: Seed for a fresh ``RandomState``. Ignored when
            *random_state* is given.
        random_state: Existing generator to draw from.

    Returns:
        DataFrame with subject, item, condition, effect code, the subject's
        random offsets, the residual ``noise`` and the outcome ``rt``.

    Raises:
        InvalidParameters: If *params* is a mapping that fails validation.
    """
    params = _as_parameter_set(params)
    rng = _resolve_random_state(seed, random_state)

    items = build_items(params)
    subjects = simulate_subjects(params, rng)

    trials = subjects.merge(items, how="cross")
    trials["noise"] = rng.normal(0.0, params.sigma, size=len(trials))
    trials[OUTCOME_COLUMN] = (
        params.beta_0
        + trials["subj_intercept"]
        + (params.beta_1 + trials["subj_slope"]) * trials[EFFECT_CODE_COLUMN]
        + trials["noise"]
    )
    return trials
