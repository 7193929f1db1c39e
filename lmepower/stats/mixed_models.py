"""Linear Mixed-Effects (LME) fitting for Monte Carlo power analysis.

Fits ``rt ~ 1 + distractor_ec`` with a by-subject random intercept and
random slope using statsmodels MixedLM (REML by default), and returns the
fixed-effect table together with the fit's convergence status.

Optimizer warnings are captured inside ``fit_mixed_model`` and returned as
data on ``FitResult``; nothing is retried and nothing escapes to the caller.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..errors import FitConvergenceWarning
from ..utils.columns import EFFECT_CODE_COLUMN, OUTCOME_COLUMN, SUBJECT_COLUMN

COEFFICIENT_COLUMNS = ["estimate", "std_error", "statistic", "p_value"]

INTERCEPT_TERM = "intercept"
SLOPE_TERM = "distractor"
TERMS = [INTERCEPT_TERM, SLOPE_TERM]

NOT_CONVERGED_MESSAGE = "Model did not converge"


@dataclass
class FitResult:
    """Outcome of one mixed-model fit.

    Attributes:
        coefficients: Fixed-effect table indexed by term (``intercept``,
            ``distractor``) with ``estimate``, ``std_error``, ``statistic``
            (Wald z) and ``p_value``. All NaN when the fit failed.
        converged: Optimizer reported convergence and no warnings were raised.
        failed: The fit raised; no estimates are available.
        warnings: Captured warning / failure messages, in order, deduplicated.
        random_effects_cov: Estimated 2x2 (intercept, slope) covariance.
        residual_variance: Estimated residual variance (sigma^2).
        n_obs: Number of observations used.
        n_groups: Number of subjects.
    """

    coefficients: pd.DataFrame
    converged: bool
    failed: bool = False
    warnings: List[str] = field(default_factory=list)
    random_effects_cov: Optional[np.ndarray] = None
    residual_variance: float = np.nan
    n_obs: int = 0
    n_groups: int = 0

    @property
    def convergence_warning(self) -> str:
        """Marker for result rows: ``""`` for a clean fit, else the messages."""
        return "; ".join(self.warnings)

    def coefficient(self, term: str, column: str = "estimate") -> float:
        return float(self.coefficients.loc[term, column])


def _empty_coefficients(terms: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame(np.nan, index=pd.Index(list(terms), name="term"), columns=COEFFICIENT_COLUMNS)


def _collect_messages(caught) -> List[str]:
    """Keep optimizer-related warnings, dropping deprecation noise."""
    messages: List[str] = []
    for w in caught:
        if not issubclass(w.category, (UserWarning, RuntimeWarning)):
            continue
        text = f"{w.category.__name__}: {w.message}"
        if text not in messages:
            messages.append(text)
    return messages


def fit_mixed_model(
    data: pd.DataFrame,
    outcome: str = OUTCOME_COLUMN,
    predictor: str = EFFECT_CODE_COLUMN,
    group: str = SUBJECT_COLUMN,
    reml: bool = True,
    method: Union[str, List[str], None] = "lbfgs",
    maxiter: Optional[int] = None,
) -> FitResult:
    """Fit the random-intercept, random-slope model to *data*.

    Model: ``outcome ~ 1 + predictor + (1 + predictor | group)``.

    Args:
        data: Trial-level data.
        outcome: Outcome column.
        predictor: Numeric (effect-coded) predictor column.
        group: Grouping (subject) column.
        reml: Use REML (default) rather than ML.
        method: Optimizer name or list passed to ``MixedLM.fit``.
        maxiter: Optional iteration cap forwarded to the optimizer.

    Returns:
        A ``FitResult``. Failures and non-convergence are reported on the
        result, never raised.
    """
    try:
        import statsmodels.formula.api as smf
    except ImportError as e:
        raise ImportError("statsmodels required for mixed models: pip install statsmodels") from e

    fit_kwargs: Dict[str, Any] = {"reml": reml}
    if method is not None:
        fit_kwargs["method"] = method
    if maxiter is not None:
        fit_kwargs["maxiter"] = maxiter

    n_obs = len(data)
    n_groups = int(data[group].nunique()) if group in data else 0

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            model = smf.mixedlm(
                f"{outcome} ~ 1 + {predictor}",
                data,
                groups=data[group],
                re_formula=f"~{predictor}",
            )
            result = model.fit(**fit_kwargs)
        except Exception as e:
            messages = _collect_messages(caught)
            messages.append(f"{FitConvergenceWarning.__name__}: fit failed ({type(e).__name__}: {e})")
            return FitResult(
                coefficients=_empty_coefficients(TERMS),
                converged=False,
                failed=True,
                warnings=messages,
                n_obs=n_obs,
                n_groups=n_groups,
            )

    messages = _collect_messages(caught)
    optimizer_converged = bool(getattr(result, "converged", True))
    if not optimizer_converged:
        messages.insert(0, f"{FitConvergenceWarning.__name__}: {NOT_CONVERGED_MESSAGE}")

    # Fixed effects come first in the parameter vector, named as in the formula
    fe_names = list(result.fe_params.index)
    estimates = np.asarray(result.fe_params, dtype=float)
    std_errors = np.asarray(result.bse_fe, dtype=float)
    statistics = np.asarray(result.tvalues[fe_names], dtype=float)
    p_values = np.asarray(result.pvalues[fe_names], dtype=float)

    coefficients = pd.DataFrame(
        {
            "estimate": estimates,
            "std_error": std_errors,
            "statistic": statistics,
            "p_value": p_values,
        },
        index=pd.Index(TERMS, name="term"),
    )

    cov_re = result.cov_re
    cov_re = cov_re.values if hasattr(cov_re, "values") else np.asarray(cov_re)

    return FitResult(
        coefficients=coefficients,
        converged=optimizer_converged and not messages,
        failed=False,
        warnings=messages,
        random_effects_cov=np.array(cov_re, dtype=float),
        residual_variance=float(result.scale),
        n_obs=n_obs,
        n_groups=n_groups,
    )
