"""
Parameter sets for the subjects x trials mixed-effects design.

A ``ParameterSet`` fully describes one data-generating process:

    rt = beta_0 + T_0s + (beta_1 + T_1s) * X_i + e_si

where ``X_i`` is the effect-coded distractor condition (-0.5 absent,
+0.5 present), ``(T_0s, T_1s) ~ MVN(0, G)`` are the per-subject random
intercept and slope, and ``e_si ~ N(0, sigma)`` is trial-level noise.
"""

from dataclasses import asdict, dataclass, fields
from dataclasses import replace as _dc_replace
from typing import Any, Dict, Mapping, Tuple

import numpy as np

from ..utils.validators import (
    _validate_correlation,
    _validate_count,
    _validate_covariance_matrix,
    _validate_known_options,
    _validate_numeric_parameter,
    _validate_std_dev,
    _ValidationResult,
)


@dataclass(frozen=True)
class ParameterSet:
    """Immutable, validated configuration for one simulation run.

    Defaults reproduce the documented visual-search configuration
    (10 subjects, 200 trials per condition), which detects a 30 ms
    distractor effect reliably.

    Attributes:
        n_subj: Number of subjects.
        n_present: Trials per subject with the distractor present.
        n_absent: Trials per subject with the distractor absent.
        beta_0: Fixed intercept (grand mean RT, ms).
        beta_1: Fixed slope (distractor effect, ms).
        tau_0: Random intercept standard deviation.
        tau_1: Random slope standard deviation.
        rho: Correlation between random intercepts and slopes.
        sigma: Residual (trial-level) standard deviation.

    Raises:
        InvalidParameters: On construction, if any field is out of range or
            the random-effects covariance is not positive semi-definite.
    """

    n_subj: int = 10
    n_present: int = 200
    n_absent: int = 200
    beta_0: float = 650.0
    beta_1: float = 30.0
    tau_0: float = 80.0
    tau_1: float = 15.0
    rho: float = 0.35
    sigma: float = 175.0

    def __post_init__(self):
        _validate_parameter_set(self).raise_if_invalid()

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "ParameterSet":
        """Build a parameter set from a plain ``{name: value}`` mapping.

        Missing options take their defaults.

        Raises:
            InvalidParameters: If *options* contains unrecognised names or
                any value fails validation.
        """
        _validate_known_options(options, PARAMETER_NAMES, "parameter(s)").raise_if_invalid()
        return cls(**dict(options))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def replace(self, **changes) -> "ParameterSet":
        """Return a copy with *changes* applied (validated again)."""
        _validate_known_options(changes, PARAMETER_NAMES, "parameter(s)").raise_if_invalid()
        return _dc_replace(self, **changes)

    @property
    def n_trials(self) -> int:
        """Trials per subject across both conditions."""
        return self.n_present + self.n_absent

    @property
    def covariance_matrix(self) -> np.ndarray:
        """2x2 covariance of the (intercept, slope) random effects."""
        cov = self.rho * self.tau_0 * self.tau_1
        return np.array(
            [
                [self.tau_0**2, cov],
                [cov, self.tau_1**2],
            ],
            dtype=float,
        )


PARAMETER_NAMES: Tuple[str, ...] = tuple(f.name for f in fields(ParameterSet))


def _validate_parameter_set(params: ParameterSet) -> _ValidationResult:
    """Run every field check, then the covariance check if the fields are sane."""
    result = _ValidationResult(True, [], [])
    for name in ("n_subj", "n_present", "n_absent"):
        result = result.merge(_validate_count(getattr(params, name), name))
    for name in ("beta_0", "beta_1"):
        result = result.merge(_validate_numeric_parameter(getattr(params, name), name))
    for name in ("tau_0", "tau_1"):
        result = result.merge(_validate_std_dev(getattr(params, name), name))
    result = result.merge(_validate_std_dev(params.sigma, "sigma", allow_zero=False))
    result = result.merge(_validate_correlation(params.rho))

    if result.is_valid:
        result = result.merge(_validate_covariance_matrix(params.covariance_matrix))
    return result
