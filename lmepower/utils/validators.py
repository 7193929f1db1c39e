"""
Validation utilities for LMEPower.

This module provides validation functions for parameter sets, sweep
settings, and the random-effects covariance structure.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

import numpy as np

from ..errors import InvalidParameters

__all__ = []


@dataclass
class _ValidationResult:
    """Outcome of a validation check, carrying errors and warnings.

    Attributes:
        is_valid: ``True`` if no errors were found.
        errors: List of error messages (empty when valid).
        warnings: List of non-fatal warning messages.
    """

    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def raise_if_invalid(self):
        """Raise ``InvalidParameters`` if the validation failed."""
        if not self.is_valid:
            error_msg = "Validation failed:\n" + "\n".join(f"• {err}" for err in self.errors)
            raise InvalidParameters(error_msg)

    def merge(self, other: "_ValidationResult") -> "_ValidationResult":
        """Combine two results, keeping every error and warning."""
        errors = self.errors + other.errors
        return _ValidationResult(len(errors) == 0, errors, self.warnings + other.warnings)


class _Validator:
    """Static helpers for type and range checks used by all validators."""

    @staticmethod
    def _check_type(value: Any, expected_types: tuple, name: str) -> Optional[str]:
        """Check if value has expected type (booleans never count as numbers)."""
        if isinstance(value, bool) or not isinstance(value, expected_types):
            actual_type = type(value).__name__
            expected = expected_types[0].__name__ if len(expected_types) == 1 else f"one of {[t.__name__ for t in expected_types]}"
            return f"{name} must be {expected}, got {actual_type}"
        return None

    @staticmethod
    def _check_range(
        value: Union[int, float],
        min_val: Optional[float],
        max_val: Optional[float],
        name: str,
        min_inclusive: bool = True,
    ) -> Optional[str]:
        """Check if value is within range."""
        if min_val is not None:
            if min_inclusive and value < min_val:
                return f"{name} must be >= {min_val}, got {value}"
            if not min_inclusive and value <= min_val:
                return f"{name} must be > {min_val}, got {value}"
        if max_val is not None and value > max_val:
            return f"{name} must be <= {max_val}, got {value}"
        return None


_validator = _Validator()

_INT_TYPES = (int, np.integer)
_REAL_TYPES = (int, float, np.integer, np.floating)


def _validate_numeric_parameter(
    value: Any,
    name: str,
    expected_types: tuple = _REAL_TYPES,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    min_inclusive: bool = True,
) -> _ValidationResult:
    """Generic validation for numeric parameters."""
    errors: List[str] = []

    type_error = _validator._check_type(value, expected_types, name)
    if type_error:
        errors.append(type_error)
        return _ValidationResult(False, errors, [])

    if not math.isfinite(value):
        errors.append(f"{name} must be finite, got {value}")
        return _ValidationResult(False, errors, [])

    range_error = _validator._check_range(value, min_val, max_val, name, min_inclusive)
    if range_error:
        errors.append(range_error)

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_count(value: Any, name: str) -> _ValidationResult:
    """Validate a positive integer count (subjects, trials)."""
    return _validate_numeric_parameter(value, name, expected_types=_INT_TYPES, min_val=1)


def _validate_std_dev(value: Any, name: str, allow_zero: bool = True) -> _ValidationResult:
    """Validate a standard deviation (non-negative, or strictly positive)."""
    return _validate_numeric_parameter(value, name, min_val=0, min_inclusive=allow_zero)


def _validate_correlation(rho: Any) -> _ValidationResult:
    """Validate a correlation coefficient in [-1, 1]."""
    return _validate_numeric_parameter(rho, "rho", min_val=-1, max_val=1)


def _validate_alpha(alpha: Any) -> _ValidationResult:
    """Validate alpha level parameter (0-0.25]."""
    return _validate_numeric_parameter(alpha, "Alpha", min_val=0, max_val=0.25, min_inclusive=False)


def _validate_target_power(power: Any) -> _ValidationResult:
    """Validate target power as a fraction (0-1]."""
    return _validate_numeric_parameter(power, "Target power", min_val=0, max_val=1, min_inclusive=False)


def _validate_confidence(confidence: Any) -> _ValidationResult:
    """Validate an interval coverage in the open interval (0, 1)."""
    result = _validate_numeric_parameter(confidence, "Confidence", min_val=0, max_val=1, min_inclusive=False)
    if result.is_valid and confidence == 1:
        return _ValidationResult(False, [f"Confidence must be < 1, got {confidence}"], [])
    return result


def _validate_replications(n_reps: Any) -> Tuple[int, _ValidationResult]:
    """Validate the number of replications per grid point."""
    result = _validate_numeric_parameter(n_reps, "Number of replications", expected_types=_INT_TYPES, min_val=1)

    if result.is_valid:
        n_reps = int(n_reps)
        if n_reps < 100:
            result.warnings.append(f"Low replication count ({n_reps}). Consider using at least 100 for stable power estimates.")
        return n_reps, result

    return 0, result


def _validate_seed(seed: Any) -> _ValidationResult:
    """Validate a base random seed (``None`` or a non-negative integer)."""
    if seed is None:
        return _ValidationResult(True, [], [])
    return _validate_numeric_parameter(seed, "seed", expected_types=_INT_TYPES, min_val=0, max_val=2**32 - 1)


def _validate_covariance_matrix(cov_matrix: Optional[np.ndarray]) -> _ValidationResult:
    """Validate a random-effects covariance matrix meets mathematical requirements."""
    errors = []

    if cov_matrix is None:
        errors.append("Covariance matrix is None")
        return _ValidationResult(False, errors, [])

    if cov_matrix.ndim != 2 or cov_matrix.shape[0] != cov_matrix.shape[1]:
        errors.append("Covariance matrix must be square")
        return _ValidationResult(False, errors, [])

    if not np.all(np.isfinite(cov_matrix)):
        errors.append("Covariance matrix must contain only finite values")
        return _ValidationResult(False, errors, [])

    if not np.allclose(cov_matrix, cov_matrix.T):
        errors.append("Covariance matrix must be symmetric")

    if np.any(np.diag(cov_matrix) < 0):
        errors.append("Diagonal elements of covariance matrix must be non-negative")

    # Positive semi-definite check
    try:
        eigenvals = np.linalg.eigvalsh(cov_matrix)
        scale = max(1.0, float(np.max(np.abs(np.diag(cov_matrix)))))
        if np.any(eigenvals < -1e-8 * scale):  # Tolerance for floating point noise
            errors.append(f"Random-effects covariance matrix must be positive semi-definite (eigenvalues: {eigenvals})")
    except np.linalg.LinAlgError:
        errors.append("Cannot compute eigenvalues of covariance matrix")

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_known_options(options: Mapping[str, Any], known: Tuple[str, ...], what: str) -> _ValidationResult:
    """Reject option names that are not in *known*."""
    unknown = [key for key in options if key not in known]
    if unknown:
        return _ValidationResult(
            False,
            [f"Unknown {what}: {', '.join(map(str, unknown))}. Valid options: {', '.join(known)}"],
            [],
        )
    return _ValidationResult(True, [], [])


def _validate_parallel_settings(enable: Any, n_cores: Optional[int]) -> Tuple[Tuple[bool, int], _ValidationResult]:
    """Validate parallel processing settings.

    Args:
        enable: True or False
        n_cores: Number of CPU cores (positive int or None for auto)

    Returns:
        ((enable, n_cores), ValidationResult)
    """
    import multiprocessing as mp

    errors = []

    if enable not in (True, False):
        errors.append(f"parallel must be True or False, got {enable!r}")
        return (False, 1), _ValidationResult(False, errors, [])

    max_cores = mp.cpu_count()
    validated_n_cores = max(1, max_cores // 2)

    if n_cores is not None:
        if isinstance(n_cores, bool) or not isinstance(n_cores, int) or n_cores <= 0:
            errors.append(f"n_cores must be a positive integer, got {n_cores}")
        else:
            validated_n_cores = min(n_cores, max_cores)

    return (bool(enable), validated_n_cores), _ValidationResult(len(errors) == 0, errors, [])
