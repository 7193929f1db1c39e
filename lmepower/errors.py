"""
Error taxonomy for LMEPower.

Parameter problems and I/O problems abort the current operation; model-fit
convergence problems are recorded on the result rows instead of raised.
"""


class InvalidParameters(ValueError):
    """Raised when a parameter set or sweep option fails validation."""

    pass


class FitConvergenceWarning(UserWarning):
    """Category for mixed-model fits that did not converge cleanly.

    Never raised into a sweep. Captured fits carry the message on
    ``FitResult.warnings`` and in the ``convergence_warning`` column.
    """

    pass


class IOFailure(OSError):
    """Raised when a results file cannot be created, appended to, or read."""

    pass
