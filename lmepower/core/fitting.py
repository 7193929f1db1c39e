"""
Replication fitting for LMEPower.

Fits the mixed model to one simulated dataset and turns the fixed-effect
table into result rows tagged with the generating parameters, so rows
from many runs can be pooled and grouped by any parameter.
"""

from typing import Any, Mapping, Optional, Union

import pandas as pd

from ..stats.mixed_models import fit_mixed_model
from ..utils.results_log import PathLike, ResultsLog
from .parameters import PARAMETER_NAMES, ParameterSet

RESULT_COLUMNS = ["term", "estimate", "std_error", "statistic", "p_value", "convergence_warning"]


def build_result_rows(
    fit,
    params: ParameterSet,
    tags: Optional[Mapping[str, Any]] = None,
) -> pd.DataFrame:
    """Flatten a ``FitResult`` into one row per fixed-effect term.

    Column order: ``RESULT_COLUMNS``, then *tags*, then every parameter.
    """
    tags = dict(tags or {})
    clash = [key for key in tags if key in RESULT_COLUMNS or key in PARAMETER_NAMES]
    if clash:
        raise ValueError(f"Tag names collide with result columns: {', '.join(clash)}")

    rows = fit.coefficients.reset_index()
    rows["convergence_warning"] = fit.convergence_warning
    rows = rows[RESULT_COLUMNS]

    for key, value in tags.items():
        rows[key] = value
    for key, value in params.to_dict().items():
        rows[key] = value
    return rows


def fit_and_record(
    dataset: pd.DataFrame,
    params: Union[ParameterSet, Mapping[str, Any]],
    sink: Union[None, PathLike, ResultsLog] = None,
    tags: Optional[Mapping[str, Any]] = None,
    **fit_options,
) -> pd.DataFrame:
    """Fit one replication and optionally append its rows to *sink*.

    Args:
        dataset: Output of ``simulate``.
        params: Parameters that generated *dataset*; attached to every row.
        sink: Results file path or an open ``ResultsLog``. A path is opened
            for this call only.
        tags: Extra columns (e.g. ``{"rep": 3}``) placed before the parameters.
        **fit_options: Forwarded to ``fit_mixed_model`` (``reml``, ``method``,
            ``maxiter``).

    Returns:
        DataFrame of result rows (one per fixed-effect term).

    Raises:
        IOFailure: If *sink* cannot be written.
    """
    if not isinstance(params, ParameterSet):
        params = ParameterSet.from_dict(params)

    fit = fit_mixed_model(dataset, **fit_options)
    rows = build_result_rows(fit, params, tags)

    if isinstance(sink, ResultsLog):
        sink.append(rows)
    elif sink is not None:
        with ResultsLog(sink) as log:
            log.append(rows)

    return rows
