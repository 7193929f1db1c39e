"""
LMEPower Utilities Package.
Internal utilities - not part of public API.
"""

from . import columns, results_log, validators

__all__ = [
    "columns",
    "results_log",
    "validators",
]
