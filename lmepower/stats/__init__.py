"""Statistical model fitting and pilot-data estimation modules."""

from . import mixed_models as mixed_models
from . import pilot as pilot
