"""
Input coercion shared by the estimators.
"""

import math
from numbers import Real
from typing import Iterable

import numpy as np

from riskforecast.core.domain.errors import InvalidInputError


def as_array(series: Iterable[float], name: str = "series") -> np.ndarray:
    """
    Convert a sequence of numbers into a float array.

    Raises:
        InvalidInputError: On non-numeric, boolean or NaN entries.
    """
    if isinstance(series, (str, bytes)):
        raise InvalidInputError(f"{name} must be a sequence of numbers")
    values = list(series)
    for i, v in enumerate(values):
        if isinstance(v, bool) or not isinstance(v, Real):
            raise InvalidInputError(f"{name}[{i}] is not numeric: {v!r}")
        if math.isnan(v):
            raise InvalidInputError(f"{name}[{i}] is NaN")
    return np.asarray(values, dtype=float)


def as_number(value: float, name: str) -> float:
    """Validate a scalar input."""
    if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    return float(value)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
