"""
Breach Probability Estimator - Days until a series crosses its threshold.

The probability bucket is derived from days_to_breach alone. The numeric
breach_probability is a separate ladder kept for callers that rank or filter
on it; it never feeds the bucket.
"""

import math
from typing import Iterable

import numpy as np

from riskforecast.core.analytics.validation import as_array, as_number
from riskforecast.core.domain.errors import InvalidInputError
from riskforecast.core.domain.policy import BreachPolicy
from riskforecast.core.domain.result import BreachPrediction, ProbabilityBucket


def change_rate(values: np.ndarray) -> float:
    """Mean first difference; 0 for fewer than two points."""
    if values.size < 2:
        return 0.0
    return float(np.mean(np.diff(values)))


def bucket_for(days_to_breach: float, policy: BreachPolicy) -> ProbabilityBucket:
    if days_to_breach <= policy.critical_days:
        return ProbabilityBucket.CRITICAL
    if days_to_breach <= policy.high_days:
        return ProbabilityBucket.HIGH
    if days_to_breach <= policy.medium_days:
        return ProbabilityBucket.MEDIUM
    return ProbabilityBucket.LOW


def probability_for(days_to_breach: float, policy: BreachPolicy) -> float:
    if days_to_breach <= 0:
        return 1.0
    for max_days, probability in policy.probability_ladder:
        if days_to_breach <= max_days:
            return probability
    return policy.probability_floor


def estimate_breach(
    series: Iterable[float],
    threshold: float,
    series_id: str = "",
    policy: BreachPolicy | None = None,
) -> BreachPrediction:
    """
    Estimate when the series reaches `threshold` at its mean rate of change.

    Raises:
        InvalidInputError: On non-numeric input or a negative threshold.
    """
    policy = policy or BreachPolicy()
    threshold = as_number(threshold, "threshold")
    if threshold < 0:
        raise InvalidInputError(f"threshold must be non-negative, got {threshold}")
    values = as_array(series)

    if values.size == 0:
        return BreachPrediction(
            series_id=series_id,
            current_value=0.0,
            threshold=threshold,
            change_rate=0.0,
            days_to_breach=math.inf,
            probability_bucket=ProbabilityBucket.LOW,
            breach_probability=0.0,
            insufficient_data=True,
        )

    current = float(values[-1])
    rate = change_rate(values)

    if current >= threshold:
        days = 0.0
    elif rate <= 0:
        days = math.inf
    else:
        raw = (threshold - current) / rate
        if not math.isfinite(raw) or raw > policy.max_horizon_days:
            days = float(policy.max_horizon_days)
        else:
            days = float(math.ceil(raw))

    return BreachPrediction(
        series_id=series_id,
        current_value=current,
        threshold=threshold,
        change_rate=rate,
        days_to_breach=days,
        probability_bucket=bucket_for(days, policy),
        breach_probability=probability_for(days, policy),
        insufficient_data=values.size < 2,
    )
