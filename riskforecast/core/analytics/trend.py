"""
Trend Estimator - Direction, rolling average and naive next-value projection.

The projection is a multiplier heuristic, not a statistical forecast: the
confidence it reports is derived from the coefficient of variation only.
"""

import math
from typing import Iterable

import numpy as np

from riskforecast.core.analytics.validation import as_array, clamp
from riskforecast.core.domain.policy import TrendPolicy
from riskforecast.core.domain.result import TrendDirection, TrendResult


def rolling_average(values: np.ndarray, window: int) -> float:
    """Mean of the last `window` points, or of the whole series if shorter."""
    if values.size == 0:
        return 0.0
    return float(np.mean(values[-window:]))


def relative_change(values: np.ndarray) -> float:
    """Relative change of the second half's mean over the first half's."""
    split = math.ceil(values.size / 2)
    first_avg = float(np.mean(values[:split]))
    second_avg = float(np.mean(values[split:]))
    if first_avg == 0:
        return 0.0
    return (second_avg - first_avg) / first_avg


def classify(change: float, policy: TrendPolicy) -> TrendDirection:
    if change > policy.change_threshold:
        return TrendDirection.INCREASING
    if change < -policy.change_threshold:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def confidence(values: np.ndarray, policy: TrendPolicy) -> float:
    """1 - coefficient of variation, clamped to the policy's band."""
    mean = float(np.mean(values))
    cv = 0.0 if mean == 0 else float(np.std(values)) / mean
    return clamp(1 - cv, policy.min_confidence, policy.max_confidence)


def estimate_trend(
    series: Iterable[float],
    category: str = "",
    policy: TrendPolicy | None = None,
) -> TrendResult:
    """
    Estimate the trend of a bucketed series.

    Never raises on sparse or degenerate data; those degrade to a stable
    result flagged `insufficient_data`.

    Raises:
        InvalidInputError: If the series contains non-numeric values.
    """
    policy = policy or TrendPolicy()
    values = as_array(series)
    avg = rolling_average(values, policy.rolling_window)

    if values.size < 2:
        return TrendResult(
            category=category,
            direction=TrendDirection.STABLE,
            magnitude=0.0,
            rolling_average=avg,
            predicted_next=avg,
            confidence=policy.insufficient_confidence,
            sample_size=int(values.size),
            insufficient_data=True,
        )

    if not np.any(values):
        return TrendResult(
            category=category,
            direction=TrendDirection.STABLE,
            magnitude=0.0,
            rolling_average=0.0,
            predicted_next=0.0,
            confidence=policy.min_confidence,
            sample_size=int(values.size),
            insufficient_data=True,
        )

    change = relative_change(values)
    direction = classify(change, policy)
    multiplier = {
        TrendDirection.INCREASING: policy.increasing_multiplier,
        TrendDirection.DECREASING: policy.decreasing_multiplier,
    }.get(direction, 1.0)

    return TrendResult(
        category=category,
        direction=direction,
        magnitude=change,
        rolling_average=avg,
        predicted_next=avg * multiplier,
        confidence=confidence(values, policy),
        sample_size=int(values.size),
    )
