"""
Result Domain Models - Data structures for trend, breach and score results.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class ProbabilityBucket(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ScorecardTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


@dataclass(frozen=True)
class TrendResult:
    """Direction, rolling average and naive projection of a series."""

    category: str
    direction: TrendDirection
    magnitude: float  # relative change between the two halves
    rolling_average: float
    predicted_next: float
    confidence: float  # heuristic, not a prediction interval
    sample_size: int = 0
    insufficient_data: bool = False


@dataclass(frozen=True)
class BreachPrediction:
    """Estimated time until a series crosses its threshold."""

    series_id: str
    current_value: float
    threshold: float
    change_rate: float
    days_to_breach: float  # math.inf when the trend never reaches the threshold
    probability_bucket: ProbabilityBucket
    breach_probability: float = 0.0
    insufficient_data: bool = False

    @property
    def is_unbounded(self) -> bool:
        return math.isinf(self.days_to_breach)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation; an unbounded horizon becomes None."""
        data = asdict(self)
        data["probability_bucket"] = self.probability_bucket.value
        if self.is_unbounded:
            data["days_to_breach"] = None
        return data


@dataclass(frozen=True)
class CompositeRiskScore:
    """Bounded overall score with its per-component contributions."""

    overall_score: float
    component_scores: dict[str, float] = field(default_factory=dict)
    lower_bound: float = 1.0
    upper_bound: float = 10.0


@dataclass(frozen=True)
class IncidentForecast:
    """Monthly incident projection for one category."""

    category: str
    current_monthly: float
    predicted_next_month: int
    trend: TrendResult


@dataclass(frozen=True)
class KRIBreach:
    """Breach prediction for a named KRI."""

    kri_id: str
    kri_name: str
    prediction: BreachPrediction


@dataclass(frozen=True)
class RiskScorecard:
    """Category scorecard (0-100, higher is healthier)."""

    score: CompositeRiskScore
    trend: ScorecardTrend
    last_updated: datetime


@dataclass
class Insight:
    """A result record handed to the insight store for dashboard display."""

    org_id: str
    insight_type: str
    data: dict[str, Any]
    confidence: float
    generated_at: datetime
    valid_until: datetime
