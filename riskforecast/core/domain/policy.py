"""
Forecast Policy - Tunable constants for the estimators and scorers.

Uses Pydantic for validation so policies can be loaded from YAML.
"""

from pydantic import BaseModel, Field, model_validator


class TrendPolicy(BaseModel):
    """Cutoffs and multipliers for trend estimation."""

    change_threshold: float = Field(default=0.10, ge=0)
    increasing_multiplier: float = 1.1
    decreasing_multiplier: float = 0.9
    rolling_window: int = Field(default=3, ge=1)
    min_confidence: float = 0.1
    max_confidence: float = 0.9
    insufficient_confidence: float = 0.3

    @model_validator(mode="after")
    def _check_confidence_band(self) -> "TrendPolicy":
        if not 0 < self.min_confidence <= self.max_confidence < 1:
            raise ValueError("confidence band must satisfy 0 < min <= max < 1")
        if not self.min_confidence <= self.insufficient_confidence <= self.max_confidence:
            raise ValueError("insufficient_confidence must lie inside the confidence band")
        return self


class BreachPolicy(BaseModel):
    """Day cutoffs for probability buckets and the numeric probability ladder."""

    critical_days: int = 7
    high_days: int = 30
    medium_days: int = 60
    max_horizon_days: int = 365

    # (max days, probability) pairs, checked in order
    probability_ladder: list[tuple[int, float]] = Field(
        default_factory=lambda: [(30, 0.8), (60, 0.5), (90, 0.2)]
    )
    probability_floor: float = 0.1

    # Service-level filters
    min_history: int = 3
    min_probability: float = 0.1

    @model_validator(mode="after")
    def _check_cutoffs(self) -> "BreachPolicy":
        if not 0 <= self.critical_days <= self.high_days <= self.medium_days <= self.max_horizon_days:
            raise ValueError("breach cutoffs must be ordered: critical <= high <= medium <= max horizon")
        days = [d for d, _ in self.probability_ladder]
        if days != sorted(days):
            raise ValueError("probability_ladder must be ordered by days")
        return self


class ScoringPolicy(BaseModel):
    """Linear penalty weights and caps for the composite scorers."""

    # 1-10 risk-factor score
    base_score: float = 1.0
    min_score: float = 1.0
    max_score: float = 10.0
    incident_weight: float = 0.5
    incident_cap: float = 3.0
    control_divisor: float = 20.0
    control_cap: float = 5.0
    vendor_weight: float = 0.3
    vendor_cap: float = 2.0

    # 0-100 category scorecard
    operational_penalty: float = 10.0
    cyber_penalty: float = 15.0
    critical_finding_penalty: float = 20.0
    high_finding_penalty: float = 10.0
    financial_penalty: float = 12.0
    high_impact_rating: int = 4
    reputational_penalty: float = 15.0
    regulatory_finding_penalty: float = 10.0

    improving_cutoff: float = 80.0
    stable_cutoff: float = 60.0

    # Shown next to category scores; the overall score is an unweighted mean.
    display_weights: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_range(self) -> "ScoringPolicy":
        if self.min_score > self.max_score:
            raise ValueError("min_score must not exceed max_score")
        if self.control_divisor <= 0:
            raise ValueError("control_divisor must be positive")
        return self


class ForecastPolicy(BaseModel):
    """All tunable constants of the forecasting core."""

    trend: TrendPolicy = Field(default_factory=TrendPolicy)
    breach: BreachPolicy = Field(default_factory=BreachPolicy)
    scoring: ScoringPolicy = Field(default_factory=ScoringPolicy)
