"""
Composite Risk Scorer - Linear penalties combined into bounded scores.

Two variants:
- score(): 1-10 risk score from incident, control and vendor factors
  (higher is riskier).
- score_categories(): 0-100 category scorecard from the incident and finding
  logs (higher is healthier), overall is the unweighted mean.
"""

from typing import Iterable, Mapping

from riskforecast.core.analytics.validation import as_number, clamp
from riskforecast.core.domain.errors import InvalidInputError
from riskforecast.core.domain.policy import ScoringPolicy
from riskforecast.core.domain.result import CompositeRiskScore, ScorecardTrend
from riskforecast.core.domain.series import FindingRecord, IncidentRecord, RiskFactors


def _count(value: float, name: str) -> float:
    value = as_number(value, name)
    if value < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value}")
    return value


def score(factors: RiskFactors, policy: ScoringPolicy | None = None) -> CompositeRiskScore:
    """
    Combine risk factors into a score clamped to [min_score, max_score].

    Raises:
        InvalidInputError: On negative counts or a percentage outside [0, 100].
    """
    policy = policy or ScoringPolicy()
    incidents = _count(factors.incident_count, "incident_count")
    vendors = _count(factors.high_risk_vendor_count, "high_risk_vendor_count")
    control_pct = as_number(factors.control_effectiveness_pct, "control_effectiveness_pct")
    if not 0 <= control_pct <= 100:
        raise InvalidInputError(f"control_effectiveness_pct must be within [0, 100], got {control_pct}")

    components = {
        "incidents": min(incidents * policy.incident_weight, policy.incident_cap),
        "controls": min((100 - control_pct) / policy.control_divisor, policy.control_cap),
        "vendors": min(vendors * policy.vendor_weight, policy.vendor_cap),
    }
    overall = clamp(policy.base_score + sum(components.values()), policy.min_score, policy.max_score)

    return CompositeRiskScore(
        overall_score=overall,
        component_scores=components,
        lower_bound=policy.min_score,
        upper_bound=policy.max_score,
    )


def _penalized(penalty: float) -> float:
    return clamp(100 - penalty, 0.0, 100.0)


def category_scores(
    incidents: Iterable[IncidentRecord],
    findings: Iterable[FindingRecord],
    policy: ScoringPolicy | None = None,
) -> dict[str, float]:
    """Per-category 0-100 scores from filtered subsets of the event logs."""
    policy = policy or ScoringPolicy()
    incidents = list(incidents)
    findings = list(findings)

    def incidents_in(category: str) -> int:
        return sum(1 for i in incidents if i.category == category)

    critical_findings = sum(1 for f in findings if f.severity == "critical")
    high_findings = sum(1 for f in findings if f.severity == "high")
    high_impact = sum(
        1 for i in incidents
        if i.impact_rating is not None and i.impact_rating >= policy.high_impact_rating
    )

    return {
        "operational": _penalized(incidents_in("operational") * policy.operational_penalty),
        "cyber": _penalized(incidents_in("cyber") * policy.cyber_penalty),
        "compliance": _penalized(
            critical_findings * policy.critical_finding_penalty
            + high_findings * policy.high_finding_penalty
        ),
        "financial": _penalized(high_impact * policy.financial_penalty),
        "reputational": _penalized(
            incidents_in("reputational") * policy.reputational_penalty
            + critical_findings * policy.regulatory_finding_penalty
        ),
    }


def score_categories(
    incidents: Iterable[IncidentRecord],
    findings: Iterable[FindingRecord],
    policy: ScoringPolicy | None = None,
) -> CompositeRiskScore:
    """Category scorecard; overall is the unweighted mean of the sub-scores."""
    scores = category_scores(incidents, findings, policy)
    overall = sum(scores.values()) / len(scores)
    return CompositeRiskScore(
        overall_score=clamp(overall, 0.0, 100.0),
        component_scores=scores,
        lower_bound=0.0,
        upper_bound=100.0,
    )


def scorecard_trend(scores: Mapping[str, float], policy: ScoringPolicy | None = None) -> ScorecardTrend:
    policy = policy or ScoringPolicy()
    if not scores:
        return ScorecardTrend.STABLE
    avg = sum(scores.values()) / len(scores)
    if avg >= policy.improving_cutoff:
        return ScorecardTrend.IMPROVING
    if avg >= policy.stable_cutoff:
        return ScorecardTrend.STABLE
    return ScorecardTrend.DECLINING
