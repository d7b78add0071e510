"""
Forecast Service - Orchestrates the fetch-estimate-store cycle.

For each request:
1. Fetch the organization's rows for a time window
2. Aggregate and run the pure estimators
3. Hand the results back and optionally persist them as insights

The estimators are pure; all I/O and caching live here.
"""

import logging
import math
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from statistics import fmean
from typing import Any

from pydantic import TypeAdapter

from riskforecast.core.analytics.aggregator import aggregate, iso_month
from riskforecast.core.analytics.breach import estimate_breach
from riskforecast.core.analytics.scoring import score, score_categories, scorecard_trend
from riskforecast.core.analytics.trend import estimate_trend
from riskforecast.core.domain.policy import ForecastPolicy
from riskforecast.core.domain.result import (
    CompositeRiskScore,
    IncidentForecast,
    Insight,
    KRIBreach,
    RiskScorecard,
)
from riskforecast.core.ports.forecast_cache import ForecastCache, cache_key
from riskforecast.core.ports.insight_store import InsightStore
from riskforecast.core.ports.risk_data import RiskDataProvider

logger = logging.getLogger(__name__)

INCIDENT_WINDOW = timedelta(days=365)
KRI_WINDOW = timedelta(days=90)
SCORECARD_WINDOW = timedelta(days=30)

DEFAULT_INSIGHT_CONFIDENCE = 0.85

_FORECASTS = TypeAdapter(list[IncidentForecast])
_BREACHES = TypeAdapter(list[KRIBreach])


def to_plain(value: Any) -> Any:
    """Convert result records into JSON-compatible structures."""
    if hasattr(value, "__dataclass_fields__"):
        value = asdict(value)
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and math.isinf(value):
        return None
    return value


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ForecastService:
    """
    Produces incident forecasts, KRI breach predictions and risk scores for
    one organization at a time.
    """

    def __init__(
        self,
        provider: RiskDataProvider,
        insight_store: InsightStore | None = None,
        cache: ForecastCache | None = None,
        policy: ForecastPolicy | None = None,
        cache_ttl: int = 3600,
        insight_validity: timedelta = timedelta(hours=24),
    ):
        """
        Initialize the service.

        Args:
            provider: Port to read organization rows
            insight_store: Port to persist insights (optional)
            cache: Port to cache forecast results (optional)
            policy: Estimator constants
            cache_ttl: Cache TTL in seconds
            insight_validity: How long a persisted insight stays valid
        """
        self.provider = provider
        self.insight_store = insight_store
        self.cache = cache
        self.policy = policy or ForecastPolicy()
        self.cache_ttl = cache_ttl
        self.insight_validity = insight_validity

    async def incident_forecast(self, org_id: str, now: datetime | None = None) -> list[IncidentForecast]:
        """
        Forecast next month's incident count per category from the last 12 months.
        """
        key = cache_key(org_id, "365d", "incidents")
        cached = await self._cache_get(key)
        if cached is not None:
            return _FORECASTS.validate_python(cached)

        now = now or datetime.now(timezone.utc)
        start = now - INCIDENT_WINDOW
        logger.info(f"Fetching incidents for org '{org_id}' start={start} end={now}")
        incidents = await self.provider.fetch_incidents(org_id, start, now)

        # Months with no incident in a category count as zero for that category
        series = aggregate((i.to_point() for i in incidents), iso_month, dense=True)

        forecasts = []
        for category, monthly in series.items():
            trend = estimate_trend(monthly, category=category, policy=self.policy.trend)
            forecasts.append(IncidentForecast(
                category=category,
                current_monthly=monthly[-1] if monthly else 0.0,
                predicted_next_month=round_half_up(trend.predicted_next),
                trend=trend,
            ))

        logger.info(f"Built {len(forecasts)} incident forecasts for org '{org_id}'")
        await self._cache_set(key, [asdict(f) for f in forecasts])
        return forecasts

    async def kri_breach_predictions(self, org_id: str, now: datetime | None = None) -> list[KRIBreach]:
        """
        Predict KRI warning-threshold breaches from the last 90 days of logs.

        Returns:
            Breaches above the policy's minimum probability, most likely first
        """
        key = cache_key(org_id, "90d", "kri")
        cached = await self._cache_get(key)
        if cached is not None:
            return _BREACHES.validate_python(cached)

        policy = self.policy.breach
        now = now or datetime.now(timezone.utc)
        start = now - KRI_WINDOW
        logger.info(f"Fetching KRI logs for org '{org_id}' start={start} end={now}")
        kris = await self.provider.fetch_kri_series(org_id, start, now)

        breaches = []
        for kri in kris:
            values = kri.values()
            if len(values) < policy.min_history:
                logger.debug(f"Skipping KRI '{kri.kri_id}': {len(values)} points")
                continue
            if kri.threshold <= 0:
                continue

            prediction = estimate_breach(values, kri.threshold, series_id=kri.kri_id, policy=policy)
            if prediction.breach_probability > policy.min_probability:
                breaches.append(KRIBreach(kri_id=kri.kri_id, kri_name=kri.name, prediction=prediction))

        breaches.sort(key=lambda b: (-b.prediction.breach_probability, b.prediction.days_to_breach))
        logger.info(f"Predicted {len(breaches)} KRI breaches for org '{org_id}'")
        await self._cache_set(key, [asdict(b) for b in breaches])
        return breaches

    async def risk_scorecard(self, org_id: str, now: datetime | None = None) -> RiskScorecard:
        """Category scorecard from the last 30 days of incidents and open findings."""
        now = now or datetime.now(timezone.utc)
        incidents = await self.provider.fetch_incidents(org_id, now - SCORECARD_WINDOW, now)
        findings = await self.provider.fetch_open_findings(org_id)

        result = score_categories(incidents, findings, self.policy.scoring)
        return RiskScorecard(
            score=result,
            trend=scorecard_trend(result.component_scores, self.policy.scoring),
            last_updated=now,
        )

    async def executive_risk_score(self, org_id: str) -> CompositeRiskScore:
        """1-10 risk score from current incident, control and vendor factors."""
        factors = await self.provider.fetch_risk_factors(org_id)
        return score(factors, self.policy.scoring)

    async def refresh_insights(self, org_id: str, now: datetime | None = None) -> list[Insight]:
        """
        Recompute every result for an organization and persist it as insights.

        Forecasts flagged insufficient_data are left out of the stored insight.
        """
        now = now or datetime.now(timezone.utc)
        if self.cache is not None:
            await self.cache.delete(cache_key(org_id, "365d", "incidents"))
            await self.cache.delete(cache_key(org_id, "90d", "kri"))

        forecasts = [f for f in await self.incident_forecast(org_id, now) if not f.trend.insufficient_data]
        breaches = await self.kri_breach_predictions(org_id, now)
        scorecard = await self.risk_scorecard(org_id, now)
        risk_score = await self.executive_risk_score(org_id)

        insights = []
        if forecasts:
            insights.append(self._insight(
                org_id, "incident_forecast", {"forecasts": to_plain(forecasts)},
                fmean(f.trend.confidence for f in forecasts), now,
            ))
        if breaches:
            insights.append(self._insight(
                org_id, "kri_breach", {"breaches": to_plain(breaches)}, DEFAULT_INSIGHT_CONFIDENCE, now,
            ))
        insights.append(self._insight(
            org_id, "risk_scorecard", to_plain(scorecard), DEFAULT_INSIGHT_CONFIDENCE, now,
        ))
        insights.append(self._insight(
            org_id, "risk_score", to_plain(risk_score), DEFAULT_INSIGHT_CONFIDENCE, now,
        ))

        if self.insight_store is not None:
            purged = await self.insight_store.purge_expired(now)
            if purged:
                logger.info(f"Purged {purged} expired insights")
            for insight in insights:
                await self.insight_store.save_insight(insight)
            logger.info(f"Stored {len(insights)} insights for org '{org_id}'")

        return insights

    async def current_insights(
        self,
        org_id: str,
        insight_type: str | None = None,
        now: datetime | None = None,
    ) -> list[Insight]:
        """Stored insights still valid at `now`, newest first."""
        if self.insight_store is None:
            return []
        now = now or datetime.now(timezone.utc)
        return await self.insight_store.list_insights(org_id, insight_type=insight_type, valid_at=now)

    async def close(self) -> None:
        """Release the provider, store and cache connections."""
        await self.provider.close()
        if self.insight_store is not None:
            await self.insight_store.close()
        if self.cache is not None:
            await self.cache.close()

    def _insight(self, org_id: str, insight_type: str, data: dict, confidence: float, now: datetime) -> Insight:
        return Insight(
            org_id=org_id,
            insight_type=insight_type,
            data=data,
            confidence=confidence,
            generated_at=now,
            valid_until=now + self.insight_validity,
        )

    async def _cache_get(self, key: str) -> Any | None:
        if self.cache is None:
            return None
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for '{key}'")
        return cached

    async def _cache_set(self, key: str, value: Any) -> None:
        if self.cache is not None:
            await self.cache.set(key, value, self.cache_ttl)
