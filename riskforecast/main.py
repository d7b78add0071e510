import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from celery import Celery
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from riskforecast.adapters.cache.memory_cache import MemoryForecastCache
from riskforecast.adapters.config.settings_loader import load_settings
from riskforecast.adapters.data.rest_provider import RestRiskDataProvider
from riskforecast.adapters.insights.yaml_store import YamlInsightStore
from riskforecast.core.analytics.breach import estimate_breach
from riskforecast.core.analytics.scoring import score, score_categories, scorecard_trend
from riskforecast.core.analytics.trend import estimate_trend
from riskforecast.core.domain.errors import InvalidInputError
from riskforecast.core.domain.series import FindingRecord, IncidentRecord, RiskFactors
from riskforecast.core.domain.settings import SystemSettings
from riskforecast.core.ports.forecast_cache import ForecastCache
from riskforecast.core.ports.insight_store import InsightStore
from riskforecast.core.services.forecast_service import ForecastService, to_plain

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Configuration (Load from YAML with Env Overrides)
settings = load_settings()

# Celery Application
celery_app = Celery("riskforecast", broker=settings.redis_url, backend=settings.redis_url)

_service: ForecastService | None = None


def build_insight_store(settings: SystemSettings) -> InsightStore:
    if settings.insight_store_type == "mongo":
        from riskforecast.adapters.insights.mongo_store import MongoInsightStore
        return MongoInsightStore(settings)
    return YamlInsightStore(settings.insights_file)


def build_cache(settings: SystemSettings) -> ForecastCache | None:
    if settings.cache_type == "none":
        return None
    if settings.cache_type == "redis":
        from riskforecast.adapters.cache.redis_cache import RedisForecastCache
        return RedisForecastCache(settings.redis_url)
    return MemoryForecastCache()


def build_service(settings: SystemSettings) -> ForecastService:
    """
    Wire the forecast service from system settings.

    The service owns its clients; callers close it on the event loop it ran on.
    """
    provider = RestRiskDataProvider(rest_url=settings.get_rest_url(), api_key=settings.data_api_key)
    return ForecastService(
        provider,
        insight_store=build_insight_store(settings),
        cache=build_cache(settings),
        policy=settings.policy,
        cache_ttl=settings.cache_ttl_seconds,
        insight_validity=timedelta(hours=settings.insight_validity_hours),
    )


def get_service() -> ForecastService:
    """Service shared by request handlers, built on first use."""
    global _service
    if _service is None:
        _service = build_service(settings)
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _service
    yield
    if _service is not None:
        await _service.close()
        _service = None


# FastAPI Application
app = FastAPI(title="riskforecast", lifespan=lifespan)


class TrendRequest(BaseModel):
    series: list[float]
    category: str = ""


class BreachRequest(BaseModel):
    series: list[float]
    threshold: float
    series_id: str = ""


class ScoreRequest(BaseModel):
    incident_count: float
    control_effectiveness_pct: float
    high_risk_vendor_count: float = 0


class IncidentIn(BaseModel):
    category: str = "other"
    severity: str | None = None
    impact_rating: int | None = None


class FindingIn(BaseModel):
    severity: str


class ScorecardRequest(BaseModel):
    incidents: list[IncidentIn] = Field(default_factory=list)
    findings: list[FindingIn] = Field(default_factory=list)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
def health_check():
    return {"status": "ok", "version": "0.1.0"}


@app.post("/analytics/trend")
def analyze_trend(req: TrendRequest):
    """Stateless trend estimate for a bucketed series."""
    return to_plain(estimate_trend(req.series, category=req.category, policy=settings.policy.trend))


@app.post("/analytics/breach")
def analyze_breach(req: BreachRequest):
    """Stateless breach estimate; an unbounded horizon is returned as null."""
    prediction = estimate_breach(req.series, req.threshold, series_id=req.series_id, policy=settings.policy.breach)
    return prediction.to_dict()


@app.post("/analytics/score")
def analyze_score(req: ScoreRequest):
    factors = RiskFactors(
        incident_count=req.incident_count,
        control_effectiveness_pct=req.control_effectiveness_pct,
        high_risk_vendor_count=req.high_risk_vendor_count,
    )
    return to_plain(score(factors, settings.policy.scoring))


@app.post("/analytics/scorecard")
def analyze_scorecard(req: ScorecardRequest):
    # Timestamps are irrelevant to category scoring
    now = datetime.now(timezone.utc)
    incidents = [
        IncidentRecord(reported_at=now, category=i.category, severity=i.severity, impact_rating=i.impact_rating)
        for i in req.incidents
    ]
    findings = [FindingRecord(severity=f.severity) for f in req.findings]
    result = score_categories(incidents, findings, settings.policy.scoring)
    return {
        **to_plain(result),
        "trend": scorecard_trend(result.component_scores, settings.policy.scoring).value,
    }


@app.get("/orgs/{org_id}/incident-forecast")
async def incident_forecast(org_id: str):
    service = get_service()
    return to_plain(await service.incident_forecast(org_id))


@app.get("/orgs/{org_id}/kri-breaches")
async def kri_breaches(org_id: str):
    service = get_service()
    return to_plain(await service.kri_breach_predictions(org_id))


@app.get("/orgs/{org_id}/scorecard")
async def risk_scorecard(org_id: str):
    service = get_service()
    return to_plain(await service.risk_scorecard(org_id))


@app.get("/orgs/{org_id}/risk-score")
async def risk_score(org_id: str):
    service = get_service()
    return to_plain(await service.executive_risk_score(org_id))


@app.get("/orgs/{org_id}/insights")
async def current_insights(org_id: str, insight_type: str | None = None):
    """Stored insights that are still valid, newest first."""
    return to_plain(await get_service().current_insights(org_id, insight_type=insight_type))


@app.post("/orgs/{org_id}/insights/refresh")
def trigger_refresh(org_id: str):
    """
    Recompute and store insights for an organization in the background.
    """
    task = refresh_insights_task.delay(org_id)
    return {"message": "Insight refresh triggered", "task_id": str(task.id)}


# Celery Tasks
@celery_app.task(name="riskforecast.tasks.refresh_insights")
def refresh_insights_task(org_id: str):
    """
    Background task to refresh all insights for an organization.
    """
    logger.info(f"Starting insight refresh for org: {org_id}")

    async def _execute():
        # Clients bind to this run's event loop, so each task builds its own
        service = build_service(settings)
        try:
            insights = await service.refresh_insights(org_id)
        finally:
            await service.close()
        return len(insights)

    try:
        count = asyncio.run(_execute())
        return f"Stored {count} insights for {org_id}"
    except Exception as e:
        logger.error(f"Insight refresh failed for {org_id}: {e}")
        raise e
