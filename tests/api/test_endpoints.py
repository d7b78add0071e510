import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch, MagicMock, AsyncMock
from fastapi.testclient import TestClient

from riskforecast.core.analytics.breach import estimate_breach
from riskforecast.core.analytics.trend import estimate_trend
from riskforecast.core.domain.result import IncidentForecast, Insight, KRIBreach
from riskforecast.main import app, refresh_insights_task

client = TestClient(app)

@pytest.fixture
def mock_celery():
    with patch("riskforecast.main.refresh_insights_task") as refresh_mock:
        task = MagicMock()
        task.id = "refresh-task-123"
        refresh_mock.delay.return_value = task
        yield refresh_mock

@pytest.fixture
def mock_service():
    with patch("riskforecast.main._service", None), patch("riskforecast.main.build_service") as build_mock:
        service = build_mock.return_value
        service.incident_forecast = AsyncMock(return_value=[
            IncidentForecast(
                category="cyber",
                current_monthly=4,
                predicted_next_month=3,
                trend=estimate_trend([1, 2, 4], category="cyber"),
            )
        ])
        service.kri_breach_predictions = AsyncMock(return_value=[
            KRIBreach(kri_id="k1", kri_name="Failed logins", prediction=estimate_breach([5, 4], 10, "k1")),
        ])
        service.current_insights = AsyncMock(return_value=[])
        yield service

def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

def test_trend_endpoint():
    response = client.post("/analytics/trend", json={"series": [2, 3, 2, 3, 8], "category": "cyber"})

    assert response.status_code == 200
    body = response.json()
    assert body["direction"] == "increasing"
    assert body["category"] == "cyber"
    assert body["rolling_average"] == pytest.approx(13 / 3)

def test_trend_endpoint_rejects_non_numeric():
    response = client.post("/analytics/trend", json={"series": ["a", 1]})
    assert response.status_code == 422

def test_breach_endpoint():
    response = client.post("/analytics/breach", json={"series": [89, 91, 93, 95], "threshold": 100})

    assert response.status_code == 200
    body = response.json()
    assert body["days_to_breach"] == 3
    assert body["probability_bucket"] == "critical"

def test_breach_endpoint_unbounded_is_null():
    response = client.post("/analytics/breach", json={"series": [5, 4, 3], "threshold": 10})

    assert response.status_code == 200
    assert response.json()["days_to_breach"] is None

def test_breach_endpoint_negative_threshold():
    response = client.post("/analytics/breach", json={"series": [1, 2], "threshold": -5})

    assert response.status_code == 422
    assert "threshold" in response.json()["detail"]

def test_score_endpoint():
    response = client.post("/analytics/score", json={
        "incident_count": 0,
        "control_effectiveness_pct": 100,
        "high_risk_vendor_count": 0,
    })
    assert response.status_code == 200
    assert response.json()["overall_score"] == 1.0

def test_score_endpoint_invalid_percentage():
    response = client.post("/analytics/score", json={"incident_count": 1, "control_effectiveness_pct": 140})
    assert response.status_code == 422

def test_scorecard_endpoint():
    response = client.post("/analytics/scorecard", json={
        "incidents": [{"category": "cyber"}, {"category": "operational", "impact_rating": 5}],
        "findings": [{"severity": "critical"}],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["component_scores"]["cyber"] == 85.0
    assert body["component_scores"]["financial"] == 88.0
    assert body["trend"] == "improving"

def test_incident_forecast_endpoint(mock_service):
    response = client.get("/orgs/org-1/incident-forecast")

    assert response.status_code == 200
    body = response.json()
    assert body[0]["category"] == "cyber"
    assert body[0]["trend"]["direction"] == "increasing"
    mock_service.incident_forecast.assert_awaited_once_with("org-1")

def test_service_is_shared_across_requests(mock_service):
    with patch("riskforecast.main.build_service") as build_mock:
        build_mock.return_value = mock_service
        client.get("/orgs/org-1/incident-forecast")
        client.get("/orgs/org-2/kri-breaches")

    build_mock.assert_called_once()
    assert mock_service.incident_forecast.await_count == 1
    assert mock_service.kri_breach_predictions.await_count == 1

def test_kri_breaches_endpoint(mock_service):
    response = client.get("/orgs/org-1/kri-breaches")

    assert response.status_code == 200
    assert response.json()[0]["prediction"]["days_to_breach"] is None

def test_trigger_refresh_endpoint(mock_celery):
    response = client.post("/orgs/org-1/insights/refresh")

    assert response.status_code == 200
    assert response.json()["task_id"] == "refresh-task-123"
    mock_celery.delay.assert_called_once_with("org-1")

def test_current_insights_endpoint(mock_service):
    now = datetime(2024, 4, 1, tzinfo=timezone.utc)
    mock_service.current_insights.return_value = [
        Insight(
            org_id="org-1",
            insight_type="risk_score",
            data={"overall_score": 2.8},
            confidence=0.85,
            generated_at=now,
            valid_until=now + timedelta(hours=24),
        )
    ]

    response = client.get("/orgs/org-1/insights", params={"insight_type": "risk_score"})

    assert response.status_code == 200
    body = response.json()
    assert body[0]["insight_type"] == "risk_score"
    assert body[0]["valid_until"] == "2024-04-02T00:00:00+00:00"
    mock_service.current_insights.assert_awaited_once_with("org-1", insight_type="risk_score")

def test_shutdown_closes_shared_service():
    service = MagicMock()
    service.close = AsyncMock()
    with patch("riskforecast.main._service", service):
        with TestClient(app):
            pass

    service.close.assert_awaited_once()

def make_task_service(count=4):
    service = MagicMock()
    service.refresh_insights = AsyncMock(return_value=[MagicMock()] * count)
    service.close = AsyncMock()
    return service

def test_refresh_task_builds_service_per_run():
    services = [make_task_service(), make_task_service(3)]
    with patch("riskforecast.main.build_service", side_effect=services) as build_mock:
        assert refresh_insights_task("org-1") == "Stored 4 insights for org-1"
        assert refresh_insights_task("org-1") == "Stored 3 insights for org-1"

    assert build_mock.call_count == 2
    for service in services:
        service.refresh_insights.assert_awaited_once_with("org-1")
        service.close.assert_awaited_once()

def test_refresh_task_closes_service_on_failure():
    service = make_task_service()
    service.refresh_insights.side_effect = RuntimeError("upstream down")
    with patch("riskforecast.main.build_service", return_value=service):
        with pytest.raises(RuntimeError):
            refresh_insights_task("org-1")

    service.close.assert_awaited_once()
