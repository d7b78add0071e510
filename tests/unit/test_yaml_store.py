import pytest
from datetime import datetime, timedelta, timezone

from riskforecast.adapters.insights.yaml_store import YamlInsightStore
from riskforecast.core.domain.result import Insight

NOW = datetime(2024, 4, 1, tzinfo=timezone.utc)


def make_insight(insight_type="risk_score", generated_at=NOW, org_id="org-1"):
    return Insight(
        org_id=org_id,
        insight_type=insight_type,
        data={"overall_score": 2.8, "component_scores": {"incidents": 1.0}},
        confidence=0.85,
        generated_at=generated_at,
        valid_until=generated_at + timedelta(hours=24),
    )


@pytest.mark.asyncio
async def test_save_and_reload(tmp_path):
    path = tmp_path / "insights.yaml"
    store = YamlInsightStore(path)
    await store.save_insight(make_insight())

    assert path.exists()

    reloaded = YamlInsightStore(path)
    insights = await reloaded.list_insights("org-1")

    assert len(insights) == 1
    assert insights[0].data["component_scores"] == {"incidents": 1.0}
    assert insights[0].valid_until == NOW + timedelta(hours=24)


@pytest.mark.asyncio
async def test_list_filters_and_orders(tmp_path):
    store = YamlInsightStore(tmp_path / "insights.yaml")
    older = make_insight(generated_at=NOW - timedelta(days=2))
    newer = make_insight(generated_at=NOW)
    await store.save_insight(older)
    await store.save_insight(newer)
    await store.save_insight(make_insight("kri_breach"))
    await store.save_insight(make_insight(org_id="org-2"))

    assert await store.list_insights("org-1", "risk_score") == [newer, older]
    assert await store.list_insights("org-1", "risk_score", valid_at=NOW) == [newer]
    assert len(await store.list_insights("org-2")) == 1


@pytest.mark.asyncio
async def test_purge_expired(tmp_path):
    store = YamlInsightStore(tmp_path / "insights.yaml")
    await store.save_insight(make_insight(generated_at=NOW - timedelta(days=3)))
    await store.save_insight(make_insight(generated_at=NOW))

    assert await store.purge_expired(NOW) == 1
    assert await store.purge_expired(NOW) == 0
    assert len(await YamlInsightStore(tmp_path / "insights.yaml").list_insights("org-1")) == 1


@pytest.mark.asyncio
async def test_missing_file_is_empty(tmp_path):
    store = YamlInsightStore(tmp_path / "missing.yaml")
    assert await store.list_insights("org-1") == []
