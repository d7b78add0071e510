"""
YAML Insight Store Adapter - File-based insight persistence.
"""

import logging
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

import yaml

from riskforecast.core.domain.result import Insight
from riskforecast.core.ports.insight_store import InsightStore

logger = logging.getLogger(__name__)


def _matches(insight: Insight, org_id: str, insight_type: str | None, valid_at: datetime | None) -> bool:
    if insight.org_id != org_id:
        return False
    if insight_type is not None and insight.insight_type != insight_type:
        return False
    if valid_at is not None and insight.valid_until < valid_at:
        return False
    return True


class YamlInsightStore(InsightStore):
    """
    Insight store that keeps insights in a YAML file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._insights: list[Insight] = []
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load_insights()
            self._loaded = True

    def _load_insights(self) -> None:
        if not self.path.exists():
            return

        with open(self.path) as f:
            data = yaml.safe_load(f) or {}

        for item in data.get("insights", []):
            try:
                self._insights.append(Insight(**item))
            except TypeError as e:
                logger.error(f"Error loading insight: {e}")

    async def save_insight(self, insight: Insight) -> None:
        self._ensure_loaded()
        self._insights.append(insight)
        self._save_to_file()

    async def list_insights(
        self,
        org_id: str,
        insight_type: str | None = None,
        valid_at: datetime | None = None,
    ) -> list[Insight]:
        self._ensure_loaded()
        found = [i for i in self._insights if _matches(i, org_id, insight_type, valid_at)]
        return sorted(found, key=lambda i: i.generated_at, reverse=True)

    async def purge_expired(self, now: datetime) -> int:
        self._ensure_loaded()
        before = len(self._insights)
        self._insights = [i for i in self._insights if i.valid_until >= now]
        removed = before - len(self._insights)
        if removed:
            self._save_to_file()
        return removed

    def _save_to_file(self) -> None:
        with open(self.path, "w") as f:
            yaml.safe_dump({"insights": [asdict(i) for i in self._insights]}, f, default_flow_style=False)
