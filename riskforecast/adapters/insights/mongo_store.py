import logging
from dataclasses import asdict
from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorClient

from riskforecast.core.domain.result import Insight
from riskforecast.core.domain.settings import SystemSettings
from riskforecast.core.ports.insight_store import InsightStore

logger = logging.getLogger(__name__)

class MongoInsightStore(InsightStore):
    """
    MongoDB-backed implementation of InsightStore.
    Stores insights as documents in the `analytics_insights` collection.
    """

    def __init__(self, settings: SystemSettings):
        self.settings = settings
        self.client = AsyncIOMotorClient(settings.mongo_url)
        self.db = self.client[settings.mongo_db_name]
        self.collection = self.db["analytics_insights"]

    async def save_insight(self, insight: Insight) -> None:
        """Insert an insight document."""
        await self.collection.insert_one(asdict(insight))

    async def list_insights(
        self,
        org_id: str,
        insight_type: str | None = None,
        valid_at: datetime | None = None,
    ) -> list[Insight]:
        """List insights for an organization, newest first."""
        query: dict = {"org_id": org_id}
        if insight_type is not None:
            query["insight_type"] = insight_type
        if valid_at is not None:
            query["valid_until"] = {"$gte": valid_at}

        insights = []
        async for doc in self.collection.find(query).sort("generated_at", -1):
            doc.pop("_id", None)
            try:
                insights.append(Insight(**doc))
            except TypeError as e:
                logger.error(f"Failed to parse insight document: {e}")
        return insights

    async def purge_expired(self, now: datetime) -> int:
        """Delete insights whose validity has ended."""
        result = await self.collection.delete_many({"valid_until": {"$lt": now}})
        return result.deleted_count

    async def close(self) -> None:
        self.client.close()
