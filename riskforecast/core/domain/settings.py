from typing import Literal
from pydantic import BaseModel, Field

from riskforecast.core.domain.policy import ForecastPolicy

class SystemSettings(BaseModel):
    """
    Global system configuration settings.
    """
    # Upstream data API (PostgREST-compatible)
    data_api_url: str = Field(default="http://localhost:54321", description="Hosted database REST base URL")
    data_api_key: str | None = Field(default=None, description="API key sent as apikey/Bearer headers")

    # Insight Store
    insight_store_type: Literal["yaml", "mongo"] = Field(default="yaml", description="Insight store backend")
    insights_file: str = Field(default="insights.yaml", description="Path to YAML insight store")
    mongo_url: str = Field(default="mongodb://localhost:27017", description="MongoDB Connection URL")
    mongo_db_name: str = Field(default="riskforecast", description="MongoDB Database Name")
    insight_validity_hours: int = Field(default=24, ge=1, description="How long a stored insight stays valid")

    # Cache
    cache_type: Literal["none", "memory", "redis"] = Field(default="memory", description="Forecast cache backend")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Celery broker and Redis cache URL")
    cache_ttl_seconds: int = Field(default=3600, ge=1, description="Forecast cache TTL")

    policy: ForecastPolicy = Field(default_factory=ForecastPolicy)

    def get_rest_url(self) -> str:
        """Get the REST endpoint root."""
        return f"{self.data_api_url.rstrip('/')}/rest/v1"
