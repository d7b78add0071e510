"""
Redis Forecast Cache - Shared TTL cache for forecast results.

Values are stored as JSON; non-finite floats round-trip as Infinity.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from riskforecast.core.ports.forecast_cache import ForecastCache

logger = logging.getLogger(__name__)


class RedisForecastCache(ForecastCache):
    """Redis-backed cache with a key prefix per deployment."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0", key_prefix: str = "riskforecast:"):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._redis: redis.Redis | None = None

    def _get_client(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.Redis.from_url(self.redis_url, decode_responses=True)
        return self._redis

    async def get(self, key: str) -> Any | None:
        raw = await self._get_client().get(self.key_prefix + key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding corrupt cache entry '{key}': {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        await self._get_client().set(self.key_prefix + key, json.dumps(value), ex=ttl)

    async def delete(self, key: str) -> bool:
        return await self._get_client().delete(self.key_prefix + key) > 0

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
