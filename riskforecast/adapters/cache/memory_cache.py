"""
In-process TTL cache. One instance per service; not shared across workers.
"""

import time
from typing import Any, Callable

from riskforecast.core.ports.forecast_cache import ForecastCache


class MemoryForecastCache(ForecastCache):

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        self._entries[key] = (self._clock() + ttl, value)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None
