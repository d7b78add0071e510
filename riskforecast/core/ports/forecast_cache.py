"""
ForecastCache Port - Interface for caching computed forecast results.

Keys follow `organization:window:category`. Values are plain JSON-compatible
structures.
"""

from abc import ABC, abstractmethod
from typing import Any


def cache_key(org_id: str, window: str, category: str = "all") -> str:
    return f"{org_id}:{window}:{category}"


class ForecastCache(ABC):
    """Abstract interface for a TTL cache."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Store a value for `ttl` seconds."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key; True if it existed."""
        ...

    async def close(self) -> None:
        """Release connections held by the cache."""
        return None
