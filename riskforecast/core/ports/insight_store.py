"""
InsightStore Port - Interface for persisting insights for dashboard display.

Implementations can be file-based (YAML) or database-backed (MongoDB).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from riskforecast.core.domain.result import Insight


class InsightStore(ABC):
    """
    Abstract interface for insight storage.

    Implementations:
    - YamlInsightStore: File-based storage
    - MongoInsightStore: Database-backed storage
    """

    @abstractmethod
    async def save_insight(self, insight: "Insight") -> None:
        """
        Persist an insight.

        Args:
            insight: Insight to save
        """
        ...

    @abstractmethod
    async def list_insights(
        self,
        org_id: str,
        insight_type: str | None = None,
        valid_at: datetime | None = None,
    ) -> list["Insight"]:
        """
        List insights for an organization.

        Args:
            org_id: Organization ID
            insight_type: Restrict to one type
            valid_at: Only insights still valid at this time

        Returns:
            Insights ordered by generation time, newest first
        """
        ...

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """
        Delete insights whose validity ended before `now`.

        Returns:
            Number of insights removed
        """
        ...

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
