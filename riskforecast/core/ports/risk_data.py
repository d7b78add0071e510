"""
RiskDataProvider Port - Interface for reading an organization's risk records.

Implementations return rows already filtered to one organization and one time
window. Ordering is not guaranteed.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from riskforecast.core.domain.series import (
    FindingRecord,
    IncidentRecord,
    KRISeries,
    RiskFactors,
)


class RiskDataProvider(BaseModel, ABC):
    """
    Abstract interface for the upstream risk data store.
    Also serves as a Pydantic Model for configuration validation.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @abstractmethod
    async def fetch_incidents(
        self,
        org_id: str,
        start: datetime,
        end: datetime,
    ) -> list[IncidentRecord]:
        """
        Fetch incidents reported within [start, end].

        Args:
            org_id: Organization ID
            start: Window start
            end: Window end
        """
        ...

    @abstractmethod
    async def fetch_open_findings(self, org_id: str) -> list[FindingRecord]:
        """Fetch compliance findings that are still open."""
        ...

    @abstractmethod
    async def fetch_kri_series(
        self,
        org_id: str,
        start: datetime,
        end: datetime,
    ) -> list[KRISeries]:
        """
        Fetch KRI measurements within [start, end], one series per KRI.
        """
        ...

    @abstractmethod
    async def fetch_risk_factors(self, org_id: str) -> RiskFactors:
        """
        Fetch the current composite-score inputs: open critical incidents,
        control effectiveness percentage and high-risk vendor count.
        """
        ...

    async def close(self) -> None:
        """Release connections held by the provider."""
        return None
