"""
REST Data Provider - Reads risk records from a PostgREST-compatible API.

Works against hosted Postgres backends that expose tables under /rest/v1.
"""

import logging
from datetime import datetime

import httpx
from pydantic import PrivateAttr

from riskforecast.core.domain.errors import InvalidInputError
from riskforecast.core.domain.series import (
    DEFAULT_CATEGORY,
    FindingRecord,
    IncidentRecord,
    KRISeries,
    RiskFactors,
    TimeSeriesPoint,
    parse_timestamp,
)
from riskforecast.core.ports.risk_data import RiskDataProvider

logger = logging.getLogger(__name__)


class RestRiskDataProvider(RiskDataProvider):
    """
    Data provider for PostgREST endpoints.
    Configured via Pydantic model fields.
    """
    rest_url: str
    api_key: str | None = None
    timeout: float = 30.0
    headers: dict[str, str] = {}

    _client: httpx.AsyncClient | None = PrivateAttr(default=None)

    def model_post_init(self, __context):
        """Normalize URL and attach credentials."""
        self.rest_url = self.rest_url.rstrip("/")
        if self.api_key:
            self.headers = {
                "apikey": self.api_key,
                "Authorization": f"Bearer {self.api_key}",
                **self.headers,
            }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
            )
        return self._client

    async def _select(self, table: str, params: list[tuple[str, str]]) -> list[dict]:
        client = await self._get_client()
        response = await client.get(f"{self.rest_url}/{table}", params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise RuntimeError(f"Unexpected response from '{table}': {data!r}")
        return data

    async def fetch_incidents(self, org_id: str, start: datetime, end: datetime) -> list[IncidentRecord]:
        rows = await self._select("incident_logs", [
            ("select", "*"),
            ("org_id", f"eq.{org_id}"),
            ("reported_at", f"gte.{start.isoformat()}"),
            ("reported_at", f"lte.{end.isoformat()}"),
            ("order", "reported_at.asc"),
        ])

        incidents = []
        for row in rows:
            try:
                incidents.append(IncidentRecord(
                    reported_at=parse_timestamp(row["reported_at"]),
                    category=row.get("category") or DEFAULT_CATEGORY,
                    severity=row.get("severity"),
                    impact_rating=row.get("impact_rating"),
                    status=row.get("status"),
                ))
            except (KeyError, InvalidInputError) as e:
                logger.warning(f"Skipping malformed incident row {row.get('id')}: {e}")
        return incidents

    async def fetch_open_findings(self, org_id: str) -> list[FindingRecord]:
        rows = await self._select("compliance_findings", [
            ("select", "severity,status"),
            ("org_id", f"eq.{org_id}"),
            ("status", "eq.open"),
        ])
        return [FindingRecord(severity=row.get("severity") or "", status=row.get("status") or "open") for row in rows]

    async def fetch_kri_series(self, org_id: str, start: datetime, end: datetime) -> list[KRISeries]:
        rows = await self._select("kri_definitions", [
            ("select", "id,name,warning_threshold,kri_logs(actual_value,measurement_date)"),
            ("org_id", f"eq.{org_id}"),
            ("kri_logs.measurement_date", f"gte.{start.date().isoformat()}"),
            ("kri_logs.measurement_date", f"lte.{end.date().isoformat()}"),
        ])

        series = []
        for row in rows:
            try:
                threshold = float(row.get("warning_threshold") or 0)
            except (TypeError, ValueError):
                logger.warning(f"Skipping KRI {row.get('id')}: invalid threshold {row.get('warning_threshold')!r}")
                continue

            points = []
            for log in row.get("kri_logs") or []:
                try:
                    points.append(TimeSeriesPoint.from_row({
                        "timestamp": log.get("measurement_date"),
                        "value": log.get("actual_value"),
                        "category": str(row["id"]),
                    }))
                except InvalidInputError as e:
                    logger.warning(f"Skipping KRI log for {row.get('id')}: {e}")

            series.append(KRISeries(
                kri_id=str(row["id"]),
                name=row.get("name") or str(row["id"]),
                threshold=threshold,
                points=points,
            ))
        return series

    async def fetch_risk_factors(self, org_id: str) -> RiskFactors:
        incidents = await self._select("incident_logs", [
            ("select", "id"),
            ("org_id", f"eq.{org_id}"),
            ("severity", "eq.critical"),
            ("or", "(status.is.null,status.neq.resolved)"),
        ])
        controls = await self._select("controls", [
            ("select", "status"),
            ("org_id", f"eq.{org_id}"),
        ])
        vendors = await self._select("third_party_profiles", [
            ("select", "id"),
            ("org_id", f"eq.{org_id}"),
            ("risk_rating", "eq.high"),
        ])

        active = sum(1 for c in controls if c.get("status") == "active")
        # No controls on record reads as fully ineffective
        effectiveness = round(active / len(controls) * 100) if controls else 0

        return RiskFactors(
            incident_count=len(incidents),
            control_effectiveness_pct=effectiveness,
            high_risk_vendor_count=len(vendors),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
