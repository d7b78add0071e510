"""
Series Domain Models - Raw records supplied by the upstream data provider.

Rows are read once per forecast request and never mutated.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from riskforecast.core.domain.errors import InvalidInputError

DEFAULT_CATEGORY = "other"


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (or pass through a datetime)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidInputError(f"Invalid timestamp '{value}': {e}") from e
    raise InvalidInputError(f"Invalid timestamp type: {type(value).__name__}")


@dataclass(frozen=True)
class TimeSeriesPoint:
    """A single time-stamped observation."""

    timestamp: datetime
    value: float
    category: str = DEFAULT_CATEGORY

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TimeSeriesPoint":
        """
        Build a point from an upstream row.

        Args:
            row: Mapping with 'timestamp' (ISO-8601), 'value' and optional 'category'
        """
        value = row.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInputError(f"Non-numeric value in row: {value!r}")
        return cls(
            timestamp=parse_timestamp(row.get("timestamp")),
            value=float(value),
            category=row.get("category") or DEFAULT_CATEGORY,
        )


@dataclass(frozen=True)
class IncidentRecord:
    """An incident log entry."""

    reported_at: datetime
    category: str = DEFAULT_CATEGORY
    severity: str | None = None
    impact_rating: int | None = None
    status: str | None = None

    def to_point(self) -> TimeSeriesPoint:
        """Each incident counts once in its category."""
        return TimeSeriesPoint(timestamp=self.reported_at, value=1.0, category=self.category)


@dataclass(frozen=True)
class FindingRecord:
    """A compliance finding."""

    severity: str
    status: str = "open"


@dataclass(frozen=True)
class KRISeries:
    """Measurements of one key risk indicator against its warning threshold."""

    kri_id: str
    name: str
    threshold: float
    points: list[TimeSeriesPoint] = field(default_factory=list)

    def values(self) -> list[float]:
        """Measurement values ordered by timestamp."""
        return [p.value for p in sorted(self.points, key=lambda p: p.timestamp)]


@dataclass(frozen=True)
class RiskFactors:
    """Inputs to the 1-10 composite risk score."""

    incident_count: float
    control_effectiveness_pct: float
    high_risk_vendor_count: float = 0
