"""
Pytest configuration and shared fixtures for riskforecast tests.
"""
from datetime import datetime, timezone

import pytest

from riskforecast.core.domain.series import IncidentRecord, KRISeries, TimeSeriesPoint


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )


def utc(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def make_incident():
    def _make(month, category="operational", day=15, severity=None, impact_rating=None):
        return IncidentRecord(
            reported_at=utc(2024, month, day),
            category=category,
            severity=severity,
            impact_rating=impact_rating,
        )
    return _make


@pytest.fixture
def make_kri():
    def _make(kri_id, values, threshold, name=None):
        points = [
            TimeSeriesPoint(timestamp=utc(2024, 3, day + 1), value=v, category=kri_id)
            for day, v in enumerate(values)
        ]
        # Upstream ordering is not guaranteed
        points.reverse()
        return KRISeries(kri_id=kri_id, name=name or kri_id.upper(), threshold=threshold, points=points)
    return _make
