"""
Tests for the Aggregator.
"""
from datetime import datetime, timedelta, timezone

import pytest

from riskforecast.core.analytics.aggregator import (
    aggregate,
    aggregate_frame,
    iso_day,
    iso_month,
    iso_week,
    points_to_frame,
)
from riskforecast.core.domain.series import TimeSeriesPoint


def point(month, day, category, value=1.0):
    return TimeSeriesPoint(timestamp=datetime(2024, month, day, tzinfo=timezone.utc), value=value, category=category)


@pytest.fixture
def points():
    # Deliberately out of order
    return [
        point(3, 2, "cyber"),
        point(1, 5, "cyber"),
        point(2, 9, "operational", 2.5),
        point(1, 20, "cyber"),
        point(3, 28, "cyber"),
        point(3, 1, "cyber"),
    ]


def test_sparse_aggregation(points):
    series = aggregate(points, iso_month)

    assert series == {
        "cyber": [2.0, 3.0],
        "operational": [2.5],
    }


def test_dense_aggregation(points):
    series = aggregate(points, iso_month, dense=True)

    assert series == {
        "cyber": [2.0, 0.0, 3.0],
        "operational": [0.0, 2.5, 0.0],
    }


def test_aggregation_ignores_input_order(points):
    assert aggregate(points) == aggregate(list(reversed(points)))


def test_empty_input():
    assert aggregate([]) == {}
    assert aggregate([], dense=True) == {}
    assert list(points_to_frame([]).columns) == ["unique_id", "ds", "y"]


def test_weekly_buckets():
    pts = [point(1, 1, "a"), point(1, 3, "a"), point(1, 8, "a")]
    frame = aggregate_frame(pts, iso_week)

    assert list(frame["bucket"]) == ["2024-W01", "2024-W02"]
    assert list(frame["y"]) == [2.0, 1.0]


def test_custom_bucket_fn():
    pts = [point(1, 1, "a"), point(6, 1, "a"), point(7, 1, "a")]
    series = aggregate(pts, lambda ts: f"{ts.year}-H{1 if ts.month <= 6 else 2}")
    assert series == {"a": [2.0, 1.0]}


def test_bucket_functions():
    ts = datetime(2021, 1, 3)
    assert iso_week(ts) == "2020-W53"
    assert iso_month(ts) == "2021-01"
    assert iso_day(ts) == "2021-01-03"


def test_offset_timestamps_bucket_by_utc():
    # 23:30 on Jan 31 at UTC-05:00 is already February in UTC
    ts = datetime(2024, 1, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert iso_month(ts) == "2024-02"
    assert iso_day(ts) == "2024-02-01"
    assert iso_week(ts) == "2024-W05"

    points = [
        TimeSeriesPoint(ts, 1.0, "cyber"),
        TimeSeriesPoint(datetime(2024, 2, 10, tzinfo=timezone.utc), 1.0, "cyber"),
    ]
    assert aggregate(points, iso_month) == {"cyber": [2.0]}
