"""
Aggregator - Buckets raw points into per-category series.

Sparse by default: a category only gets entries for buckets it has rows in.
Callers that want zero-filled gaps must ask for a dense series; trends computed
over sparse data can otherwise look steadier than they are.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable

import pandas as pd

from riskforecast.core.domain.series import TimeSeriesPoint

BucketFn = Callable[[datetime], str]


def _utc(ts: datetime) -> datetime:
    """Aware timestamps bucket by their UTC date; naive ones are taken as UTC."""
    return ts.astimezone(timezone.utc) if ts.tzinfo is not None else ts


def iso_day(ts: datetime) -> str:
    return _utc(ts).strftime("%Y-%m-%d")


def iso_week(ts: datetime) -> str:
    year, week, _ = _utc(ts).isocalendar()
    return f"{year}-W{week:02d}"


def iso_month(ts: datetime) -> str:
    return _utc(ts).strftime("%Y-%m")


def points_to_frame(points: Iterable[TimeSeriesPoint]) -> pd.DataFrame:
    """
    Convert points to a DataFrame with columns ['unique_id', 'ds', 'y'].

    unique_id carries the category.
    """
    rows = [{"unique_id": p.category, "ds": p.timestamp, "y": p.value} for p in points]
    if not rows:
        return pd.DataFrame(columns=["unique_id", "ds", "y"])
    return pd.DataFrame(rows)


def aggregate_frame(
    points: Iterable[TimeSeriesPoint],
    bucket_fn: BucketFn = iso_month,
) -> pd.DataFrame:
    """
    Sum point values per (category, bucket).

    Returns:
        DataFrame with columns ['unique_id', 'bucket', 'y'] sorted by bucket
    """
    df = points_to_frame(points)
    if df.empty:
        return pd.DataFrame(columns=["unique_id", "bucket", "y"])

    df["bucket"] = df["ds"].map(bucket_fn)
    grouped = df.groupby(["unique_id", "bucket"], as_index=False)["y"].sum()
    return grouped.sort_values(["bucket", "unique_id"], ignore_index=True)


def aggregate(
    points: Iterable[TimeSeriesPoint],
    bucket_fn: BucketFn = iso_month,
    dense: bool = False,
) -> dict[str, list[float]]:
    """
    Group points by bucket then category.

    Args:
        points: Points in any order
        bucket_fn: Maps a timestamp to a sortable bucket key
        dense: Zero-fill every bucket observed for any category

    Returns:
        Mapping of category to bucket sums, ordered by bucket key ascending
    """
    grouped = aggregate_frame(points, bucket_fn)
    if grouped.empty:
        return {}

    if dense:
        pivot = grouped.pivot_table(
            index="bucket", columns="unique_id", values="y", aggfunc="sum", fill_value=0.0
        ).sort_index()
        return {str(category): [float(v) for v in pivot[category]] for category in sorted(pivot.columns)}

    return {
        str(category): [float(v) for v in group["y"]]
        for category, group in grouped.groupby("unique_id", sort=True)
    }
