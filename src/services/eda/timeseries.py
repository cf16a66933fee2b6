"""Time series aggregation over a date column."""

from datetime import datetime
from typing import Any

from src.config.constants import ChartType, Granularity
from src.infrastructure.datasets.store import Dataset
from src.services.eda.charts import build_chart
from src.utils.values import parse_timestamp, to_iso_utc, to_number


def bucket_key(moment: datetime, granularity: Granularity) -> str:
    """Bucket label for a UTC moment.

    Weeks use the ISO-8601 calendar: week 1 holds the year's first Thursday,
    and the label carries the ISO week-year, which can differ from the
    calendar year around New Year.
    """
    if granularity == Granularity.RAW:
        return to_iso_utc(moment)
    if granularity == Granularity.DAY:
        return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
    if granularity == Granularity.MONTH:
        return f"{moment.year:04d}-{moment.month:02d}"
    iso_year, iso_week, _ = moment.date().isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def moving_average(values: list[float], window: int) -> list[float]:
    """Trailing mean over the last ``window`` points; shorter at the start."""
    averages = []
    running = 0.0
    for i, value in enumerate(values):
        running += value
        if i >= window:
            running -= values[i - window]
        averages.append(running / min(i + 1, window))
    return averages


def time_series_slice(
    dataset: Dataset,
    date_column: str,
    value_column: str,
    granularity: Granularity,
    moving_average_window: int | None,
) -> dict[str, Any]:
    """Mean of ``value_column`` per time bucket, ascending by timestamp."""
    buckets: dict[str, dict[str, Any]] = {}
    dropped = 0
    for row in dataset.rows:
        value = to_number(row.get(value_column))
        moment = parse_timestamp(row.get(date_column)) if value is not None else None
        if moment is None:
            dropped += 1
            continue
        key = bucket_key(moment, granularity)
        bucket = buckets.setdefault(key, {"sum": 0.0, "count": 0, "first": moment})
        bucket["sum"] += value
        bucket["count"] += 1

    series = sorted(
        (
            {
                "bucketKey": key,
                "timestamp": to_iso_utc(bucket["first"]),
                "value": bucket["sum"] / bucket["count"],
                "count": bucket["count"],
            }
            for key, bucket in buckets.items()
        ),
        key=lambda point: point["timestamp"],
    )

    charts = [
        build_chart(
            f"timeseries-{dataset.id}-{date_column}-{value_column}",
            f"Average {value_column} over {date_column}",
            ChartType.LINE,
            "timestamp",
            "value",
            series,
        )
    ]
    result: dict[str, Any] = {
        "datasetId": dataset.id,
        "dateColumn": date_column,
        "valueColumn": value_column,
        "granularity": granularity.value,
        "droppedRows": dropped,
        "series": series,
    }

    if moving_average_window is not None and moving_average_window >= 2 and series:
        averages = moving_average([p["value"] for p in series], moving_average_window)
        ma_series = [
            {"timestamp": point["timestamp"], "maValue": avg}
            for point, avg in zip(series, averages)
        ]
        result["movingAverageWindow"] = moving_average_window
        result["movingAverage"] = ma_series
        charts.append(
            build_chart(
                f"timeseries-ma-{dataset.id}-{date_column}-{value_column}",
                f"Moving average ({moving_average_window}) of {value_column}",
                ChartType.LINE,
                "timestamp",
                "maValue",
                ma_series,
            )
        )

    result["charts"] = charts
    return result
