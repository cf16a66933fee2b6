"""Grouped aggregates and ranked segments."""

from typing import Any

from src.config.constants import ChartType, SortDirection
from src.infrastructure.datasets.store import Dataset
from src.services.analysis.distribution import quantile
from src.services.eda.charts import build_chart
from src.utils.values import js_string, to_number


def grouped_summary(dataset: Dataset, group_by: list[str], metrics: list[str]) -> dict[str, Any]:
    """
    Aggregate numeric metrics per distinct tuple of group-by values.

    Group values are compared by their string form. Each output row carries
    the group key fields, the group's row ``count`` and, for every metric with
    at least one numeric value, ``<metric>_count/_sum/_mean/_median``.
    """
    groups: dict[tuple[str, ...], dict[str, Any]] = {}

    for row in dataset.rows:
        key = tuple(js_string(row.get(g)) for g in group_by)
        entry = groups.get(key)
        if entry is None:
            entry = {
                "keyValues": {g: row.get(g) for g in group_by},
                "count": 0,
                "values": {m: [] for m in metrics},
            }
            groups[key] = entry
        entry["count"] += 1
        for metric in metrics:
            value = to_number(row.get(metric))
            if value is not None:
                entry["values"][metric].append(value)

    result_rows: list[dict[str, Any]] = []
    for entry in groups.values():
        out: dict[str, Any] = dict(entry["keyValues"])
        out["count"] = entry["count"]
        for metric in metrics:
            vals = entry["values"][metric]
            if not vals:
                continue
            total = sum(vals)
            out[f"{metric}_count"] = len(vals)
            out[f"{metric}_sum"] = total
            out[f"{metric}_mean"] = total / len(vals)
            out[f"{metric}_median"] = quantile(sorted(vals), 0.5)
        result_rows.append(out)

    result: dict[str, Any] = {
        "datasetId": dataset.id,
        "groupBy": list(group_by),
        "metrics": list(metrics),
        "rows": result_rows,
    }
    if len(group_by) == 1 and len(metrics) == 1:
        g, m = group_by[0], metrics[0]
        result["charts"] = [
            build_chart(
                f"grouped-{dataset.id}-{g}-{m}",
                f"{m} by {g}",
                ChartType.BAR,
                g,
                f"{m}_mean",
                result_rows,
            )
        ]
    return result


def top_segments(
    dataset: Dataset,
    group_by_column: str,
    metric_column: str,
    direction: SortDirection,
    limit: int,
) -> dict[str, Any]:
    """Rank the segments of one column by the mean of a numeric metric."""
    segments: dict[str, dict[str, float]] = {}
    for row in dataset.rows:
        group = row.get(group_by_column)
        value = to_number(row.get(metric_column))
        if group is None or value is None:
            continue
        entry = segments.setdefault(js_string(group), {"sum": 0.0, "count": 0})
        entry["sum"] += value
        entry["count"] += 1

    ranked = [
        {
            "segment": segment,
            "count": int(agg["count"]),
            "mean": agg["sum"] / agg["count"] if agg["count"] else 0.0,
            "sum": agg["sum"],
        }
        for segment, agg in segments.items()
    ]
    ranked.sort(key=lambda item: item["mean"], reverse=direction == SortDirection.DESC)
    top = ranked[:limit]

    return {
        "datasetId": dataset.id,
        "groupByColumn": group_by_column,
        "metricColumn": metric_column,
        "direction": direction.value,
        "totalSegments": len(ranked),
        "segments": top,
        "charts": [
            build_chart(
                f"topsegments-{dataset.id}-{group_by_column}-{metric_column}",
                f"Top segments by {metric_column}",
                ChartType.BAR,
                "segment",
                "mean",
                top,
            )
        ],
    }
