"""Categorical value counts and target-column analysis."""

from typing import Any

from src.config.constants import ChartType, ColumnType, ProblemType
from src.infrastructure.datasets.store import Dataset
from src.services.analysis.correlation import pearson
from src.services.analysis.distribution import histogram, numeric_summary
from src.services.eda.charts import build_chart
from src.utils.values import comparable_key, numeric_values, to_number

_TARGET_SUMMARY_FIELDS = ("min", "max", "mean", "median", "q1", "q3", "iqr")


def count_values(values: list[Any]) -> tuple[list[dict[str, Any]], int]:
    """Count non-null values by distinct key, most frequent first.

    Ties keep first-seen order. Each entry reports the first value seen for
    its key.

    Returns:
        (entries with value/count/fraction, total non-null count)
    """
    counts: dict[tuple[str, Any], list[Any]] = {}
    for value in values:
        if value is None:
            continue
        key = comparable_key(value)
        entry = counts.get(key)
        if entry is None:
            counts[key] = [value, 1]
        else:
            entry[1] += 1

    total = sum(count for _, count in counts.values())
    ranked = sorted(counts.values(), key=lambda entry: entry[1], reverse=True)
    entries = [
        {"value": value, "count": count, "fraction": count / total if total else 0.0}
        for value, count in ranked
    ]
    return entries, total


def value_counts(dataset: Dataset, column: str, limit: int) -> dict[str, Any]:
    entries, total = count_values(dataset.values(column))
    top = entries[:limit]
    return {
        "datasetId": dataset.id,
        "column": column,
        "totalNonNull": total,
        "distinctCount": len(entries),
        "values": top,
        "charts": [
            build_chart(
                f"value-counts-{dataset.id}-{column}",
                f"Value counts for {column}",
                ChartType.BAR,
                "value",
                "count",
                [{"value": e["value"], "count": e["count"]} for e in top],
            )
        ],
    }


def resolve_problem_type(problem_type: ProblemType, target_type: ColumnType) -> ProblemType:
    if problem_type != ProblemType.AUTO:
        return problem_type
    if target_type == ColumnType.NUMBER:
        return ProblemType.REGRESSION
    return ProblemType.CLASSIFICATION


def _feature_importance(
    dataset: Dataset, target_column: str, max_features: int
) -> list[dict[str, Any]]:
    """Rank other numeric columns by |Pearson r| against the target."""
    features = [
        c.name
        for c in dataset.columns
        if c.type == ColumnType.NUMBER and c.name != target_column
    ]
    scored = []
    for feature in features:
        xs: list[float] = []
        ys: list[float] = []
        for row in dataset.rows:
            target_value = to_number(row.get(target_column))
            feature_value = to_number(row.get(feature))
            if target_value is not None and feature_value is not None:
                xs.append(target_value)
                ys.append(feature_value)
        scored.append({"feature": feature, "measure": "abs_pearson", "score": abs(pearson(xs, ys))})

    scored.sort(key=lambda item: item["score"], reverse=True)
    return scored[:max_features]


def target_analysis(
    dataset: Dataset,
    target_column: str,
    problem_type: ProblemType,
    max_features: int,
) -> dict[str, Any]:
    """Distribution of a target column plus simple feature relationships."""
    target_meta = dataset.column(target_column)
    inferred = resolve_problem_type(problem_type, target_meta.type)
    target_values = dataset.values(target_column)
    charts: list[dict[str, Any]] = []
    feature_importance: list[dict[str, Any]] = []

    if inferred == ProblemType.REGRESSION:
        nums = numeric_values(target_values)
        distribution: dict[str, Any] = {"kind": "numeric", "count": len(nums)}
        stats = numeric_summary(nums)
        if stats is not None:
            hist = histogram(nums)
            distribution["summary"] = {k: stats[k] for k in _TARGET_SUMMARY_FIELDS}
            distribution["histogram"] = hist
            charts.append(
                build_chart(
                    f"target-hist-{dataset.id}-{target_column}",
                    f"Distribution of target {target_column}",
                    ChartType.BAR,
                    "binStart",
                    "count",
                    hist,
                )
            )

        feature_importance = _feature_importance(dataset, target_column, max_features)
        if feature_importance:
            charts.append(
                build_chart(
                    f"target-features-{dataset.id}-{target_column}",
                    f"Top feature relationships with {target_column}",
                    ChartType.BAR,
                    "feature",
                    "score",
                    [{"feature": f["feature"], "score": f["score"]} for f in feature_importance],
                )
            )
    else:
        entries, _ = count_values(target_values)
        distribution = {"kind": "categorical", "values": entries}
        charts.append(
            build_chart(
                f"target-vc-{dataset.id}-{target_column}",
                f"Target distribution for {target_column}",
                ChartType.BAR,
                "value",
                "count",
                [{"value": e["value"], "count": e["count"]} for e in entries],
            )
        )

    result: dict[str, Any] = {
        "datasetId": dataset.id,
        "targetColumn": target_column,
        "inferredProblemType": inferred.value,
        "targetDistribution": distribution,
        "featureImportance": feature_importance,
    }
    if charts:
        result["charts"] = charts
    return result
