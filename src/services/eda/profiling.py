"""Dataset-wide profiling: schema, per-column summaries, missingness."""

from typing import Any

from src.config.constants import CardinalityBucket, ChartType, ColumnType
from src.infrastructure.datasets.store import Dataset
from src.services.analysis.distribution import histogram, numeric_summary
from src.services.eda.charts import build_chart
from src.utils.values import comparable_key, is_missing, numeric_values

SAMPLE_VALUES_PER_COLUMN = 5

# Rows with more than N missing fields
ROW_MISSING_THRESHOLDS = (1, 2, 3)
# Columns with at least N percent missing
COLUMN_MISSING_THRESHOLDS = (20, 50, 80)


def cardinality_bucket(distinct_count: int) -> CardinalityBucket:
    if distinct_count <= 10:
        return CardinalityBucket.LOW
    if distinct_count <= 100:
        return CardinalityBucket.MEDIUM
    if distinct_count <= 1000:
        return CardinalityBucket.HIGH
    return CardinalityBucket.VERY_HIGH


def describe_dataset(dataset: Dataset) -> dict[str, Any]:
    return dataset.summary().to_dict()


def summarize_columns(dataset: Dataset) -> dict[str, Any]:
    """Per-column counts, cardinality, samples and (numeric) distribution stats."""
    total_rows = dataset.row_count
    summaries: dict[str, dict[str, Any]] = {}
    charts: list[dict[str, Any]] = []

    for column in dataset.columns:
        non_null = [v for v in dataset.values(column.name) if v is not None]
        distinct = {comparable_key(v) for v in non_null}

        summary: dict[str, Any] = {
            "type": column.type.value,
            "nonNullCount": len(non_null),
            "nullCount": total_rows - len(non_null),
            "distinctCount": len(distinct),
            "sampleValues": non_null[:SAMPLE_VALUES_PER_COLUMN],
            "cardinalityBucket": cardinality_bucket(len(distinct)).value,
        }

        if column.type == ColumnType.NUMBER:
            nums = numeric_values(non_null)
            stats = numeric_summary(nums)
            if stats is not None:
                summary["numericStats"] = stats
                hist = histogram(nums)
                summary["histogram"] = hist
                charts.append(
                    build_chart(
                        f"hist-{dataset.id}-{column.name}",
                        f"Distribution of {column.name}",
                        ChartType.BAR,
                        "binStart",
                        "count",
                        hist,
                    )
                )

        summaries[column.name] = summary

    result: dict[str, Any] = {
        "datasetId": dataset.id,
        "rowCount": total_rows,
        "columns": summaries,
    }
    if charts:
        result["charts"] = charts
    return result


def missing_values_summary(dataset: Dataset) -> dict[str, Any]:
    """Missingness per column and per row. Null and empty string count as missing."""
    rows = dataset.rows
    denominator = len(rows) or 1

    missing_per_row = [
        sum(1 for col in dataset.columns if is_missing(row.get(col.name))) for row in rows
    ]

    columns = []
    for col in dataset.columns:
        null_count = sum(1 for row in rows if is_missing(row.get(col.name)))
        columns.append(
            {
                "name": col.name,
                "nullCount": null_count,
                "nonNullCount": len(rows) - null_count,
                "nullPercent": null_count / denominator * 100,
            }
        )

    rows_with_more_than = {
        f"gt_{t}": sum(1 for missing in missing_per_row if missing > t)
        for t in ROW_MISSING_THRESHOLDS
    }
    columns_over_thresholds = {
        f"gte_{pct}": [c["name"] for c in columns if c["nullPercent"] >= pct]
        for pct in COLUMN_MISSING_THRESHOLDS
    }

    return {
        "datasetId": dataset.id,
        "rowCount": len(rows),
        "rowsWithAnyMissing": sum(1 for missing in missing_per_row if missing > 0),
        "columns": columns,
        "rowsWithMoreThanMissing": rows_with_more_than,
        "columnsOverMissingThresholds": columns_over_thresholds,
    }


_REPORT_SECTIONS = (
    {
        "id": "columns",
        "title": "Columns",
        "description": (
            "Use SummarizeColumns to get per-column statistics, "
            "then describe key findings to the user."
        ),
    },
    {
        "id": "distributions",
        "title": "Distributions",
        "description": (
            "Use ValueCounts for categorical columns and appropriate charts "
            "to visualize distributions."
        ),
    },
    {
        "id": "relationships",
        "title": "Relationships",
        "description": (
            "Use CorrelationMatrix and TimeSeriesSlice to highlight relationships and trends."
        ),
    },
)


def generate_eda_report(dataset: Dataset) -> dict[str, Any]:
    """Fixed report scaffold; the model fills it with other tools' results."""
    return {
        "datasetId": dataset.id,
        "overview": {
            "name": dataset.name,
            "rowCount": dataset.row_count,
            "columnCount": len(dataset.columns),
        },
        "sections": [dict(section) for section in _REPORT_SECTIONS],
    }
