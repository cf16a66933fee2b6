"""Pairwise relationships between columns."""

import math
from typing import Any

from src.config.constants import ColumnType
from src.infrastructure.datasets.store import Dataset
from src.services.analysis.correlation import compute_relationship_stats, pearson
from src.services.analysis.distribution import numeric_summary
from src.utils.values import numeric_values, to_number


def _paired_numbers(dataset: Dataset, a: str, b: str) -> tuple[list[float], list[float]]:
    """Values of two columns on rows where both are numeric."""
    xs: list[float] = []
    ys: list[float] = []
    for row in dataset.rows:
        x = to_number(row.get(a))
        y = to_number(row.get(b))
        if x is not None and y is not None:
            xs.append(x)
            ys.append(y)
    return xs, ys


def _has_variance(values: list[float]) -> bool:
    stats = numeric_summary(values)
    return stats is not None and stats["variance"] > 0


def correlation_matrix(dataset: Dataset) -> dict[str, Any]:
    """Symmetric Pearson matrix over the numeric columns, in column order."""
    numeric_cols = [c.name for c in dataset.columns if c.type == ColumnType.NUMBER]
    matrix: dict[str, dict[str, float]] = {name: {} for name in numeric_cols}

    for i, col_a in enumerate(numeric_cols):
        # A column correlates perfectly with itself unless it is constant.
        matrix[col_a][col_a] = 1.0 if _has_variance(numeric_values(dataset.values(col_a))) else 0.0
        for col_b in numeric_cols[i + 1 :]:
            xs, ys = _paired_numbers(dataset, col_a, col_b)
            r = pearson(xs, ys)
            matrix[col_a][col_b] = r
            matrix[col_b][col_a] = r

    # Re-key rows so iteration follows column order.
    ordered = {a: {b: matrix[a][b] for b in numeric_cols} for a in numeric_cols}
    return {
        "datasetId": dataset.id,
        "numericColumns": numeric_cols,
        "matrix": ordered,
    }


def relationship_drilldown(
    dataset: Dataset, x_column: str, y_column: str, max_points: int
) -> dict[str, Any]:
    """Non-null (x, y) pairs in row order, stride-sampled down to ``max_points``."""
    pairs = [
        {"x": row.get(x_column), "y": row.get(y_column)}
        for row in dataset.rows
        if row.get(x_column) is not None and row.get(y_column) is not None
    ]

    sampled = pairs
    if len(pairs) > max_points:
        step = math.ceil(len(pairs) / max_points)
        sampled = pairs[::step]

    result: dict[str, Any] = {
        "datasetId": dataset.id,
        "xColumn": x_column,
        "yColumn": y_column,
        "sampledCount": len(sampled),
        "totalPairs": len(pairs),
        "points": sampled,
    }

    x_meta = dataset.column(x_column)
    y_meta = dataset.column(y_column)
    if x_meta.type == ColumnType.NUMBER and y_meta.type == ColumnType.NUMBER:
        result["stats"] = compute_relationship_stats(*_paired_numbers(dataset, x_column, y_column))
    return result
