"""
Statistics engine: read-only analyses over stored datasets.

Every public method takes the dataset id first and returns a plain dict.
Unknown datasets and unknown columns are reported as ``{"error": ...}``
instead of raising, so callers can branch on the presence of ``error``.
"""

import logging
from typing import Any

from src.config.constants import Granularity, ProblemType, SortDirection
from src.infrastructure.datasets.store import Dataset, DatasetStore
from src.services.eda import distributions, profiling, relationships, segments, timeseries

logger = logging.getLogger(__name__)

MAX_LIMIT = 50
DEFAULT_LIMIT = 10
MIN_POINTS = 10
MAX_POINTS = 5000
DEFAULT_POINTS = 1000
MIN_MOVING_AVERAGE_WINDOW = 2
MAX_MOVING_AVERAGE_WINDOW = 60
MAX_FEATURES = 50
DEFAULT_FEATURES = 10


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def dataset_not_found(dataset_id: str) -> dict[str, str]:
    return {
        "error": f"Dataset with id '{dataset_id}' was not found. "
        "Ask the user to upload the dataset again."
    }


def column_not_found(column: str) -> dict[str, str]:
    return {"error": f"Column '{column}' was not found in the dataset."}


class StatisticsEngine:
    """Exposes the dataset analyses over a :class:`DatasetStore`."""

    def __init__(self, store: DatasetStore):
        self.store = store

    def _resolve(
        self, dataset_id: str, *columns: str
    ) -> tuple[Dataset | None, dict[str, str] | None]:
        """Look up a dataset and check referenced columns exist."""
        dataset = self.store.get_dataset(dataset_id)
        if dataset is None:
            logger.info("[EDA] Dataset not found: %s", dataset_id)
            return None, dataset_not_found(dataset_id)
        for column in columns:
            if not dataset.has_column(column):
                logger.info("[EDA] Column not found: %s in %s", column, dataset_id)
                return None, column_not_found(column)
        return dataset, None

    def describe_dataset(self, dataset_id: str) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id)
        if error:
            return error
        return profiling.describe_dataset(dataset)

    def summarize_columns(self, dataset_id: str) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id)
        if error:
            return error
        return profiling.summarize_columns(dataset)

    def value_counts(
        self, dataset_id: str, column: str, limit: int = DEFAULT_LIMIT
    ) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id, column)
        if error:
            return error
        return distributions.value_counts(dataset, column, _clamp(limit, 1, MAX_LIMIT))

    def time_series_slice(
        self,
        dataset_id: str,
        date_column: str,
        value_column: str,
        granularity: Granularity | str = Granularity.RAW,
        moving_average_window: int | None = None,
    ) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id, date_column, value_column)
        if error:
            return error
        window = None
        if moving_average_window is not None and moving_average_window >= MIN_MOVING_AVERAGE_WINDOW:
            window = min(moving_average_window, MAX_MOVING_AVERAGE_WINDOW)
        return timeseries.time_series_slice(
            dataset, date_column, value_column, Granularity(granularity), window
        )

    def grouped_summary(
        self, dataset_id: str, group_by: list[str], metrics: list[str]
    ) -> dict[str, Any]:
        if not group_by or not metrics:
            return {"error": "groupBy and metrics must each name at least one column."}
        dataset, error = self._resolve(dataset_id, *group_by, *metrics)
        if error:
            return error
        return segments.grouped_summary(dataset, group_by, metrics)

    def top_segments(
        self,
        dataset_id: str,
        group_by_column: str,
        metric_column: str,
        direction: SortDirection | str = SortDirection.DESC,
        limit: int = DEFAULT_LIMIT,
    ) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id, group_by_column, metric_column)
        if error:
            return error
        return segments.top_segments(
            dataset,
            group_by_column,
            metric_column,
            SortDirection(direction),
            _clamp(limit, 1, MAX_LIMIT),
        )

    def relationship_drilldown(
        self,
        dataset_id: str,
        x_column: str,
        y_column: str,
        max_points: int = DEFAULT_POINTS,
    ) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id, x_column, y_column)
        if error:
            return error
        return relationships.relationship_drilldown(
            dataset, x_column, y_column, _clamp(max_points, MIN_POINTS, MAX_POINTS)
        )

    def correlation_matrix(self, dataset_id: str) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id)
        if error:
            return error
        return relationships.correlation_matrix(dataset)

    def target_analysis(
        self,
        dataset_id: str,
        target_column: str,
        problem_type: ProblemType | str = ProblemType.AUTO,
        max_features: int = DEFAULT_FEATURES,
    ) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id, target_column)
        if error:
            return error
        return distributions.target_analysis(
            dataset,
            target_column,
            ProblemType(problem_type),
            _clamp(max_features, 1, MAX_FEATURES),
        )

    def missing_values_summary(self, dataset_id: str) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id)
        if error:
            return error
        return profiling.missing_values_summary(dataset)

    def generate_eda_report(self, dataset_id: str) -> dict[str, Any]:
        dataset, error = self._resolve(dataset_id)
        if error:
            return error
        return profiling.generate_eda_report(dataset)
