"""In-memory dataset store with column type inference."""

import logging
import threading
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from src.config.constants import ColumnType
from src.utils.values import is_number, parses_as_number

logger = logging.getLogger(__name__)

DEFAULT_TYPE_SAMPLE_SIZE = 20


@dataclass(frozen=True)
class DatasetColumn:
    """A column name with its inferred type."""

    name: str
    type: ColumnType

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type.value}


@dataclass(frozen=True)
class DatasetSummary:
    """Lightweight view of a dataset without row data."""

    id: str
    name: str
    row_count: int
    columns: tuple[DatasetColumn, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rowCount": self.row_count,
            "columns": [c.to_dict() for c in self.columns],
        }


@dataclass(frozen=True)
class Dataset:
    """An immutable table of rows stored under an opaque id."""

    id: str
    name: str
    rows: list[dict[str, Any]] = field(repr=False)
    columns: tuple[DatasetColumn, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> DatasetColumn | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.column(name) is not None

    def values(self, name: str) -> list[Any]:
        """All values of a column in row order (absent keys read as None)."""
        return [row.get(name) for row in self.rows]

    def summary(self) -> DatasetSummary:
        return DatasetSummary(
            id=self.id, name=self.name, row_count=self.row_count, columns=self.columns
        )


def _infer_type(values: list[Any]) -> ColumnType:
    """Infer a column type from its sampled non-null values."""
    if not values:
        return ColumnType.UNKNOWN
    if all(is_number(v) for v in values):
        return ColumnType.NUMBER
    if all(isinstance(v, bool) for v in values):
        return ColumnType.BOOLEAN
    if all(isinstance(v, str) for v in values):
        if all(parses_as_number(v) for v in values):
            return ColumnType.NUMBER
    return ColumnType.STRING


def infer_columns(
    rows: Sequence[Mapping[str, Any]],
    sample_size: int = DEFAULT_TYPE_SAMPLE_SIZE,
) -> tuple[DatasetColumn, ...]:
    """Derive columns from the first ``sample_size`` rows.

    Column names are the union of keys across sampled rows, in first-seen order.
    """
    sample = rows[:sample_size]
    names: dict[str, None] = {}
    for row in sample:
        for key in row:
            names.setdefault(key, None)

    columns = []
    for name in names:
        values = [row.get(name) for row in sample if row.get(name) is not None]
        columns.append(DatasetColumn(name=name, type=_infer_type(values)))
    return tuple(columns)


def stride_sample(rows: Sequence[Any], max_rows: int) -> list[Any]:
    """Deterministically thin ``rows`` down to at most ``max_rows`` entries."""
    if len(rows) <= max_rows:
        return list(rows)
    step = len(rows) / max_rows
    return [rows[int(i * step)] for i in range(max_rows)]


class DatasetStore:
    """Process-lifetime store of uploaded datasets.

    Writes are append-only; a dataset never changes after ingestion so reads
    need no locking. Only ingestion itself is serialized.
    """

    def __init__(
        self,
        type_sample_size: int = DEFAULT_TYPE_SAMPLE_SIZE,
        max_rows: int | None = None,
    ) -> None:
        self._type_sample_size = type_sample_size
        self._max_rows = max_rows
        self._datasets: dict[str, Dataset] = {}
        self._lock = threading.Lock()

    def add_dataset(self, name: str, rows: Iterable[Mapping[str, Any]]) -> DatasetSummary:
        """Store a decoded table and return its summary."""
        stored = [dict(row) for row in rows]
        if self._max_rows is not None and len(stored) > self._max_rows:
            logger.info(
                "[STORE] Sampling %s from %d to %d rows", name, len(stored), self._max_rows
            )
            stored = stride_sample(stored, self._max_rows)

        dataset = Dataset(
            id=uuid.uuid4().hex,
            name=name,
            rows=stored,
            columns=infer_columns(stored, self._type_sample_size),
        )
        with self._lock:
            self._datasets[dataset.id] = dataset

        logger.info(
            "[STORE] Added dataset %s (%s): %d rows, %d columns",
            dataset.id, name, dataset.row_count, len(dataset.columns),
        )
        return dataset.summary()

    def get_dataset(self, dataset_id: str) -> Dataset | None:
        return self._datasets.get(dataset_id)

    def list_datasets(self) -> list[DatasetSummary]:
        return [d.summary() for d in list(self._datasets.values())]

    def __len__(self) -> int:
        return len(self._datasets)

    def close(self) -> None:
        """Drop every dataset. Called at application shutdown."""
        with self._lock:
            count = len(self._datasets)
            self._datasets.clear()
        logger.info("[STORE] Closed dataset store (%d datasets released)", count)
