"""Tests for the in-memory dataset store and column type inference."""

from src.config.constants import ColumnType
from src.infrastructure.datasets.store import DatasetStore, infer_columns, stride_sample


def _types(rows):
    return {c.name: c.type for c in infer_columns(rows)}


# ---------------------------------------------------------------------------
# Store operations
# ---------------------------------------------------------------------------


class TestDatasetStore:
    def test_add_returns_summary(self, store, sales_rows):
        summary = store.add_dataset("sales.csv", sales_rows)
        assert summary.name == "sales.csv"
        assert summary.row_count == 6
        assert [c.name for c in summary.columns] == ["region", "product", "units", "revenue", "date"]

    def test_summary_wire_shape(self, store, sales_rows):
        data = store.add_dataset("sales.csv", sales_rows).to_dict()
        assert set(data) == {"id", "name", "rowCount", "columns"}
        assert data["rowCount"] == 6
        assert {"name": "units", "type": "number"} in data["columns"]

    def test_get_dataset_round_trip(self, store, sales_rows):
        summary = store.add_dataset("sales.csv", sales_rows)
        dataset = store.get_dataset(summary.id)
        assert dataset is not None
        assert dataset.row_count == summary.row_count
        assert dataset.summary() == summary

    def test_unknown_id_returns_none(self, store):
        assert store.get_dataset("missing") is None

    def test_ids_are_unique(self, store, sales_rows):
        first = store.add_dataset("a", sales_rows)
        second = store.add_dataset("b", sales_rows)
        assert first.id != second.id
        assert len(store) == 2

    def test_list_datasets(self, store, sales_rows):
        store.add_dataset("a", sales_rows)
        store.add_dataset("b", [])
        names = sorted(s.name for s in store.list_datasets())
        assert names == ["a", "b"]

    def test_rows_are_copied_at_ingestion(self, store):
        rows = [{"x": 1}]
        summary = store.add_dataset("copy", rows)
        rows[0]["x"] = 99
        rows.append({"x": 2})
        dataset = store.get_dataset(summary.id)
        assert dataset.rows == [{"x": 1}]

    def test_empty_dataset(self, store):
        summary = store.add_dataset("empty", [])
        assert summary.row_count == 0
        assert summary.columns == ()

    def test_close_drops_everything(self, store, sales_rows):
        summary = store.add_dataset("a", sales_rows)
        store.close()
        assert len(store) == 0
        assert store.get_dataset(summary.id) is None

    def test_integer_too_large_for_float(self, store):
        summary = store.add_dataset("big.csv", [{"v": 10**400}, {"v": 1}])
        assert summary.row_count == 2
        assert summary.columns[0].type == ColumnType.NUMBER

    def test_max_rows_keeps_stride_sample(self):
        store = DatasetStore(max_rows=4)
        rows = [{"i": i} for i in range(10)]
        summary = store.add_dataset("big", rows)
        dataset = store.get_dataset(summary.id)
        assert summary.row_count == 4
        assert [r["i"] for r in dataset.rows] == [0, 2, 5, 7]


def test_stride_sample_short_input_unchanged():
    assert stride_sample([1, 2, 3], 5) == [1, 2, 3]


# ---------------------------------------------------------------------------
# Type inference
# ---------------------------------------------------------------------------


class TestInferColumns:
    def test_numbers(self):
        assert _types([{"a": 1}, {"a": 2.5}, {"a": None}]) == {"a": ColumnType.NUMBER}

    def test_numeric_strings(self):
        assert _types([{"a": "1"}, {"a": " 2.5 "}, {"a": "-3e2"}]) == {"a": ColumnType.NUMBER}

    def test_empty_string_is_not_numeric(self):
        assert _types([{"a": "1"}, {"a": ""}]) == {"a": ColumnType.STRING}

    def test_booleans(self):
        assert _types([{"a": True}, {"a": False}]) == {"a": ColumnType.BOOLEAN}

    def test_booleans_are_not_numbers(self):
        assert _types([{"a": True}, {"a": 1}]) == {"a": ColumnType.STRING}

    def test_strings(self):
        assert _types([{"a": "x"}, {"a": 1}]) == {"a": ColumnType.STRING}

    def test_all_null_is_unknown(self):
        assert _types([{"a": None}, {"a": None}]) == {"a": ColumnType.UNKNOWN}

    def test_column_names_are_union_of_keys(self):
        columns = infer_columns([{"a": 1}, {"b": "x"}, {"a": 2, "c": True}])
        assert [c.name for c in columns] == ["a", "b", "c"]

    def test_only_first_twenty_rows_are_sampled(self):
        rows = [{"a": i} for i in range(20)] + [{"a": "text"}]
        assert _types(rows) == {"a": ColumnType.NUMBER}

    def test_sample_size_is_configurable(self):
        rows = [{"a": 1}, {"a": "text"}]
        assert {c.name: c.type for c in infer_columns(rows, sample_size=1)} == {
            "a": ColumnType.NUMBER
        }
