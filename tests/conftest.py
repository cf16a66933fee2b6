"""Pytest configuration and fixtures."""

import pytest

from src.config.settings import Settings
from src.infrastructure.datasets.store import DatasetStore
from src.services.eda import StatisticsEngine


@pytest.fixture
def settings():
    """Provide settings fixture."""
    return Settings()


@pytest.fixture
def store():
    return DatasetStore()


@pytest.fixture
def engine(store):
    return StatisticsEngine(store)


@pytest.fixture
def sales_rows():
    """Six sales rows with a missing region, units and revenue, and one bad date."""
    return [
        {"region": "north", "product": "a", "units": 10, "revenue": 100.0, "date": "2024-01-01"},
        {"region": "north", "product": "b", "units": 20, "revenue": 210.0, "date": "2024-01-01"},
        {"region": "south", "product": "a", "units": 30, "revenue": 290.0, "date": "2024-01-02"},
        {"region": "south", "product": "b", "units": None, "revenue": 150.0, "date": "2024-01-08"},
        {"region": "east", "product": "a", "units": 50, "revenue": 520.0, "date": "2024-02-01"},
        {"region": None, "product": "c", "units": 60, "revenue": None, "date": "not a date"},
    ]


@pytest.fixture
def sales_id(store, sales_rows):
    return store.add_dataset("sales.csv", sales_rows).id
