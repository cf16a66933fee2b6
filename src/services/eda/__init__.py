"""Exploratory data analysis over uploaded datasets."""

from src.services.eda.engine import StatisticsEngine

__all__ = ["StatisticsEngine"]
