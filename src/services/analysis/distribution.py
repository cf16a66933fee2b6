"""Distribution statistics over numeric vectors."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np

from src.utils.values import numeric_values

MIN_HISTOGRAM_BINS = 5
MAX_HISTOGRAM_BINS = 20
IQR_FENCE_FACTOR = 1.5


def quantile(sorted_values: Sequence[float] | np.ndarray, p: float) -> float:
    """Linear-interpolated quantile of an ascending sequence.

    The position is ``(n - 1) * p``; a fractional position blends the floor
    and ceil neighbours by the fractional part. Empty input gives NaN.
    """
    n = len(sorted_values)
    if n == 0:
        return math.nan
    idx = (n - 1) * p
    lower = math.floor(idx)
    upper = math.ceil(idx)
    if lower == upper:
        return float(sorted_values[lower])
    weight = idx - lower
    return float(sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight)


def as_float_array(values: Sequence[Any] | np.ndarray) -> np.ndarray:
    """Float vector of the numeric entries; ints too large for a float are dropped."""
    if isinstance(values, np.ndarray):
        return values.astype(float)
    return np.asarray(numeric_values(list(values)), dtype=float)


def histogram_bin_count(n: int) -> int:
    """``clamp(round(sqrt(n)), 5, 20)``."""
    return min(MAX_HISTOGRAM_BINS, max(MIN_HISTOGRAM_BINS, int(math.floor(math.sqrt(n) + 0.5))))


def histogram(values: Sequence[float] | np.ndarray) -> list[dict[str, Any]]:
    """Equal-width histogram spanning ``[min, max]``.

    A constant vector spans a range of 1 so every bin has a positive width.
    Bin counts always add up to ``len(values)``.
    """
    arr = as_float_array(values)
    if arr.size == 0:
        return []
    lo = float(arr.min())
    hi = float(arr.max())
    bin_count = histogram_bin_count(arr.size)
    width = ((hi - lo) or 1.0) / bin_count

    idx = np.floor((arr - lo) / width).astype(np.int64)
    idx = np.clip(idx, 0, bin_count - 1)
    counts = np.bincount(idx, minlength=bin_count)

    return [
        {
            "binStart": lo + i * width,
            "binEnd": lo + (i + 1) * width,
            "count": int(counts[i]),
        }
        for i in range(bin_count)
    ]


def numeric_summary(values: Sequence[float] | np.ndarray) -> dict[str, Any] | None:
    """Compute the full numeric profile of a vector.

    Args:
        values: Finite numeric values (nulls already removed).

    Returns:
        Dict with min, max, mean, median, q1, q3, iqr, variance, stdDev,
        skewness, kurtosis, outlierCountIqr and outlierFractionIqr.
        None when there are no values.
    """
    arr = as_float_array(values)
    n = int(arr.size)
    if n == 0:
        return None

    sorted_arr = np.sort(arr)
    mean = float(arr.sum() / n)
    median = quantile(sorted_arr, 0.5)
    q1 = quantile(sorted_arr, 0.25)
    q3 = quantile(sorted_arr, 0.75)
    iqr = q3 - q1

    deviations = arr - mean
    squared = deviations * deviations
    m2 = float(squared.sum())
    m3 = float((squared * deviations).sum())
    m4 = float((squared * squared).sum())

    variance = m2 / (n - 1) if n > 1 else 0.0
    std_dev = math.sqrt(variance)

    # Adjusted Fisher-Pearson coefficient
    if n > 2 and std_dev > 0:
        skewness = (n * m3) / ((n - 1) * (n - 2) * std_dev**3)
    else:
        skewness = 0.0

    # Excess kurtosis (sample-adjusted)
    if n > 3 and variance > 0:
        kurtosis = (n * (n + 1) * m4) / ((n - 1) * (n - 2) * (n - 3) * variance**2) - (
            3 * (n - 1) ** 2
        ) / ((n - 2) * (n - 3))
    else:
        kurtosis = 0.0

    lower_fence = q1 - IQR_FENCE_FACTOR * iqr
    upper_fence = q3 + IQR_FENCE_FACTOR * iqr
    outlier_count = int(np.count_nonzero((arr < lower_fence) | (arr > upper_fence)))

    return {
        "min": float(sorted_arr[0]),
        "max": float(sorted_arr[-1]),
        "mean": mean,
        "median": median,
        "q1": q1,
        "q3": q3,
        "iqr": iqr,
        "variance": variance,
        "stdDev": std_dev,
        "skewness": skewness,
        "kurtosis": kurtosis,
        "outlierCountIqr": outlier_count,
        "outlierFractionIqr": outlier_count / n,
    }
