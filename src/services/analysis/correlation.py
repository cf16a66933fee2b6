"""Correlation and relationship statistics."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any

import numpy as np

from src.utils.values import to_number

logger = logging.getLogger(__name__)

MIN_RELATIONSHIP_POINTS = 3


def _paired_arrays(
    a: Sequence[Any] | np.ndarray, b: Sequence[Any] | np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Aligned float vectors, keeping only positions where both entries are numeric."""
    if isinstance(a, np.ndarray) and isinstance(b, np.ndarray):
        n = min(a.size, b.size)
        return a[:n].astype(float), b[:n].astype(float)
    xs: list[float] = []
    ys: list[float] = []
    for x, y in zip(a, b):
        fx, fy = to_number(x), to_number(y)
        if fx is not None and fy is not None:
            xs.append(fx)
            ys.append(fy)
    return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)


def pearson(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Pearson correlation of two aligned vectors.

    A zero denominator (either vector constant) is clamped to 1, so the result
    is 0 rather than undefined. Callers rely on always getting a finite number.
    """
    xa, xb = _paired_arrays(a, b)
    if xa.size == 0:
        return 0.0
    da = xa - xa.mean()
    db = xb - xb.mean()
    numerator = float((da * db).sum())
    denominator = math.sqrt(float((da * da).sum()) * float((db * db).sum())) or 1.0
    return numerator / denominator


def _classify_strength(r: float) -> str:
    """Classify correlation strength from a Pearson r value."""
    abs_r = abs(r)
    if abs_r > 0.9:
        return "very_strong"
    if abs_r > 0.7:
        return "strong"
    if abs_r > 0.4:
        return "moderate"
    return "weak"


def _classify_direction(r: float) -> str:
    """Classify correlation direction from a Pearson r value."""
    if r > 0:
        return "positive"
    if r < 0:
        return "negative"
    return "none"


def compute_relationship_stats(xs: Sequence[float], ys: Sequence[float]) -> dict[str, Any]:
    """Compute correlation and a least-squares trend line for paired values.

    Args:
        xs: Numeric x values.
        ys: Numeric y values aligned with ``xs``.

    Returns:
        Dict with r, r2, direction, strength, n, slope, intercept.
        When the data cannot support a fit, returns a dict with a 'warning' key.
    """
    x, y = _paired_arrays(xs, ys)
    n = int(x.size)

    if n < MIN_RELATIONSHIP_POINTS:
        return {
            "warning": f"Only {n} numeric pairs; at least {MIN_RELATIONSHIP_POINTS} are needed.",
            "n": n,
        }

    if float(np.ptp(x)) == 0.0 or float(np.ptp(y)) == 0.0:
        return {
            "warning": "Correlation is undefined (zero variance in one or both columns).",
            "n": n,
        }

    r = pearson(x, y)
    slope, intercept = np.polyfit(x, y, 1)

    return {
        "r": round(r, 4),
        "r2": round(r * r, 4),
        "direction": _classify_direction(r),
        "strength": _classify_strength(r),
        "n": n,
        "slope": round(float(slope), 6),
        "intercept": round(float(intercept), 4),
    }
