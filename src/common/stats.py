# ABOUTME: Small numeric helpers shared by the tier and predictive engines.
# ABOUTME: Provides least-squares trend fitting, clamping, and half-up rounding.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class TrendFit:
    """Least-squares line over an index-ordered series."""

    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


def linear_regression(values: Sequence[float]) -> TrendFit:
    """
    Fit y = slope * x + intercept where x is the position in ``values``.

    Series shorter than two points have no slope; the intercept is the lone
    value (or 0 for an empty series). Non-finite results collapse to 0.
    """

    y = np.asarray(list(values), dtype=float)
    n = len(y)
    if n < 2:
        return TrendFit(slope=0.0, intercept=_finite_or_zero(y[0]) if n else 0.0)

    x = np.arange(n, dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_x2 = (x * x).sum()

    with np.errstate(divide="ignore", invalid="ignore"):
        slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
        intercept = (sum_y - slope * sum_x) / n

    return TrendFit(slope=_finite_or_zero(slope), intercept=_finite_or_zero(intercept))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with ties going up (2.25 -> 2.3), unlike Python's banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _finite_or_zero(value) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0
