"""
Statistics Kernel

Primitive numeric functions shared by every detector. All functions are
total: empty, mismatched or constant inputs return zeros instead of raising.
"""

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from numba import jit


@dataclass
class RegressionResult:
    """Ordinary least squares fit of y on x."""

    slope: float
    intercept: float
    r2: float  # Raw coefficient of determination, not clamped

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    def to_dict(self) -> dict[str, Any]:
        return {
            "slope": round(self.slope, 6),
            "intercept": round(self.intercept, 4),
            "r2": round(self.r2, 4),
        }


@dataclass
class DescriptiveStats:
    """Descriptive statistics for a numeric column."""

    column: str
    count: int
    sum: float
    mean: float
    median: float
    std: float
    min: float
    max: float
    q25: float
    q75: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "count": self.count,
            "sum": round(self.sum, 4),
            "mean": round(self.mean, 4),
            "median": round(self.median, 4),
            "std": round(self.std, 4),
            "min": round(self.min, 4),
            "max": round(self.max, 4),
            "q25": round(self.q25, 4),
            "q75": round(self.q75, 4),
        }


@jit(nopython=True, cache=True)
def _fast_percentile(arr: np.ndarray, percentile: float) -> float:
    """Numba-accelerated percentile with linear interpolation."""
    sorted_arr = np.sort(arr)
    n = len(sorted_arr)
    idx = (n - 1) * percentile / 100.0
    lower = int(np.floor(idx))
    upper = int(np.ceil(idx))

    if lower == upper:
        return sorted_arr[lower]

    weight = idx - lower
    return sorted_arr[lower] * (1 - weight) + sorted_arr[upper] * weight


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(_as_array(values)))


def median(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(_as_array(values)))


def stddev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N)."""
    if len(values) == 0:
        return 0.0
    return float(np.std(_as_array(values), ddof=0))


def percentile(values: Sequence[float], p: float) -> float:
    """Percentile in [0, 100] interpolated between order statistics."""
    if len(values) == 0:
        return 0.0
    p = min(100.0, max(0.0, float(p)))
    return float(_fast_percentile(_as_array(values), p))


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson product-moment correlation.

    Returns 0 when the lengths differ, the input is empty, or either
    series has zero variance.
    """
    if len(x) != len(y) or len(x) == 0:
        return 0.0

    arr_x = _as_array(x)
    arr_y = _as_array(y)
    diff_x = arr_x - arr_x.mean()
    diff_y = arr_y - arr_y.mean()

    denominator = np.sqrt(np.sum(diff_x * diff_x) * np.sum(diff_y * diff_y))
    if denominator == 0 or not np.isfinite(denominator):
        return 0.0

    return float(np.sum(diff_x * diff_y) / denominator)


def linear_regression(x: Sequence[float], y: Sequence[float]) -> RegressionResult:
    """
    Simple OLS regression of y on x.

    r2 is reported raw (1 - SSres/SStot); callers clamp it where they use it.
    """
    if len(x) != len(y) or len(x) == 0:
        return RegressionResult(slope=0.0, intercept=0.0, r2=0.0)

    arr_x = _as_array(x)
    arr_y = _as_array(y)
    n = len(arr_x)

    sum_x = arr_x.sum()
    sum_y = arr_y.sum()
    sum_xy = np.sum(arr_x * arr_y)
    sum_xx = np.sum(arr_x * arr_x)

    denominator = n * sum_xx - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denominator if denominator != 0 else 0.0
    intercept = (sum_y - slope * sum_x) / n

    y_mean = sum_y / n
    ss_total = np.sum((arr_y - y_mean) ** 2)
    ss_residual = np.sum((arr_y - (slope * arr_x + intercept)) ** 2)
    r2 = 0.0 if ss_total == 0 else 1 - ss_residual / ss_total

    return RegressionResult(slope=float(slope), intercept=float(intercept), r2=float(r2))


def describe(column: str, values: Sequence[float]) -> DescriptiveStats:
    """Descriptive statistics over already-extracted numbers."""
    if len(values) == 0:
        return DescriptiveStats(
            column=column, count=0, sum=0, mean=0, median=0, std=0,
            min=0, max=0, q25=0, q75=0,
        )

    arr = _as_array(values)
    return DescriptiveStats(
        column=column,
        count=len(arr),
        sum=float(arr.sum()),
        mean=float(arr.mean()),
        median=float(np.median(arr)),
        std=float(np.std(arr)),
        min=float(arr.min()),
        max=float(arr.max()),
        q25=float(_fast_percentile(arr, 25.0)),
        q75=float(_fast_percentile(arr, 75.0)),
    )
