"""
Chart Sampling

Downsampling for charts when a series has more points than can be drawn:
fixed-stride, random preview and Largest-Triangle-Three-Buckets (LTTB),
which keeps the visual shape of a time series.
"""

from typing import Any, Callable, Optional, Sequence, TypeVar

import numpy as np
from numba import jit

from config import get_settings
from core.logging_config import data_logger as logger

T = TypeVar("T")

STRATEGIES = ("uniform", "random", "lttb")


@jit(nopython=True, cache=True)
def _lttb_indices(xs: np.ndarray, ys: np.ndarray, threshold: int) -> np.ndarray:
    """Numba-accelerated LTTB; threshold must be in [3, len(xs))."""
    n = len(xs)
    selected = np.empty(threshold, dtype=np.int64)
    every = (n - 2) / (threshold - 2)

    selected[0] = 0
    a = 0

    for i in range(threshold - 2):
        # Average point of the next bucket
        avg_start = int(np.floor((i + 1) * every)) + 1
        avg_end = min(int(np.floor((i + 2) * every)) + 1, n)
        if avg_end <= avg_start:
            avg_start = n - 1
            avg_end = n

        avg_x = 0.0
        avg_y = 0.0
        for j in range(avg_start, avg_end):
            avg_x += xs[j]
            avg_y += ys[j]
        avg_x /= avg_end - avg_start
        avg_y /= avg_end - avg_start

        range_offs = int(np.floor(i * every)) + 1
        range_to = int(np.floor((i + 1) * every)) + 1

        point_ax = xs[a]
        point_ay = ys[a]

        max_area = -1.0
        max_point = range_offs
        for j in range(range_offs, range_to):
            area = abs(
                (point_ax - avg_x) * (ys[j] - point_ay)
                - (point_ax - xs[j]) * (avg_y - point_ay)
            ) * 0.5
            if area > max_area:
                max_area = area
                max_point = j

        selected[i + 1] = max_point
        a = max_point

    selected[threshold - 1] = n - 1
    return selected


def default_y(item: Any) -> float:
    """Numeric value of a point: the item itself, or its first numeric field."""
    if isinstance(item, (int, float, np.integer, np.floating)) and not isinstance(item, bool):
        return float(item)
    if isinstance(item, dict):
        for value in item.values():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
    return 0.0


def uniform_sample(data: Sequence[T], max_points: int) -> list[T]:
    """
    Every n-th item.

    The last item is always kept; it takes the final slot when the
    stride did not land on it.
    """
    if not data or max_points <= 0:
        return []
    step = max(1, len(data) // max_points)
    indices = list(range(0, len(data), step))[:max_points]
    indices[-1] = len(data) - 1
    return [data[i] for i in indices]


def random_sample(data: Sequence[T], max_points: int, seed: Optional[int] = None) -> list[T]:
    """Shuffle and truncate. For informal previews only."""
    rng = np.random.default_rng(seed)
    indices = rng.permutation(len(data))[:max_points]
    return [data[int(i)] for i in indices]


def lttb_sample(
    data: Sequence[T],
    max_points: int,
    x_accessor: Optional[Callable[[T, int], float]] = None,
    y_accessor: Optional[Callable[[T], float]] = None,
) -> list[T]:
    """
    Largest-Triangle-Three-Buckets downsampling.

    First and last points are always kept. x defaults to the item index and
    y to default_y.
    """
    n = len(data)
    if max_points >= n:
        return list(data)
    if max_points <= 0:
        return []
    if max_points == 1:
        return [data[0]]
    if max_points == 2:
        return [data[0], data[-1]]

    y_of = y_accessor or default_y
    if x_accessor is None:
        xs = np.arange(n, dtype=np.float64)
    else:
        xs = np.array([x_accessor(item, i) for i, item in enumerate(data)], dtype=np.float64)
    ys = np.array([y_of(item) for item in data], dtype=np.float64)

    return [data[int(i)] for i in _lttb_indices(xs, ys, max_points)]


def sample_data(
    data: Sequence[T],
    max_points: Optional[int] = None,
    strategy: Optional[str] = None,
) -> list[T]:
    """
    Reduce a series to at most max_points items.

    Series already within the cap are returned unchanged. Unknown
    strategies fall back to uniform.
    """
    settings = get_settings().access
    if max_points is None:
        max_points = settings.sample_max_points
    if strategy is None:
        strategy = settings.sample_strategy

    if len(data) <= max_points:
        return list(data)
    if max_points <= 0:
        return []

    logger.debug(f"Sampling {len(data):,} points down to {max_points:,} ({strategy})")

    if strategy == "random":
        return random_sample(data, max_points)
    if strategy == "lttb":
        return lttb_sample(data, max_points)
    if strategy != "uniform":
        logger.warning(f"Unknown sampling strategy '{strategy}', using uniform")
    return uniform_sample(data, max_points)
