"""
Chart Aggregation

Group-and-reduce for charts over large datasets, plus single-pass quick
statistics.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import polars as pl

from config import get_settings
from core.logging_config import data_logger as logger
from core.values import Record, to_number, to_text

OTHERS = "Others"
UNKNOWN = "Unknown"

_REDUCERS = {
    "sum": lambda col: col.sum(),
    "avg": lambda col: col.mean(),
    "count": lambda col: col.count(),
    "min": lambda col: col.min(),
    "max": lambda col: col.max(),
}


@dataclass
class QuickStats:
    """Running statistics of one numeric field."""

    min: float = 0.0
    max: float = 0.0
    sum: float = 0.0
    avg: float = 0.0
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "sum": self.sum,
            "avg": self.avg,
            "count": self.count,
        }


def aggregate_for_chart(
    data: Sequence[Record],
    group_by: str,
    value_field: str,
    aggregation: str = "sum",
    max_groups: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Reduce a value field per group, largest groups first.

    Missing group keys are grouped as "Unknown" and unparsable values count
    as 0. Groups beyond max_groups - 1 are folded into one "Others" row
    holding the sum of their reduced values.
    """
    if max_groups is None:
        max_groups = get_settings().access.aggregation_max_groups
    max_groups = max(1, max_groups)

    reducer = _REDUCERS.get(aggregation)
    if reducer is None:
        logger.warning(f"Unknown aggregation '{aggregation}', using sum")
        reducer = _REDUCERS["sum"]

    keys = []
    values = []
    for row in data:
        key = row.get(group_by)
        keys.append(UNKNOWN if key is None else to_text(key))
        values.append(to_number(row.get(value_field)) or 0.0)

    df = pl.DataFrame(
        {"key": keys, "value": values},
        schema={"key": pl.Utf8, "value": pl.Float64},
    )

    grouped = (
        df.group_by("key", maintain_order=True)
        .agg(reducer(pl.col("value")).alias("result"))
        .sort("result", descending=True, maintain_order=True)
    )

    aggregated = [
        {group_by: key, value_field: result}
        for key, result in zip(grouped["key"].to_list(), grouped["result"].to_list())
    ]

    if len(aggregated) <= max_groups:
        return aggregated

    top = aggregated[: max_groups - 1]
    others_total = sum(item[value_field] for item in aggregated[max_groups - 1:])
    top.append({group_by: OTHERS, value_field: others_total})

    logger.debug(f"Folded {len(aggregated) - len(top) + 1} groups of {group_by} into {OTHERS}")
    return top


def calculate_quick_stats(
    data: Sequence[Record],
    numeric_fields: Sequence[str],
) -> dict[str, QuickStats]:
    """
    Min, max, sum, average and count per field in one pass.

    Fields without numbers report zeros.
    """
    running = {
        field: {"min": float("inf"), "max": float("-inf"), "sum": 0.0, "count": 0}
        for field in numeric_fields
    }

    for row in data:
        for field in numeric_fields:
            value = to_number(row.get(field))
            if value is None:
                continue
            s = running[field]
            s["min"] = min(s["min"], value)
            s["max"] = max(s["max"], value)
            s["sum"] += value
            s["count"] += 1

    stats = {}
    for field, s in running.items():
        count = s["count"]
        stats[field] = QuickStats(
            min=s["min"] if count else 0.0,
            max=s["max"] if count else 0.0,
            sum=s["sum"],
            avg=s["sum"] / count if count else 0.0,
            count=count,
        )
    return stats
