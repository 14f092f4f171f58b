"""
Trend Detector

Linear trend detection over a date-ordered series: regress the value on
its row position and classify the slope.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from analysis.statistical import linear_regression
from config import get_settings
from core.values import Record, numeric_values, sort_by_date
from schemas.results import TrendDirection


@dataclass
class TrendResult:
    """Result of trend analysis."""

    column: str
    direction: TrendDirection
    strength: float  # r-squared of the fit
    slope: float
    change_percent: float
    points: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "direction": self.direction.value,
            "strength": round(self.strength, 4),
            "slope": round(self.slope, 6),
            "change_percent": round(self.change_percent, 2),
            "points": self.points,
        }


class TrendDetector:
    """Trend detection engine."""

    def __init__(self):
        self.settings = get_settings()

    def classify_slope(self, slope: float, threshold: Optional[float] = None) -> TrendDirection:
        if threshold is None:
            threshold = self.settings.analysis.trend_slope_threshold

        if slope > threshold:
            return TrendDirection.INCREASING
        if slope < -threshold:
            return TrendDirection.DECREASING
        return TrendDirection.STABLE

    def detect_values(
        self,
        column: str,
        values: Sequence[float],
        threshold: Optional[float] = None,
    ) -> TrendResult:
        """Detect a trend over values that are already in time order."""
        if len(values) < 2:
            return TrendResult(
                column=column,
                direction=TrendDirection.STABLE,
                strength=0.0, slope=0.0, change_percent=0.0,
                points=len(values),
            )

        x = list(range(len(values)))
        fit = linear_regression(x, values)

        first_value = values[0]
        last_value = values[-1]
        change_percent = (last_value - first_value) / first_value * 100 if first_value != 0 else 0.0

        return TrendResult(
            column=column,
            direction=self.classify_slope(fit.slope, threshold),
            strength=fit.r2,
            slope=fit.slope,
            change_percent=float(change_percent),
            points=len(values),
        )

    def detect(
        self,
        records: Sequence[Record],
        date_field: str,
        value_field: str,
        threshold: Optional[float] = None,
    ) -> TrendResult:
        """
        Sort rows by date and detect a linear trend in one value field.

        Args:
            records: Dataset rows
            date_field: Column used for ordering
            value_field: Numeric column to analyze
            threshold: Slope threshold (default from config)
        """
        ordered = sort_by_date(records, date_field)
        values = numeric_values(ordered, value_field)
        return self.detect_values(value_field, values, threshold)


# Global instance
trend_detector = TrendDetector()
