"""
Seasonality Analyzer

Monthly seasonality detection: group values by calendar month and measure
how much the month means vary relative to their average.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from analysis.statistical import mean, stddev
from config import get_settings
from core.values import Record, sort_by_date, to_datetime, to_number


@dataclass
class MonthlyProfile:
    """Mean of the values observed in one calendar month."""

    month: int  # 1-12
    mean: float
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"month": self.month, "mean": round(self.mean, 4), "count": self.count}


@dataclass
class SeasonalityResult:
    """Complete seasonality analysis result."""

    column: str
    has_seasonality: bool
    period: Optional[str]
    confidence: float
    coefficient_of_variation: float = 0.0
    monthly: list[MonthlyProfile] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "has_seasonality": self.has_seasonality,
            "period": self.period,
            "confidence": round(self.confidence, 4),
            "coefficient_of_variation": round(self.coefficient_of_variation, 4),
            "monthly": [m.to_dict() for m in self.monthly],
        }


class SeasonalityAnalyzer:
    """Month-of-year seasonality detection engine."""

    def __init__(self):
        self.settings = get_settings()

    def monthly_profile(
        self,
        records: Sequence[Record],
        date_field: str,
        value_field: str,
    ) -> list[MonthlyProfile]:
        """Per-month means, skipping rows whose date or value does not parse."""
        buckets: dict[int, list[float]] = {}
        for row in sort_by_date(records, date_field):
            when = to_datetime(row.get(date_field))
            value = to_number(row.get(value_field))
            if when is None or value is None:
                continue
            buckets.setdefault(when.month, []).append(value)

        return [
            MonthlyProfile(month=month, mean=mean(values), count=len(values))
            for month, values in sorted(buckets.items())
        ]

    def detect(
        self,
        records: Sequence[Record],
        date_field: str,
        value_field: str,
    ) -> SeasonalityResult:
        """
        Detect monthly seasonality.

        Needs at least 12 rows and 6 distinct months; otherwise reports no
        seasonality with zero confidence.
        """
        analysis = self.settings.analysis
        insufficient = SeasonalityResult(
            column=value_field, has_seasonality=False, period=None, confidence=0.0,
        )

        if len(records) < analysis.seasonality_min_rows:
            return insufficient

        monthly = self.monthly_profile(records, date_field, value_field)
        if len(monthly) < analysis.seasonality_min_months:
            insufficient.monthly = monthly
            return insufficient

        month_means = [m.mean for m in monthly]
        overall_mean = mean(month_means)
        cv = stddev(month_means) / overall_mean if overall_mean != 0 else 0.0

        has_seasonality = cv > analysis.seasonality_cv_threshold

        return SeasonalityResult(
            column=value_field,
            has_seasonality=has_seasonality,
            period="monthly" if has_seasonality else None,
            confidence=max(0.0, min(1.0, cv * 2)),
            coefficient_of_variation=cv,
            monthly=monthly,
        )


# Global instance
seasonality_analyzer = SeasonalityAnalyzer()
