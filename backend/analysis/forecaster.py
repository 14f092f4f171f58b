"""
Forecast Engine

Linear regression projection of a date-ordered series with a confidence
band shaped like an OLS prediction interval that widens with distance.
"""

import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

from scipy import stats as scipy_stats

from analysis.seasonality import seasonality_analyzer
from analysis.statistical import linear_regression, stddev
from config import get_settings
from core.logging_config import forecast_logger as logger
from core.values import Record, sort_by_date, to_datetime, to_number, to_text
from schemas.results import (
    ConfidenceBand,
    DataPoint,
    Forecast,
    ForecastMetrics,
    TrendDirection,
)


class ForecastEngine:
    """Regression-based time series forecaster."""

    def __init__(self):
        self.settings = get_settings()

    def _historical(
        self,
        records: Sequence[Record],
        date_field: str,
        value_field: str,
    ) -> tuple[list[DataPoint], list[datetime]]:
        points: list[DataPoint] = []
        dates: list[datetime] = []
        for row in sort_by_date(records, date_field):
            when = to_datetime(row.get(date_field))
            value = to_number(row.get(value_field))
            if when is None or value is None:
                continue
            points.append(DataPoint(date=to_text(row.get(date_field)), value=value))
            dates.append(when)
        return points, dates

    def infer_interval(self, dates: Sequence[datetime]) -> timedelta:
        """Gap between the first two observations, or the configured default."""
        default = timedelta(days=self.settings.forecast.default_interval_days)
        if len(dates) < 2:
            return default
        gap = abs(dates[1] - dates[0])
        return gap if gap > timedelta(0) else default

    def classify_trend(self, slope: float) -> TrendDirection:
        threshold = self.settings.forecast.stable_slope_threshold
        if slope > threshold:
            return TrendDirection.INCREASING
        if slope < -threshold:
            return TrendDirection.DECREASING
        return TrendDirection.STABLE

    def generate_forecast(
        self,
        records: Sequence[Record],
        date_field: str,
        value_field: str,
        periods: Optional[int] = None,
        confidence_level: Optional[float] = None,
    ) -> Forecast:
        """
        Project a series forward.

        Rows are sorted by date and rows whose date or value does not parse
        are dropped. With fewer than three points the forecast is empty:
        no predictions, stable trend and zero accuracy.

        Args:
            records: Dataset rows
            date_field: Column with the observation dates
            value_field: Numeric column to project
            periods: Number of future periods (default from config)
            confidence_level: Two-sided level of the band (default 0.95)
        """
        cfg = self.settings.forecast
        if periods is None:
            periods = cfg.default_periods
        if confidence_level is None:
            confidence_level = cfg.confidence_level

        historical, dates = self._historical(records, date_field, value_field)
        n = len(historical)

        if n < cfg.min_points:
            logger.warning(f"Only {n} usable points for {value_field}; returning empty forecast")
            return Forecast(historical=historical)

        logger.info(f"Forecasting {value_field} over {periods} periods from {n} points")

        x = list(range(n))
        y = [p.value for p in historical]
        fit = linear_regression(x, y)

        residuals = [yi - fit.predict(xi) for xi, yi in zip(x, y)]
        residual_std = stddev(residuals)
        z = float(scipy_stats.norm.ppf(0.5 + confidence_level / 2))

        interval = self.infer_interval(dates)
        last_date = dates[-1]
        center = (n - 1) / 2

        predicted: list[DataPoint] = []
        upper: list[DataPoint] = []
        lower: list[DataPoint] = []

        for i in range(1, max(0, periods) + 1):
            future_x = n - 1 + i
            value = fit.predict(future_x)
            label = (last_date + interval * i).date().isoformat()

            spread = math.sqrt(1 + 1 / n + (future_x - center) ** 2 / n)
            margin = z * residual_std * spread * (1 + i * cfg.margin_growth)

            predicted.append(DataPoint(date=label, value=max(0.0, value)))
            upper.append(DataPoint(date=label, value=max(0.0, value + margin)))
            lower.append(DataPoint(date=label, value=max(0.0, value - margin)))

        seasonality = seasonality_analyzer.detect(records, date_field, value_field)

        first_value = y[0]
        last_value = y[-1]
        growth_rate = (last_value - first_value) / first_value / (n - 1) * 100 if first_value != 0 else 0.0

        forecast = Forecast(
            historical=historical,
            predicted=predicted,
            confidence=ConfidenceBand(upper=upper, lower=lower),
            metrics=ForecastMetrics(
                trend=self.classify_trend(fit.slope),
                growth_rate=growth_rate,
                seasonality=seasonality.period,
                accuracy=max(0.0, min(1.0, fit.r2)),
            ),
        )

        logger.success(f"Forecast complete: {forecast.metrics.trend.value}, accuracy {forecast.metrics.accuracy:.2f}")
        return forecast


# Global instance
forecast_engine = ForecastEngine()
