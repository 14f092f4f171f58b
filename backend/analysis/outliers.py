"""
Anomaly Detector

Z-score anomaly detection over a single numeric field.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import numpy as np

from analysis.statistical import mean, stddev
from config import get_settings
from core.values import Record, numeric_values


@dataclass
class AnomalyPoint:
    """Z-score of one extracted value."""

    index: int  # Position among the parseable values of the field
    value: float
    zscore: float
    is_anomaly: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "value": self.value,
            "zscore": round(self.zscore, 4),
            "is_anomaly": self.is_anomaly,
        }


@dataclass
class AnomalyResult:
    """All scored values of a field plus the flagged subset."""

    column: str
    threshold: float
    points: list[AnomalyPoint] = field(default_factory=list)

    @property
    def anomalies(self) -> list[AnomalyPoint]:
        return [p for p in self.points if p.is_anomaly]

    @property
    def anomaly_count(self) -> int:
        return len(self.anomalies)

    @property
    def most_extreme(self) -> Optional[AnomalyPoint]:
        """Flagged point with the largest |z|; the first one wins ties."""
        flagged = self.anomalies
        if not flagged:
            return None
        return max(flagged, key=lambda p: abs(p.zscore))

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "threshold": self.threshold,
            "anomaly_count": self.anomaly_count,
            "total_count": len(self.points),
            "anomalies": [p.to_dict() for p in self.anomalies[:50]],  # Limit for response size
        }


class AnomalyDetector:
    """Z-score anomaly detection engine."""

    def __init__(self):
        self.settings = get_settings()

    def score_values(
        self,
        values: Sequence[float],
        threshold: Optional[float] = None,
    ) -> list[AnomalyPoint]:
        """
        Score already-extracted values.

        With zero standard deviation every value is returned with z = 0
        and none is flagged.
        """
        if threshold is None:
            threshold = self.settings.analysis.anomaly_zscore_threshold

        if len(values) == 0:
            return []

        arr = np.asarray(values, dtype=np.float64)
        std = stddev(values)

        if std == 0:
            return [
                AnomalyPoint(index=i, value=float(v), zscore=0.0, is_anomaly=False)
                for i, v in enumerate(arr)
            ]

        z_scores = (arr - mean(values)) / std
        return [
            AnomalyPoint(
                index=i,
                value=float(v),
                zscore=float(z),
                is_anomaly=bool(abs(z) > threshold),
            )
            for i, (v, z) in enumerate(zip(arr, z_scores))
        ]

    def detect(
        self,
        records: Sequence[Record],
        column: str,
        threshold: Optional[float] = None,
    ) -> AnomalyResult:
        """Detect anomalies in one field of a dataset."""
        if threshold is None:
            threshold = self.settings.analysis.anomaly_zscore_threshold

        values = numeric_values(records, column)
        return AnomalyResult(
            column=column,
            threshold=threshold,
            points=self.score_values(values, threshold),
        )


# Global instance
anomaly_detector = AnomalyDetector()
