"""
Result Schemas

Pydantic models for everything the engine hands back to the presentation
layer: insights, forecasts, what-if scenarios and access-layer state.
All of them are plain serializable data.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class InsightType(str, Enum):
    """Types of insights."""

    ANOMALY = "anomaly"
    TREND = "trend"
    CORRELATION = "correlation"
    PATTERN = "pattern"
    SUMMARY = "summary"
    RECOMMENDATION = "recommendation"


class InsightSeverity(str, Enum):
    """Insight importance level."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    SUCCESS = "success"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class Insight(BaseModel):
    """A single insight. Regenerated wholesale, never edited."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable insight ID derived from its subject")
    type: InsightType
    severity: InsightSeverity
    title: str = Field(..., description="Brief insight title")
    description: str = Field(..., description="Detailed description")
    metric: Optional[str] = None
    value: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    related_fields: list[str] = Field(default=[], description="Related columns")
    confidence: float = Field(..., ge=0, le=1)


class DataPoint(BaseModel):
    """One point of a time series."""

    date: Optional[str] = None
    value: float
    category: Optional[str] = None


class ConfidenceBand(BaseModel):
    upper: list[DataPoint] = []
    lower: list[DataPoint] = []


class ForecastMetrics(BaseModel):
    trend: TrendDirection = TrendDirection.STABLE
    growth_rate: float = 0.0
    seasonality: Optional[str] = None
    accuracy: float = Field(default=0.0, ge=0, le=1)


class Forecast(BaseModel):
    """Regression projection with a widening confidence band."""

    historical: list[DataPoint] = []
    predicted: list[DataPoint] = []
    confidence: ConfidenceBand = Field(default_factory=ConfidenceBand)
    metrics: ForecastMetrics = Field(default_factory=ForecastMetrics)


class ImpactedMetric(BaseModel):
    metric: str
    baseline: float
    projected: float
    change: float
    change_percent: float


class WhatIfScenario(BaseModel):
    """Result of propagating a percent change through elasticities."""

    name: str
    description: str
    baseline_value: float
    modified_value: float
    percent_change: float
    impacted_metrics: list[ImpactedMetric] = []


class PaginationState(BaseModel):
    page: int
    page_size: int
    total_rows: int
    total_pages: int


class VirtualScrollState(BaseModel):
    start_index: int
    end_index: int
    visible_count: int
    scroll_top: float
    total_height: float
    row_height: float


class ChunkLoadResult(BaseModel):
    data: list[Any] = []
    has_more: bool
    total_count: int
    chunk_index: int


PageNumber = Union[int, str]
