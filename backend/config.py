"""
Dashboard Analytics Engine - Configuration

Thresholds and defaults for the analytics and table-relationship engine,
loaded with Pydantic Settings so every policy value can be tuned from the
environment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalysisSettings(BaseSettings):
    """Detector and insight thresholds."""

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_")

    # Anomalies
    anomaly_zscore_threshold: float = Field(
        default=2.5,
        description="Absolute z-score above which a value is anomalous"
    )
    anomaly_warning_count: int = Field(
        default=3,
        description="Anomaly count above which the insight becomes a warning"
    )

    # Trends
    trend_slope_threshold: float = Field(
        default=0.05,
        description="Per-period slope separating a trend from a stable series"
    )
    trend_min_strength: float = Field(
        default=0.3,
        description="Minimum r-squared before a trend is reported"
    )

    # Seasonality
    seasonality_cv_threshold: float = Field(
        default=0.1,
        description="Coefficient of variation of month means marking seasonality"
    )
    seasonality_min_rows: int = Field(default=12, description="Rows required")
    seasonality_min_months: int = Field(default=6, description="Distinct months required")

    # Correlation
    correlation_threshold: float = Field(
        default=0.5,
        description="Minimum absolute correlation reported by a scan"
    )
    insight_correlation_threshold: float = Field(
        default=0.6,
        description="Minimum absolute correlation turned into an insight"
    )
    strong_correlation: float = Field(default=0.7, description="Strong correlation cutoff")
    moderate_correlation: float = Field(default=0.5, description="Moderate correlation cutoff")
    key_driver_threshold: float = Field(
        default=0.4,
        description="Minimum absolute correlation for a key driver"
    )

    # Top performers
    top_performer_multiplier: float = Field(
        default=2.0,
        description="Multiple of the mean a maximum must exceed"
    )

    # Column limits per insight stage
    summary_columns: int = Field(default=5)
    anomaly_columns: int = Field(default=3)
    trend_columns: int = Field(default=3)
    correlation_insights: int = Field(default=3)
    top_performer_columns: int = Field(default=2)


class ForecastSettings(BaseSettings):
    """Regression forecaster configuration."""

    model_config = SettingsConfigDict(env_prefix="FORECAST_")

    default_periods: int = Field(default=6, description="Periods projected by default")
    min_points: int = Field(default=3, description="Historical points required")
    confidence_level: float = Field(
        default=0.95,
        description="Two-sided confidence level of the prediction band"
    )
    default_interval_days: int = Field(
        default=30,
        description="Sampling interval used when it cannot be inferred"
    )
    stable_slope_threshold: float = Field(
        default=0.01,
        description="Slope magnitude below which the forecast is stable"
    )
    margin_growth: float = Field(
        default=0.1,
        description="Extra band widening per projected period"
    )


class WhatIfSettings(BaseSettings):
    """What-if simulator configuration."""

    model_config = SettingsConfigDict(env_prefix="WHATIF_")

    default_elasticity: float = Field(
        default=1.0,
        description="Elasticity applied when the caller does not supply one"
    )
    max_impacted_fields: int = Field(
        default=3,
        description="Fields included in a default scenario"
    )


class AccessSettings(BaseSettings):
    """Large-dataset access layer configuration."""

    model_config = SettingsConfigDict(env_prefix="ACCESS_")

    default_page_size: int = Field(default=25)
    max_visible_pages: int = Field(default=7, description="Page buttons before ellipsis")
    row_height: int = Field(default=40, description="Virtual row height in pixels")
    overscan: int = Field(default=5, description="Rows rendered beyond the viewport")
    sample_max_points: int = Field(default=1000, description="Chart point cap")
    sample_strategy: Literal["uniform", "random", "lttb"] = Field(default="lttb")
    aggregation_max_groups: int = Field(default=100)
    chunk_size: int = Field(default=10000, description="Rows per loaded chunk")
    process_batch_size: int = Field(default=1000, description="Rows per processing batch")


class RelationSettings(BaseSettings):
    """Relationship inference configuration."""

    model_config = SettingsConfigDict(env_prefix="RELATION_")

    auto_detect: bool = Field(
        default=True,
        description="Scan for relations whenever a table is added"
    )
    manual_default_cardinality: Literal[
        "one-to-one", "one-to-many", "many-to-one", "many-to-many"
    ] = Field(default="one-to-many")
    cross_table_min_pairs: int = Field(
        default=5,
        description="Joined pairs required before a cross-table correlation is reported"
    )


class Settings(BaseSettings):
    """Main engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_name: str = "Dashboard Analytics Engine"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Debug mode")

    # Logging
    log_level: str = Field(default="INFO", description="Console log level")
    log_to_file: bool = Field(default=False, description="Also write rotating log files")
    log_dir: str = Field(default="./logs", description="Directory for log files")

    # Nested settings
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    forecast: ForecastSettings = Field(default_factory=ForecastSettings)
    what_if: WhatIfSettings = Field(default_factory=WhatIfSettings)
    access: AccessSettings = Field(default_factory=AccessSettings)
    relations: RelationSettings = Field(default_factory=RelationSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
