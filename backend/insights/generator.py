"""
Insight Generator

Runs the detector suite over a dataset and turns the findings into
human-readable insights: summaries, anomalies, trends, correlations and
top performers, ranked by severity and confidence.
"""

from typing import Optional, Sequence

from analysis.correlations import correlation_analyzer
from analysis.outliers import anomaly_detector
from analysis.statistical import mean
from analysis.trends import trend_detector
from config import get_settings
from core.logging_config import insights_logger as logger
from core.schema import ColumnRoles, schema_classifier
from core.values import Record, is_blank, numeric_values, to_number, to_text
from insights.ranker import insight_ranker
from schemas.results import Insight, InsightSeverity, InsightType, TrendDirection
from schemas.tables import DataSchema


def format_number(value: float) -> str:
    """Compact rendering with B/M/K suffixes."""
    magnitude = abs(value)
    if magnitude >= 1e9:
        return f"{value / 1e9:.1f}B"
    if magnitude >= 1e6:
        return f"{value / 1e6:.1f}M"
    if magnitude >= 1e3:
        return f"{value / 1e3:.1f}K"
    if magnitude < 1 and value != 0:
        return f"{value:.2f}"
    return f"{value:.0f}"


def _signed(value: float, digits: int = 1) -> str:
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{digits}f}"


class InsightGenerator:
    """
    Deterministic insight pipeline.

    Each stage works on the column roles of the schema and appends its
    insights; the combined list is ranked once at the end.
    """

    def __init__(self):
        self.settings = get_settings()

    def generate(
        self,
        records: Sequence[Record],
        schema: DataSchema,
        roles: Optional[ColumnRoles] = None,
    ) -> list[Insight]:
        """
        Generate ranked insights for a dataset.

        Args:
            records: Dataset rows
            schema: Schema of the rows
            roles: Column roles (classified from the schema when omitted)
        """
        if not records or not schema.columns:
            return []

        if roles is None:
            roles = schema_classifier.classify(schema)

        logger.info(f"Generating insights for {len(records):,} rows")
        logger.debug(f"Metrics: {roles.numeric_fields}, dates: {roles.date_fields}")

        insights: list[Insight] = []
        insights.extend(self.summary_insights(records, roles))
        insights.extend(self.anomaly_insights(records, roles))
        insights.extend(self.trend_insights(records, roles))
        insights.extend(self.correlation_insights(records, roles))
        insights.extend(self.top_performer_insights(records, roles))

        ranked = insight_ranker.rank_insights(insights)
        logger.success(f"Generated {len(ranked)} insights")
        return ranked

    def summary_insights(self, records: Sequence[Record], roles: ColumnRoles) -> list[Insight]:
        insights = []
        for field in roles.numeric_fields[: self.settings.analysis.summary_columns]:
            values = numeric_values(records, field)
            if not values:
                continue

            total = sum(values)
            insights.append(Insight(
                id=f"summary-{field}",
                type=InsightType.SUMMARY,
                severity=InsightSeverity.INFO,
                title=f"{field} Overview",
                description=(
                    f"Total: {format_number(total)}, Average: {format_number(mean(values))}, "
                    f"Range: {format_number(min(values))} - {format_number(max(values))}"
                ),
                metric=field,
                value=total,
                confidence=1.0,
            ))
        return insights

    def anomaly_insights(self, records: Sequence[Record], roles: ColumnRoles) -> list[Insight]:
        cfg = self.settings.analysis
        insights = []
        for field in roles.numeric_fields[: cfg.anomaly_columns]:
            result = anomaly_detector.detect(records, field)
            top = result.most_extreme
            if top is None:
                continue

            count = result.anomaly_count
            insights.append(Insight(
                id=f"anomaly-{field}",
                type=InsightType.ANOMALY,
                severity=InsightSeverity.WARNING if count > cfg.anomaly_warning_count else InsightSeverity.INFO,
                title=f"{count} Anomalies in {field}",
                description=(
                    f"Detected {count} unusual values. Most extreme: {format_number(top.value)} "
                    f"({_signed(top.zscore)} std dev from mean)"
                ),
                metric=field,
                value=top.value,
                related_fields=[field],
                confidence=0.85,
            ))
        return insights

    def trend_insights(self, records: Sequence[Record], roles: ColumnRoles) -> list[Insight]:
        cfg = self.settings.analysis
        date_field = roles.primary_date
        if date_field is None or not roles.numeric_fields:
            return []

        severities = {
            TrendDirection.INCREASING: InsightSeverity.SUCCESS,
            TrendDirection.DECREASING: InsightSeverity.WARNING,
            TrendDirection.STABLE: InsightSeverity.INFO,
        }

        insights = []
        for field in roles.numeric_fields[: cfg.trend_columns]:
            trend = trend_detector.detect(records, date_field, field)
            if trend.strength <= cfg.trend_min_strength:
                continue

            if trend.direction == TrendDirection.STABLE:
                change = "No significant change"
            else:
                change = f"{_signed(trend.change_percent)}% change over the period"

            insights.append(Insight(
                id=f"trend-{field}",
                type=InsightType.TREND,
                severity=severities[trend.direction],
                title=f"{field} is {trend.direction.value}",
                description=f"{change}. Trend confidence: {trend.strength * 100:.0f}%",
                metric=field,
                change_percent=trend.change_percent,
                related_fields=[field, date_field],
                confidence=min(1.0, trend.strength),
            ))
        return insights

    def correlation_insights(self, records: Sequence[Record], roles: ColumnRoles) -> list[Insight]:
        cfg = self.settings.analysis
        if len(roles.numeric_fields) < 2:
            return []

        pairs = correlation_analyzer.find_correlations(
            records, roles.numeric_fields, cfg.insight_correlation_threshold
        )

        insights = []
        for pair in pairs[: cfg.correlation_insights]:
            follows = "increase" if pair.direction == "positive" else "decrease"
            insights.append(Insight(
                id=f"correlation-{pair.column1}-{pair.column2}",
                type=InsightType.CORRELATION,
                severity=InsightSeverity.INFO,
                title=f"{pair.strength.capitalize()} {pair.direction} correlation",
                description=(
                    f"{pair.column1} and {pair.column2} are {pair.direction}ly correlated "
                    f"(r={pair.correlation:.2f}). When one increases, the other tends to {follows}."
                ),
                related_fields=[pair.column1, pair.column2],
                confidence=min(1.0, abs(pair.correlation)),
            ))
        return insights

    def top_performer_insights(self, records: Sequence[Record], roles: ColumnRoles) -> list[Insight]:
        cfg = self.settings.analysis
        category_field = roles.primary_category

        insights = []
        for field in roles.numeric_fields[: cfg.top_performer_columns]:
            indexed = [
                (idx, value)
                for idx, value in ((i, to_number(row.get(field))) for i, row in enumerate(records))
                if value is not None
            ]
            if not indexed:
                continue

            top_idx, top_value = max(indexed, key=lambda item: item[1])
            average = mean([value for _, value in indexed])
            if average == 0 or top_value <= average * cfg.top_performer_multiplier:
                continue

            label = "One item"
            if category_field is not None:
                category = records[top_idx].get(category_field)
                if not is_blank(category):
                    label = f'"{to_text(category)}"'

            insights.append(Insight(
                id=f"top-{field}",
                type=InsightType.PATTERN,
                severity=InsightSeverity.SUCCESS,
                title=f"Top performer in {field}",
                description=(
                    f"{label} leads with {format_number(top_value)}, which is "
                    f"{(top_value / average - 1) * 100:.0f}% above average."
                ),
                metric=field,
                value=top_value,
                confidence=0.9,
            ))
        return insights


# Global instance
insight_generator = InsightGenerator()
