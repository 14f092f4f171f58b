"""
Test Insight Generation

Pipeline stages, severity ranking and number formatting.
"""

import pytest

from core.schema import schema_classifier
from insights.generator import InsightGenerator, format_number
from insights.ranker import InsightRanker
from schemas.results import Insight, InsightSeverity, InsightType


@pytest.fixture
def generator():
    return InsightGenerator()


@pytest.fixture
def growing_sales():
    regions = ["North", "South", "East"]
    return [
        {"date": f"2024-{month:02d}-01", "sales": month * 100, "region": regions[month % 3]}
        for month in range(1, 13)
    ]


def _insight(id, severity, confidence):
    return Insight(
        id=id,
        type=InsightType.SUMMARY,
        severity=severity,
        title=id,
        description=id,
        confidence=confidence,
    )


class TestInsightGenerator:
    def test_empty_dataset(self, generator):
        assert generator.generate([], schema_classifier.infer_schema([])) == []

    def test_summary_and_trend(self, generator, growing_sales):
        schema = schema_classifier.infer_schema(growing_sales)

        insights = generator.generate(growing_sales, schema)

        assert [i.id for i in insights] == ["trend-sales", "summary-sales"]

        trend = insights[0]
        assert trend.severity == InsightSeverity.SUCCESS
        assert trend.change_percent == pytest.approx(1100.0)
        assert trend.related_fields == ["sales", "date"]
        assert trend.confidence == pytest.approx(1.0)

        summary = insights[1]
        assert summary.type == InsightType.SUMMARY
        assert summary.value == pytest.approx(7800.0)
        assert summary.confidence == 1.0
        assert summary.description == "Total: 7.8K, Average: 650, Range: 100 - 1.2K"

    def test_decreasing_trend_is_warning(self, generator):
        records = [
            {"date": f"2024-{month:02d}-01", "sales": (13 - month) * 100, "visits": month * 10}
            for month in range(1, 13)
        ]
        schema = schema_classifier.infer_schema(records)

        insights = generator.generate(records, schema)

        assert [i.id for i in insights][:2] == ["trend-sales", "trend-visits"]
        assert insights[0].severity == InsightSeverity.WARNING
        assert insights[0].change_percent == pytest.approx(-1100 / 12)
        assert insights[1].severity == InsightSeverity.SUCCESS
        assert all(i.severity == InsightSeverity.INFO for i in insights[2:])

    def test_flat_strong_fit_is_info(self, generator):
        records = [
            {"date": f"2024-{month:02d}-01", "sales": 100 + month * 0.01}
            for month in range(1, 13)
        ]
        schema = schema_classifier.infer_schema(records)

        insights = generator.generate(records, schema)
        trend = next(i for i in insights if i.id == "trend-sales")

        assert trend.severity == InsightSeverity.INFO
        assert trend.title == "sales is stable"
        assert trend.description.startswith("No significant change.")

    def test_weak_fit_is_suppressed(self, generator):
        records = [
            {"date": f"2024-{month:02d}-01", "sales": 10 if month % 2 else 50}
            for month in range(1, 13)
        ]
        schema = schema_classifier.infer_schema(records)

        insights = generator.generate(records, schema)

        assert not [i for i in insights if i.id.startswith("trend-")]
        assert [i.id for i in insights] == ["summary-sales"]

    def test_anomaly_insight(self, generator):
        records = [{"value": 10} for _ in range(20)] + [{"value": 1000}]
        schema = schema_classifier.infer_schema(records)

        insights = generator.generate(records, schema)
        anomaly = next(i for i in insights if i.type == InsightType.ANOMALY)

        assert anomaly.id == "anomaly-value"
        assert anomaly.severity == InsightSeverity.INFO
        assert anomaly.title == "1 Anomalies in value"
        assert anomaly.value == 1000.0
        assert "+4.5 std dev" in anomaly.description

    def test_many_anomalies_raise_warning(self, generator):
        records = [{"value": 10} for _ in range(200)] + [{"value": 1000 + i} for i in range(4)]
        schema = schema_classifier.infer_schema(records)

        insights = generator.generate(records, schema)

        assert insights[0].type == InsightType.ANOMALY
        assert insights[0].severity == InsightSeverity.WARNING

    def test_top_performer(self, generator):
        records = [
            {"store": name, "sales": value}
            for name, value in zip("ABCDE", [10, 10, 10, 10, 100])
        ]
        schema = schema_classifier.infer_schema(records)

        insights = generator.generate(records, schema)
        top = next(i for i in insights if i.type == InsightType.PATTERN)

        assert top.id == "top-sales"
        assert top.severity == InsightSeverity.SUCCESS
        assert top.description == '"E" leads with 100, which is 257% above average.'

    def test_correlation_insights(self, generator):
        records = [{"price": p, "revenue": p * 3, "returns": 50 - p} for p in range(1, 21)]
        schema = schema_classifier.infer_schema(records)

        insights = generator.generate(records, schema)
        correlations = [i for i in insights if i.type == InsightType.CORRELATION]

        assert {i.id for i in correlations} == {
            "correlation-price-revenue",
            "correlation-price-returns",
            "correlation-revenue-returns",
        }
        assert all(i.confidence == pytest.approx(1.0) for i in correlations)


class TestInsightRanker:
    def test_severity_then_confidence(self):
        insights = [
            _insight("info-low", InsightSeverity.INFO, 0.2),
            _insight("success", InsightSeverity.SUCCESS, 0.9),
            _insight("info-high", InsightSeverity.INFO, 0.9),
            _insight("critical", InsightSeverity.CRITICAL, 0.1),
            _insight("warning", InsightSeverity.WARNING, 0.5),
        ]

        ranked = InsightRanker().rank_insights(insights)

        assert [i.id for i in ranked] == ["critical", "warning", "success", "info-high", "info-low"]

    def test_top_n(self):
        insights = [_insight(str(i), InsightSeverity.INFO, i / 10) for i in range(5)]
        assert [i.id for i in InsightRanker().rank_insights(insights, top_n=2)] == ["4", "3"]


class TestFormatNumber:
    @pytest.mark.parametrize("value,expected", [
        (2_500_000_000, "2.5B"),
        (1_200_000, "1.2M"),
        (-4_500, "-4.5K"),
        (0.256, "0.26"),
        (0, "0"),
        (42, "42"),
    ])
    def test_suffixes(self, value, expected):
        assert format_number(value) == expected
