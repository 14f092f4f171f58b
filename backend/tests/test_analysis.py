"""
Test Analysis Engines

Unit tests for the statistics kernel and the detector suite.
"""

import pytest

from analysis import statistical
from analysis.correlations import CorrelationAnalyzer
from analysis.outliers import AnomalyDetector
from analysis.seasonality import SeasonalityAnalyzer
from analysis.trends import TrendDetector
from core.schema import schema_classifier
from relations.inference import relationship_inferrer
from schemas.results import TrendDirection
from schemas.tables import Column, ColumnType, DataSchema, DataSource


@pytest.fixture
def correlated_records():
    """a, b = 2a + 1 and c = 10 - a are perfectly related; d is noise."""
    noise = [5, 3, 8, 1, 9, 2, 7, 4, 6, 0]
    return [
        {"a": a, "b": 2 * a + 1, "c": 10 - a, "d": d}
        for a, d in zip(range(1, 11), noise)
    ]


@pytest.fixture
def monthly_records():
    """Two years of monthly rows with a summer peak."""
    rows = []
    for year in (2023, 2024):
        for month in range(1, 13):
            rows.append({
                "date": f"{year}-{month:02d}-15",
                "sales": 150 if month in (6, 7, 8) else 100,
                "flat": 100,
            })
    return rows


@pytest.fixture
def anomaly_detector():
    return AnomalyDetector()


@pytest.fixture
def trend_detector():
    return TrendDetector()


@pytest.fixture
def seasonality_analyzer():
    return SeasonalityAnalyzer()


@pytest.fixture
def correlation_analyzer():
    return CorrelationAnalyzer()


class TestStatisticsKernel:
    def test_basic_moments(self):
        values = [2, 4, 4, 4, 5, 5, 7, 9]

        assert statistical.mean(values) == 5.0
        assert statistical.median(values) == 4.5
        assert statistical.stddev(values) == pytest.approx(2.0)  # population

    def test_empty_inputs_return_zero(self):
        assert statistical.mean([]) == 0.0
        assert statistical.median([]) == 0.0
        assert statistical.stddev([]) == 0.0
        assert statistical.percentile([], 50) == 0.0

    def test_percentile_interpolates(self):
        values = [4, 1, 3, 2]

        assert statistical.percentile(values, 50) == pytest.approx(2.5)
        assert statistical.percentile(values, 0) == 1.0
        assert statistical.percentile(values, 100) == 4.0
        assert statistical.percentile(values, 150) == 4.0

    def test_correlation_of_series_with_itself(self):
        x = [3, 1, 4, 1, 5, 9, 2, 6]
        assert statistical.correlation(x, x) == pytest.approx(1.0)

    def test_correlation_of_reversed_series(self):
        x = [1, 2, 3, 4, 5]
        assert statistical.correlation(x, list(reversed(x))) == pytest.approx(-1.0)

    def test_correlation_degenerate_inputs(self):
        assert statistical.correlation([], []) == 0.0
        assert statistical.correlation([1, 2, 3], [1, 2]) == 0.0
        assert statistical.correlation([1, 2, 3], [7, 7, 7]) == 0.0

    def test_linear_regression_exact_fit(self):
        fit = statistical.linear_regression([0, 1, 2, 3], [1, 3, 5, 7])

        assert fit.slope == pytest.approx(2.0)
        assert fit.intercept == pytest.approx(1.0)
        assert fit.r2 == pytest.approx(1.0)
        assert fit.predict(10) == pytest.approx(21.0)

    def test_linear_regression_degenerate_inputs(self):
        for x, y in (([], []), ([1, 2], [1])):
            fit = statistical.linear_regression(x, y)
            assert (fit.slope, fit.intercept, fit.r2) == (0.0, 0.0, 0.0)

    def test_linear_regression_constant_x(self):
        fit = statistical.linear_regression([2, 2, 2], [1, 2, 3])

        assert fit.slope == 0.0
        assert fit.intercept == pytest.approx(2.0)

    def test_describe(self):
        stats = statistical.describe("v", [1, 2, 3, 4, 5])

        assert stats.count == 5
        assert stats.sum == 15
        assert stats.q25 < stats.median < stats.q75
        assert statistical.describe("v", []).count == 0


class TestAnomalyDetector:
    def test_flags_extreme_value(self, anomaly_detector):
        records = [{"v": v} for v in [1, 2, 3, 4, 100]]

        result = anomaly_detector.detect(records, "v", threshold=1.5)

        assert [p.value for p in result.anomalies] == [100.0]
        assert result.most_extreme.value == 100.0

    def test_default_threshold(self, anomaly_detector):
        records = [{"v": 10} for _ in range(20)] + [{"v": 1000}]

        result = anomaly_detector.detect(records, "v")

        assert result.threshold == 2.5
        assert result.anomaly_count == 1
        assert result.most_extreme.zscore > 2.5

    def test_five_points_stay_below_default_threshold(self, anomaly_detector):
        # Population z-scores over n points never exceed sqrt(n - 1)
        records = [{"v": v} for v in [1, 2, 3, 4, 100]]
        assert anomaly_detector.detect(records, "v").anomaly_count == 0

    def test_constant_series(self, anomaly_detector):
        records = [{"v": 5} for _ in range(5)]

        result = anomaly_detector.detect(records, "v")

        assert result.anomaly_count == 0
        assert all(p.zscore == 0 for p in result.points)
        assert len(result.points) == 5

    def test_skips_unparsable_values(self, anomaly_detector):
        records = [{"v": 1}, {"v": None}, {"v": "n/a"}, {"v": "3"}]

        result = anomaly_detector.detect(records, "v")

        assert len(result.points) == 2


class TestTrendDetector:
    def test_increasing_trend(self, trend_detector):
        records = [
            {"date": f"2024-01-0{i + 1}", "value": v}
            for i, v in enumerate([10, 20, 30, 40, 50])
        ]

        result = trend_detector.detect(records, "date", "value")

        assert result.direction == TrendDirection.INCREASING
        assert result.change_percent == pytest.approx(400.0)
        assert result.strength == pytest.approx(1.0)

    def test_sorts_by_date_first(self, trend_detector):
        records = [
            {"date": "2024-03-01", "value": 10},
            {"date": "2024-01-01", "value": 30},
            {"date": "2024-02-01", "value": 20},
        ]

        result = trend_detector.detect(records, "date", "value")

        assert result.direction == TrendDirection.DECREASING
        assert result.change_percent == pytest.approx(-200 / 3)

    def test_small_slope_is_stable(self, trend_detector):
        result = trend_detector.detect_values("v", [100, 100.01, 100.02, 100.03])
        assert result.direction == TrendDirection.STABLE

    def test_too_few_points(self, trend_detector):
        result = trend_detector.detect_values("v", [42])

        assert result.direction == TrendDirection.STABLE
        assert result.strength == 0.0

    def test_zero_first_value(self, trend_detector):
        result = trend_detector.detect_values("v", [0, 5, 10])
        assert result.change_percent == 0.0


class TestSeasonalityAnalyzer:
    def test_detects_monthly_seasonality(self, seasonality_analyzer, monthly_records):
        result = seasonality_analyzer.detect(monthly_records, "date", "sales")

        assert result.has_seasonality
        assert result.period == "monthly"
        assert result.coefficient_of_variation == pytest.approx(0.19245, abs=1e-4)
        assert result.confidence == pytest.approx(2 * result.coefficient_of_variation)
        assert len(result.monthly) == 12

    def test_flat_series(self, seasonality_analyzer, monthly_records):
        result = seasonality_analyzer.detect(monthly_records, "date", "flat")

        assert not result.has_seasonality
        assert result.period is None
        assert result.confidence == 0.0

    def test_requires_twelve_rows(self, seasonality_analyzer, monthly_records):
        result = seasonality_analyzer.detect(monthly_records[:11], "date", "sales")

        assert not result.has_seasonality
        assert result.confidence == 0.0

    def test_requires_six_months(self, seasonality_analyzer):
        records = [
            {"date": f"2024-0{month}-{day:02d}", "sales": month * day}
            for month in (1, 2, 3)
            for day in range(1, 6)
        ]

        result = seasonality_analyzer.detect(records, "date", "sales")

        assert not result.has_seasonality
        assert result.confidence == 0.0


class TestCorrelationAnalyzer:
    def test_scan_reports_strong_pairs(self, correlation_analyzer, correlated_records):
        pairs = correlation_analyzer.find_correlations(correlated_records, ["a", "b", "c", "d"])

        assert len(pairs) == 3
        assert all("d" not in (p.column1, p.column2) for p in pairs)
        assert all(p.strength == "strong" for p in pairs)

        ab = next(p for p in pairs if (p.column1, p.column2) == ("a", "b"))
        assert ab.direction == "positive"
        assert ab.correlation == pytest.approx(1.0)

        ac = next(p for p in pairs if (p.column1, p.column2) == ("a", "c"))
        assert ac.direction == "negative"

    def test_scan_is_sorted_by_magnitude(self, correlation_analyzer, correlated_records):
        pairs = correlation_analyzer.find_correlations(correlated_records, ["a", "d", "b"], threshold=0.0)
        magnitudes = [abs(p.correlation) for p in pairs]

        assert magnitudes == sorted(magnitudes, reverse=True)
        assert pairs[-1].strength == "weak"

    def test_pairwise_complete_rows(self, correlation_analyzer, correlated_records):
        records = correlated_records + [{"a": "x", "b": 1000}, {"a": 4}]

        pair = correlation_analyzer.compute_correlation_pair(records, "a", "b")

        assert pair.sample_size == 10
        assert pair.correlation == pytest.approx(1.0)

    def test_classify_strength(self, correlation_analyzer):
        assert correlation_analyzer.classify_strength(0.75) == "strong"
        assert correlation_analyzer.classify_strength(-0.55) == "moderate"
        assert correlation_analyzer.classify_strength(0.2) == "weak"

    def test_matrix(self, correlation_analyzer, correlated_records):
        matrix = correlation_analyzer.compute_correlation_matrix(correlated_records, ["a", "c", "d"])

        assert matrix.get("a", "a") == 1.0
        assert matrix.get("a", "c") == pytest.approx(-1.0)
        assert matrix.get("c", "a") == matrix.get("a", "c")
        assert matrix.get("a", "d") == pytest.approx(-0.2)

    def test_key_drivers(self, correlation_analyzer, correlated_records):
        drivers = correlation_analyzer.find_key_drivers(correlated_records, "b", ["a", "b", "c", "d"])

        assert {p.column2 for p in drivers} == {"a", "c"}

    def test_likely_target_metric(self, correlation_analyzer):
        schema = DataSchema(columns=[
            Column(name="units", type=ColumnType.NUMERIC, is_metric=True),
            Column(name="Revenue", type=ColumnType.NUMERIC, is_metric=True),
            Column(name="region", type=ColumnType.CATEGORICAL, is_dimension=True),
        ])

        assert correlation_analyzer.likely_target_metric(schema) == "Revenue"
        assert correlation_analyzer.likely_target_metric(DataSchema()) is None

    def test_cross_table_correlations(self, correlation_analyzer):
        customer_rows = [{"customer_id": i, "age": 20 + i} for i in range(1, 9)]
        order_rows = [{"customer_id": i, "amount": (20 + i) * 10} for i in range(1, 9)]
        customers = DataSource(
            id="c", name="customers.csv", data=customer_rows,
            schema=schema_classifier.infer_schema(customer_rows),
        )
        orders = DataSource(
            id="o", name="orders.csv", data=order_rows,
            schema=schema_classifier.infer_schema(order_rows),
        )
        relation = relationship_inferrer.create_manual_relation("c", "customer_id", "o", "customer_id")

        pairs = correlation_analyzer.cross_table_correlations(customers, orders, relation)

        age_amount = next(p for p in pairs if (p.column1, p.column2) == ("customers.age", "orders.amount"))
        assert age_amount.correlation == pytest.approx(1.0)
        assert age_amount.sample_size == 8

    def test_cross_table_requires_enough_pairs(self, correlation_analyzer):
        rows = [{"k": i, "v": i} for i in range(3)]
        left = DataSource(id="l", name="left", data=rows, schema=schema_classifier.infer_schema(rows))
        right = DataSource(id="r", name="right", data=rows, schema=schema_classifier.infer_schema(rows))
        relation = relationship_inferrer.create_manual_relation("l", "k", "r", "k")

        assert correlation_analyzer.cross_table_correlations(left, right, relation) == []
