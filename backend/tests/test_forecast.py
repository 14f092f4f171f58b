"""
Test Forecasting and What-If Scenarios
"""

import pytest

from analysis.forecaster import ForecastEngine
from analysis.what_if import ImpactedField, WhatIfSimulator
from schemas.results import TrendDirection


@pytest.fixture
def engine():
    return ForecastEngine()


@pytest.fixture
def simulator():
    return WhatIfSimulator()


@pytest.fixture
def linear_series():
    return [
        {"month": f"2024-{m:02d}-01", "revenue": 100 + 10 * (m - 1)}
        for m in range(1, 13)
    ]


@pytest.fixture
def business_records():
    return [
        {"price": 8, "units": 120, "cost": 50, "margin": 4, "visits": 1000},
        {"price": 12, "units": 80, "cost": 70, "margin": 6, "visits": 3000},
    ]


class TestForecastEngine:
    def test_too_few_points(self, engine):
        records = [{"d": "2024-01-01", "v": 1}, {"d": "2024-02-01", "v": 2}]

        forecast = engine.generate_forecast(records, "d", "v")

        assert len(forecast.historical) == 2
        assert forecast.predicted == []
        assert forecast.confidence.upper == []
        assert forecast.metrics.accuracy == 0
        assert forecast.metrics.trend == TrendDirection.STABLE
        assert forecast.metrics.growth_rate == 0

    def test_linear_projection(self, engine, linear_series):
        forecast = engine.generate_forecast(linear_series, "month", "revenue")

        assert len(forecast.predicted) == 6
        assert forecast.predicted[0].value == pytest.approx(220.0)
        assert forecast.predicted[-1].value == pytest.approx(270.0)
        assert forecast.metrics.trend == TrendDirection.INCREASING
        assert forecast.metrics.accuracy == pytest.approx(1.0)
        assert forecast.metrics.growth_rate == pytest.approx(10.0)

    def test_future_dates_follow_first_gap(self, engine, linear_series):
        forecast = engine.generate_forecast(linear_series, "month", "revenue", periods=2)

        # January to February is 31 days
        assert [p.date for p in forecast.predicted] == ["2025-01-01", "2025-02-01"]

    def test_perfect_fit_has_no_band(self, engine, linear_series):
        forecast = engine.generate_forecast(linear_series, "month", "revenue")

        for p, up, low in zip(forecast.predicted, forecast.confidence.upper, forecast.confidence.lower):
            assert up.value == pytest.approx(p.value)
            assert low.value == pytest.approx(p.value)

    def test_band_widens(self, engine):
        values = [100, 120, 105, 130, 118, 140, 125, 150]
        records = [{"d": f"2024-{i + 1:02d}-01", "v": v} for i, v in enumerate(values)]

        forecast = engine.generate_forecast(records, "d", "v")
        widths = [
            up.value - low.value
            for up, low in zip(forecast.confidence.upper, forecast.confidence.lower)
        ]

        assert all(w > 0 for w in widths)
        assert widths == sorted(widths)
        for p, up, low in zip(forecast.predicted, forecast.confidence.upper, forecast.confidence.lower):
            assert low.value <= p.value <= up.value

    def test_predictions_never_negative(self, engine):
        records = [{"d": f"2024-01-{i + 1:02d}", "v": v} for i, v in enumerate([50, 40, 30, 20, 10])]

        forecast = engine.generate_forecast(records, "d", "v")

        assert forecast.metrics.trend == TrendDirection.DECREASING
        assert all(p.value >= 0 for p in forecast.predicted)
        assert all(p.value >= 0 for p in forecast.confidence.lower)

    def test_sorts_and_filters_history(self, engine):
        records = [
            {"d": "2024-03-01", "v": 30},
            {"d": "2024-01-01", "v": 10},
            {"d": "not a date", "v": 99},
            {"d": "2024-02-01", "v": "n/a"},
            {"d": "2024-04-01", "v": 40},
        ]

        forecast = engine.generate_forecast(records, "d", "v", periods=1)

        assert [p.value for p in forecast.historical] == [10, 30, 40]
        assert len(forecast.predicted) == 1


class TestWhatIfSimulator:
    def test_elasticity_propagation(self, simulator, business_records):
        scenario = simulator.run_scenario(
            business_records, "price", 20, [ImpactedField("units", elasticity=-0.5)]
        )

        assert scenario.baseline_value == pytest.approx(10.0)
        assert scenario.modified_value == pytest.approx(12.0)
        assert scenario.name == "price increase by 20%"
        assert scenario.description == "What if price changed by +20%?"

        units = scenario.impacted_metrics[0]
        assert units.baseline == pytest.approx(100.0)
        assert units.change_percent == pytest.approx(-10.0)
        assert units.projected == pytest.approx(90.0)
        assert units.change == pytest.approx(-10.0)

    def test_default_elasticity(self, simulator, business_records):
        scenario = simulator.run_scenario(business_records, "price", -15, [ImpactedField("cost")])

        assert scenario.name == "price decrease by 15%"
        assert scenario.description == "What if price changed by -15%?"
        assert scenario.impacted_metrics[0].projected == pytest.approx(51.0)

    def test_default_scenario(self, simulator, business_records):
        fields = ["price", "units", "cost", "margin", "visits"]

        scenario = simulator.run_default_scenario(business_records, "units", 10, fields)

        assert [m.metric for m in scenario.impacted_metrics] == ["price", "cost", "margin"]
        assert all(m.change_percent == pytest.approx(10.0) for m in scenario.impacted_metrics)

    def test_missing_target(self, simulator, business_records):
        scenario = simulator.run_scenario(business_records, "missing", 10)

        assert scenario.baseline_value == 0
        assert scenario.impacted_metrics == []

    def test_suggest_questions(self, simulator):
        questions = simulator.suggest_questions(["Margin", "Price", "Sales", "Units"])

        assert [q.text for q in questions] == [
            "What if Sales increase by 20%?",
            "What if Price goes up 10%?",
            "What if Margin changes by 15%?",
        ]
        assert simulator.suggest_questions([]) == []
