# Tests for trend, velocity and faltering analysis

import datetime

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st
from pydantic import ValidationError as PydanticValidationError
from scipy import stats

from growthz.config import DEFAULT_ANALYZER_CONFIG, AnalyzerConfig
from growthz.errors import ValidationError
from growthz.messages import (
    FALTERING_INDICATORS,
    FALTERING_RECOMMENDATIONS,
    NO_MEASUREMENTS,
    SIMPLE_TREND_RECOMMENDATIONS,
    TREND_INSUFFICIENT_DATA,
    TREND_NAMES,
    TREND_RECOMMENDATIONS,
    VELOCITY_INSUFFICIENT_DATA,
)
from growthz.models import Indicator, Measurement, Sex, Status, VelocityIndicator
from growthz.trends import (
    analyze_growth_trend,
    calculate_growth_trend,
    calculate_growth_velocity,
    calculate_linear_regression,
    detect_growth_faltering,
    get_expected_velocity,
    records_to_data_points,
)

WFA = Indicator.WEIGHT_FOR_AGE


def _rec(key: str, indicator: Indicator = WFA) -> str:
    return TREND_RECOMMENDATIONS[key].format(name=TREND_NAMES[indicator])


class TestLinearRegression:
    """Tests for calculate_linear_regression"""

    def test_tc001_exact_line(self):
        slope, intercept, r2 = calculate_linear_regression([0, 1, 2, 3], [1, 3, 5, 7])
        assert slope == pytest.approx(2.0)
        assert intercept == pytest.approx(1.0)
        assert r2 == pytest.approx(1.0)

    def test_tc002_too_few_points(self):
        assert calculate_linear_regression([1.0], [2.0]) == (0.0, 0.0, 0.0)
        assert calculate_linear_regression([], []) == (0.0, 0.0, 0.0)

    def test_tc003_no_spread_in_x(self):
        assert calculate_linear_regression([3, 3, 3], [1, 2, 3]) == (0.0, 0.0, 0.0)

    def test_tc004_constant_y(self):
        slope, intercept, r2 = calculate_linear_regression([0, 1, 2], [0.5, 0.5, 0.5])
        assert slope == 0.0
        assert intercept == pytest.approx(0.5)
        assert r2 == 0.0

    @settings(max_examples=50, deadline=None)
    @given(
        y=st.lists(
            st.floats(min_value=-5.0, max_value=5.0), min_size=3, max_size=12
        )
    )
    def test_tc005_hypothesis_matches_scipy(self, y):
        x = np.arange(len(y), dtype=float)
        slope, intercept, r2 = calculate_linear_regression(x, y)
        if np.ptp(y) < 1e-3:
            return
        expected = stats.linregress(x, y)
        assert slope == pytest.approx(expected.slope, abs=1e-6)
        assert intercept == pytest.approx(expected.intercept, abs=1e-6)
        assert r2 == pytest.approx(expected.rvalue**2, abs=1e-6)


class TestAnalyzeGrowthTrend:
    """Tests for analyze_growth_trend"""

    def test_tc001_linear_increase_is_improving(self, make_points):
        points = make_points(range(6), [-1.0 + 0.2 * i for i in range(6)])
        result = analyze_growth_trend(points, WFA)
        assert result.direction == "improving"
        assert result.velocity == pytest.approx(0.2)
        assert result.consistency == pytest.approx(1.0)
        assert result.acceleration == pytest.approx(0.0, abs=1e-9)
        assert result.significance == "high"
        assert result.risk_level == "low"
        assert result.recommendation == _rec("improving")

    def test_tc002_insufficient_data(self, make_points):
        for points in ([], make_points([3], [-2.5])):
            result = analyze_growth_trend(points, WFA)
            assert result.direction == "stable"
            assert result.velocity == 0.0
            assert result.significance == "low"
            assert result.risk_level == "low"
            assert result.recommendation == TREND_INSUFFICIENT_DATA

    def test_tc003_constant_is_stable(self, make_points):
        result = analyze_growth_trend(make_points([0, 1, 2, 3], [0.5] * 4), WFA)
        assert result.direction == "stable"
        assert result.velocity == 0.0
        assert result.consistency == 0.0
        assert result.recommendation == _rec("stable_normal")

    def test_tc004_stable_outside_normal_range(self, make_points):
        result = analyze_growth_trend(make_points([0, 1, 2], [-1.5] * 3), WFA)
        assert result.direction == "stable"
        assert result.recommendation == _rec("monitor")

    def test_tc005_high_risk_declining(self, make_points):
        points = make_points([0, 1, 2, 3], [-1.0, -1.5, -2.0, -2.5])
        result = analyze_growth_trend(points, Indicator.HEIGHT_FOR_AGE)
        assert result.direction == "declining"
        assert result.risk_level == "high"
        assert result.recommendation == _rec(
            "high_risk_declining", Indicator.HEIGHT_FOR_AGE
        )

    def test_tc006_medium_risk_declining(self, make_points):
        points = make_points([0, 1, 2, 3], [0.0, -0.4, -0.8, -1.2])
        result = analyze_growth_trend(points, WFA)
        assert result.direction == "declining"
        assert result.significance == "high"
        assert result.risk_level == "medium"
        assert result.recommendation == _rec("consistent_decline")

    def test_tc007_fluctuating(self, make_points):
        """Flat first half then a steep rise"""
        points = make_points([0, 1, 2, 3, 4], [0.0, 0.0, 0.0, 1.0, 2.0])
        result = analyze_growth_trend(points, WFA)
        assert result.velocity == pytest.approx(0.5)
        assert result.acceleration == pytest.approx(1.0)
        assert result.direction == "fluctuating"
        assert result.risk_level == "low"
        assert result.recommendation == _rec("fluctuating")

    def test_tc008_high_risk_not_declining(self, make_points):
        points = make_points([0, 1, 2], [2.2, 2.4, 2.6])
        result = analyze_growth_trend(points, WFA)
        assert result.direction == "improving"
        assert result.risk_level == "high"
        assert result.recommendation == _rec("high_risk")

    def test_tc009_unsorted_input(self, make_points):
        points = make_points(range(6), [-1.0 + 0.2 * i for i in range(6)])
        shuffled = [points[i] for i in (3, 0, 5, 1, 4, 2)]
        assert analyze_growth_trend(shuffled, WFA) == analyze_growth_trend(points, WFA)

    def test_tc010_idempotent(self, make_points):
        points = make_points([0, 2, 3, 7], [0.3, -0.2, 0.1, -0.6])
        assert analyze_growth_trend(points, WFA) == analyze_growth_trend(points, WFA)

    def test_tc011_two_points_no_acceleration(self, make_points):
        result = analyze_growth_trend(make_points([0, 1], [0.0, 0.5]), WFA)
        assert result.acceleration == 0.0
        assert result.direction == "improving"

    def test_tc012_custom_thresholds(self, make_points):
        points = make_points(range(6), [-1.0 + 0.2 * i for i in range(6)])
        config = AnalyzerConfig(stable_velocity=0.5)
        assert analyze_growth_trend(points, WFA, config).direction == "stable"

    def test_tc013_noisy_series_low_significance(self, make_points):
        points = make_points([0, 1, 2, 3, 4, 5], [0.0, 0.6, -0.4, 0.5, -0.3, 0.4])
        result = analyze_growth_trend(points, WFA)
        assert result.significance == "low"
        assert 0.0 <= result.consistency <= 1.0

    def test_tc014_default_thresholds_cannot_be_reassigned(self, make_points):
        points = make_points(range(6), [-1.0 + 0.1 * i for i in range(6)])
        with pytest.raises(PydanticValidationError):
            DEFAULT_ANALYZER_CONFIG.stable_velocity = 10.0
        assert analyze_growth_trend(points, WFA).direction == "improving"


class TestGrowthVelocity:
    """Tests for calculate_growth_velocity"""

    def test_tc001_normal(self, make_points):
        points = make_points([0, 2], [0.0, 0.0], values=[3.3, 4.9])
        result = calculate_growth_velocity(points, VelocityIndicator.WEIGHT)
        assert result.velocity == pytest.approx(0.8)
        assert result.expected_velocity == 0.8
        assert result.percentile_velocity == pytest.approx(100.0)
        assert result.status == "normal"
        assert "0.80 kg/bulan" in result.message

    def test_tc002_slow(self, make_points):
        points = make_points([6, 12], [0.0, 0.0], values=[67.6, 70.6])
        result = calculate_growth_velocity(points, VelocityIndicator.HEIGHT)
        assert result.velocity == pytest.approx(0.5)
        assert result.expected_velocity == 1.0
        assert result.status == "slow"
        assert "cm/bulan" in result.message

    def test_tc003_fast(self, make_points):
        points = make_points([3, 5], [0.0, 0.0], values=[40.0, 44.0])
        result = calculate_growth_velocity(points, VelocityIndicator.HEAD_CIRCUMFERENCE)
        # 2.0 cm/month against 1.0 expected at 5 months
        assert result.percentile_velocity == pytest.approx(200.0)
        assert result.status == "fast"

    def test_tc004_uses_first_and_last_by_age(self, make_points):
        points = make_points([2, 0, 1], [0.0] * 3, values=[4.9, 3.3, 10.0])
        result = calculate_growth_velocity(points, VelocityIndicator.WEIGHT)
        assert result.velocity == pytest.approx(0.8)

    def test_tc005_insufficient_data(self, make_points):
        result = calculate_growth_velocity(make_points([4], [0.0]), "weight")
        assert result.velocity == 0.0
        assert result.status == "normal"
        assert result.message == VELOCITY_INSUFFICIENT_DATA

    def test_tc006_zero_elapsed_time(self, make_points):
        points = make_points([4, 4], [0.0, 0.0], values=[6.0, 6.5])
        result = calculate_growth_velocity(points, VelocityIndicator.WEIGHT)
        assert result.velocity == 0.0
        assert result.status == "slow"

    @pytest.mark.parametrize(
        "indicator, age, expected",
        [
            ("weight", 0, 0.8),
            ("weight", 2.9, 0.8),
            ("weight", 3, 0.6),
            ("weight", 23.9, 0.25),
            ("weight", 24, 0.15),
            ("height", 11, 1.5),
            ("height", 60, 0.8),
            ("headCircumference", 2, 2.0),
            ("headCircumference", 30, 0.1),
        ],
    )
    def test_tc007_expected_velocity_brackets(self, indicator, age, expected):
        assert get_expected_velocity(indicator, age) == expected


class TestGrowthFaltering:
    """Tests for detect_growth_faltering"""

    def test_tc001_consistent_decline_is_mild(self, make_points):
        weight = make_points([6, 7, 8, 9, 10], [0.0, -0.45, -0.9, -1.35, -1.8])
        height = make_points([6, 7, 8, 9, 10], [0.2] * 5)
        result = detect_growth_faltering(weight, height)
        assert result.has_faltering
        assert result.severity == "mild"
        assert result.indicators == [FALTERING_INDICATORS["weight_decline"]]
        assert result.recommendations == (
            FALTERING_RECOMMENDATIONS["mild"] + FALTERING_RECOMMENDATIONS["common"]
        )

    def test_tc002_decline_below_minus_two_is_moderate(self, make_points):
        weight = make_points([6, 7, 8, 9, 10], [-0.5, -1.0, -1.5, -2.0, -2.5])
        height = make_points([6, 7, 8, 9, 10], [0.0] * 5)
        result = detect_growth_faltering(weight, height)
        assert result.severity == "moderate"
        assert result.indicators == [
            FALTERING_INDICATORS["weight_decline"],
            FALTERING_INDICATORS["weight_low"],
        ]

    def test_tc003_any_point_below_minus_three_is_severe(self, make_points):
        weight = make_points([6, 9], [0.0, 0.1])
        height = make_points([6, 9], [-2.0, -3.2])
        result = detect_growth_faltering(weight, height)
        assert result.has_faltering
        assert result.severity == "severe"
        assert FALTERING_INDICATORS["height_low"] in result.indicators
        assert result.recommendations[:2] == FALTERING_RECOMMENDATIONS["severe"]

    def test_tc004_no_faltering(self, make_points):
        weight = make_points([6, 7, 8], [0.1, 0.0, 0.1])
        height = make_points([6, 7, 8], [-0.5, -0.4, -0.5])
        result = detect_growth_faltering(weight, height)
        assert not result.has_faltering
        assert result.severity == "none"
        assert result.indicators == []
        assert result.recommendations == []

    def test_tc005_empty_series(self):
        result = detect_growth_faltering([], [])
        assert not result.has_faltering
        assert result.severity == "none"

    def test_tc006_latest_is_chronological(self, make_points):
        """Recovery to normal is not faltering, whatever the input order"""
        weight = make_points([6, 7, 8], [-2.5, -1.0, 0.0])
        result = detect_growth_faltering(list(reversed(weight)), [])
        assert not result.has_faltering

    def test_tc007_idempotent(self, make_points):
        weight = make_points([6, 7, 8, 9], [-0.5, -1.2, -1.9, -2.6])
        height = make_points([6, 7, 8, 9], [0.0] * 4)
        assert detect_growth_faltering(weight, height) == detect_growth_faltering(
            weight, height
        )


class TestSimpleGrowthTrend:
    """Tests for the dashboard calculate_growth_trend"""

    def test_tc001_improving(self, make_points):
        points = make_points([6, 7, 8, 9], [-0.8, 0.0, 0.2, 0.4])
        result = calculate_growth_trend(points, WFA)
        assert result.trend == "improving"
        assert result.current_status is Status.NORMAL
        assert result.recommendation == SIMPLE_TREND_RECOMMENDATIONS[WFA]["improving"]

    def test_tc002_declining_alert(self, make_points):
        points = make_points([6, 7, 8], [-1.8, -2.2, -2.6])
        result = calculate_growth_trend(points, WFA)
        assert result.trend == "declining"
        assert result.current_status is Status.ALERT
        assert result.recommendation == SIMPLE_TREND_RECOMMENDATIONS[WFA]["alert_declining"]

    def test_tc003_stable(self, make_points):
        result = calculate_growth_trend(make_points([6, 7], [0.3, 0.35]), WFA)
        assert result.trend == "stable"
        assert result.recommendation == SIMPLE_TREND_RECOMMENDATIONS[WFA]["normal"]

    def test_tc004_no_data(self):
        result = calculate_growth_trend([], Indicator.HEIGHT_FOR_AGE)
        assert result.data == []
        assert result.trend == "stable"
        assert result.recommendation == NO_MEASUREMENTS

    def test_tc005_by_status_for_other_indicators(self, make_points):
        indicator = Indicator.HEIGHT_FOR_AGE
        result = calculate_growth_trend(make_points([6, 7], [-1.2, -1.5]), indicator)
        assert result.current_status is Status.WARNING
        assert result.recommendation == SIMPLE_TREND_RECOMMENDATIONS[indicator]["warning"]

    def test_tc006_skips_non_positive_values(self, make_points):
        points = make_points([6, 7], [0.0, 0.1], values=[0.0, 8.0])
        result = calculate_growth_trend(points, WFA)
        assert len(result.data) == 1


class TestRecordsToDataPoints:
    """Tests for records_to_data_points"""

    def test_tc001_weight_points_sorted(self, median_boy_measurements):
        records = list(reversed(median_boy_measurements))
        points = records_to_data_points(records, datetime.date(2023, 1, 1), Sex.MALE, WFA)
        assert [p.age_in_months for p in points] == [6, 9, 12]
        assert [p.value for p in points] == [7.934, 8.9014, 9.6479]
        for p in points:
            assert p.z_score == pytest.approx(0.0, abs=1e-12)
            assert p.status is Status.NORMAL

    def test_tc002_missing_head_circumference_skipped(self, median_boy_measurements):
        points = records_to_data_points(
            median_boy_measurements,
            datetime.date(2023, 1, 1),
            Sex.MALE,
            Indicator.HEAD_CIRCUMFERENCE_FOR_AGE,
        )
        assert points == []

    def test_tc003_invalid_record_raises(self):
        records = [Measurement(date=datetime.date(2023, 7, 1), weight=-2.0, height=67.0)]
        with pytest.raises(ValidationError):
            records_to_data_points(records, datetime.date(2023, 1, 1), Sex.MALE, WFA)
