"""
Longitudinal growth analysis.

Every function here is a pure function of the series it is given: the whole
history is recomputed on each call and nothing is retained between calls.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import (
    DEFAULT_ANALYZER_CONFIG,
    EXPECTED_VELOCITY,
    VELOCITY_FAST_PERCENT,
    VELOCITY_SLOW_PERCENT,
    AnalyzerConfig,
)
from .indicators import calculate_age_in_months, calculate_growth_indicators_from_dates
from .messages import (
    FALTERING_INDICATORS,
    FALTERING_RECOMMENDATIONS,
    NO_MEASUREMENTS,
    SIMPLE_TREND_RECOMMENDATIONS,
    TREND_INSUFFICIENT_DATA,
    TREND_NAMES,
    TREND_RECOMMENDATIONS,
    VELOCITY_INSUFFICIENT_DATA,
    VELOCITY_NAMES,
    VELOCITY_TEMPLATES,
    VELOCITY_UNITS,
)
from .models import (
    FalteringResult,
    GrowthDataPoint,
    GrowthTrend,
    GrowthVelocity,
    Indicator,
    Measurement,
    Sex,
    Status,
    TrendAnalysis,
    VelocityIndicator,
)


def _sorted_by_age(points: Iterable[GrowthDataPoint]) -> List[GrowthDataPoint]:
    # sorted() is stable, so equal ages keep the caller's order
    return sorted(points, key=lambda p: p.age_in_months)


def calculate_linear_regression(
    x: Sequence[float], y: Sequence[float]
) -> Tuple[float, float, float]:
    """
    Ordinary least squares fit of y on x.

    Returns:
        (slope, intercept, r_squared). Fewer than two points, or no spread in
        x, gives (0, 0, 0). R² is 0 when y has no variance.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    n = x.size
    if n < 2:
        return 0.0, 0.0, 0.0

    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0, 0.0, 0.0

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    total_ss = ((y - mean_y) ** 2).sum()
    residual_ss = ((y - (slope * x + intercept)) ** 2).sum()
    r_squared = 0.0 if total_ss == 0 else 1.0 - residual_ss / total_ss

    return float(slope), float(intercept), float(r_squared)


def _trend_direction(velocity: float, acceleration: float, config: AnalyzerConfig) -> str:
    if abs(velocity) < config.stable_velocity:
        return "stable"
    elif abs(acceleration) > config.fluctuation_acceleration:
        return "fluctuating"
    elif velocity > 0:
        return "improving"
    return "declining"


def _trend_significance(velocity: float, consistency: float, config: AnalyzerConfig) -> str:
    if consistency > config.high_consistency and abs(velocity) > config.high_velocity:
        return "high"
    elif consistency > config.medium_consistency and abs(velocity) > config.medium_velocity:
        return "medium"
    return "low"


def _risk_level(latest_z: float, direction: str, config: AnalyzerConfig) -> str:
    if abs(latest_z) > config.high_risk_z:
        return "high"
    elif abs(latest_z) > config.medium_risk_z and direction == "declining":
        return "medium"
    return "low"


def generate_trend_recommendation(
    indicator: Indicator,
    direction: str,
    latest_z: float,
    risk_level: str,
    significance: str,
) -> str:
    """Pick the trend recommendation from direction, risk and significance."""
    name = TREND_NAMES[indicator]

    if risk_level == "high":
        if direction == "declining":
            return TREND_RECOMMENDATIONS["high_risk_declining"].format(name=name)
        return TREND_RECOMMENDATIONS["high_risk"].format(name=name)

    if direction == "declining" and significance == "high":
        return TREND_RECOMMENDATIONS["consistent_decline"].format(name=name)
    if direction == "improving":
        return TREND_RECOMMENDATIONS["improving"].format(name=name)
    if direction == "fluctuating":
        return TREND_RECOMMENDATIONS["fluctuating"].format(name=name)
    if direction == "stable" and -1 <= latest_z <= 1:
        return TREND_RECOMMENDATIONS["stable_normal"].format(name=name)
    return TREND_RECOMMENDATIONS["monitor"].format(name=name)


def analyze_growth_trend(
    points: Sequence[GrowthDataPoint],
    indicator: Indicator,
    config: AnalyzerConfig = DEFAULT_ANALYZER_CONFIG,
) -> TrendAnalysis:
    """
    Analyze the Z-score trend of one indicator over time.

    Fits a least-squares line of Z-score against age in months:

    - velocity: slope (Z-score per month)
    - consistency: R², floored at 0
    - acceleration: slope of the second half minus slope of the first half
      (the halves share the middle point), 0 with fewer than 3 points
    - direction: stable, fluctuating, improving or declining
    - significance: high, medium or low
    - risk_level: from the latest Z-score and the direction

    With fewer than two points a stable, low-risk result is returned.
    """
    indicator = Indicator(indicator)
    if len(points) < 2:
        return TrendAnalysis(
            direction="stable",
            velocity=0.0,
            acceleration=0.0,
            consistency=0.0,
            significance="low",
            recommendation=TREND_INSUFFICIENT_DATA,
            risk_level="low",
        )

    ordered = _sorted_by_age(points)
    ages = [p.age_in_months for p in ordered]
    z_scores = [p.z_score for p in ordered]

    velocity, _, r_squared = calculate_linear_regression(ages, z_scores)
    consistency = max(0.0, r_squared)

    acceleration = 0.0
    if len(ordered) >= 3:
        mid = len(ordered) // 2
        first_slope, _, _ = calculate_linear_regression(ages[: mid + 1], z_scores[: mid + 1])
        second_slope, _, _ = calculate_linear_regression(ages[mid:], z_scores[mid:])
        acceleration = second_slope - first_slope

    direction = _trend_direction(velocity, acceleration, config)
    significance = _trend_significance(velocity, consistency, config)
    latest_z = z_scores[-1]
    risk_level = _risk_level(latest_z, direction, config)

    return TrendAnalysis(
        direction=direction,
        velocity=velocity,
        acceleration=acceleration,
        consistency=consistency,
        significance=significance,
        recommendation=generate_trend_recommendation(
            indicator, direction, latest_z, risk_level, significance
        ),
        risk_level=risk_level,
    )


def get_expected_velocity(indicator: VelocityIndicator, age_in_months: float) -> float:
    """Typical growth per month for an indicator at a given age."""
    for upper_age, velocity in EXPECTED_VELOCITY[VelocityIndicator(indicator).value]:
        if upper_age is None or age_in_months < upper_age:
            return velocity
    raise ValueError(f"No expected velocity bracket for age {age_in_months}")


def calculate_growth_velocity(
    points: Sequence[GrowthDataPoint], indicator: VelocityIndicator
) -> GrowthVelocity:
    """
    Raw growth rate between the first and last measurement.

    velocity = (last value - first value) / elapsed months, compared against
    the expected velocity for the age at the last measurement:
    below 70% is slow, above 130% is fast.
    """
    indicator = VelocityIndicator(indicator)
    if len(points) < 2:
        return GrowthVelocity(
            indicator=indicator,
            velocity=0.0,
            expected_velocity=0.0,
            percentile_velocity=0.0,
            status="normal",
            message=VELOCITY_INSUFFICIENT_DATA,
        )

    ordered = _sorted_by_age(points)
    first, last = ordered[0], ordered[-1]
    elapsed = last.age_in_months - first.age_in_months
    velocity = (last.value - first.value) / elapsed if elapsed > 0 else 0.0

    expected = get_expected_velocity(indicator, last.age_in_months)
    percentile = velocity / expected * 100.0 if expected > 0 else 0.0

    if percentile < VELOCITY_SLOW_PERCENT:
        status = "slow"
    elif percentile > VELOCITY_FAST_PERCENT:
        status = "fast"
    else:
        status = "normal"

    message = VELOCITY_TEMPLATES[status].format(
        name=VELOCITY_NAMES[indicator],
        velocity=f"{velocity:.2f} {VELOCITY_UNITS[indicator]}",
        percent=f"{percentile:.0f}%",
    )
    return GrowthVelocity(
        indicator=indicator,
        velocity=velocity,
        expected_velocity=expected,
        percentile_velocity=percentile,
        status=status,
        message=message,
    )


def detect_growth_faltering(
    weight_points: Sequence[GrowthDataPoint],
    height_points: Sequence[GrowthDataPoint],
    config: AnalyzerConfig = DEFAULT_ANALYZER_CONFIG,
) -> FalteringResult:
    """
    Detect growth faltering (failure to thrive) from weight and height series.

    Faltering is flagged when either trend is declining with high
    significance, or the latest weight or height Z-score is below -2.
    Severity is severe if any Z-score in either series is below -3, moderate
    when two or more flags fired, mild otherwise.
    """
    weight_sorted = _sorted_by_age(weight_points)
    height_sorted = _sorted_by_age(height_points)
    indicators: List[str] = []

    weight_trend = analyze_growth_trend(weight_sorted, Indicator.WEIGHT_FOR_AGE, config)
    if weight_trend.direction == "declining" and weight_trend.significance == "high":
        indicators.append(FALTERING_INDICATORS["weight_decline"])

    height_trend = analyze_growth_trend(height_sorted, Indicator.HEIGHT_FOR_AGE, config)
    if height_trend.direction == "declining" and height_trend.significance == "high":
        indicators.append(FALTERING_INDICATORS["height_decline"])

    if weight_sorted and weight_sorted[-1].z_score < -2:
        indicators.append(FALTERING_INDICATORS["weight_low"])
    if height_sorted and height_sorted[-1].z_score < -2:
        indicators.append(FALTERING_INDICATORS["height_low"])

    if not indicators:
        return FalteringResult(
            has_faltering=False, severity="none", indicators=[], recommendations=[]
        )

    has_severe_z = any(p.z_score < -3 for p in weight_sorted + height_sorted)
    if has_severe_z:
        severity = "severe"
    elif len(indicators) >= 2:
        severity = "moderate"
    else:
        severity = "mild"

    recommendations: List[str] = []
    for rec in FALTERING_RECOMMENDATIONS[severity] + FALTERING_RECOMMENDATIONS["common"]:
        if rec not in recommendations:
            recommendations.append(rec)

    return FalteringResult(
        has_faltering=True,
        severity=severity,
        indicators=indicators,
        recommendations=recommendations,
    )


def calculate_growth_trend(
    points: Sequence[GrowthDataPoint], indicator: Indicator
) -> GrowthTrend:
    """
    Short-term dashboard trend from the last three points.

    The mean Z-score change between consecutive points decides the trend:
    above 0.1 improving, below -0.1 declining, otherwise stable.
    """
    indicator = Indicator(indicator)
    data = [p for p in _sorted_by_age(points) if p.value > 0]
    if not data:
        return GrowthTrend(
            indicator=indicator,
            data=[],
            current_status=Status.NORMAL,
            trend="stable",
            recommendation=NO_MEASUREMENTS,
        )

    current_status = data[-1].status
    trend = "stable"
    if len(data) >= 2:
        recent = [p.z_score for p in data[-3:]]
        avg_change = float(np.mean(np.diff(recent)))
        if avg_change > 0.1:
            trend = "improving"
        elif avg_change < -0.1:
            trend = "declining"

    texts = SIMPLE_TREND_RECOMMENDATIONS[indicator]
    if indicator is Indicator.WEIGHT_FOR_AGE:
        if current_status is Status.ALERT and trend == "declining":
            recommendation = texts["alert_declining"]
        elif current_status is Status.WARNING:
            recommendation = texts["warning"]
        elif trend == "improving":
            recommendation = texts["improving"]
        else:
            recommendation = texts["normal"]
    else:
        recommendation = texts.get(current_status.value, texts["normal"])

    return GrowthTrend(
        indicator=indicator,
        data=data,
        current_status=current_status,
        trend=trend,
        recommendation=recommendation,
    )


def records_to_data_points(
    measurements: Sequence[Measurement],
    birth_date,
    sex: Sex,
    indicator: Indicator,
) -> List[GrowthDataPoint]:
    """
    Reduce measurement records to data points for one indicator.

    Records without a value for the indicator (no head circumference) are
    skipped rather than given a default Z-score.

    Raises:
        ValidationError: If a record has out-of-range measurements.
    """
    indicator = Indicator(indicator)
    points = []
    for m in measurements:
        analysis = calculate_growth_indicators_from_dates(
            m.weight, m.height, m.head_circumference, birth_date, m.date, sex
        )
        result = analysis.get(indicator)
        value = indicator_value(m, indicator)
        if result is None or value is None:
            continue
        points.append(
            GrowthDataPoint(
                date=m.date,
                age_in_months=calculate_age_in_months(birth_date, m.date),
                value=value,
                z_score=result.z_score,
                status=result.status,
            )
        )
    return _sorted_by_age(points)


def indicator_value(m: Measurement, indicator: Indicator) -> Optional[float]:
    if indicator is Indicator.HEIGHT_FOR_AGE:
        return m.height
    if indicator is Indicator.HEAD_CIRCUMFERENCE_FOR_AGE:
        return m.head_circumference
    return m.weight
