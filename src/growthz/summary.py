"""
Growth summary for a child's measurement history.

Combines the per-measurement indicators with trend, velocity and faltering
analyses into the alerts and recommendations shown on a child's dashboard.
"""

from typing import Dict, List, Optional, Sequence
import datetime

from .config import (
    BMI_FOR_AGE_MIN_MONTHS,
    MPASI_AGE_MONTHS,
    REMINDER_INTERVAL_CHILD_DAYS,
    REMINDER_INTERVAL_INFANT_DAYS,
    REMINDER_INFANT_MAX_MONTHS,
)
from .indicators import calculate_age_in_months, calculate_all_growth_indicators
from .messages import (
    REMINDER_DUE,
    REMINDER_NO_RECORD,
    SUMMARY_FALTERING_ALERT,
    SUMMARY_MEASURE_ROUTINELY,
    SUMMARY_MPASI,
    SUMMARY_START_MEASURING,
)
from .models import (
    AnalysedMeasurement,
    Child,
    GrowthDataPoint,
    GrowthSummary,
    Indicator,
    Measurement,
    MonitoringReminder,
    Status,
    TrendAnalysis,
    VelocityIndicator,
)
from .trends import (
    analyze_growth_trend,
    calculate_growth_trend,
    calculate_growth_velocity,
    detect_growth_faltering,
    indicator_value,
)
from .zscores import calculate_bmi_for_age


def analyse_measurements(
    child: Child, measurements: Sequence[Measurement]
) -> List[AnalysedMeasurement]:
    """
    Compute indicators for every measurement, oldest first.

    Raises:
        ValidationError: If any measurement is out of range.
    """
    analysed = []
    for m in sorted(measurements, key=lambda m: m.date):
        age = calculate_age_in_months(child.birth_date, m.date)
        analysis = calculate_all_growth_indicators(
            m.weight, m.height, m.head_circumference, age, child.sex
        )
        analysed.append(
            AnalysedMeasurement(measurement=m, age_in_months=age, analysis=analysis)
        )
    return analysed


def _data_points(
    records: Sequence[AnalysedMeasurement], indicator: Indicator
) -> List[GrowthDataPoint]:
    points = []
    for record in records:
        result = record.analysis.get(indicator)
        if result is None:
            continue
        m = record.measurement
        points.append(
            GrowthDataPoint(
                date=m.date,
                age_in_months=record.age_in_months,
                value=indicator_value(m, indicator),
                z_score=result.z_score,
                status=result.status,
            )
        )
    return points


def _append_unique(target: List[str], text: str) -> None:
    if text and text not in target:
        target.append(text)


def build_growth_summary(
    child: Child, measurements: Sequence[Measurement]
) -> GrowthSummary:
    """
    Summarise a child's growth from the full measurement history.

    Head circumference analyses are included only when at least one
    measurement has a head circumference. BMI analysis is included when the
    latest measurement is at 24 months or older.
    """
    records = analyse_measurements(child, measurements)
    latest = records[-1] if records else None

    points = {indicator: _data_points(records, indicator) for indicator in Indicator}
    has_head = bool(points[Indicator.HEAD_CIRCUMFERENCE_FOR_AGE])
    indicators = [i for i in Indicator if has_head or i is not Indicator.HEAD_CIRCUMFERENCE_FOR_AGE]

    trends = [calculate_growth_trend(points[i], i) for i in indicators]
    trend_analysis: Dict[Indicator, TrendAnalysis] = {
        i: analyze_growth_trend(points[i], i) for i in indicators
    }

    velocity_sources = {
        VelocityIndicator.WEIGHT: points[Indicator.WEIGHT_FOR_AGE],
        VelocityIndicator.HEIGHT: points[Indicator.HEIGHT_FOR_AGE],
    }
    if has_head:
        velocity_sources[VelocityIndicator.HEAD_CIRCUMFERENCE] = points[
            Indicator.HEAD_CIRCUMFERENCE_FOR_AGE
        ]
    velocity_analysis = {
        kind: calculate_growth_velocity(series, kind)
        for kind, series in velocity_sources.items()
    }

    faltering = detect_growth_faltering(
        points[Indicator.WEIGHT_FOR_AGE], points[Indicator.HEIGHT_FOR_AGE]
    )

    bmi_analysis = None
    if latest is not None and latest.age_in_months >= BMI_FOR_AGE_MIN_MONTHS:
        bmi_analysis = calculate_bmi_for_age(
            latest.measurement.weight,
            latest.measurement.height,
            latest.age_in_months,
            child.sex,
        )

    alerts: List[str] = []
    if latest is not None:
        for indicator in Indicator:
            result = latest.analysis.get(indicator)
            if result is not None and result.status is Status.ALERT:
                alerts.append(result.message)
    for analysis in trend_analysis.values():
        if analysis.risk_level == "high":
            alerts.append(analysis.recommendation)
    if faltering.has_faltering:
        alerts.append(
            SUMMARY_FALTERING_ALERT.format(
                severity=faltering.severity, indicators=", ".join(faltering.indicators)
            )
        )

    recommendations: List[str] = []
    for trend in trends:
        _append_unique(recommendations, trend.recommendation)
    for analysis in trend_analysis.values():
        _append_unique(recommendations, analysis.recommendation)
    for velocity in velocity_analysis.values():
        if velocity.status != "normal":
            _append_unique(recommendations, velocity.message)
    for rec in faltering.recommendations:
        _append_unique(recommendations, rec)
    if latest is not None and latest.age_in_months >= MPASI_AGE_MONTHS:
        _append_unique(recommendations, SUMMARY_MPASI)
    if not records:
        recommendations.append(SUMMARY_START_MEASURING)
    elif len(records) == 1:
        recommendations.append(SUMMARY_MEASURE_ROUTINELY)

    return GrowthSummary(
        latest_record=latest,
        trends=trends,
        trend_analysis=trend_analysis,
        velocity_analysis=velocity_analysis,
        growth_faltering=faltering,
        bmi_analysis=bmi_analysis,
        alerts=alerts,
        recommendations=recommendations,
    )


def check_monitoring_reminder(
    child: Child,
    latest: Optional[Measurement],
    today: Optional[datetime.date] = None,
) -> MonitoringReminder:
    """
    Whether the child is due for a new measurement.

    Children under 24 months should be measured every 30 days, older
    children every 60 days.
    """
    if latest is None:
        return MonitoringReminder(needs_reminder=True, message=REMINDER_NO_RECORD)

    today = today or datetime.date.today()
    days_since = (today - latest.date).days
    age = calculate_age_in_months(child.birth_date, latest.date)
    interval = (
        REMINDER_INTERVAL_INFANT_DAYS
        if age < REMINDER_INFANT_MAX_MONTHS
        else REMINDER_INTERVAL_CHILD_DAYS
    )

    if days_since >= interval:
        return MonitoringReminder(
            needs_reminder=True,
            days_since_last_measurement=days_since,
            message=REMINDER_DUE.format(days=days_since),
        )
    return MonitoringReminder(needs_reminder=False, days_since_last_measurement=days_since)
