"""
WHO Child Growth Standards Z-score engine.

Converts anthropometric measurements of children aged 0-60 months into
Z-scores, percentiles and growth status, and analyses measurement histories
for trends, growth velocity and growth faltering.
"""

from .config import AnalyzerConfig, make_analyzer_config
from .errors import ComputationError, GrowthError, ValidationError
from .indicators import (
    calculate_age_in_months,
    calculate_all_growth_indicators,
    calculate_growth_indicators_from_dates,
    calculate_growth_metrics,
    validate_measurements,
)
from .models import (
    Child,
    GrowthDataPoint,
    GrowthIndicatorResult,
    Indicator,
    Measurement,
    Sex,
    Status,
    VelocityIndicator,
    ZScoreResult,
)
from .reference import get_reference_table, load_reference_data
from .summary import build_growth_summary, check_monitoring_reminder
from .trends import (
    analyze_growth_trend,
    calculate_growth_trend,
    calculate_growth_velocity,
    detect_growth_faltering,
    records_to_data_points,
)
from .zscores import (
    calculate_bmi_for_age,
    calculate_zscore,
    get_growth_status_classification,
    interpolate_lms,
    reference_curves,
    zscore_for_indicator,
    zscore_to_percentile,
)

__all__ = [
    "AnalyzerConfig",
    "Child",
    "ComputationError",
    "GrowthDataPoint",
    "GrowthError",
    "GrowthIndicatorResult",
    "Indicator",
    "Measurement",
    "Sex",
    "Status",
    "ValidationError",
    "VelocityIndicator",
    "ZScoreResult",
    "analyze_growth_trend",
    "build_growth_summary",
    "calculate_age_in_months",
    "calculate_all_growth_indicators",
    "calculate_bmi_for_age",
    "calculate_growth_indicators_from_dates",
    "calculate_growth_metrics",
    "calculate_growth_trend",
    "calculate_growth_velocity",
    "calculate_zscore",
    "check_monitoring_reminder",
    "detect_growth_faltering",
    "get_growth_status_classification",
    "get_reference_table",
    "interpolate_lms",
    "load_reference_data",
    "make_analyzer_config",
    "records_to_data_points",
    "reference_curves",
    "validate_measurements",
    "zscore_for_indicator",
    "zscore_to_percentile",
]
