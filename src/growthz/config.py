"""
Configuration constants for the growth Z-score engine.
"""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, StrictFloat, ValidationError, field_validator

# LMS constants
L_ZERO_THRESHOLD = 0.01
Z_SCORE_MIN = -5.0
Z_SCORE_MAX = 5.0

# Status thresholds (same for all indicators)
Z_SCORE_BOUNDS = (-3.0, -2.0, -1.0, 1.0, 2.0, 3.0)

# Abramowitz & Stegun 26.2.17 normal CDF coefficients
NORMAL_CDF_P = 0.2316419
NORMAL_PDF_SCALE = 0.3989423
NORMAL_CDF_COEFFS = (0.3193815, -0.3565638, 1.781478, -1.821256, 1.330274)

# Reference curve lines drawn on growth charts
REFERENCE_CURVE_Z_SCORES = (-3.0, -2.0, 0.0, 2.0, 3.0)

# Age limits for the WHO 0-5 year standards
MAX_AGE_MONTHS = 60
BMI_FOR_AGE_MIN_MONTHS = 24
MPASI_AGE_MONTHS = 6

# Expected growth velocity per month by age bracket: (upper age bound, velocity)
# The last bracket applies to every age above the previous bound.
EXPECTED_VELOCITY = {
    "weight": [(3, 0.8), (6, 0.6), (12, 0.4), (24, 0.25), (None, 0.15)],
    "height": [(3, 3.5), (6, 2.0), (12, 1.5), (24, 1.0), (None, 0.8)],
    "headCircumference": [(3, 2.0), (6, 1.0), (12, 0.5), (24, 0.25), (None, 0.1)],
}

VELOCITY_SLOW_PERCENT = 70.0
VELOCITY_FAST_PERCENT = 130.0

# Measurement reminder intervals in days
REMINDER_INTERVAL_INFANT_DAYS = 30
REMINDER_INTERVAL_CHILD_DAYS = 60
REMINDER_INFANT_MAX_MONTHS = 24


class MeasurementRange(BaseModel):
    """
    Allowed range for a measurement.

    The lower bound is exclusive unless ``include_min`` is set; the upper
    bound is always inclusive.
    """

    min: StrictFloat
    max: StrictFloat
    include_min: bool = False

    @field_validator("max", mode="after")
    @classmethod
    def min_lt_max(cls, v: float, info: Any) -> float:
        """Validate that min < max."""
        lower = info.data.get("min", float("inf"))
        if v <= lower:
            raise ValueError("max must be > min")
        return v

    def contains(self, value: float) -> bool:
        if value > self.max:
            return False
        if self.include_min:
            return value >= self.min
        return value > self.min


MEASUREMENT_LIMITS: Dict[str, MeasurementRange] = {
    "weight": MeasurementRange(min=0.0, max=50.0),
    "height": MeasurementRange(min=0.0, max=150.0),
    "head_circumference": MeasurementRange(min=0.0, max=70.0),
    "age_in_months": MeasurementRange(min=0.0, max=60.0, include_min=True),
    "bmi": MeasurementRange(min=5.0, max=40.0, include_min=True),
}


class AnalyzerConfig(BaseModel):
    """
    Thresholds used by the trend analyzer.

    Attributes:
        stable_velocity: |slope| below this (Z-score/month) is a stable trend.
        fluctuation_acceleration: |acceleration| above this is fluctuating.
        high_consistency: R² above this (with high_velocity) is high significance.
        high_velocity: |slope| threshold for high significance.
        medium_consistency: R² above this (with medium_velocity) is medium.
        medium_velocity: |slope| threshold for medium significance.
        high_risk_z: |latest Z| beyond this is high risk.
        medium_risk_z: |latest Z| beyond this while declining is medium risk.
    """

    model_config = ConfigDict(frozen=True)

    stable_velocity: float = 0.05
    fluctuation_acceleration: float = 0.1
    high_consistency: float = 0.7
    high_velocity: float = 0.1
    medium_consistency: float = 0.4
    medium_velocity: float = 0.05
    high_risk_z: float = 2.0
    medium_risk_z: float = 1.0

    @field_validator("high_consistency", "medium_consistency")
    @classmethod
    def validate_r_squared(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Consistency thresholds must lie in [0, 1]")
        return v

    @field_validator("medium_risk_z", mode="after")
    @classmethod
    def medium_lt_high_risk(cls, v: float, info: Any) -> float:
        if v >= info.data.get("high_risk_z", float("inf")):
            raise ValueError("medium_risk_z must be < high_risk_z")
        return v


DEFAULT_ANALYZER_CONFIG = AnalyzerConfig()


def make_analyzer_config(overrides: Optional[Mapping[str, float]] = None) -> AnalyzerConfig:
    """
    Build trend analyzer thresholds from caller overrides.

    Raises:
        ValueError: If the overrides do not form a valid configuration.
    """
    try:
        return AnalyzerConfig(**dict(overrides or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
