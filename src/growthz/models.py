"""
Value types exchanged between the growth engine and its caller.

Results are frozen pydantic models: they are derived values that are
recomputed on every call and never updated in place.
"""

import datetime
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Sex(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"

    @classmethod
    def parse(cls, value: "str | Sex") -> "Sex":
        """Accept 'M'/'F', 'male'/'female' or a Sex member."""
        if isinstance(value, Sex):
            return value
        normalized = str(value).strip().upper()
        if normalized in ("M", "MALE"):
            return cls.MALE
        if normalized in ("F", "FEMALE"):
            return cls.FEMALE
        raise ValueError(f"Sex values must be 'MALE' or 'FEMALE', got {value!r}")

    @property
    def code(self) -> str:
        return self.value.lower()


class Indicator(str, Enum):
    WEIGHT_FOR_AGE = "weightForAge"
    HEIGHT_FOR_AGE = "heightForAge"
    WEIGHT_FOR_HEIGHT = "weightForHeight"
    HEAD_CIRCUMFERENCE_FOR_AGE = "headCircumferenceForAge"

    @property
    def keyed_by_height(self) -> bool:
        return self is Indicator.WEIGHT_FOR_HEIGHT


class VelocityIndicator(str, Enum):
    WEIGHT = "weight"
    HEIGHT = "height"
    HEAD_CIRCUMFERENCE = "headCircumference"


class Status(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    ALERT = "alert"


class LMS(NamedTuple):
    """LMS parameters resolved for one age (months) or height (cm) key."""

    key: float
    L: float
    M: float
    S: float


class Child(BaseModel):
    birth_date: datetime.date
    sex: Sex

    @field_validator("sex", mode="before")
    @classmethod
    def parse_sex(cls, v: object) -> Sex:
        return Sex.parse(v)  # type: ignore[arg-type]


class Measurement(BaseModel):
    """One measurement event as stored by the caller."""

    date: datetime.date
    weight: float
    height: float
    head_circumference: Optional[float] = None


class ZScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    z_score: float = Field(ge=-5.0, le=5.0)
    percentile: float = Field(ge=0.0, le=100.0)
    status: Status
    message: str


class GrowthIndicatorResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    weight_for_age: ZScoreResult
    height_for_age: ZScoreResult
    weight_for_height: ZScoreResult
    head_circumference_for_age: Optional[ZScoreResult] = None

    def get(self, indicator: Indicator) -> Optional[ZScoreResult]:
        return {
            Indicator.WEIGHT_FOR_AGE: self.weight_for_age,
            Indicator.HEIGHT_FOR_AGE: self.height_for_age,
            Indicator.WEIGHT_FOR_HEIGHT: self.weight_for_height,
            Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: self.head_circumference_for_age,
        }[indicator]


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: List[str]


class GrowthDataPoint(BaseModel):
    """A persisted measurement reduced to one indicator plus its Z-score."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    age_in_months: float
    value: float
    z_score: float
    status: Status


class TrendAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: str  # improving | stable | declining | fluctuating
    velocity: float  # Z-score change per month
    acceleration: float
    consistency: float  # R², floored at 0
    significance: str  # high | medium | low
    recommendation: str
    risk_level: str  # low | medium | high


class GrowthVelocity(BaseModel):
    model_config = ConfigDict(frozen=True)

    indicator: VelocityIndicator
    velocity: float  # units per month
    expected_velocity: float
    percentile_velocity: float
    status: str  # normal | slow | fast
    message: str


class FalteringResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_faltering: bool
    severity: str  # none | mild | moderate | severe
    indicators: List[str]
    recommendations: List[str]


class GrowthClassification(BaseModel):
    model_config = ConfigDict(frozen=True)

    classification: str
    color: str
    priority: str


class BMIResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    bmi: float
    z_score: Optional[float] = None
    status: Optional[Status] = None
    message: Optional[str] = None


class GrowthTrend(BaseModel):
    model_config = ConfigDict(frozen=True)

    indicator: Indicator
    data: List[GrowthDataPoint]
    current_status: Status
    trend: str  # improving | stable | declining
    recommendation: str


class AnalysedMeasurement(BaseModel):
    """A measurement with its age and computed indicators."""

    model_config = ConfigDict(frozen=True)

    measurement: Measurement
    age_in_months: int
    analysis: GrowthIndicatorResult


class GrowthSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    latest_record: Optional[AnalysedMeasurement] = None
    trends: List[GrowthTrend]
    trend_analysis: Dict[Indicator, TrendAnalysis]
    velocity_analysis: Dict[VelocityIndicator, GrowthVelocity]
    growth_faltering: FalteringResult
    bmi_analysis: Optional[BMIResult] = None
    alerts: List[str]
    recommendations: List[str]


class MonitoringReminder(BaseModel):
    model_config = ConfigDict(frozen=True)

    needs_reminder: bool
    days_since_last_measurement: Optional[int] = None
    message: Optional[str] = None
