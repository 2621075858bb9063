"""
Growth indicator aggregation.

Validates a measurement set, derives the child's age in months and computes
all four WHO growth indicators in one call. A DataFrame-based batch variant
processes a child's whole measurement history with the vectorized kernel.
"""

from typing import List, Optional
import datetime
import logging

import numpy as np
import pandas as pd

from .config import MEASUREMENT_LIMITS
from .errors import ValidationError
from .messages import VALIDATION_ERRORS
from .models import GrowthIndicatorResult, Indicator, Sex, ValidationResult
from .reference import get_reference_table
from .zscores import (
    calculate_head_circumference_for_age_zscore,
    calculate_height_for_age_zscore,
    calculate_weight_for_age_zscore,
    calculate_weight_for_height_zscore,
    classify_zscore,
    interpolate_lms_array,
    lms_zscore,
    nearest_lms_array,
)

# Batch output column per indicator
INDICATOR_COLUMNS = {
    Indicator.WEIGHT_FOR_AGE: "waz",
    Indicator.HEIGHT_FOR_AGE: "haz",
    Indicator.WEIGHT_FOR_HEIGHT: "whz",
    Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: "headcz",
}


def _to_date(value) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return pd.Timestamp(value).date()


def calculate_age_in_months(birth_date, measurement_date=None) -> int:
    """
    Whole months between birth and measurement.

    A partial month is truncated: if the measurement day of month is before
    the birth day of month, one month is subtracted. Never negative.

    Args:
        birth_date: date, datetime or ISO date string
        measurement_date: same types; defaults to today

    Returns:
        Age in completed months
    """
    birth = _to_date(birth_date)
    measured = _to_date(measurement_date) if measurement_date is not None else datetime.date.today()

    total_months = (measured.year - birth.year) * 12 + (measured.month - birth.month)
    if measured.day < birth.day:
        total_months -= 1
    return max(0, total_months)


def validate_measurements(
    weight: float,
    height: float,
    head_circumference: Optional[float],
    age_in_months: float,
) -> ValidationResult:
    """
    Check measurements against their allowed ranges.

    Every violated rule is reported:
    - weight in (0, 50] kg
    - height in (0, 150] cm
    - head circumference in (0, 70] cm, when given
    - age in [0, 60] months
    - BMI in [5, 40], when weight and height are both positive
    """
    errors: List[str] = []

    if not MEASUREMENT_LIMITS["weight"].contains(weight):
        errors.append(VALIDATION_ERRORS["weight"])

    if not MEASUREMENT_LIMITS["height"].contains(height):
        errors.append(VALIDATION_ERRORS["height"])

    if head_circumference is not None and not MEASUREMENT_LIMITS[
        "head_circumference"
    ].contains(head_circumference):
        errors.append(VALIDATION_ERRORS["head_circumference"])

    if not MEASUREMENT_LIMITS["age_in_months"].contains(age_in_months):
        errors.append(VALIDATION_ERRORS["age_in_months"])

    if weight > 0 and height > 0:
        bmi = weight / (height / 100.0) ** 2
        if not MEASUREMENT_LIMITS["bmi"].contains(bmi):
            errors.append(VALIDATION_ERRORS["bmi"])

    return ValidationResult(is_valid=not errors, errors=errors)


def calculate_all_growth_indicators(
    weight: float,
    height: float,
    head_circumference: Optional[float],
    age_in_months: float,
    sex: Sex,
) -> GrowthIndicatorResult:
    """
    Compute weight-for-age, height-for-age, weight-for-height and, when a
    head circumference is given, head-circumference-for-age.

    Raises:
        ValidationError: If any measurement is out of range. Nothing is
            computed in that case.
    """
    validation = validate_measurements(weight, height, head_circumference, age_in_months)
    if not validation.is_valid:
        raise ValidationError(validation.errors)

    sex = Sex.parse(sex)
    head_result = None
    if head_circumference is not None and head_circumference > 0:
        head_result = calculate_head_circumference_for_age_zscore(
            head_circumference, age_in_months, sex
        )

    return GrowthIndicatorResult(
        weight_for_age=calculate_weight_for_age_zscore(weight, age_in_months, sex),
        height_for_age=calculate_height_for_age_zscore(height, age_in_months, sex),
        weight_for_height=calculate_weight_for_height_zscore(weight, height, sex),
        head_circumference_for_age=head_result,
    )


def calculate_growth_indicators_from_dates(
    weight: float,
    height: float,
    head_circumference: Optional[float],
    birth_date,
    measurement_date,
    sex: Sex,
) -> GrowthIndicatorResult:
    """Same as calculate_all_growth_indicators, deriving age from dates."""
    age_in_months = calculate_age_in_months(birth_date, measurement_date)
    return calculate_all_growth_indicators(
        weight, height, head_circumference, age_in_months, sex
    )


def _log_unit_warnings(height: np.ndarray, weight: np.ndarray) -> None:
    """Log warnings for potential unit mismatches."""
    if height.size and np.nanmean(height) < 20:
        logging.warning(
            "Height values have mean <20 - heights may be in metres instead of cm"
        )
    if weight.size and np.nanmax(weight) > 50:
        logging.warning(
            "Weight values >50 kg detected - may be lbs or grams instead of kg"
        )


def calculate_growth_metrics(
    df: pd.DataFrame,
    birth_date,
    sex: Sex,
    date_col: str = "date",
    weight_col: str = "weight",
    height_col: str = "height",
    head_circ_col: str = "head_circumference",
) -> pd.DataFrame:
    """
    Compute growth indicators for a child's whole measurement history.

    Adds ``age_in_months`` plus one Z-score column per indicator (waz, haz,
    whz, headcz) and a matching ``*_status`` column. Rows without a head
    circumference get NaN/None for headcz rather than a fabricated score.

    Args:
        df: One row per measurement event
        birth_date: Child's birth date
        sex: Child's sex
        date_col, weight_col, height_col, head_circ_col: Column names

    Returns:
        A copy of ``df`` with the computed columns

    Raises:
        ValidationError: Listing every invalid row and rule.
        ValueError: If a required column is missing.
    """
    for col in (date_col, weight_col, height_col):
        if col not in df.columns:
            raise ValueError(f"Column '{col}' does not exist in DataFrame")

    sex = Sex.parse(sex)
    out = df.copy()
    out["age_in_months"] = [
        calculate_age_in_months(birth_date, d) for d in out[date_col]
    ]

    weight = np.asarray(out[weight_col], dtype=np.float64)
    height = np.asarray(out[height_col], dtype=np.float64)
    if head_circ_col in out.columns:
        head_circ = np.asarray(out[head_circ_col], dtype=np.float64)
    else:
        head_circ = np.full(len(out), np.nan)
    age = np.asarray(out["age_in_months"], dtype=np.float64)

    _log_unit_warnings(height, weight)

    errors = []
    for i, label in enumerate(out.index):
        hc = None if np.isnan(head_circ[i]) else float(head_circ[i])
        result = validate_measurements(weight[i], height[i], hc, age[i])
        errors.extend(f"row {label}: {e}" for e in result.errors)
    if errors:
        raise ValidationError(errors)

    measured = {
        Indicator.WEIGHT_FOR_AGE: weight,
        Indicator.HEIGHT_FOR_AGE: height,
        Indicator.WEIGHT_FOR_HEIGHT: weight,
        Indicator.HEAD_CIRCUMFERENCE_FOR_AGE: head_circ,
    }
    for indicator, values in measured.items():
        column = INDICATOR_COLUMNS[indicator]
        table = get_reference_table(indicator, sex)
        if indicator.keyed_by_height:
            L, M, S = nearest_lms_array(height, table)
        else:
            L, M, S = interpolate_lms_array(age, table)
        z = lms_zscore(values, L, M, S) if len(out) else np.array([], dtype=np.float64)
        out[column] = z
        out[f"{column}_status"] = [
            None if np.isnan(v) else classify_zscore(v).value for v in z
        ]
    return out
