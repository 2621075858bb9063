"""
Z-Score Calculation Utilities for Growth Indicators

This module converts raw anthropometric measurements into WHO Child Growth
Standards Z-scores using the LMS method, converts Z-scores to percentiles and
classifies growth status. It also resolves LMS parameters from the reference
tables, either by piecewise-linear interpolation or by nearest-row lookup.
"""

from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple
import logging
import math

import numpy as np
import pandas as pd
from numba import jit
from scipy import stats

from .config import (
    BMI_FOR_AGE_MIN_MONTHS,
    L_ZERO_THRESHOLD,
    NORMAL_CDF_COEFFS,
    NORMAL_CDF_P,
    NORMAL_PDF_SCALE,
    REFERENCE_CURVE_Z_SCORES,
    Z_SCORE_BOUNDS,
    Z_SCORE_MAX,
    Z_SCORE_MIN,
)
from .errors import ComputationError
from .messages import STATUS_LABELS, STATUS_TEMPLATES
from .models import (
    BMIResult,
    GrowthClassification,
    Indicator,
    LMS,
    Sex,
    Status,
    ZScoreResult,
)
from .reference import get_reference_table

LookupFunc = Callable[[float, np.ndarray], LMS]


@jit(nopython=True, cache=True)
def _lms_zscore_kernel(
    X: np.ndarray, L: np.ndarray, M: np.ndarray, S: np.ndarray
) -> np.ndarray:
    z = np.empty(X.size, dtype=np.float64)
    for i in range(X.size):
        x = X[i]
        lam = L[i]
        mu = M[i]
        sigma = S[i]
        if not (
            math.isfinite(x)
            and math.isfinite(lam)
            and math.isfinite(mu)
            and math.isfinite(sigma)
            and x > 0.0
            and mu > 0.0
            and sigma > 0.0
        ):
            z[i] = np.nan
            continue
        if abs(lam) < L_ZERO_THRESHOLD:
            zi = math.log(x / mu) / sigma
        else:
            zi = ((x / mu) ** lam - 1.0) / (lam * sigma)
        z[i] = min(max(zi, Z_SCORE_MIN), Z_SCORE_MAX)
    return z


def lms_zscore(X, L, M, S) -> np.ndarray:
    """
    Calculate LMS z-scores using the vectorized LMS transformation.

    Implements the LMS method from Cole (1990) as used by the WHO Child
    Growth Standards (2006).

    For |L| >= 0.01: z = ((X/M)^L - 1) / (L * S)
    For |L| < 0.01:  z = ln(X/M) / S, the limit of the general formula, used
    to avoid dividing by a near-zero L.

    Results are clamped to [-5, 5]. Entries with a non-positive or
    non-finite value, M or S come back as NaN.

    References:
    - Cole, T.J. (1990). "The LMS method for constructing normalized growth standards."
      European Journal of Clinical Nutrition, 44(1), 45-60.
    - WHO Multicentre Growth Reference Study Group (2006). WHO Child Growth
      Standards: Methods and development.

    Args:
        X: Observed values (kg/cm)
        L: Lambda (Box-Cox power, skewness)
        M: Mu (median)
        S: Sigma (coefficient of variation)

    Returns:
        Z-scores broadcast to the common shape of the inputs
    """
    arrays = np.broadcast_arrays(
        *(np.asarray(a, dtype=np.float64) for a in (X, L, M, S))
    )
    shape = arrays[0].shape
    flat = [np.ascontiguousarray(a.ravel()) for a in arrays]
    return _lms_zscore_kernel(*flat).reshape(shape)


def calculate_zscore(value: float, L: float, M: float, S: float) -> float:
    """
    Calculate a single Z-score with the LMS method.

    Raises:
        ComputationError: If value, M or S is not a positive finite number.
    """
    if not all(math.isfinite(v) and v > 0 for v in (value, M, S)) or not math.isfinite(L):
        raise ComputationError(
            f"Invalid measurement values: value={value}, M={M}, S={S} "
            "must all be positive"
        )
    z = float(_lms_zscore_kernel(
        np.array([value], dtype=np.float64),
        np.array([L], dtype=np.float64),
        np.array([M], dtype=np.float64),
        np.array([S], dtype=np.float64),
    )[0])
    if z in (Z_SCORE_MIN, Z_SCORE_MAX):
        logging.debug(f"Z-score for value {value} clamped to {z}")
    return z


def zscore_to_value(z: float, L: float, M: float, S: float) -> float:
    """
    Inverse LMS: the measurement value that sits at Z-score ``z``.

    Formula: M * (1 + L*S*z)^(1/L), or M * exp(S*z) when L is near zero.
    Returns NaN where the Box-Cox base is not positive.
    """
    if abs(L) < L_ZERO_THRESHOLD:
        return float(M * math.exp(S * z))
    base = 1.0 + L * S * z
    if base <= 0:
        return float("nan")
    return float(M * base ** (1.0 / L))


def _round_half_up(value: float, decimals: int) -> float:
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def zscore_to_percentile(z_score: float) -> float:
    """
    Convert a Z-score to a percentile (0-100, two decimals).

    Uses the Abramowitz & Stegun 26.2.17 polynomial approximation of the
    standard normal CDF (absolute error < 7.5e-8), evaluated on |z| and
    mirrored for positive z.
    """
    t = 1.0 / (1.0 + NORMAL_CDF_P * abs(z_score))
    d = NORMAL_PDF_SCALE * math.exp(-z_score * z_score / 2.0)
    c1, c2, c3, c4, c5 = NORMAL_CDF_COEFFS
    prob = d * t * (c1 + t * (c2 + t * (c3 + t * (c4 + t * c5))))
    if z_score > 0:
        prob = 1.0 - prob
    return _round_half_up(prob * 100.0, 2)


def percentile_to_zscore(percentile: float) -> float:
    """Z-score at a given percentile (0-100, exclusive)."""
    if not 0.0 < percentile < 100.0:
        raise ValueError("Percentile must lie strictly between 0 and 100")
    return float(stats.norm.ppf(percentile / 100.0))


def _status_band(z_score: float) -> str:
    # Each bound belongs to the band nearer zero
    sd3neg, sd2neg, sd1neg, sd1, sd2, sd3 = Z_SCORE_BOUNDS
    if z_score < sd3neg:
        return "very_low"
    elif z_score < sd2neg:
        return "low"
    elif z_score < sd1neg:
        return "below"
    elif z_score <= sd1:
        return "normal"
    elif z_score <= sd2:
        return "above"
    elif z_score <= sd3:
        return "high"
    return "very_high"


_BAND_STATUS = {
    "very_low": Status.ALERT,
    "low": Status.ALERT,
    "below": Status.WARNING,
    "normal": Status.NORMAL,
    "above": Status.WARNING,
    "high": Status.ALERT,
    "very_high": Status.ALERT,
}


def classify_zscore(z_score: float) -> Status:
    """Map a Z-score onto normal/warning/alert."""
    return _BAND_STATUS[_status_band(z_score)]


def get_growth_status(
    z_score: float, indicator: Optional[Indicator] = None
) -> Tuple[Status, str]:
    """
    Determine growth status and its message for a Z-score.

    | Z-score      | status  |
    |--------------|---------|
    | < -3         | alert   |
    | [-3, -2)     | alert   |
    | [-2, -1)     | warning |
    | [-1, 1]      | normal  |
    | (1, 2]       | warning |
    | (2, 3]       | alert   |
    | > 3          | alert   |
    """
    band = _status_band(z_score)
    label = STATUS_LABELS[indicator] if indicator is not None else "Pengukuran"
    message = STATUS_TEMPLATES[band].format(label=label, z=f"{z_score:.1f}")
    return _BAND_STATUS[band], message


def interpolate_lms(key: float, table: np.ndarray) -> LMS:
    """
    Resolve LMS parameters at ``key`` by piecewise-linear interpolation.

    An exact key match returns that row unmodified. Keys outside the table
    are clamped to the nearest endpoint row (no extrapolation). Between two
    rows, L, M and S are interpolated independently.

    Args:
        key: Age in months or height in cm
        table: Structured array with fields key, L, M, S, keys ascending

    Returns:
        LMS tuple

    Raises:
        ComputationError: If the key is not finite.
    """
    if not math.isfinite(key):
        raise ComputationError(f"Lookup key must be finite, got {key}")
    keys = table["key"]
    if key <= keys[0]:
        return _row(table, 0)
    if key >= keys[-1]:
        return _row(table, len(table) - 1)

    upper = int(np.searchsorted(keys, key, side="left"))
    if keys[upper] == key:
        return _row(table, upper)

    lower = upper - 1
    ratio = (key - keys[lower]) / (keys[upper] - keys[lower])
    lo, hi = table[lower], table[upper]
    return LMS(
        key=float(key),
        L=float(lo["L"] + (hi["L"] - lo["L"]) * ratio),
        M=float(lo["M"] + (hi["M"] - lo["M"]) * ratio),
        S=float(lo["S"] + (hi["S"] - lo["S"]) * ratio),
    )


def interpolate_lms_array(
    keys: np.ndarray, table: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized form of interpolate_lms.

    np.interp clamps to the endpoint rows outside the table range, matching
    the scalar lookup.
    """
    keys = np.asarray(keys, dtype=np.float64)
    L = np.interp(keys, table["key"], table["L"])
    M = np.interp(keys, table["key"], table["M"])
    S = np.interp(keys, table["key"], table["S"])
    return L, M, S


def nearest_lms(key: float, table: np.ndarray) -> LMS:
    """
    Resolve LMS parameters from the table row closest to ``key``.

    The key is first rounded half-up to a whole number; ties between two rows
    resolve to the lower key.

    Raises:
        ComputationError: If the key is not finite.
    """
    if not math.isfinite(key):
        raise ComputationError(f"Lookup key must be finite, got {key}")
    rounded = math.floor(key + 0.5)
    idx = int(np.argmin(np.abs(table["key"] - rounded)))
    return _row(table, idx)


def nearest_lms_array(
    keys: np.ndarray, table: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized form of nearest_lms."""
    rounded = np.floor(np.asarray(keys, dtype=np.float64) + 0.5)
    idx = np.argmin(np.abs(table["key"][np.newaxis, :] - rounded[:, np.newaxis]), axis=1)
    return table["L"][idx], table["M"][idx], table["S"][idx]


def _row(table: np.ndarray, idx: int) -> LMS:
    row = table[idx]
    return LMS(
        key=float(row["key"]), L=float(row["L"]), M=float(row["M"]), S=float(row["S"])
    )


# Height-keyed tables use the nearest row; see DESIGN.md (Q1).
LMS_LOOKUP: Dict[Indicator, LookupFunc] = {
    indicator: nearest_lms if indicator.keyed_by_height else interpolate_lms
    for indicator in Indicator
}


def zscore_for_indicator(
    value: float,
    key: float,
    table: np.ndarray,
    indicator: Optional[Indicator] = None,
    lookup: Optional[LookupFunc] = None,
) -> ZScoreResult:
    """
    Compute the Z-score result of one measurement against a reference table.

    Args:
        value: Measured value (kg or cm)
        key: Age in months, or height in cm for weight-for-height
        table: Reference table for the indicator and sex
        indicator: Indicator being measured, selects the lookup and message
        lookup: Override the LMS lookup (defaults to the indicator's lookup,
            or interpolation when no indicator is given)

    Raises:
        ComputationError: If the value or resolved M/S is non-positive, or
            the key is not finite.
    """
    if lookup is None:
        lookup = LMS_LOOKUP[indicator] if indicator is not None else interpolate_lms
    lms = lookup(key, table)
    z_score = calculate_zscore(value, lms.L, lms.M, lms.S)
    status, message = get_growth_status(z_score, indicator)
    return ZScoreResult(
        z_score=z_score,
        percentile=zscore_to_percentile(z_score),
        status=status,
        message=message,
    )


def calculate_weight_for_age_zscore(
    weight: float, age_in_months: float, sex: Sex
) -> ZScoreResult:
    """Weight-for-age Z-score (weight in kg)."""
    table = get_reference_table(Indicator.WEIGHT_FOR_AGE, sex)
    return zscore_for_indicator(weight, age_in_months, table, Indicator.WEIGHT_FOR_AGE)


def calculate_height_for_age_zscore(
    height: float, age_in_months: float, sex: Sex
) -> ZScoreResult:
    """Height-for-age Z-score (height in cm)."""
    table = get_reference_table(Indicator.HEIGHT_FOR_AGE, sex)
    return zscore_for_indicator(height, age_in_months, table, Indicator.HEIGHT_FOR_AGE)


def calculate_weight_for_height_zscore(
    weight: float, height: float, sex: Sex, interpolate: bool = False
) -> ZScoreResult:
    """
    Weight-for-height Z-score.

    By default the LMS row whose height is closest to the rounded height is
    used. Pass ``interpolate=True`` to interpolate between rows like the
    age-based indicators do.
    """
    table = get_reference_table(Indicator.WEIGHT_FOR_HEIGHT, sex)
    return zscore_for_indicator(
        weight,
        height,
        table,
        Indicator.WEIGHT_FOR_HEIGHT,
        lookup=interpolate_lms if interpolate else None,
    )


def calculate_head_circumference_for_age_zscore(
    head_circumference: float, age_in_months: float, sex: Sex
) -> ZScoreResult:
    """Head-circumference-for-age Z-score (circumference in cm)."""
    table = get_reference_table(Indicator.HEAD_CIRCUMFERENCE_FOR_AGE, sex)
    return zscore_for_indicator(
        head_circumference, age_in_months, table, Indicator.HEAD_CIRCUMFERENCE_FOR_AGE
    )


def get_growth_status_classification(z_score: float) -> GrowthClassification:
    """Coarse nutritional classification with a display color and priority."""
    if z_score < -3:
        return GrowthClassification(
            classification="severely_underweight", color="red", priority="high"
        )
    elif z_score < -2:
        return GrowthClassification(
            classification="underweight", color="orange", priority="medium"
        )
    elif z_score <= 1:
        return GrowthClassification(
            classification="normal", color="green", priority="low"
        )
    elif z_score <= 2:
        return GrowthClassification(
            classification="overweight", color="yellow", priority="medium"
        )
    return GrowthClassification(classification="obese", color="red", priority="high")


def calculate_bmi_for_age(
    weight: float, height: float, age_in_months: float, sex: Sex
) -> BMIResult:
    """
    BMI with a weight-for-height based assessment for children 24 months and older.

    Younger children only get the raw BMI value.
    """
    height_m = height / 100.0
    bmi = weight / (height_m * height_m)
    if age_in_months < BMI_FOR_AGE_MIN_MONTHS:
        return BMIResult(bmi=bmi)

    wfh = calculate_weight_for_height_zscore(weight, height, sex)
    return BMIResult(
        bmi=bmi,
        z_score=wfh.z_score,
        status=wfh.status,
        message=f"BMI: {bmi:.1f} kg/m². {wfh.message}",
    )


def _curve_column(z: float) -> str:
    return f"SD{abs(z):g}neg" if z < 0 else f"SD{z:g}"


def reference_curves(
    indicator: Indicator,
    sex: Sex,
    z_scores: Iterable[float] = REFERENCE_CURVE_Z_SCORES,
) -> pd.DataFrame:
    """
    Reference lines for a growth chart.

    Returns one row per table key with the LMS parameters and the measurement
    value at each requested Z-score (columns SD3neg, SD2neg, SD0, SD2, SD3 by
    default).
    """
    table = get_reference_table(indicator, sex)
    curves = pd.DataFrame(
        {name: np.asarray(table[name]) for name in ("key", "L", "M", "S")}
    )
    for z in z_scores:
        curves[_curve_column(z)] = [
            zscore_to_value(z, row.L, row.M, row.S)
            for row in curves.itertuples(index=False)
        ]
    return curves


def percentile_curves(
    indicator: Indicator,
    sex: Sex,
    percentiles: Sequence[float] = (3.0, 15.0, 50.0, 85.0, 97.0),
) -> pd.DataFrame:
    """Reference lines at percentiles (columns P3, P15, P50, ...)."""
    curves = reference_curves(indicator, sex, z_scores=())
    for p in percentiles:
        z = percentile_to_zscore(p)
        curves[f"P{p:g}"] = [
            zscore_to_value(z, row.L, row.M, row.S)
            for row in curves.itertuples(index=False)
        ]
    return curves
