import datetime
from typing import Callable, List, Sequence

import pytest

from growthz.models import Child, GrowthDataPoint, Measurement, Sex
from growthz.reference import load_reference_data
from growthz.zscores import classify_zscore


@pytest.fixture
def boy() -> Child:
    """Boy born on 2023-01-01."""
    return Child(birth_date=datetime.date(2023, 1, 1), sex=Sex.MALE)


@pytest.fixture
def median_boy_measurements() -> List[Measurement]:
    """WHO median weight/height for a boy at 6, 9 and 12 months, no head circumference."""
    return [
        Measurement(date=datetime.date(2023, 7, 1), weight=7.934, height=67.6236),
        Measurement(date=datetime.date(2023, 10, 1), weight=8.9014, height=71.9687),
        Measurement(date=datetime.date(2024, 1, 1), weight=9.6479, height=75.7488),
    ]


@pytest.fixture
def make_points() -> Callable[..., List[GrowthDataPoint]]:
    """Build data points from ages and Z-scores; values default to 10 + age."""

    def _make(
        ages: Sequence[float],
        z_scores: Sequence[float],
        values: Sequence[float] = None,
    ) -> List[GrowthDataPoint]:
        if values is None:
            values = [10.0 + a for a in ages]
        start = datetime.date(2023, 1, 1)
        return [
            GrowthDataPoint(
                date=start + datetime.timedelta(days=int(age * 30)),
                age_in_months=age,
                value=value,
                z_score=z,
                status=classify_zscore(z),
            )
            for age, z, value in zip(ages, z_scores, values)
        ]

    return _make


@pytest.fixture
def clear_reference_cache():
    """Drop the cached reference tables before and after the test."""
    load_reference_data.cache_clear()
    yield
    load_reference_data.cache_clear()
