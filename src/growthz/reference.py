"""
WHO Child Growth Standards reference tables.

Tables of LMS (Lambda-Mu-Sigma) parameters for weight-for-age,
height-for-age, weight-for-height and head-circumference-for-age, each split
by sex. Age-based tables are keyed by age in months (0-60); the
weight-for-height table is keyed by height in cm (45-120).

The tables ship as package data and are loaded once, on first use, into
read-only numpy structured arrays with fields ``("key", "L", "M", "S")``.
"""

from typing import Dict, Mapping
import functools
import logging
import types
from importlib import resources

import numpy as np
import pandas as pd

from .models import Indicator, Sex

REFERENCE_FIELDS = ("key", "L", "M", "S")
REFERENCE_DTYPE = [(name, "f8") for name in REFERENCE_FIELDS]
REFERENCE_FILE = "who_lms.csv"


def _get_reference_data_path() -> str:
    """Get path to growth reference data within the package."""
    return "growthz.data"


def table_name(indicator: Indicator, sex: Sex) -> str:
    """Key of the reference array for an indicator/sex pair, e.g. 'weightForAge_male'."""
    return f"{indicator.value}_{sex.code}"


def _frame_to_tables(frame: pd.DataFrame) -> Dict[str, np.ndarray]:
    missing = [c for c in ("indicator", "sex", *REFERENCE_FIELDS) if c not in frame]
    if missing:
        raise ValueError(f"Reference data is missing columns: {missing}")

    tables = {}
    for (indicator, sex), group in frame.groupby(["indicator", "sex"], sort=False):
        rows = group[list(REFERENCE_FIELDS)].to_numpy(dtype=np.float64)
        table = np.array([tuple(row) for row in rows], dtype=REFERENCE_DTYPE)
        table.setflags(write=False)
        tables[f"{indicator}_{sex}"] = table
    return tables


def validate_loaded_data_integrity(data: Mapping[str, np.ndarray]) -> bool:
    """
    Validate integrity of loaded reference data.

    Checks that every indicator/sex table is present, is a structured array
    with the expected fields, has strictly increasing keys (required by the
    interpolation) and positive M and S values. Logs a warning for any issue
    found but doesn't raise.

    Args:
        data: Loaded reference data dictionary

    Returns:
        True if data passes all validation checks, False otherwise
    """
    if not data:
        logging.warning("Loaded reference data is empty")
        return False

    expected_keys = [table_name(i, s) for i in Indicator for s in Sex]
    missing_keys = [key for key in expected_keys if key not in data]
    if missing_keys:
        logging.warning(f"Missing expected reference arrays: {missing_keys}")
        return False

    valid = True
    for key in expected_keys:
        table = data[key]
        if not hasattr(table, "dtype") or table.dtype.names != REFERENCE_FIELDS:
            logging.warning(
                f"Unexpected structure for {key}: expected fields {REFERENCE_FIELDS}"
            )
            valid = False
            continue
        if table.size == 0:
            logging.warning(f"Reference array {key} is empty")
            valid = False
            continue
        if np.any(np.diff(table["key"]) <= 0):
            logging.warning(f"Keys of {key} are not strictly increasing")
            valid = False
        if np.any(table["M"] <= 0) or np.any(table["S"] <= 0):
            logging.warning(f"Non-positive M or S values in {key}")
            valid = False
    return valid


@functools.lru_cache(maxsize=None)
def load_reference_data() -> Mapping[str, np.ndarray]:
    """
    Load WHO growth reference data from package resources.

    Uses importlib.resources so the tables are found wherever the package is
    installed. The result is cached for the life of the process. Both the
    mapping and its arrays are read-only, so one copy is shared safely
    between callers and threads.

    Returns:
        Read-only mapping of '<indicator>_<sex>' to structured arrays of LMS rows.

    Raises:
        FileNotFoundError: If the reference data file cannot be found.
        ValueError: If the data cannot be parsed or fails integrity checks.
    """
    try:
        with (
            resources.files(_get_reference_data_path())
            .joinpath(REFERENCE_FILE)
            .open("rb") as f
        ):
            frame = pd.read_csv(f, float_precision="round_trip")
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Growth reference data file '{REFERENCE_FILE}' not found. "
            "Ensure the growthz package is properly installed."
        ) from None

    try:
        tables = _frame_to_tables(frame)
    except (ValueError, KeyError) as e:
        raise ValueError(f"Failed to load growth reference data: {e}") from e

    if not validate_loaded_data_integrity(tables):
        raise ValueError(
            "Growth reference data failed integrity checks. "
            "The reference data file may be corrupted."
        )
    return types.MappingProxyType(tables)


def get_reference_table(indicator: Indicator, sex: Sex) -> np.ndarray:
    """Return the read-only LMS table for an indicator and sex."""
    return load_reference_data()[table_name(indicator, Sex.parse(sex))]
