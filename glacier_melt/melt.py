"""
Degree-day melt calculation.

Melt is proportional to the positive part of the daily mean air temperature:

    daily_melt = degree_day_factor * max(mean_temp, 0)

with the degree-day factor in mm water equivalent per degree C per day.
"""

import logging
import math
import numbers

import numpy as np
import pandas as pd

from .config import DEFAULT_DEGREE_DAY_FACTOR

logger = logging.getLogger(__name__)


def check_degree_day_factor(degree_day_factor) -> float:
    """Return the factor as a float, rejecting non-numeric, negative or non-finite values."""
    if isinstance(degree_day_factor, bool) or not isinstance(degree_day_factor, numbers.Real):
        raise ValueError(f"Degree-day factor must be a number, got {degree_day_factor!r}")
    factor = float(degree_day_factor)
    if not math.isfinite(factor) or factor < 0:
        raise ValueError(f"Degree-day factor must be finite and non-negative, got {factor}")
    return factor


def degree_day_melt(mean_temp, degree_day_factor: float = DEFAULT_DEGREE_DAY_FACTOR) -> float:
    """
    Calculate daily melt for a single mean temperature.

    Args:
        mean_temp: Daily mean air temperature in degrees C
        degree_day_factor: Melt per positive degree-day (mm w.e. / degree C / day)

    Returns:
        Daily melt in mm water equivalent; exactly 0.0 at or below 0 degrees C

    Raises:
        ValueError: If the temperature is missing or not numeric
    """
    factor = check_degree_day_factor(degree_day_factor)
    if isinstance(mean_temp, bool) or not isinstance(mean_temp, numbers.Real):
        raise ValueError(f"Mean temperature must be numeric, got {mean_temp!r}")
    if math.isnan(mean_temp):
        raise ValueError("Mean temperature is missing (NaN)")
    if mean_temp <= 0:
        return 0.0
    return factor * float(mean_temp)


def calculate_melt(climate: pd.DataFrame, degree_day_factor: float = DEFAULT_DEGREE_DAY_FACTOR) -> pd.DataFrame:
    """
    Add a ``daily_melt`` column to a table of climate records.

    Each row is transformed independently; row order and index are preserved.

    Args:
        climate: DataFrame with a ``mean_temp`` column
        degree_day_factor: Melt per positive degree-day (mm w.e. / degree C / day)

    Returns:
        Copy of ``climate`` with ``daily_melt`` appended

    Raises:
        ValueError: If any temperature is missing or not numeric
    """
    factor = check_degree_day_factor(degree_day_factor)

    temps = climate['mean_temp']
    numeric = pd.to_numeric(temps, errors='coerce')
    # Strings such as "12.5" are not accepted; loaders convert parseable values already
    non_numeric = temps.map(lambda v: isinstance(v, (str, bool)) or v is None)
    bad = numeric.isna() | non_numeric.astype(bool)
    if bad.any():
        position = int(np.flatnonzero(bad.to_numpy())[0])
        raise ValueError(f"{int(bad.sum())} climate records have a missing or non-numeric "
                         f"mean temperature (first at row {position}: {temps.iloc[position]!r})")

    melt = climate.copy()
    melt['daily_melt'] = factor * np.maximum(numeric.to_numpy(dtype=float), 0.0)
    # -0.0 from a zero factor or a negative zero temperature is normalized
    melt['daily_melt'] = melt['daily_melt'] + 0.0

    logger.info(f"Calculated melt for {len(melt)} records (DDF={factor} mm/°C/day, "
                f"{int((melt['daily_melt'] > 0).sum())} melt days)")
    return melt
