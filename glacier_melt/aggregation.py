"""
Monthly aggregation and melt/discharge comparison.

Daily melt and discharge are summed per (year, month), joined with a full
outer join so that months present in only one source keep a null on the
other side, and compared through a Pearson correlation and per-year
summary statistics. Nulls are excluded from every statistic, never
treated as zero.
"""

import logging

import numpy as np
import pandas as pd

from .exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

GROUP_KEYS = ['year', 'month']
MONTHLY_COLUMNS = ['year', 'month', 'total_melt', 'total_discharge']
SUMMARY_COLUMNS = ['year', 'mean_melt', 'sd_melt', 'mean_discharge', 'sd_discharge']


def monthly_totals(records: pd.DataFrame, value_column: str, total_column: str) -> pd.DataFrame:
    """
    Sum a daily quantity over each (year, month).

    The derived ``year`` and ``month`` columns set at load time are used as the
    grouping key; dates are not re-parsed.

    Args:
        records: Daily records with ``year``, ``month`` and ``value_column``
        value_column: Column to sum
        total_column: Name of the summed column in the output

    Returns:
        DataFrame with columns year, month, ``total_column``; one row per key
    """
    if records.empty:
        return pd.DataFrame({'year': pd.Series(dtype=int),
                             'month': pd.Series(dtype=int),
                             total_column: pd.Series(dtype=float)})

    totals = (
        records.groupby(GROUP_KEYS, sort=True)[value_column]
        .sum()
        .astype(float)
        .rename(total_column)
        .reset_index()
    )
    return totals


def combine_monthly(melt: pd.DataFrame, discharge: pd.DataFrame) -> pd.DataFrame:
    """
    Join monthly melt and discharge totals on (year, month).

    Every key present in either input appears exactly once. A month with no melt
    records has ``total_melt`` NaN, and likewise for discharge.

    Args:
        melt: Daily melt records (``daily_melt`` column)
        discharge: Daily discharge records (``value`` column)

    Returns:
        MonthlyAggregate table sorted by year and month
    """
    melt_totals = monthly_totals(melt, 'daily_melt', 'total_melt')
    discharge_totals = monthly_totals(discharge, 'value', 'total_discharge')

    combined = pd.merge(melt_totals, discharge_totals, on=GROUP_KEYS, how='outer', sort=True)
    combined = combined.astype({'year': int, 'month': int,
                                'total_melt': float, 'total_discharge': float})
    combined = combined[MONTHLY_COLUMNS].sort_values(GROUP_KEYS).reset_index(drop=True)

    only_melt = int((combined['total_melt'].notna() & combined['total_discharge'].isna()).sum())
    only_discharge = int((combined['total_melt'].isna() & combined['total_discharge'].notna()).sum())
    logger.info(f"Combined {len(combined)} monthly rows "
                f"({only_melt} melt-only, {only_discharge} discharge-only)")
    return combined


def paired_months(monthly: pd.DataFrame) -> pd.DataFrame:
    """Rows where both melt and discharge totals are present."""
    return monthly.dropna(subset=['total_melt', 'total_discharge'])


def melt_discharge_correlation(monthly: pd.DataFrame, min_rows: int = 2) -> float:
    """
    Pearson correlation between monthly melt and discharge totals.

    Only months with both totals present take part.

    Raises:
        InsufficientDataError: If fewer than ``min_rows`` paired months exist, or
            either series is constant so that r is undefined
    """
    paired = paired_months(monthly)
    if len(paired) < max(min_rows, 2):
        raise InsufficientDataError(f"Correlation needs at least {max(min_rows, 2)} months with both "
                                    f"melt and discharge, found {len(paired)}")

    melt = paired['total_melt'].to_numpy(dtype=float)
    discharge = paired['total_discharge'].to_numpy(dtype=float)
    if np.std(melt) == 0 or np.std(discharge) == 0:
        raise InsufficientDataError("Correlation is undefined when melt or discharge is constant "
                                    "across all paired months")

    r = float(paired['total_melt'].corr(paired['total_discharge'], method='pearson'))
    logger.info(f"Pearson r between monthly melt and discharge: {r:.4f} (n={len(paired)})")
    return r


def yearly_summary(monthly: pd.DataFrame) -> pd.DataFrame:
    """
    Per-year mean and sample standard deviation of the monthly totals.

    Statistics use present values only; the standard deviation uses an n-1
    denominator and is NaN for a year with fewer than two present values.
    """
    if monthly.empty:
        return pd.DataFrame({column: pd.Series(dtype=int if column == 'year' else float)
                             for column in SUMMARY_COLUMNS})

    grouped = monthly.groupby('year', sort=True)
    summary = pd.DataFrame({
        'mean_melt': grouped['total_melt'].mean(),
        'sd_melt': grouped['total_melt'].std(ddof=1),
        'mean_discharge': grouped['total_discharge'].mean(),
        'sd_discharge': grouped['total_discharge'].std(ddof=1),
    }).reset_index()
    return summary[SUMMARY_COLUMNS]
