"""
Tabular and text outputs of a pipeline run.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .aggregation import paired_months
from .utils import ensure_directory_exists

logger = logging.getLogger(__name__)

MONTHLY_FILENAME = 'monthly_melt_discharge.csv'
SUMMARY_FILENAME = 'yearly_summary.csv'
REPORT_FILENAME = 'melt_report.txt'


def _fmt(value) -> str:
    return 'NA' if pd.isna(value) else f"{value:.2f}"


def format_summary_table(year_summary: pd.DataFrame) -> str:
    """Render the per-year summary as a fixed-width text table."""
    header = f"{'Year':>6} {'Mean melt':>12} {'SD melt':>12} {'Mean Q':>12} {'SD Q':>12}"
    lines = [header, '-' * len(header)]
    for row in year_summary.itertuples(index=False):
        lines.append(f"{int(row.year):>6} {_fmt(row.mean_melt):>12} {_fmt(row.sd_melt):>12} "
                     f"{_fmt(row.mean_discharge):>12} {_fmt(row.sd_discharge):>12}")
    return '\n'.join(lines)


def format_report(monthly: pd.DataFrame, year_summary: pd.DataFrame,
                  correlation: Optional[float], degree_day_factor: float) -> str:
    """Build the plain-text run report."""
    paired = paired_months(monthly)
    lines = [
        "Glacier Melt vs Discharge Report",
        "================================",
        f"Degree-day factor: {degree_day_factor} mm w.e./°C/day",
        f"Monthly rows: {len(monthly)} ({len(paired)} with both melt and discharge)",
        "",
    ]
    if correlation is None:
        lines.append("Correlation: not computed (insufficient data: needs at least 2 months with "
                     "both melt and discharge, and neither series constant)")
    else:
        lines.append(f"Pearson correlation (monthly melt vs discharge): {correlation:.4f}")
    lines += ["", "Yearly Summary:", "--------------", format_summary_table(year_summary), ""]
    return '\n'.join(lines)


def write_report(monthly: pd.DataFrame, year_summary: pd.DataFrame, correlation: Optional[float],
                 degree_day_factor: float, output_dir) -> Dict[str, str]:
    """
    Write the monthly table, the yearly summary and the text report.

    Null totals are written as empty CSV cells.

    Returns:
        Mapping of output kind to written path
    """
    output_dir = ensure_directory_exists(output_dir)

    paths = {
        'monthly': str(Path(output_dir) / MONTHLY_FILENAME),
        'summary': str(Path(output_dir) / SUMMARY_FILENAME),
        'report': str(Path(output_dir) / REPORT_FILENAME),
    }
    monthly.to_csv(paths['monthly'], index=False)
    year_summary.to_csv(paths['summary'], index=False)
    with open(paths['report'], 'w', encoding='utf-8') as f:
        f.write(format_report(monthly, year_summary, correlation, degree_day_factor))

    logger.info(f"Saved monthly table, yearly summary and report to {output_dir}")
    return paths
