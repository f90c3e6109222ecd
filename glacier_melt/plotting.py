"""
Charts comparing modeled melt with observed discharge.
"""

import logging
from typing import Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .aggregation import paired_months

logger = logging.getLogger(__name__)


def _month_labels(monthly: pd.DataFrame) -> pd.Series:
    return monthly['year'].astype(str) + '-' + monthly['month'].map('{:02d}'.format)


def plot_monthly_timeseries(monthly: pd.DataFrame, output_path: str) -> str:
    """
    Plot monthly melt and discharge totals side by side on twin y-axes.

    Months missing one side are left as gaps rather than drawn at zero.
    """
    sns.set_theme(style='whitegrid')
    fig, ax1 = plt.subplots(figsize=(12, 6))

    labels = _month_labels(monthly)
    x = range(len(monthly))

    ax1.bar([i - 0.2 for i in x], monthly['total_melt'], width=0.4,
            color='tab:blue', alpha=0.8, label='Modeled melt')
    ax1.set_xlabel('Month')
    ax1.set_ylabel('Total melt (mm w.e.)', color='tab:blue')
    ax1.set_xticks(list(x))
    ax1.set_xticklabels(labels, rotation=45, ha='right')

    ax2 = ax1.twinx()
    ax2.plot(list(x), monthly['total_discharge'], color='tab:orange', marker='o',
             label='Observed discharge')
    ax2.set_ylabel('Total discharge', color='tab:orange')
    ax2.grid(False)

    handles1, labels1 = ax1.get_legend_handles_labels()
    handles2, labels2 = ax2.get_legend_handles_labels()
    ax1.legend(handles1 + handles2, labels1 + labels2, loc='upper left')
    ax1.set_title('Monthly Glacier Melt vs Discharge')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Saved monthly time series plot to {output_path}")
    return str(output_path)


def plot_melt_vs_discharge(monthly: pd.DataFrame, correlation: Optional[float], output_path: str) -> str:
    """Scatter monthly melt against discharge for months where both are present."""
    sns.set_theme(style='whitegrid')
    paired = paired_months(monthly)

    fig, ax = plt.subplots(figsize=(8, 6))
    if correlation is not None:
        sns.regplot(data=paired, x='total_melt', y='total_discharge', ax=ax,
                    ci=None, scatter_kws={'alpha': 0.7})
    else:
        ax.scatter(paired['total_melt'], paired['total_discharge'], alpha=0.7)

    ax.set_xlabel('Total melt (mm w.e.)')
    ax.set_ylabel('Total discharge')
    if correlation is None:
        ax.set_title('Melt vs Discharge (insufficient data for correlation)')
    else:
        ax.set_title(f'Melt vs Discharge (Pearson r = {correlation:.3f}, n = {len(paired)})')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Saved melt/discharge scatter plot to {output_path}")
    return str(output_path)
