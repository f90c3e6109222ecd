"""
Degree-day melt pipeline.

This module contains the MeltPipeline class that orchestrates loading,
melt calculation, monthly aggregation, comparison and reporting.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .aggregation import combine_monthly, melt_discharge_correlation, yearly_summary
from .config import MeltConfig
from .exceptions import InsufficientDataError
from .loaders import load_climate_records, load_discharge_records, windows_summary
from .melt import calculate_melt
from .plotting import plot_melt_vs_discharge, plot_monthly_timeseries
from .report import write_report
from .utils import ensure_directory_exists, log_memory_usage

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outputs of a single pipeline run."""
    melt: pd.DataFrame
    discharge: pd.DataFrame
    monthly: pd.DataFrame
    correlation: Optional[float]
    year_summary: pd.DataFrame
    outputs: Dict[str, str] = field(default_factory=dict)

    @property
    def has_correlation(self) -> bool:
        return self.correlation is not None


class MeltPipeline:
    """Main pipeline class for degree-day melt analysis."""

    def __init__(self, config: MeltConfig):
        """
        Initialize the pipeline.

        Args:
            config: MeltConfig instance with model parameters and input/output locations
        """
        self.config = config

    def run(self, climate_sources=None, discharge_source=None,
            write_outputs: bool = True, strict: bool = False) -> PipelineResult:
        """
        Execute the full workflow.

        Args:
            climate_sources: Optional year -> source mapping (path or DataFrame)
                overriding the configured climate files
            discharge_source: Optional path or DataFrame overriding the configured
                discharge file
            write_outputs: Write tables, report and plots to the output directory
            strict: Re-raise InsufficientDataError from the correlation step
                instead of reporting the condition in the result

        Returns:
            PipelineResult with all intermediate and final tables
        """
        start_time = datetime.now()
        self.config.validate(require_climate=climate_sources is None,
                             require_discharge=discharge_source is None)
        windows = self.config.seasonal_window_map()
        logger.info(f"Starting melt pipeline at {start_time}")
        logger.info(f"Degree-day factor: {self.config.degree_day_factor} mm/°C/day")
        logger.info(f"Seasonal windows: {windows_summary(windows)}")

        if climate_sources is None:
            climate_sources = self.config.climate_sources()
        if discharge_source is None:
            discharge_source = self.config.discharge_source()

        climate = load_climate_records(climate_sources, windows,
                                       self.config.climate_columns, self.config.date_format)
        discharge = load_discharge_records(discharge_source, windows,
                                           self.config.discharge_columns, self.config.date_format)
        log_memory_usage("after loading")

        melt = calculate_melt(climate, self.config.degree_day_factor)

        monthly = combine_monthly(melt, discharge)
        try:
            correlation = melt_discharge_correlation(monthly)
        except InsufficientDataError as e:
            if strict:
                raise
            logger.warning(f"Correlation not computed: {e}")
            correlation = None
        summary = yearly_summary(monthly)
        log_memory_usage("after aggregation")

        result = PipelineResult(melt=melt, discharge=discharge, monthly=monthly,
                                correlation=correlation, year_summary=summary)

        if write_outputs:
            result.outputs = self.write_outputs(result)

        logger.info(f"Melt pipeline completed in {datetime.now() - start_time}")
        return result

    def write_outputs(self, result: PipelineResult) -> Dict[str, str]:
        """Write tables, report and (optionally) plots for a finished run."""
        output_dir = ensure_directory_exists(self.config.output_dir)
        outputs = write_report(result.monthly, result.year_summary, result.correlation,
                               self.config.degree_day_factor, output_dir)

        if self.config.make_plots:
            outputs['timeseries_plot'] = plot_monthly_timeseries(
                result.monthly, str(Path(output_dir) / 'monthly_melt_discharge.png'))
            outputs['scatter_plot'] = plot_melt_vs_discharge(
                result.monthly, result.correlation, str(Path(output_dir) / 'melt_vs_discharge.png'))
        return outputs
