"""
Glacier Melt Pipeline

Estimates glacier melt from daily air temperature with a degree-day model,
aggregates melt and observed discharge to monthly totals, and compares them.
"""

__version__ = "1.0.0"

from .config import MeltConfig
from .windows import SeasonalWindow, build_window_map
from .exceptions import GlacierMeltError, DataFormatError, InsufficientDataError
from .loaders import load_climate_records, load_discharge_records
from .melt import degree_day_melt, calculate_melt
from .aggregation import combine_monthly, melt_discharge_correlation, yearly_summary
from .pipeline import MeltPipeline, PipelineResult

__all__ = [
    "MeltConfig",
    "SeasonalWindow",
    "build_window_map",
    "GlacierMeltError",
    "DataFormatError",
    "InsufficientDataError",
    "load_climate_records",
    "load_discharge_records",
    "degree_day_melt",
    "calculate_melt",
    "combine_monthly",
    "melt_discharge_correlation",
    "yearly_summary",
    "MeltPipeline",
    "PipelineResult",
]
