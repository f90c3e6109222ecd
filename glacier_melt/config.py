"""
Configuration module for the glacier melt pipeline.

This module centralizes all configuration settings and supports YAML configuration
files, environment variables and explicit overrides so the same pipeline can be
pointed at different stations and seasons without code changes.
"""

import logging
import math
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .windows import SeasonalWindow, build_window_map

logger = logging.getLogger(__name__)

DEFAULT_DEGREE_DAY_FACTOR = 5.0

# Source column -> canonical column
DEFAULT_CLIMATE_COLUMNS = {
    'LONGITUDE': 'longitude',
    'LATITUDE': 'latitude',
    'NAME': 'station_name',
    'DATE': 'date',
    'TAVG': 'mean_temp',
}

DEFAULT_DISCHARGE_COLUMNS = {
    'site_no': 'station_id',
    'datetime': 'date',
    'discharge': 'value',
}


class MeltConfig:
    """Configuration class for degree-day melt processing parameters."""

    def __init__(self, config_file: Optional[str] = None, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration with defaults, YAML file, and optional overrides.

        Args:
            config_file: Path to YAML configuration file (defaults to 'config.yaml'
                in the project root)
            config_dict: Optional dictionary to override settings
        """
        self.project_root = Path(__file__).parent.parent

        yaml_config = self._load_yaml_config(config_file)

        # Defaults, then YAML, then environment variables
        self._set_configuration(yaml_config)

        if config_dict:
            for key, value in config_dict.items():
                setattr(self, key, value)

    def _load_yaml_config(self, config_file: Optional[str] = None) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        explicit = config_file is not None
        if config_file is None:
            config_file = self.project_root / 'config.yaml'
        else:
            config_file = Path(config_file)

        if not config_file.exists():
            if explicit:
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            logger.debug(f"No YAML config file found at {config_file}, using defaults")
            return {}

        with open(config_file, 'r') as f:
            yaml_config = yaml.safe_load(f) or {}
        if not isinstance(yaml_config, dict):
            raise ValueError(f"Configuration file {config_file} must contain a mapping")
        self.config_file = str(config_file)
        logger.info(f"Loaded configuration from {config_file}")
        return yaml_config

    def _set_configuration(self, yaml_config: Dict[str, Any]):
        """Set configuration values from YAML config and environment variables."""
        self.config_file = getattr(self, 'config_file', None)

        # Model parameters
        self.degree_day_factor = float(os.getenv('GLACIER_MELT_DEGREE_DAY_FACTOR',
                                                 yaml_config.get('degree_day_factor',
                                                                 DEFAULT_DEGREE_DAY_FACTOR)))
        self.seasonal_windows = yaml_config.get('seasonal_windows', {}) or {}

        # Input sources
        self.climate_files = yaml_config.get('climate_files', {}) or {}
        self.discharge_file = os.getenv('GLACIER_MELT_DISCHARGE_FILE',
                                        yaml_config.get('discharge_file'))
        # A configured mapping replaces the default one
        self.climate_columns = dict(yaml_config.get('climate_columns') or DEFAULT_CLIMATE_COLUMNS)
        self.discharge_columns = dict(yaml_config.get('discharge_columns') or DEFAULT_DISCHARGE_COLUMNS)
        self.date_format = yaml_config.get('date_format')

        # Outputs
        self.output_dir = os.getenv('GLACIER_MELT_OUTPUT_DIR',
                                    yaml_config.get('output_dir', 'output/glacier_melt'))
        self.make_plots = os.getenv('GLACIER_MELT_MAKE_PLOTS',
                                    str(yaml_config.get('make_plots', True))).lower() == 'true'

        # Logging
        self.log_level = os.getenv('GLACIER_MELT_LOG_LEVEL', yaml_config.get('log_level', 'INFO'))
        self.log_file = os.getenv('GLACIER_MELT_LOG_FILE', yaml_config.get('log_file'))

    def seasonal_window_map(self) -> Dict[int, SeasonalWindow]:
        """Get the configured seasonal windows keyed by year."""
        return build_window_map(self.seasonal_windows)

    def climate_sources(self) -> Dict[int, str]:
        """Get climate file paths keyed by year, resolved against the config file location."""
        return {int(year): self._resolve(path) for year, path in sorted(self.climate_files.items(),
                                                                        key=lambda item: int(item[0]))}

    def discharge_source(self) -> Optional[str]:
        return self._resolve(self.discharge_file) if self.discharge_file else None

    def _resolve(self, path: str) -> str:
        path = Path(path).expanduser()
        if path.is_absolute() or self.config_file is None:
            return str(path)
        return str(Path(self.config_file).parent / path)

    def validate(self, require_climate: bool = True, require_discharge: bool = True) -> bool:
        """
        Validate configuration settings.

        Args:
            require_climate: Require configured climate files
            require_discharge: Require a configured discharge file
        """
        if not isinstance(self.degree_day_factor, (int, float)) or isinstance(self.degree_day_factor, bool):
            raise ValueError(f"degree_day_factor must be a number, got {self.degree_day_factor!r}")
        if not math.isfinite(self.degree_day_factor) or self.degree_day_factor < 0:
            raise ValueError(f"degree_day_factor must be finite and non-negative, "
                             f"got {self.degree_day_factor}")

        if not self.seasonal_windows:
            raise ValueError("seasonal_windows must be configured; there is no default season")
        windows = self.seasonal_window_map()

        if require_climate:
            if not self.climate_files:
                raise ValueError("climate_files must map at least one year to a climate file")
            unwindowed = sorted(set(int(year) for year in self.climate_files) - set(windows))
            if unwindowed:
                logger.warning(f"Climate files for years {unwindowed} have no seasonal window "
                               f"and will contribute no records")

        if require_discharge and not self.discharge_file:
            raise ValueError("discharge_file must be configured")

        return True

    def save_config(self, output_file: Optional[str] = None):
        """Save current configuration to YAML file."""
        if output_file is None:
            output_file = self.project_root / 'config.yaml'

        config_dict = self.to_dict()
        config_dict['seasonal_windows'] = {year: window.to_list()
                                           for year, window in self.seasonal_window_map().items()}

        with open(output_file, 'w') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2, sort_keys=False)

        logger.info(f"Configuration saved to {output_file}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'degree_day_factor': self.degree_day_factor,
            'seasonal_windows': dict(self.seasonal_windows),
            'climate_files': dict(self.climate_files),
            'discharge_file': self.discharge_file,
            'climate_columns': dict(self.climate_columns),
            'discharge_columns': dict(self.discharge_columns),
            'date_format': self.date_format,
            'output_dir': self.output_dir,
            'make_plots': self.make_plots,
            'log_level': self.log_level,
            'log_file': self.log_file,
        }

    def __repr__(self) -> str:
        """String representation of configuration."""
        return (f"MeltConfig(ddf={self.degree_day_factor}, "
                f"years={sorted(int(y) for y in self.seasonal_windows)}, output='{self.output_dir}')")
