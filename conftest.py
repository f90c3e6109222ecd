"""
Shared fixtures for the glacier melt tests.
"""

import logging
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the current directory to Python path
sys.path.insert(0, str(Path(__file__).parent))

from glacier_melt import SeasonalWindow


@pytest.fixture
def windows():
    return {
        2005: SeasonalWindow(2005, 6, 9),
        2006: SeasonalWindow(2006, 5, 10),
    }


@pytest.fixture
def climate_frame():
    """Raw climate table for 2005 using the source column names."""
    return pd.DataFrame({
        'STATION': ['USS0001'] * 6,
        'LONGITUDE': [-121.5] * 6,
        'LATITUDE': [48.7] * 6,
        'NAME': ['GLACIER BASIN'] * 6,
        'DATE': ['2005-05-31', '2005-06-01', '2005-06-02', '2005-06-03', '2005-06-04', '2005-10-01'],
        'TAVG': [8.0, 2.0, -1.0, 0.0, 5.0, 3.0],
    })


@pytest.fixture
def discharge_frame():
    """Raw discharge table spanning 2005 and 2006."""
    return pd.DataFrame({
        'agency_cd': ['USGS'] * 5,
        'site_no': ['012345'] * 5,
        'datetime': ['2005-06-01', '2005-06-02', '2005-07-15', '2006-05-01', '2006-11-01'],
        'discharge': [100.0, 120.0, 300.0, 80.0, 50.0],
    })


@pytest.fixture
def write_csv(tmp_path):
    """Write a DataFrame to a CSV in tmp_path and return the path."""
    def _write(df, name):
        path = tmp_path / name
        df.to_csv(path, index=False)
        return str(path)
    return _write


@pytest.fixture
def restore_logging():
    """The CLI reconfigures the package logger; put it back afterwards."""
    package_logger = logging.getLogger('glacier_melt')
    handlers = package_logger.handlers[:]
    level, propagate = package_logger.level, package_logger.propagate
    yield package_logger
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = propagate
