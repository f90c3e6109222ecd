"""
Climate and discharge record loaders.

Source tables are read with pandas, renamed through a declared field mapping,
date-parsed, and restricted to the configured seasonal windows. A source with
a missing column or an unparseable date rejects the whole load.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

import pandas as pd
from tqdm import tqdm

from .config import DEFAULT_CLIMATE_COLUMNS, DEFAULT_DISCHARGE_COLUMNS
from .exceptions import DataFormatError
from .windows import SeasonalWindow

logger = logging.getLogger(__name__)

Source = Union[str, Path, pd.DataFrame]

CLIMATE_FIELDS = ['station_name', 'latitude', 'longitude', 'date', 'mean_temp', 'year', 'month']
DISCHARGE_FIELDS = ['station_id', 'date', 'value', 'year', 'month']


def _describe(source: Source) -> str:
    if isinstance(source, pd.DataFrame):
        return '<DataFrame>'
    return Path(source).name


def read_table(source: Source) -> pd.DataFrame:
    """Read a CSV source, or pass an in-memory DataFrame through."""
    if isinstance(source, pd.DataFrame):
        return source.copy()
    # Everything as text so that station ids keep leading zeros and dates stay unparsed
    return pd.read_csv(source, dtype=str, skipinitialspace=True)


def normalize_columns(df: pd.DataFrame, mapping: Mapping[str, str], source: str = '') -> pd.DataFrame:
    """
    Select and rename columns through a declared field mapping.

    Args:
        df: Raw source table
        mapping: Source column name -> canonical column name
        source: Source description used in error messages

    Returns:
        DataFrame holding only the mapped columns, under their canonical names

    Raises:
        DataFormatError: If any mapped source column is absent
    """
    columns = {str(col).strip(): col for col in df.columns}
    missing = [name for name in mapping if name not in columns]
    if missing:
        raise DataFormatError(f"{source or 'source'} is missing required columns: {missing}")

    selected = df[[columns[name] for name in mapping]].copy()
    selected.columns = list(mapping.values())
    return selected


def parse_dates(df: pd.DataFrame, source: str = '', date_format: Optional[str] = None) -> pd.DataFrame:
    """
    Parse the ``date`` column and derive ``year`` and ``month``.

    Raises:
        DataFormatError: If any date is missing or cannot be parsed. The load is
            rejected as a whole rather than skipping rows.
    """
    raw = df['date']
    parsed = pd.to_datetime(raw, format=date_format, errors='coerce')
    bad = parsed.isna()
    if bad.any():
        positions = [int(i) for i, flag in enumerate(bad.to_numpy()) if flag]
        examples = [raw.iloc[i] for i in positions[:5]]
        raise DataFormatError(f"{source or 'source'} has {len(positions)} unparseable dates "
                              f"at rows {positions[:5]} (values {examples})")

    df = df.copy()
    df['date'] = parsed
    df['year'] = parsed.dt.year.astype(int)
    df['month'] = parsed.dt.month.astype(int)
    return df


def filter_to_windows(df: pd.DataFrame, windows: Mapping[int, SeasonalWindow]) -> pd.DataFrame:
    """
    Keep rows whose year has a window and whose month lies inside it.

    Relative input order is preserved. Years absent from ``windows`` are dropped.
    """
    keep = [int(year) in windows and windows[int(year)].contains(int(month))
            for year, month in zip(df['year'], df['month'])]
    mask = pd.Series(keep, index=df.index, dtype=bool)
    return df.loc[mask].reset_index(drop=True)


def _check_mapping(mapping: Mapping[str, str], fields, kind: str) -> None:
    missing = [name for name in fields if name not in ('year', 'month') and name not in mapping.values()]
    if missing:
        raise ValueError(f"{kind} column mapping does not provide {missing}")


def _to_float(df: pd.DataFrame, column: str, source: str, strict: bool = False) -> pd.Series:
    values = pd.to_numeric(df[column], errors='coerce')
    if strict:
        bad = values.isna()
        if bad.any():
            dates = df.loc[bad, 'date'].dt.strftime('%Y-%m-%d').tolist()
            raise DataFormatError(f"{source} has {len(dates)} non-numeric '{column}' values "
                                  f"on {dates[:5]} (values {df.loc[bad, column].tolist()[:5]})")
    return values


def _prepare_climate(raw: pd.DataFrame, mapping: Mapping[str, str], source: str,
                     windows: Mapping[int, SeasonalWindow],
                     date_format: Optional[str]) -> pd.DataFrame:
    df = normalize_columns(raw, mapping, source)
    df = parse_dates(df, source, date_format)
    # Numeric checks apply to retained rows only
    df = filter_to_windows(df, windows)
    df['latitude'] = _to_float(df, 'latitude', source, strict=True)
    df['longitude'] = _to_float(df, 'longitude', source, strict=True)
    # Temperatures stay as read; the melt calculation rejects anything non-numeric.
    df['mean_temp'] = df['mean_temp'].map(_numeric_or_raw)
    return df[CLIMATE_FIELDS]


def _numeric_or_raw(value):
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def load_climate_records(sources: Union[Mapping[int, Source], Iterable[Source]],
                         windows: Mapping[int, SeasonalWindow],
                         mapping: Optional[Mapping[str, str]] = None,
                         date_format: Optional[str] = None) -> pd.DataFrame:
    """
    Load climate records from one or more sources and restrict them to the seasonal windows.

    Args:
        sources: Year -> source mapping, or an iterable of sources
        windows: Year -> SeasonalWindow
        mapping: Source column -> canonical column (defaults to DEFAULT_CLIMATE_COLUMNS)
        date_format: Optional explicit strptime format for the date column

    Returns:
        DataFrame of ClimateRecord rows in input order
    """
    mapping = mapping or DEFAULT_CLIMATE_COLUMNS
    _check_mapping(mapping, CLIMATE_FIELDS, 'Climate')
    if isinstance(sources, Mapping):
        sources = [sources[year] for year in sorted(sources)]
    else:
        sources = list(sources)

    frames = []
    total_rows = 0
    for source in tqdm(sources, desc="Loading climate files", disable=len(sources) < 2):
        name = _describe(source)
        raw = read_table(source)
        total_rows += len(raw)
        frames.append(_prepare_climate(raw, mapping, name, windows, date_format))
        logger.debug(f"Kept {len(frames[-1])} of {len(raw)} climate rows from {name}")

    if not frames:
        return pd.DataFrame(columns=CLIMATE_FIELDS)

    combined = pd.concat(frames, ignore_index=True)
    logger.info(f"Loaded {len(combined)} climate records from {len(frames)} sources "
                f"({total_rows - len(combined)} outside seasonal windows)")
    return combined


def load_discharge_records(source: Source,
                           windows: Mapping[int, SeasonalWindow],
                           mapping: Optional[Mapping[str, str]] = None,
                           date_format: Optional[str] = None) -> pd.DataFrame:
    """
    Load discharge records and restrict them to the seasonal windows.

    Rows outside the windows are dropped before the flow values are checked,
    so off-season gauge codes such as 'Ice' do not reject the load.

    Raises:
        DataFormatError: On a missing column, an unparseable date or a non-numeric
            flow value inside a window
    """
    mapping = mapping or DEFAULT_DISCHARGE_COLUMNS
    _check_mapping(mapping, DISCHARGE_FIELDS, 'Discharge')
    name = _describe(source)

    df = normalize_columns(read_table(source), mapping, name)
    df = parse_dates(df, name, date_format)
    df['station_id'] = df['station_id'].astype(str)
    df = df[DISCHARGE_FIELDS]

    filtered = filter_to_windows(df, windows)
    filtered['value'] = _to_float(filtered, 'value', name, strict=True)
    logger.info(f"Loaded {len(filtered)} discharge records from {name} "
                f"({len(df) - len(filtered)} outside seasonal windows)")
    return filtered


def windows_summary(windows: Mapping[int, SeasonalWindow]) -> Dict[int, str]:
    """Human readable window description per year, for logging."""
    return {year: f"{window.month_start:02d}-{window.month_end:02d} ({window.length} months)"
            for year, window in windows.items()}
