"""
Seasonal window definitions.

A seasonal window is the inclusive month range, per year, during which
climate and discharge records are retained for analysis. Windows are always
supplied by configuration since the boundaries differ from year to year.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class SeasonalWindow:
    """Inclusive month range for a single year."""
    year: int
    month_start: int
    month_end: int

    def __post_init__(self):
        if not 1 <= self.month_start <= 12 or not 1 <= self.month_end <= 12:
            raise ValueError(f"Window months for {self.year} must be within 1-12, "
                             f"got {self.month_start}-{self.month_end}")
        if self.month_start > self.month_end:
            raise ValueError(f"Window start month {self.month_start} is after "
                             f"end month {self.month_end} for {self.year}")

    @property
    def length(self) -> int:
        """Number of months covered by the window."""
        return self.month_end - self.month_start + 1

    def contains(self, month: int) -> bool:
        return self.month_start <= month <= self.month_end

    def to_list(self) -> list:
        return [self.month_start, self.month_end]

    def __str__(self) -> str:
        return f"{self.year}: months {self.month_start}-{self.month_end}"


def _parse_bounds(year: int, bounds: Any) -> SeasonalWindow:
    if isinstance(bounds, SeasonalWindow):
        return bounds
    if isinstance(bounds, Mapping):
        try:
            start, end = bounds['start'], bounds['end']
        except KeyError:
            raise ValueError(f"Window for {year} needs 'start' and 'end' keys, got {dict(bounds)}")
    else:
        try:
            start, end = bounds
        except (TypeError, ValueError):
            raise ValueError(f"Window for {year} must be a (start, end) pair, got {bounds!r}")
    return SeasonalWindow(int(year), int(start), int(end))


def build_window_map(raw_windows: Mapping[Any, Any]) -> Dict[int, SeasonalWindow]:
    """
    Build a year-keyed window map from configuration values.

    Accepts ``{2005: [6, 9]}``, ``{"2005": {"start": 6, "end": 9}}`` or
    existing SeasonalWindow values. Year keys may be strings (as YAML and
    environment overrides often produce them).

    Args:
        raw_windows: Mapping of year to window bounds

    Returns:
        Dictionary mapping integer year to SeasonalWindow
    """
    windows = {}
    for year, bounds in raw_windows.items():
        try:
            year_int = int(year)
        except (TypeError, ValueError):
            raise ValueError(f"Seasonal window key must be a year, got {year!r}")
        windows[year_int] = _parse_bounds(year_int, bounds)
    return dict(sorted(windows.items()))
