"""
Exception types raised by the glacier melt pipeline.
"""


class GlacierMeltError(Exception):
    """Base class for pipeline errors."""


class DataFormatError(GlacierMeltError, ValueError):
    """A source file is missing a required column or holds unparseable values."""


class InsufficientDataError(GlacierMeltError):
    """Not enough paired monthly values to compute a statistic."""
