"""
Logging setup for the glacier melt pipeline.

Handlers are attached to the ``glacier_melt`` package logger rather than the
root logger, so an application embedding the pipeline keeps its own logging.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import MeltConfig
from .utils import ensure_directory_exists

PACKAGE_LOGGER = 'glacier_melt'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Chart rendering libraries that are chatty at DEBUG level
NOISY_LOGGERS = ('matplotlib', 'PIL', 'fontTools')


def resolve_log_level(log_level: str, verbose: bool = False) -> int:
    """Translate a configured level name, with ``verbose`` forcing DEBUG."""
    if verbose:
        return logging.DEBUG
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def resolve_log_file(config: MeltConfig) -> Optional[Path]:
    """Relative log files are written into the configured output directory."""
    if not config.log_file:
        return None
    path = Path(config.log_file).expanduser()
    if not path.is_absolute():
        path = Path(config.output_dir) / path
    ensure_directory_exists(path.parent)
    return path


def setup_logging(config: MeltConfig, verbose: bool = False) -> logging.Logger:
    """
    Configure the package logger from a MeltConfig and command line options.

    Calling it again replaces the handlers from the previous call.

    Args:
        config: MeltConfig carrying ``log_level``, ``log_file`` and ``output_dir``
        verbose: Enable debug logging regardless of ``log_level``

    Returns:
        The configured package logger
    """
    level = resolve_log_level(config.log_level, verbose)
    formatter = logging.Formatter(LOG_FORMAT)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    package_logger.propagate = False

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    log_path = resolve_log_file(config)
    if log_path is not None:
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    package_logger.debug(f"Logging at {logging.getLevelName(level)}"
                         + (f", also to {log_path}" if log_path else ""))
    return package_logger
