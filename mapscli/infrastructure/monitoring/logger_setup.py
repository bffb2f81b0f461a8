"""Centralized logging configuration for the mapscli application.

Sets up standard Python logging with appropriate levels, formatters,
and handlers (console, optional file).
"""

import logging
import sys
from typing import Optional

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = None


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = DEFAULT_LOG_FILE
) -> None:
    """Configures the root logger for the application.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, logging.INFO).
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers attached to the root logger
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    # Console output goes to stderr so results on stdout stay clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}")
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")

    logging.info(f"Logging configured. Level={logging.getLevelName(log_level)}")


def level_from_name(name: Optional[str], default: int = DEFAULT_LOG_LEVEL) -> int:
    """Maps 'DEBUG', 'info', ... to a logging level."""
    if not name:
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default
