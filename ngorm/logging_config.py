"""
Logging configuration for ngorm.

Modules obtain their logger with ``get_logger(__name__)``; the CLI calls
``setup_logging`` once so records are rendered through rich.
"""

import logging

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "ngorm"


def setup_logging(log_level: str = "WARNING") -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))

    # Clear any existing handlers so repeated setup does not duplicate output
    logger.handlers.clear()

    handler = RichHandler(show_path=False, markup=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(name)
