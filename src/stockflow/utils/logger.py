"""
Centralized Logging Configuration
==================================
Provides consistent logging across the analytics engine.

Design Decisions:
- Uses Python's built-in logging
- Logs to console, optionally to a file
- Includes timestamps and module names for traceability

Usage:
    from stockflow.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Building usage report")
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

from stockflow.utils.constants import LOGGING_CONFIG


def get_logger(
    name: str,
    log_file: Optional[str] = None,
    level: Optional[int] = None
) -> logging.Logger:
    """
    Create and configure a logger instance.

    Parameters
    ----------
    name : str
        Logger name (typically __name__ of the calling module)
    log_file : str, optional
        Path to log file. Falls back to LOGGING_CONFIG["log_file"];
        if both are None, logs only to console.
    level : int, optional
        Logging level (default: LOGGING_CONFIG["level"])

    Returns
    -------
    logging.Logger
        Configured logger instance

    Example
    -------
    >>> logger = get_logger(__name__)
    >>> logger.info("Forecast started")
    2026-02-04 10:30:00 | INFO     | stockflow.services.forecaster | Forecast started
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    if level is None:
        level = logging.getLevelName(LOGGING_CONFIG["level"])
    log_file = log_file or LOGGING_CONFIG.get("log_file")

    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt=LOGGING_CONFIG["format"],
        datefmt=LOGGING_CONFIG["datefmt"]
    )

    # Console handler - always enabled
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler - if log_file specified
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def log_series_info(logger: logging.Logger, series) -> None:
    """
    Log summary information about a daily usage series.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance
    series : DailyUsageSeries
        The series to summarize
    """
    logger.debug(
        f"Series for item {series.item_id}: {len(series)} days "
        f"({series.start_date} to {series.end_date}), "
        f"total usage {series.total_usage:.2f}"
    )

    zero_days = int((series.values == 0).sum())
    if len(series) > 0 and zero_days == len(series):
        logger.warning(f"Series for item {series.item_id} has no recorded usage")


class LogContext:
    """
    Context manager for structured logging of operations.

    Usage:
        with LogContext(logger, "Building report for item 42"):
            # ... operation code ...
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = (datetime.now() - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation} ({elapsed:.2f}s)")
        else:
            self.logger.error(f"Failed: {self.operation} ({elapsed:.2f}s) - {exc_val}")

        # Don't suppress exceptions
        return False
