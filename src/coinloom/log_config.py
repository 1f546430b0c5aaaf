# coinloom/log_config.py
"""Logging configuration for the coinloom library using Loguru.

This module provides a centralized function to configure the Loguru logger
with a standardized format, level, and sink for consistent logging across
the transport, resource and pagination layers.
"""

import sys

from loguru import logger


def configure_logging(level: str = "INFO", sink=sys.stderr):
    """
    Configures Loguru logger.

    Removes default handlers and adds a new one with the specified level and sink.

    Args:
        level: The minimum logging level (e.g., "DEBUG", "INFO", "WARNING").
        sink: The output sink (e.g., sys.stderr, "file.log").
    """
    logger.remove()
    logger.add(
        sink,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=sink is sys.stderr,
        # no local variable values in tracebacks
        backtrace=True,
        diagnose=False,
    )
    logger.info(
        f"Loguru logger configured with level={level.upper()} writing to {sink}"
    )
