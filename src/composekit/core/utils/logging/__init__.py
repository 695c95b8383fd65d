"""Logging utilities for the composekit package."""

import logging
import sys

# Create global logger instance
logger = logging.getLogger("composekit")


def setup_composekit_logging(level: int = logging.INFO) -> None:
    """
    Setup logging with a clean format for the composekit package.

    Args:
        level: Logging level (default: INFO)
    """
    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    # Use stdout stream handler so build logs interleave with command output
    logging_handler = logging.StreamHandler(sys.stdout)
    logging_formatter = logging.Formatter("[composekit] [%(levelname)s] %(message)s")

    logging_handler.setFormatter(logging_formatter)
    logger.addHandler(logging_handler)
    logger.setLevel(level)
    logger.propagate = False  # Don't propagate to root logger


__all__ = [
    "logger",
    "setup_composekit_logging",
]
