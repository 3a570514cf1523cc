"""
Logging configuration for the Aurora shop.

A single ``aurora`` logger writes to stdout; modules ask for children of it
through :func:`get_logger`.
"""
import logging
import sys

from aurora.core.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
logger = logging.getLogger("aurora")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional name for the logger (appended to 'aurora')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"aurora.{name}")
    return logger
