"""
Logging configuration for the ``bump_covers`` namespace.

The library itself only creates module loggers; applications (or notebooks)
call :func:`setup_logging` once to see their output.
"""
import logging
import sys
from typing import Optional


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger of the 'bump_covers' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG for per-stage covering output).
        log_file: Optional path to also write logs to.

    Returns:
        The configured namespace logger.
    """
    logger = logging.getLogger("bump_covers")
    logger.setLevel(level)

    # Avoid duplicate handlers when called again (e.g. notebook re-runs)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
