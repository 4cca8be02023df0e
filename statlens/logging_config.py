"""Logging setup for applications embedding statlens."""
import logging
import sys
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", log_format: Optional[str] = None) -> logging.Logger:
    """
    Configure console logging for the statlens package.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_format: Custom format string

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(log_format or DEFAULT_FORMAT))

    logger = logging.getLogger("statlens")
    logger.setLevel(numeric_level)
    # Avoid duplicate handlers on repeated setup
    logger.handlers.clear()
    logger.addHandler(handler)

    # Reduce noise from the HTTP stack
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    logger.debug(f"Logging initialized. Level: {level}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the statlens namespace."""
    if name.startswith("statlens"):
        return logging.getLogger(name)
    return logging.getLogger(f"statlens.{name}")
