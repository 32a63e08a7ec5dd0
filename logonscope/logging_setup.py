"""Logging configuration for the command line entry point."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a single stderr handler to the ``logonscope`` logger."""
    logger = logging.getLogger("logonscope")
    logger.setLevel(getattr(logging, str(level).upper(), logging.WARNING))
    if logger.handlers:
        return logger  # Avoid adding duplicate handlers

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger
