"""Logging setup for proctop."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from proctop.config import MonitorConfig

LOGGER_NAME = "proctop"


def setup_logging(config: MonitorConfig) -> logging.Logger:
    """
    Configure the 'proctop' logger to write to a rotating file.

    The terminal is owned by the UI, so nothing is written to a stream
    handler. Calling this twice does not add duplicate handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not logger.handlers:
        log_dir = os.path.dirname(config.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        fh = RotatingFileHandler(config.log_file, maxBytes=5 * 1024 * 1024, backupCount=3)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    logger.setLevel(config.log_level)
    logger.propagate = False
    return logger


def log_fatal(message: str) -> None:
    """Log a fatal condition and echo it to stderr regardless of level."""
    logging.getLogger(LOGGER_NAME).critical(message)
    print(f"[FATAL] {message}", file=sys.stderr)
