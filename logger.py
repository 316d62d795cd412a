"""Logging configuration for the reminder engine."""

import logging
import sys
from datetime import datetime

from config import LOG_DIR


def setup_logging() -> logging.Logger:
    """Set up logging to a dated file and, when interactive, the console."""
    logger = logging.getLogger("productivity_app")
    logger.setLevel(logging.INFO)

    # Clear any existing handlers
    logger.handlers.clear()

    log_file = LOG_DIR / f"{datetime.now().strftime('%Y-%m-%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(file_handler)

    # Console only when attached to a terminal
    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s",
            datefmt="%H:%M:%S"
        ))
        logger.addHandler(console_handler)

    return logger


logger = setup_logging()
