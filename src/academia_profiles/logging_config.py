"""Logging configuration for academia-profiles.

All modules log under the ``academia_profiles`` namespace. Output goes to
stderr because the CLIs print JSON documents on stdout.
"""

import logging
import sys
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Connection pool chatter from the HTTP stack; shown only at DEBUG
NOISY_LOGGERS = ("urllib3", "requests")


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    format_string: str | None = None
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Also write to this file (created with its parent directory)
        format_string: Custom format string

    Returns:
        The ``academia_profiles`` logger
    """
    log_level = getattr(logging, level.upper())
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logger = logging.getLogger("academia_profiles")
    logger.setLevel(log_level)
    logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(log_level if log_level <= logging.DEBUG else logging.WARNING)

    return logger

