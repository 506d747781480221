"""Logging setup for benchwrap.

Verbose mode is the only user-visible logging: command lines and raw
benchmark output go to stderr at DEBUG. An optional file handler always
logs at DEBUG with timestamps.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "benchwrap"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "benchwrap: %(message)s"


def setup_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the root benchwrap logger.

    Args:
        verbose: If True, echo DEBUG records (commands, raw output) to stderr.
            Otherwise only warnings and errors reach the console.
        log_file: If provided, add a file handler at DEBUG level to this path.

    Returns:
        The configured root logger for benchwrap.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Remove any existing handlers to allow reconfiguration.
    logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    # File handler (always DEBUG).
    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the benchwrap namespace.

    Args:
        name: The logger name (will be prefixed with ``benchwrap.``).

    Returns:
        A configured logger instance.
    """
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
