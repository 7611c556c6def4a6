"""
PulseGuard Logging

Console logging for CI jobs. Diagnostic output (scanner stdout, file
listings, full payloads) is only emitted at DEBUG, which DEBUG_MODE=true
or --debug turns on.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOGGER_NAME = "pulseguard"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        original_levelname = record.levelname
        record.levelname = f"{color}{record.levelname}{reset}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


def setup_logger(debug: bool = False, color: Optional[bool] = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        debug: Log at DEBUG instead of INFO.
        color: Force colored level names on or off. Defaults to on when
            stderr is a terminal.

    Returns:
        The configured "pulseguard" logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    if color is None:
        color = sys.stderr.isatty()

    handler = logging.StreamHandler(sys.stderr)
    fmt = "%(asctime)s | %(levelname)-8s | %(message)s"
    formatter_cls = ColoredFormatter if color else logging.Formatter
    handler.setFormatter(formatter_cls(fmt, datefmt="%H:%M:%S"))
    logger.addHandler(handler)

    return logger
