"""
Handler setup for the ``thermokernels`` logger namespace.

Library modules only create loggers with ``logging.getLogger(__name__)``;
applications and scripts call :func:`setup_logging` once to see kernel
diagnostics (degenerate upwinding, Newton progress).
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "thermokernels"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Attribute marking handlers installed here, so that a repeated call replaces
# them without touching handlers added by the application
_OWNED_MARKER = "_thermokernels_owned"


def _install(logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    setattr(handler, _OWNED_MARKER, True)
    logger.addHandler(handler)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach console and optional file handlers to the package logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO).
        log_file: Optional path of a log file, truncated on setup.
        stream: Console stream, ``sys.stdout`` by default.

    Returns:
        The configured ``thermokernels`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in [h for h in logger.handlers if getattr(h, _OWNED_MARKER, False)]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    _install(logger, logging.StreamHandler(stream if stream is not None else sys.stdout), level, formatter)
    if log_file:
        _install(logger, logging.FileHandler(log_file, mode="w", encoding="utf-8"), level, formatter)

    logger.debug("Logging initialized (level %s, file %s).", logging.getLevelName(level), log_file)
    return logger
