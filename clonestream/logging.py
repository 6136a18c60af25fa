"""Process-wide logging setup for the detector, CLI and ingestion service."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "clonestream"
_CONSOLE_FORMAT = "[clonestream] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the ``clonestream`` logger, e.g. ``get_logger("pipeline")``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send clonestream records to stderr, and to ``log_file`` when given.

    ``verbose`` lowers the threshold to DEBUG, which also turns on tracebacks
    in :func:`log_exception`. Safe to call more than once.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    logger.addHandler(_handler(logging.StreamHandler(), level, _CONSOLE_FORMAT))
    if log_file is not None:
        logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), level, _FILE_FORMAT)
        )
    return logger


def log_exception(logger: logging.Logger, message: str, exc: BaseException) -> None:
    """Report ``exc`` as an error; include the traceback only at DEBUG."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.exception("%s: %s", message, exc)
    else:
        logger.error("%s: %s", message, exc)


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "log_exception"]
