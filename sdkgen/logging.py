"""Logging utilities for sdkgen commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "sdkgen"

CONSOLE_FORMAT = "[sdkgen] %(levelname)s %(message)s"
# Writer and repair calls run on the ``sdkgen-writer`` pool; verbose output
# names the thread so interleaved per-file lines can be told apart.
VERBOSE_FORMAT = "[sdkgen] %(levelname)s %(name)s (%(threadName)s): %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s (%(threadName)s): %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the sdkgen hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the sdkgen logger.

    Console output is terse by default, shows only warnings with ``quiet``,
    and adds logger and thread names with ``verbose`` (which wins over
    ``quiet``). ``log_file`` always records at debug level so a quiet run
    still leaves a full trace behind.
    """
    console_level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False

    # Repeat calls (tests, the service) must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(console_level)
    stream_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT if verbose else CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    logger_level = console_level
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)
        logger_level = logging.DEBUG

    logger.setLevel(logger_level)
    return logger


__all__ = [
    "CONSOLE_FORMAT",
    "FILE_FORMAT",
    "VERBOSE_FORMAT",
    "configure_logging",
    "get_logger",
    "resolve_level",
]
