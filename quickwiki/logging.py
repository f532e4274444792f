"""Logger hierarchy and handler setup for quickwiki runs."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "quickwiki"

CONSOLE_FORMAT = "[quickwiki] %(levelname)s %(message)s"
VERBOSE_CONSOLE_FORMAT = "[quickwiki] %(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``quickwiki.<name>``, or the package root logger when ``name`` is empty."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route quickwiki records to stderr and, optionally, to ``log_file``.

    Verbose mode lowers the threshold to DEBUG and prefixes each console line
    with the emitting stage's logger name. Calling this again replaces the
    handlers installed by the previous call.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = reset_logging()
    logger.setLevel(level)
    logger.propagate = False

    console_format = VERBOSE_CONSOLE_FORMAT if verbose else CONSOLE_FORMAT
    logger.addHandler(_handler(logging.StreamHandler(), level, console_format))

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT)
        )
    return logger


def reset_logging() -> logging.Logger:
    """Detach and close every handler on the root quickwiki logger."""
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "reset_logging"]
