"""Logging utilities for DepSentry.

Every component logger lives under the ``dep_sentry`` namespace and
propagates to a single package logger that owns the rich handler, so one
call to :func:`setup_logging` controls the level of the whole scanner.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

PACKAGE_LOGGER = "dep_sentry"

LOG_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
    "critical": "red bold",
    "debug": "dim",
})


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=Console(stderr=True, theme=LOG_THEME),
            show_time=True,
            show_path=False,
            # OSV summaries may contain square brackets
            markup=False,
        )
        handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s", datefmt="[%X]"))
        logger.addHandler(handler)
        logger.propagate = False
        if logger.level == logging.NOTSET:
            logger.setLevel(logging.INFO)
    return logger


class DepSentryLogger:
    """Component logger writing through the package's rich handler."""

    def __init__(self, name: str) -> None:
        _package_logger()
        self.name = name
        self.logger = logging.getLogger(f"{PACKAGE_LOGGER}.{name}")

    def info(self, msg: str, **kwargs: Any) -> None:
        self.logger.info(msg, extra=kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self.logger.warning(msg, extra=kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self.logger.error(msg, extra=kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at error level with the active traceback."""
        self.logger.exception(msg, extra=kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self.logger.debug(msg, extra=kwargs)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """Configure DepSentry logging for a command-line run.

    Args:
        level: Level for all DepSentry loggers
        log_file: Optional file receiving a plain-text copy of the log
        verbose: Shortcut for ``level=logging.DEBUG``
    """
    if verbose:
        level = logging.DEBUG

    logger = _package_logger()
    logger.setLevel(level)

    log_path = os.path.abspath(log_file) if log_file else None
    already_attached = any(
        isinstance(h, logging.FileHandler) and h.baseFilename == log_path for h in logger.handlers
    )
    if log_path and not already_attached:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(file_handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> DepSentryLogger:
    """Get a DepSentry component logger.

    Args:
        name: Component name, appended to the ``dep_sentry`` namespace

    Returns:
        Logger wrapper for the component
    """
    return DepSentryLogger(name)
