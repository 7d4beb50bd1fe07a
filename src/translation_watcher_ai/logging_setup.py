"""
Logging setup for translation-watcher-ai.

Console output goes through rich; an optional rotating log file receives the
plain-text format from the logging config.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from translation_watcher_ai.config import LoggingConfig

LOGGER_NAME = "translation_watcher_ai"


def setup_logging(
    config: LoggingConfig | None = None,
    *,
    console: Console | None = None,
) -> logging.Logger:
    """
    Configure and return the package logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        config: Logging configuration. Defaults are used if None.
        console: Rich console for terminal output.

    Returns:
        The ``translation_watcher_ai`` logger, to be passed to components.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if config.file:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    return logger
