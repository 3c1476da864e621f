"""
Logging configuration for the connection indexer.
"""

import logging
import sys

from connection_indexer import config

# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = ("playwright", "httpx", "httpcore", "asyncio")


def _resolve_level(level: int | str | None) -> int:
    """Accept a logging constant or a level name such as "debug"."""
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, str):
        return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    return level


def setup_logging(level: int | str | None = None) -> logging.Logger:
    """Set up logging for the scripts and return the package logger."""
    resolved = _resolve_level(level)

    logging.basicConfig(
        level=resolved,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logger = logging.getLogger("connection_indexer")
    logger.setLevel(resolved)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
