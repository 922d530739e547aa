"""
Assist - Logging
================
Pre-configured logger factory shared by every Assist module.

Verbosity comes from ``settings.LOG_LEVEL`` when set, otherwise from
``settings.ENV``:
  • ``"dev"``  → DEBUG level
  • ``"prod"`` → WARNING level

Records go to *stderr*: stdout is reserved for the live echo of
streamed completions.

Usage:
    from assist.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("[ORCH] Something happened")
"""

import logging
import sys

from assist.config.settings import settings

_ENV_LEVEL_MAP = {
    "dev": logging.DEBUG,
    "prod": logging.WARNING,
}


def _resolve_default_level() -> int:
    if settings.LOG_LEVEL:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if isinstance(level, int):
            return level
    return _ENV_LEVEL_MAP.get(settings.ENV, logging.INFO)


_DEFAULT_LEVEL = _resolve_default_level()


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Create and return a named logger with the standard Assist formatter.

    Args:
        name:  Typically ``__name__`` of the calling module.
        level: Explicit logging level override.

    Returns:
        A configured ``logging.Logger`` instance.
    """
    resolved_level = level if level is not None else _DEFAULT_LEVEL
    logger = logging.getLogger(name)

    # One handler per named logger, even if imported repeatedly
    if not logger.handlers:
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(resolved_level)
        handler.setFormatter(logging.Formatter(fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

        logger.propagate = False

    return logger
