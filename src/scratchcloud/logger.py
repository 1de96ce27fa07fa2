"""
Logging setup for scratchcloud, built on loguru.

Modules call ``get_logger(__name__)`` once at import time; the CLI calls
``setup_logging`` to pick the level of the stderr sink. Importing the library
leaves loguru's global configuration alone.
"""

import os
import sys

from loguru import logger

_PREFIX = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "


def _format(record) -> str:
    # records from loggers not created by get_logger have no bound name
    name = "{extra[name]}" if "name" in record["extra"] else "{name}"
    return _PREFIX + f"<cyan>{name}</cyan> - <level>{{message}}</level>\n{{exception}}"


def get_logger(name: str):
    """Return the shared loguru logger bound to a module name."""
    return logger.bind(name=name)


def setup_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a single stderr sink at ``level``."""
    level = (
        level
        or os.getenv("SCRATCHCLOUD_LOG_LEVEL")
        or os.getenv("LOGURU_LEVEL")
        or "INFO"
    )
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_format)
