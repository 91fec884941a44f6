"""
utils/logger.py
---------------
Logging setup. Modules call `get_logger(__name__)`; the CLI may call
`configure_logging()` first to override the level from LOG_LEVEL.

Log records go to stderr so that report output printed on stdout can be
piped or redirected on its own.
"""

import logging
import sys
from typing import Optional

from config import LOG_LEVEL

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attach the shared handler to the root logger (once) and set its level.

    Args:
        level: A level name such as "DEBUG"; defaults to LOG_LEVEL.
            Unknown names fall back to INFO.
    """
    global _handler
    root = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
        root.addHandler(_handler)
    resolved = logging.getLevelName((level or LOG_LEVEL).upper())
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)


def get_logger(name: str) -> logging.Logger:
    if _handler is None:
        configure_logging()
    return logging.getLogger(name)
