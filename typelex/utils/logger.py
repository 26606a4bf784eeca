"""Logger factory shared by every TypeLex module."""

import logging
import os
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_ROOT_LOGGER_NAME = "typelex"


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    """Map 'debug', 'INFO', 10 ... to a logging constant (INFO on garbage)."""
    if level is None:
        level = os.environ.get("TYPELEX_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).strip().upper(), logging.INFO)


def setup_logger(name: str = _ROOT_LOGGER_NAME, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Get a logger inside the ``typelex`` hierarchy.

    The handler lives on the package root logger only, so module loggers
    created with ``setup_logger(__name__)`` propagate to a single stream
    and calling this repeatedly never duplicates output.

    Args:
        name: Logger name, usually ``__name__``
        level: Optional level override for the package root

    Returns:
        Configured logger
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)
        root.setLevel(_resolve_level(level))
    elif level is not None:
        root.setLevel(_resolve_level(level))

    if name == _ROOT_LOGGER_NAME or name.startswith(_ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
