"""Utils module."""

from .helpers import (
    atomic_write_text,
    ensure_dir,
    remove_quietly,
    replace_item,
)
from .parsing import TextParser
from .paths import BookPaths
from .logger import setup_logger

__all__ = [
    'atomic_write_text',
    'ensure_dir',
    'remove_quietly',
    'replace_item',
    'TextParser',
    'BookPaths',
    'setup_logger',
]
