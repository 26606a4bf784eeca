"""Data models for TypeLex."""

from .entry import FIELD_HEADERS, PATH_FIELDS, WordEntry, WordInfo

__all__ = [
    'FIELD_HEADERS',
    'PATH_FIELDS',
    'WordEntry',
    'WordInfo',
]
