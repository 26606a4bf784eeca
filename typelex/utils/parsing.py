"""Text parsing utilities for consistent text processing across the application."""

import re
import unicodedata
from typing import List


class TextParser:
    """
    Centralized text parsing utilities.

    Single source of truth for Unicode normalization, header cleanup
    and word-list splitting.
    """

    # Byte order mark left over by some spreadsheet exports
    BOM = "\ufeff"

    # One word per line; Windows and old Mac line endings included
    LINE_PATTERN = re.compile(r'\r\n|\r|\n')

    # Whitespace normalization pattern
    WHITESPACE_PATTERN = re.compile(r'\s+')

    @classmethod
    def normalize_unicode(cls, text: str) -> str:
        """
        Normalize text to NFC form for consistent Unicode handling.

        Prevents issues with characters like é being represented as
        either a single codepoint (NFC) or base + combining accent (NFD).
        """
        if not text:
            return ""
        return unicodedata.normalize('NFC', str(text))

    @classmethod
    def clean_header(cls, header: str) -> str:
        """
        Canonical form of a foreign column header.

        Strips whitespace and BOM characters, then lowercases.
        """
        return str(header).replace(cls.BOM, "").strip().lower()

    @classmethod
    def split_words(cls, text: str) -> List[str]:
        """
        Split pasted text into words, one per line.

        Lines are trimmed and blank lines dropped; order is kept.
        """
        if not text:
            return []
        words = []
        for line in cls.LINE_PATTERN.split(text):
            line = cls.WHITESPACE_PATTERN.sub(' ', line).strip()
            if line:
                words.append(cls.normalize_unicode(line))
        return words
