"""
Book path generation utilities - Single source of truth for file naming.

Centralizes where a book's data file and media live and how generated
media files are named.
"""

import re
import time
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional, Union

from ..config.settings import Config

PathLike = Union[str, Path]


class BookPaths:
    """
    Centralized path generator for the book layout.

    Layout under the storage root::

        <root>/<Book>/<Book>.csv
        <root>/<Book>/media/<asset files>
    """

    MEDIA_DIR = Config.MEDIA_DIR_NAME
    DATA_EXT = Config.DATA_EXTENSION
    IMAGE_EXT = Config.IMAGE_EXT

    # Characters that cannot appear in a generated filename
    _UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')

    @classmethod
    def book_folder(cls, root: PathLike, name: str) -> Path:
        """Folder of book ``name``."""
        return Path(root) / name

    @classmethod
    def data_file(cls, root: PathLike, name: str) -> Path:
        """Data file of book ``name``, e.g. ``<root>/Verbs/Verbs.csv``."""
        return cls.book_folder(root, name) / f"{name}.{cls.DATA_EXT}"

    @classmethod
    def media_folder(cls, root: PathLike, name: str) -> Path:
        """Media folder of book ``name``."""
        return cls.book_folder(root, name) / cls.MEDIA_DIR

    @classmethod
    def media_relative(cls, filename: str) -> str:
        """Book-relative reference for a file in the media folder."""
        return f"{cls.MEDIA_DIR}/{filename}"

    @classmethod
    def image_filename(cls, word: str, timestamp: Optional[int] = None) -> str:
        """
        Generate filename for a stored word image.

        Args:
            word: Word the image illustrates
            timestamp: Unix seconds (defaults to now)

        Returns:
            Filename like "abandon_1735689600.png"
        """
        ts = int(time.time()) if timestamp is None else int(timestamp)
        safe_word = cls._UNSAFE_CHARS.sub("_", word.strip()) or "image"
        return f"{safe_word}_{ts}{cls.IMAGE_EXT}"

    @classmethod
    def is_absolute(cls, path: str) -> bool:
        """True for POSIX or Windows absolute paths."""
        return PurePosixPath(path).is_absolute() or PureWindowsPath(path).is_absolute()

    @classmethod
    def has_separator(cls, path: str) -> bool:
        """True if ``path`` is more than a bare filename."""
        return "/" in path or "\\" in path
