"""TypeLex - Vocabulary book storage and library import"""

__version__ = "1.0.0"
__author__ = "TypeLex Team"

from .config import Config, SettingsManager
from .models import WordEntry, WordInfo
from .services import (
    BookManager,
    LibraryImporter,
    MigrationRunner,
    WordListImporter,
    WordRepository,
)

__all__ = [
    'Config',
    'SettingsManager',
    'WordEntry',
    'WordInfo',
    'BookManager',
    'LibraryImporter',
    'MigrationRunner',
    'WordListImporter',
    'WordRepository',
]
