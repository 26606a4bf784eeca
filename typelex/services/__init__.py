"""Services layer for business logic separation."""

from .exceptions import (
    AIProviderError,
    APIError,
    AuthenticationError,
    BookError,
    EmptyLibraryError,
    ExternalToolError,
    LibraryImportError,
    NoTabularDataError,
    PersistenceError,
    RateLimitError,
    SecurityAccessError,
    SourceNotFoundError,
    TypeLexError,
)
from .archive import BaseExtractor, ZipExtractor
from .library_importer import LibraryImporter
from .repository import WordRepository
from .migration import MigrationReport, MigrationRunner
from .book_manager import BookManager
from .ai_service import BaseImageProvider, BaseWordInfoProvider, parse_word_info
from .word_list_service import WordListImporter, WordListResult, split_word_list

__all__ = [
    "AIProviderError",
    "APIError",
    "AuthenticationError",
    "BookError",
    "EmptyLibraryError",
    "ExternalToolError",
    "LibraryImportError",
    "NoTabularDataError",
    "PersistenceError",
    "RateLimitError",
    "SecurityAccessError",
    "SourceNotFoundError",
    "TypeLexError",
    "BaseExtractor",
    "ZipExtractor",
    "LibraryImporter",
    "WordRepository",
    "MigrationReport",
    "MigrationRunner",
    "BookManager",
    "BaseImageProvider",
    "BaseWordInfoProvider",
    "parse_word_info",
    "WordListImporter",
    "WordListResult",
    "split_word_list",
]
