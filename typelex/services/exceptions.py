"""Exception hierarchy for the word library."""


class TypeLexError(Exception):
    """Base class for all TypeLex errors."""


# ==================== Library import ====================

class LibraryImportError(TypeLexError):
    """An external library could not be imported."""


class SourceNotFoundError(LibraryImportError):
    """The import source path does not exist."""


class NoTabularDataError(LibraryImportError):
    """The import source contains no CSV file."""


class EmptyLibraryError(LibraryImportError):
    """Every CSV file in the source produced zero entries."""


class SecurityAccessError(LibraryImportError):
    """The import source exists but cannot be read."""


class ExternalToolError(LibraryImportError):
    """Archive extraction failed."""


# ==================== Storage ====================

class PersistenceError(TypeLexError):
    """Writing a book to disk failed."""


class BookError(TypeLexError):
    """Invalid book operation (empty name, reserved book...)."""


# ==================== AI providers ====================

class AIProviderError(TypeLexError):
    """An AI content provider failed."""


class RateLimitError(AIProviderError):
    """The provider rejected the request because of rate limiting."""


class APIError(AIProviderError):
    """The provider answered with an error or unusable content."""


class AuthenticationError(AIProviderError):
    """No usable credentials for the provider."""
