"""Book Manager - Discovers, switches, creates and deletes books."""

from pathlib import Path
from typing import List, Optional, Union

from ..config import SettingsManager
from ..utils.logger import setup_logger
from .migration import MigrationReport, MigrationRunner
from .repository import WordRepository

logger = setup_logger(__name__)


class BookManager:
    """
    Tracks the books in the storage root and which one is active.

    File operations are delegated to the repository.

    Usage:
        manager = BookManager.startup(SettingsManager())
        manager.create("Verbs")
        manager.switch("Default")
    """

    def __init__(self, repository: WordRepository):
        self.repository = repository
        self.migration_report: Optional[MigrationReport] = None

    @classmethod
    def startup(
        cls,
        settings: SettingsManager,
        storage_dir: Optional[Union[str, Path]] = None,
        strict: bool = False,
    ) -> "BookManager":
        """
        Application start: migrate the storage root, then open the last book.

        Args:
            settings: Preference service
            storage_dir: Explicit storage root (defaults to the preferences)
            strict: Passed to the repository

        Returns:
            Manager with the last opened book active
        """
        repository = WordRepository(settings, storage_dir=storage_dir, strict=strict, autoload=False)

        report = MigrationRunner(repository.storage_dir).run()
        if report.failed:
            logger.warning("Some files could not be migrated: %s", report.failed)

        repository.load(settings.get("LAST_OPEN_BOOK") or repository.default_book_name)
        repository.refresh_available_books()

        manager = cls(repository)
        manager.migration_report = report
        return manager

    @property
    def available_books(self) -> List[str]:
        """Known book names, sorted."""
        return self.repository.available_books

    @property
    def current_book_name(self) -> str:
        """Name of the active book."""
        return self.repository.current_book_name

    @property
    def default_book_name(self) -> str:
        return self.repository.default_book_name

    def refresh(self) -> List[str]:
        """Rescan the storage root."""
        return self.repository.refresh_available_books()

    def switch(self, name: str) -> str:
        """
        Activate book ``name``.

        Unknown or empty books fall back to the default book.

        Returns:
            Name of the book actually active afterwards
        """
        self.repository.load(name)
        if self.repository.current_book_name != name:
            logger.info("Requested book %s unavailable, active book is %s", name, self.current_book_name)
        return self.repository.current_book_name

    def create(self, name: str) -> str:
        """Create (or reopen) book ``name`` and make it active."""
        self.repository.create(name)
        return self.repository.current_book_name

    def delete(self, name: str) -> bool:
        """Delete book ``name``; the default book is never deleted."""
        return self.repository.delete(name)

    def is_deletable(self, name: str) -> bool:
        return name != self.default_book_name and name in self.available_books
