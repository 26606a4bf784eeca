"""
Word Repository - Persistence for vocabulary books.

A book is a folder under the storage root holding ``<Book>.csv`` and a
``media/`` folder. The repository owns the entries of the active book in
memory and rewrites the whole file after every mutation.

Mutating calls on one book must be serialized by the caller; the repository
itself is not thread-safe.
"""

import shutil
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from ..config import Config, SettingsManager
from ..models.entry import FIELD_HEADERS, PATH_FIELDS, WordEntry
from ..utils.csv_codec import HEADER, HEADER_NAMES, decode, encode
from ..utils.helpers import atomic_write_text, ensure_dir, remove_quietly, replace_item
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from ..utils.paths import BookPaths
from .exceptions import BookError, PersistenceError
from .library_importer import LibraryImporter

logger = setup_logger(__name__)

PathLike = Union[str, Path]

_TEXT_ATTRS = tuple(
    attr for attr, _ in FIELD_HEADERS
    if attr not in PATH_FIELDS and attr not in ("is_favorite", "mistake_count")
)


class WordRepository:
    """
    Collection store for the active book.

    Provides:
    - Book lifecycle (load / create / delete) with fallback to the
      reserved default book
    - Last-write-wins merge keyed on the lowercased word
    - Media files stored next to the data file, referenced by
      book-relative paths
    - Change callbacks after every mutation

    Usage:
        settings = SettingsManager()
        repo = WordRepository(settings)
        repo.add_or_update(WordEntry(word="abandon", meaning="v. to leave"))
    """

    def __init__(
        self,
        settings: SettingsManager,
        storage_dir: Optional[PathLike] = None,
        strict: bool = False,
        autoload: bool = True,
    ):
        """
        Initialize the repository.

        Args:
            settings: Preference service (last open book, custom storage root)
            storage_dir: Explicit storage root; overrides the preferences
            strict: Raise PersistenceError when a save fails instead of
                    logging it and keeping the in-memory state
            autoload: Load the last opened book right away
        """
        self.settings = settings
        self.strict = strict
        self.default_book_name: str = Config.DEFAULT_BOOK_NAME

        self.words: List[WordEntry] = []
        self.current_book_name: str = self.default_book_name
        self.available_books: List[str] = []
        self.last_save_error: Optional[Exception] = None
        self.read_only: bool = False

        self._storage_dir: Path = self._resolve_storage_dir(storage_dir)
        self._change_callbacks: List[Callable[[], None]] = []

        if autoload:
            self.load(self.settings.get("LAST_OPEN_BOOK") or self.default_book_name)
            self.refresh_available_books()

    # ==================== Paths ====================

    def _resolve_storage_dir(self, storage_dir: Optional[PathLike]) -> Path:
        """Pick the storage root: explicit > saved custom root > default."""
        if storage_dir is not None:
            return ensure_dir(Path(storage_dir).expanduser())

        custom = self.settings.get("STORAGE_DIR")
        if custom:
            custom_path = Path(custom).expanduser()
            if custom_path.is_dir():
                return custom_path
            logger.warning("Saved storage location %s is unavailable, using default", custom_path)

        return ensure_dir(Path(Config.STORAGE_DIR).expanduser())

    @property
    def storage_dir(self) -> Path:
        """Current storage root."""
        return self._storage_dir

    @property
    def current_book_folder(self) -> Path:
        """Folder of the active book, e.g. <root>/Default/."""
        return BookPaths.book_folder(self._storage_dir, self.current_book_name)

    @property
    def current_book_file(self) -> Path:
        """Data file of the active book, e.g. <root>/Default/Default.csv."""
        return BookPaths.data_file(self._storage_dir, self.current_book_name)

    @property
    def current_media_folder(self) -> Path:
        """Media folder of the active book."""
        return BookPaths.media_folder(self._storage_dir, self.current_book_name)

    @property
    def data_file_path(self) -> str:
        """Data file path as a string, for display."""
        return str(self.current_book_file)

    def resolve_path(self, path: str) -> Path:
        """
        Absolute location of a stored path.

        Legacy absolute paths are returned unchanged; everything else is
        relative to the active book folder.
        """
        if BookPaths.is_absolute(path):
            return Path(path)
        return self.current_book_folder / path

    # ==================== Change notification ====================

    def on_change(self, callback: Callable[[], None]) -> None:
        """
        Register a callback for data changes.

        Args:
            callback: Function to call after every load or mutation
        """
        self._change_callbacks.append(callback)

    def _notify_change(self) -> None:
        """Notify all registered callbacks of data change."""
        for callback in self._change_callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Change callback failed")

    # ==================== Book management ====================

    def refresh_available_books(self) -> List[str]:
        """Scan the storage root for <Name>/<Name>.csv folders."""
        books: List[str] = []
        try:
            for child in self._storage_dir.iterdir():
                if child.name.startswith(".") or not child.is_dir():
                    continue
                if BookPaths.data_file(self._storage_dir, child.name).is_file():
                    books.append(child.name)
        except OSError as e:
            logger.error("Failed to list books: %s", e)
            books = []

        self.available_books = sorted(books)
        return self.available_books

    def load(self, name: str) -> None:
        """
        Make ``name`` the active book.

        A missing or empty data file falls back to the default book,
        which is created when it is the one missing. An unreadable book
        also falls back to the default book; an unreadable default book is
        opened read-only so that no save overwrites it.
        """
        file_path = BookPaths.data_file(self._storage_dir, name)

        should_create = False
        if not file_path.is_file():
            logger.warning("Book %s not found at %s.", name, file_path)
            should_create = True
        elif file_path.stat().st_size == 0:
            logger.warning("Book %s is empty. Treating as missing.", name)
            should_create = True

        if should_create:
            if name == self.default_book_name:
                logger.warning("Default book missing. Creating new Default book.")
                self.create(self.default_book_name)
            else:
                logger.warning("Fallback to %s.", self.default_book_name)
                self.load(self.default_book_name)
            return

        try:
            content = file_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            # The file stays on disk untouched so it can be recovered by hand
            if name != self.default_book_name:
                logger.error("Load error for %s: %s. Fallback to %s.", name, e, self.default_book_name)
                self.load(self.default_book_name)
                return
            logger.error("Load error for %s: %s. Opened read-only with an empty list.", name, e)
            self.current_book_name = name
            self.words = []
            self.read_only = True
            self._notify_change()
            return

        self.current_book_name = name
        self.words = decode(content)
        self.read_only = False
        self.settings.set("LAST_OPEN_BOOK", name)
        logger.info("Loaded book: %s (%d words)", name, len(self.words))
        self._notify_change()

    @staticmethod
    def _validate_book_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise BookError("Book name must not be empty")
        if name in (".", "..") or BookPaths.has_separator(name) or name.startswith("."):
            raise BookError(f"Invalid book name: {name!r}")
        return name

    def create(self, name: str) -> None:
        """
        Create book ``name`` (folder, media folder, header-only file) and load it.

        An existing non-empty data file is kept and simply loaded.

        Raises:
            BookError: empty or unsafe name
            PersistenceError: the folder or file could not be written
        """
        name = self._validate_book_name(name)
        file_path = BookPaths.data_file(self._storage_dir, name)

        try:
            ensure_dir(BookPaths.media_folder(self._storage_dir, name))
            if file_path.is_file() and file_path.stat().st_size > 0:
                logger.info("Book csv already exists: %s", name)
            else:
                atomic_write_text(file_path, HEADER + "\n")
                logger.info("Created new book structure: %s", name)
        except OSError as e:
            logger.error("Failed to create book %s: %s", name, e)
            raise PersistenceError(f"Failed to create book {name}: {e}") from e

        self.load(name)
        self.refresh_available_books()

    def delete(self, name: str) -> bool:
        """
        Delete book ``name`` and its whole folder.

        The default book is never deleted. Deleting the active book loads
        the default one.

        Returns:
            True if a folder was removed

        Raises:
            BookError: empty or unsafe name
            PersistenceError: the folder could not be removed
        """
        name = self._validate_book_name(name)
        if name == self.default_book_name:
            logger.warning("Refusing to delete the default book.")
            return False

        folder = BookPaths.book_folder(self._storage_dir, name)
        if not folder.is_dir():
            return False
        if folder.resolve().parent != self._storage_dir.resolve():
            raise BookError(f"Book folder {folder} is outside the storage root")

        try:
            shutil.rmtree(folder)
        except OSError as e:
            logger.error("Failed to delete book %s: %s", name, e)
            raise PersistenceError(f"Failed to delete book {name}: {e}") from e

        logger.info("Deleted book folder: %s", name)
        if self.current_book_name == name:
            self.load(self.default_book_name)
        self.refresh_available_books()
        return True

    def change_storage_root(self, new_root: PathLike) -> None:
        """
        Move every item of the storage root into ``new_root`` and switch to it.

        Same-named items at the destination are replaced. Best effort: if
        one move fails the error propagates and items already moved stay
        where they are.

        Raises:
            PersistenceError: ``new_root`` lies inside the current root
            OSError: an item could not be moved
        """
        old_root = self._storage_dir
        if old_root.resolve() in Path(new_root).expanduser().resolve().parents:
            raise PersistenceError(f"{new_root} is inside the current storage root {old_root}")

        new_root = ensure_dir(Path(new_root).expanduser())

        if new_root.resolve() != old_root.resolve():
            for item in sorted(old_root.iterdir()):
                replace_item(item, new_root / item.name)
                logger.debug("Moved %s to %s", item.name, new_root)

        self.settings.set("STORAGE_DIR", str(new_root))
        self._storage_dir = new_root
        logger.info("Storage location changed to %s", new_root)

        self.load(self.current_book_name)
        self.refresh_available_books()

    # ==================== Lookup ====================

    def _find_index(self, word: str) -> Optional[int]:
        target = word.strip().lower()
        for i, entry in enumerate(self.words):
            if entry.key == target:
                return i
        return None

    def get(self, word: str) -> Optional[WordEntry]:
        """Entry of the active book matching ``word`` case-insensitively."""
        idx = self._find_index(word)
        return self.words[idx] if idx is not None else None

    def find_across_all_collections(self, word: str) -> Optional[WordEntry]:
        """
        Search the active book, then every other known book on disk.

        Other books are decoded read-only; the active book does not change.

        Returns:
            A copy of the first match, or None
        """
        found = self.find_with_source(word)
        return found[0] if found is not None else None

    def find_with_source(self, word: str) -> Optional[Tuple[WordEntry, str]]:
        """Like ``find_across_all_collections`` but also names the book of the match."""
        target = word.strip()
        found = self.get(target)
        if found is not None:
            return replace(found), self.current_book_name

        for book_name in self.available_books:
            if book_name == self.current_book_name:
                continue
            file_path = BookPaths.data_file(self._storage_dir, book_name)
            try:
                content = file_path.read_text(encoding="utf-8-sig")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Skipping %s during global search: %s", book_name, e)
                continue
            for entry in decode(content):
                if entry.matches(target):
                    return entry, book_name
        return None

    def search(self, query: str, fields: Optional[List[str]] = None) -> List[WordEntry]:
        """
        Case-insensitive substring search in the active book.

        Args:
            query: Search text
            fields: Header names to search (defaults to word and meaning)

        Returns:
            Matching entries in book order
        """
        if not query or not self.words:
            return []

        df = self.to_dataframe()
        columns = fields or ["word", "meaning"]
        query = query.lower()

        mask = pd.Series([False] * len(df))
        for col in columns:
            if col in df.columns:
                mask |= df[col].astype(str).str.lower().str.contains(query, na=False, regex=False)

        return [self.words[i] for i in df.index[mask]]

    def to_dataframe(self) -> pd.DataFrame:
        """Active book as a DataFrame with header-named columns."""
        return pd.DataFrame([e.to_dict() for e in self.words], columns=HEADER_NAMES)

    def statistics(self) -> Dict[str, Any]:
        """
        Get book statistics.

        Returns:
            Dictionary with stats
        """
        df = self.to_dataframe()
        if df.empty:
            return {
                "total_words": 0,
                "favorites": 0,
                "with_image": 0,
                "with_mistakes": 0,
                "total_mistakes": 0,
            }

        return {
            "total_words": len(df),
            "favorites": int(df["isFavorite"].sum()),
            "with_image": int((df["localImagePath"].notna() | df["imageName"].notna()).sum()),
            "with_mistakes": int((df["mistakeCount"] > 0).sum()),
            "total_mistakes": int(df["mistakeCount"].sum()),
        }

    # ==================== Mutations ====================

    @staticmethod
    def _normalized(entry: WordEntry) -> WordEntry:
        entry = replace(entry)
        for attr in _TEXT_ATTRS:
            value = getattr(entry, attr)
            if isinstance(value, str):
                setattr(entry, attr, TextParser.normalize_unicode(value))
        entry.word = entry.word.strip()
        return entry

    def _merge(self, entry: WordEntry) -> WordEntry:
        entry = self._normalized(entry)
        if not entry.word:
            raise ValueError("Entry word must not be empty")

        idx = self._find_index(entry.word)
        if idx is not None:
            self.words[idx] = entry
        else:
            self.words.append(entry)
        return entry

    def add_or_update(self, entry: WordEntry) -> WordEntry:
        """
        Add ``entry`` or replace the one with the same word.

        Returns:
            The stored entry
        """
        stored = self._merge(entry)
        self.save()
        self._notify_change()
        return stored

    def _write_image(self, word: str, image_data: bytes) -> str:
        """Write image bytes to the media folder; returns the book-relative path."""
        filename = BookPaths.image_filename(word)
        ensure_dir(self.current_media_folder)
        (self.current_media_folder / filename).write_bytes(image_data)
        return BookPaths.media_relative(filename)

    def save_imported_entry(self, entry: WordEntry, image_data: Optional[bytes] = None) -> WordEntry:
        """
        Store a freshly imported entry, writing its image first if given.

        A failed image write is logged and the entry is stored without it.
        """
        entry = replace(entry)
        if image_data:
            try:
                entry.local_image_path = self._write_image(entry.word, image_data)
            except OSError as e:
                logger.error("Failed to save word image: %s", e)
        return self.add_or_update(entry)

    def copy_media_from(self, entry: WordEntry, source_book: str) -> WordEntry:
        """
        Bring the media of an entry found in ``source_book`` into the active book.

        Referenced files are copied into the active media folder (an existing
        file of the same name is kept) and the paths rewritten; references
        whose file cannot be found are cleared.

        Returns:
            A copy of ``entry`` whose media paths all resolve in the active book
        """
        entry = replace(entry)
        if source_book == self.current_book_name:
            return entry

        source_folder = BookPaths.book_folder(self._storage_dir, source_book)
        for attr, path in entry.media_paths().items():
            source = Path(path) if BookPaths.is_absolute(path) else source_folder / path
            if not source.is_file():
                logger.debug("Media %s of %s not found in %s", path, entry.word, source_book)
                setattr(entry, attr, None)
                continue

            dest = ensure_dir(self.current_media_folder) / source.name
            try:
                if not dest.exists():
                    shutil.copy2(source, dest)
            except OSError as e:
                logger.warning("Failed to copy media %s: %s", source.name, e)
                setattr(entry, attr, None)
                continue
            setattr(entry, attr, BookPaths.media_relative(source.name))
        return entry

    def update_image(self, word: str, image_data: bytes) -> bool:
        """
        Replace the stored image of ``word``.

        Returns:
            False if the word is unknown or the image could not be written
        """
        idx = self._find_index(word)
        if idx is None:
            return False

        old_path = self.words[idx].local_image_path
        if old_path:
            remove_quietly(self.resolve_path(old_path))

        try:
            new_path = self._write_image(self.words[idx].word, image_data)
        except OSError as e:
            logger.error("Failed to update image: %s", e)
            return False

        self.words[idx].local_image_path = new_path
        self.save()
        self._notify_change()
        return True

    def update_text_fields(
        self,
        word: str,
        phonetic: Optional[str],
        translation: Optional[str],
        meaning: str,
        meaning_translation: Optional[str],
        example: Optional[str],
        example_translation: Optional[str],
        sound_path: Optional[str] = None,
        sound_meaning_path: Optional[str] = None,
        sound_example_path: Optional[str] = None,
    ) -> bool:
        """
        Overwrite the text fields of ``word``; sound paths only when given.

        Returns:
            False if the word is unknown
        """
        idx = self._find_index(word)
        if idx is None:
            return False

        entry = self.words[idx]
        entry.phonetic = TextParser.normalize_unicode(phonetic) or None
        entry.translation = TextParser.normalize_unicode(translation) or None
        entry.meaning = TextParser.normalize_unicode(meaning)
        entry.meaning_translation = TextParser.normalize_unicode(meaning_translation) or None
        entry.example = TextParser.normalize_unicode(example) or None
        entry.example_translation = TextParser.normalize_unicode(example_translation) or None

        if sound_path is not None:
            entry.sound_path = sound_path
        if sound_meaning_path is not None:
            entry.sound_meaning_path = sound_meaning_path
        if sound_example_path is not None:
            entry.sound_example_path = sound_example_path

        self.save()
        self._notify_change()
        return True

    def toggle_favorite(self, word: str) -> bool:
        """Flip the favorite flag. Returns False if the word is unknown."""
        idx = self._find_index(word)
        if idx is None:
            return False
        self.words[idx].is_favorite = not self.words[idx].is_favorite
        self.save()
        self._notify_change()
        return True

    def record_mistake(self, word: str, count: int = 1) -> bool:
        """Add ``count`` to the mistake counter (never below zero)."""
        idx = self._find_index(word)
        if idx is None:
            return False
        entry = self.words[idx]
        entry.mistake_count = max((entry.mistake_count or 0) + count, 0)
        self.save()
        self._notify_change()
        return True

    def delete_entries(self, indices: Iterable[int]) -> int:
        """
        Delete entries by position, removing their image files.

        Out-of-range indices are ignored.

        Returns:
            Number of entries removed
        """
        targets = sorted({i for i in indices if 0 <= i < len(self.words)}, reverse=True)
        if not targets:
            return 0

        for i in targets:
            image_path = self.words[i].local_image_path
            if image_path:
                remove_quietly(self.resolve_path(image_path))
            del self.words[i]

        self.save()
        self._notify_change()
        return len(targets)

    def import_library(self, source: PathLike, importer: Optional[LibraryImporter] = None) -> int:
        """
        Import an external library into the active book.

        Media is copied into the book's media folder and every entry is
        merged with last-write-wins semantics; the file is written once.

        Returns:
            Number of merged entries

        Raises:
            LibraryImportError subclasses from the importer
        """
        importer = importer or LibraryImporter(encodings=self.settings.get("IMPORT_ENCODINGS"))
        media_folder = ensure_dir(self.current_media_folder)

        new_words = importer.import_library(source, media_folder)
        for entry in new_words:
            for attr, value in entry.media_paths().items():
                setattr(entry, attr, BookPaths.media_relative(value))
            self._merge(entry)

        self.save()
        self._notify_change()
        logger.info("Imported %d words from %s", len(new_words), source)
        return len(new_words)

    # ==================== Persistence ====================

    def save(self) -> bool:
        """
        Rewrite the active book file.

        On failure the in-memory entries stay authoritative: the error is
        logged and kept in ``last_save_error`` (raised as PersistenceError
        in strict mode).
        A book opened read-only after a failed load is never written.

        Returns:
            True if saved successfully
        """
        if self.read_only:
            error = PersistenceError(f"{self.current_book_name} could not be read and is open read-only")
            self.last_save_error = error
            logger.error("Refusing to save %s: %s", self.current_book_name, error)
            if self.strict:
                raise error
            return False

        try:
            ensure_dir(self.current_book_folder)
            atomic_write_text(self.current_book_file, encode(self.words))
        except OSError as e:
            self.last_save_error = e
            logger.error("Persistence error for %s: %s", self.current_book_name, e)
            if self.strict:
                raise PersistenceError(f"Could not save {self.current_book_name}: {e}") from e
            return False

        self.last_save_error = None
        return True
