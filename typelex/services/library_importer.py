"""
Library Importer - Ingest foreign vocabulary libraries.

Expected input is a folder, a ZIP archive or a single CSV file::

    Library/
      *.csv    (columns such as Word, IPA, Translation, Meaning,
                Meaning_Translation, Example, Example_Translation,
                Image, Sound, Sound_Meaning, Sound_Example)
      media/   (images and sound files referenced by the CSV)

Libraries are exports from arbitrary spreadsheet tools, so headers are
matched against synonym lists and text is decoded with the first encoding
that works. Ingestion is best effort: bad rows and missing media are
skipped, a broken CSV file does not stop the others.
"""

import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from ..config.settings import Config
from ..models.entry import WordEntry
from ..utils.csv_codec import parse_delimited
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from ..utils.paths import BookPaths
from .archive import BaseExtractor, ZipExtractor
from .exceptions import (
    EmptyLibraryError,
    NoTabularDataError,
    SecurityAccessError,
    SourceNotFoundError,
)

logger = setup_logger(__name__)


# Accepted headers per logical field, in priority order
HEADER_SYNONYMS: Dict[str, List[str]] = {
    "word": ["Word", "word", "單字", "Text", "Name"],
    "phonetic": ["IPA", "phonetic", "音標", "Pronunciation"],
    "translation": ["Translation", "翻譯", "意思"],
    "meaning": ["Meaning", "Definition", "釋義"],
    "meaning_translation": ["Meaning_Translation", "meaningTranslation", "釋義翻譯"],
    "example": ["Example", "example", "例句", "Sentence"],
    "example_translation": ["Example_Translation", "exampleTranslation", "例句翻譯", "Sentence_Translation"],
    "image": ["Image", "imageName", "圖片", "Picture", "Images"],
    "sound": ["Sound", "soundPath", "發音", "Audio", "Voice"],
    "sound_meaning": ["Sound_Meaning", "soundMeaningPath"],
    "sound_example": ["Sound_Example", "soundExamplePath"],
}

# Media columns -> WordEntry attribute receiving the copied filename
MEDIA_COLUMNS: Dict[str, str] = {
    "image": "local_image_path",
    "sound": "sound_path",
    "sound_meaning": "sound_meaning_path",
    "sound_example": "sound_example_path",
}

PathLike = Union[str, Path]

_PATH_SPLIT = re.compile(r"[\\/]")


class LibraryImporter:
    """
    Converts an external library into normalized ``WordEntry`` objects.

    Media references in the returned entries are bare filenames inside
    ``media_destination``; the repository prefixes them with ``media/``.

    Usage:
        importer = LibraryImporter()
        entries = importer.import_library("~/Downloads/4000.zip", book_media_dir)
    """

    def __init__(
        self,
        encodings: Optional[Sequence[str]] = None,
        extractor: Optional[BaseExtractor] = None,
    ):
        """
        Args:
            encodings: Decoding priority list (defaults to Config.IMPORT_ENCODINGS)
            extractor: Archive extraction capability (defaults to ZipExtractor)
        """
        self.encodings: List[str] = list(encodings or Config.IMPORT_ENCODINGS)
        self.extractor: BaseExtractor = extractor or ZipExtractor()

    # ==================== Public API ====================

    def import_library(self, source: PathLike, media_destination: PathLike) -> List[WordEntry]:
        """
        Import every CSV file found under ``source``.

        Args:
            source: Folder, ZIP archive or CSV file
            media_destination: Media folder of the receiving book

        Returns:
            Entries from all files, in file order

        Raises:
            SourceNotFoundError: ``source`` does not exist
            SecurityAccessError: ``source`` is not readable
            ExternalToolError: the archive could not be extracted
            NoTabularDataError: no CSV file was found
            EmptyLibraryError: no file produced any entry
        """
        source = Path(source).expanduser()
        media_destination = Path(media_destination)

        if not source.exists():
            raise SourceNotFoundError(f"Import source not found: {source}")
        if not os.access(source, os.R_OK):
            raise SecurityAccessError(f"No permission to read: {source}")

        media_destination.mkdir(parents=True, exist_ok=True)

        if source.is_file() and source.suffix.lower() == f".{Config.ARCHIVE_EXTENSION}":
            logger.info("Detected ZIP file. Extracting %s", source.name)
            temp_dir = Path(tempfile.mkdtemp(prefix="typelex_import_"))
            try:
                self.extractor.extract(source, temp_dir)
                return self._import_tree(temp_dir, media_destination, is_extracted=True)
            finally:
                shutil.rmtree(temp_dir, ignore_errors=True)
                logger.debug("Cleaned up temp directory: %s", temp_dir)

        return self._import_tree(source, media_destination, is_extracted=False)

    def read_text(self, path: PathLike) -> str:
        """
        Decode a file with the first encoding that yields non-empty text.

        Returns an empty string for an empty file. Raises the last decode
        error if every encoding fails.
        """
        raw = Path(path).read_bytes()
        last_error: Optional[Exception] = None

        for encoding in self.encodings:
            try:
                text = raw.decode(encoding)
            except (UnicodeDecodeError, LookupError) as e:
                last_error = e
                continue
            if text:
                logger.debug("Read %s with encoding %s", Path(path).name, encoding)
                return text

        if raw and last_error is not None:
            raise last_error
        return ""

    # ==================== Internals ====================

    def _import_tree(self, root: Path, media_destination: Path, is_extracted: bool) -> List[WordEntry]:
        csv_files = self._find_csv_files(root)

        if not csv_files:
            if not is_extracted and root.is_file() and root.suffix.lower() == f".{Config.DATA_EXTENSION}":
                csv_files = [root]
            else:
                logger.error("No CSV files found in: %s", root)
                raise NoTabularDataError(f"No CSV files found in {root}")

        library_root = root if root.is_dir() else root.parent
        logger.info("Found %d CSV files: %s", len(csv_files), [p.name for p in csv_files])

        all_entries: List[WordEntry] = []
        for csv_path in csv_files:
            try:
                entries = self.import_file(csv_path, library_root, media_destination)
            except Exception as e:
                logger.warning("Failed to import from %s: %s", csv_path.name, e)
                continue
            logger.info("Imported %d words from %s", len(entries), csv_path.name)
            all_entries.extend(entries)

        if not all_entries:
            logger.error("No words imported from any CSV file.")
            raise EmptyLibraryError(f"No usable entries in {root}")

        return all_entries

    @staticmethod
    def _find_csv_files(root: Path) -> List[Path]:
        if not root.is_dir():
            return []

        found: List[Path] = []
        for path in sorted(root.rglob("*")):
            relative = path.relative_to(root)
            # Hidden files and macOS archive metadata
            if any(part.startswith(".") or part == "__MACOSX" for part in relative.parts):
                continue
            if path.is_file() and path.suffix.lower() == f".{Config.DATA_EXTENSION}":
                found.append(path)
        return found

    def import_file(self, csv_path: Path, library_root: Path, media_destination: Path) -> List[WordEntry]:
        """Import a single CSV file; media is copied into ``media_destination``."""
        logger.debug("Processing CSV: %s", csv_path.name)

        content = self.read_text(csv_path)
        rows = parse_delimited(content)
        logger.debug("Parsed %d rows (including header)", len(rows))
        if len(rows) < 2:
            return []

        table = self._build_table(rows)
        if table.empty:
            return []

        csv_dir = csv_path.parent
        entries: List[WordEntry] = []

        for position, row in enumerate(table.itertuples(index=False), start=1):
            values = row._asdict()
            word = values["word"]
            if not word:
                logger.debug("Row %d: skipped because the word field is empty", position)
                continue

            entry = WordEntry(
                word=TextParser.normalize_unicode(word),
                phonetic=values["phonetic"] or None,
                translation=values["translation"] or None,
                # Fallback to translation if meaning is empty
                meaning=values["meaning"] or values["translation"],
                meaning_translation=values["meaning_translation"] or None,
                example=values["example"] or None,
                example_translation=values["example_translation"] or None,
            )

            for column, attr in MEDIA_COLUMNS.items():
                filename = self._copy_media_file(values[column], library_root, csv_dir, media_destination)
                setattr(entry, attr, filename)

            entries.append(entry)

        return entries

    @staticmethod
    def resolve_columns(headers: List[str]) -> Dict[str, Optional[int]]:
        """
        Map each logical field to a column index via HEADER_SYNONYMS.

        Headers are compared after stripping whitespace and BOM and
        lowercasing; the first synonym present wins.
        """
        index_map: Dict[str, int] = {}
        for i, header in enumerate(headers):
            index_map[TextParser.clean_header(header)] = i

        resolved: Dict[str, Optional[int]] = {}
        for field, synonyms in HEADER_SYNONYMS.items():
            resolved[field] = None
            for synonym in synonyms:
                idx = index_map.get(synonym.lower())
                if idx is not None:
                    resolved[field] = idx
                    break
        return resolved

    def _build_table(self, rows: List[List[str]]) -> pd.DataFrame:
        """Data rows as a DataFrame with one trimmed column per logical field."""
        headers = rows[0]
        width = max(len(headers), max(len(r) for r in rows[1:]))
        padded = [r + [""] * (width - len(r)) for r in rows[1:]]
        raw = pd.DataFrame(padded, columns=range(width), dtype=object).fillna("")

        # Rows with nothing but whitespace
        blank = raw.apply(lambda r: all(not str(v).strip() for v in r), axis=1)
        raw = raw[~blank]

        columns = self.resolve_columns(headers)
        logger.debug("Resolved columns: %s", columns)

        table = pd.DataFrame(index=raw.index)
        for field, idx in columns.items():
            if idx is None:
                table[field] = ""
            else:
                table[field] = raw[idx].astype(str).str.strip()
        return table.reset_index(drop=True)

    @staticmethod
    def _copy_media_file(
        filename: str,
        library_root: Path,
        csv_dir: Path,
        media_destination: Path,
    ) -> Optional[str]:
        """
        Copy a referenced media file into the book's media folder.

        Returns the filename stored in the entry, or None when the reference
        is empty or the file cannot be found.
        """
        clean_name = (filename or "").strip()
        if not clean_name:
            return None
        if BookPaths.is_absolute(clean_name) or ".." in _PATH_SPLIT.split(clean_name):
            logger.warning("Ignoring media reference outside the library: %s", clean_name)
            return None

        possible_sources = [
            library_root / Config.MEDIA_DIR_NAME / clean_name,
            csv_dir / Config.MEDIA_DIR_NAME / clean_name,
            csv_dir / clean_name,
        ]
        dest_name = Path(clean_name).name
        dest = media_destination / dest_name

        for source in possible_sources:
            if not source.is_file():
                continue
            if not dest.exists():
                try:
                    shutil.copy2(source, dest)
                except OSError as e:
                    logger.warning("Failed to copy media %s: %s", clean_name, e)
                    return None
            return dest_name

        logger.debug("Media file not found: %s", clean_name)
        return None
