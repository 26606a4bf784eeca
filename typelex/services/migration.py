"""
Migration Runner - One-time upgrades of the storage root layout.

Runs at startup before any book is loaded, in two passes:

1. Legacy JSON books in the root are rewritten as CSV files in the root.
2. CSV files sitting directly in the root are moved into their own
   ``<Book>/<Book>.csv`` folder, and media files they reference are moved
   from the root into ``<Book>/media/``.

Each file is migrated on its own: a failure is logged and leaves that file
in place, the other files are unaffected, and the next startup retries it.
On an already migrated root both passes are no-ops.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from ..config.settings import Config
from ..models.entry import PATH_FIELDS, WordEntry
from ..utils.csv_codec import decode, encode
from ..utils.helpers import atomic_write_text, ensure_dir, replace_item
from ..utils.logger import setup_logger
from ..utils.paths import BookPaths

logger = setup_logger(__name__)


@dataclass
class MigrationReport:
    """What a migration run changed."""

    converted_legacy: List[str] = field(default_factory=list)
    migrated_books: List[str] = field(default_factory=list)
    moved_media: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.converted_legacy or self.migrated_books)


class MigrationRunner:
    """
    Upgrades an old flat storage root to the folder-per-book layout.

    Usage:
        report = MigrationRunner(storage_dir).run()
    """

    def __init__(self, storage_dir: Union[str, Path]):
        self.storage_dir = Path(storage_dir)

    def run(self) -> MigrationReport:
        """Run both passes. Never raises for a single broken file."""
        report = MigrationReport()
        if not self.storage_dir.is_dir():
            return report

        self.migrate_legacy_json(report)
        self.migrate_flat_books(report)

        if report.changed:
            logger.info(
                "Migration finished: %d legacy files converted, %d books moved into folders",
                len(report.converted_legacy), len(report.migrated_books),
            )
        return report

    def _root_files(self, extension: str) -> List[Path]:
        suffix = f".{extension}".lower()
        return sorted(
            p for p in self.storage_dir.iterdir()
            if p.is_file() and not p.name.startswith(".") and p.suffix.lower() == suffix
        )

    # ==================== Pass A: JSON -> CSV ====================

    def migrate_legacy_json(self, report: MigrationReport) -> None:
        """Rewrite every ``<root>/<name>.json`` book as ``<root>/<name>.csv``."""
        for json_path in self._root_files(Config.LEGACY_EXTENSION):
            name = json_path.stem
            logger.info("Migrating %s to .csv...", json_path.name)
            try:
                payload = json.loads(json_path.read_text(encoding="utf-8-sig"))
                entries = self._entries_from_json(payload)
                csv_path = self.storage_dir / f"{name}.{Config.DATA_EXTENSION}"
                atomic_write_text(csv_path, encode(entries))
                json_path.unlink()
            except (OSError, ValueError, TypeError) as e:
                logger.warning("Migration of %s failed: %s", json_path.name, e)
                report.failed.append(json_path.name)
                continue

            logger.info("Migrated %s to CSV (%d words).", name, len(entries))
            report.converted_legacy.append(name)

    @staticmethod
    def _entries_from_json(payload: object) -> List[WordEntry]:
        if not isinstance(payload, list):
            raise ValueError("legacy book is not a list of entries")

        entries: List[WordEntry] = []
        for item in payload:
            if not isinstance(item, dict):
                raise ValueError("legacy entry is not an object")
            entry = WordEntry.from_dict(item)
            if entry.word:
                entries.append(entry)
        return entries

    # ==================== Pass B: flat -> folders ====================

    def migrate_flat_books(self, report: MigrationReport) -> None:
        """Move every ``<root>/<name>.csv`` into ``<root>/<name>/<name>.csv``."""
        for csv_path in self._root_files(Config.DATA_EXTENSION):
            name = csv_path.stem
            logger.info("Migrating book structure for: %s", name)
            try:
                moved = self._migrate_book(csv_path, name)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Migration of %s failed: %s", csv_path.name, e)
                report.failed.append(csv_path.name)
                continue

            logger.info("Migrated %s to folder structure.", name)
            report.migrated_books.append(name)
            report.moved_media += moved

    def _migrate_book(self, csv_path: Path, name: str) -> int:
        media_folder = ensure_dir(BookPaths.media_folder(self.storage_dir, name))
        target_csv = BookPaths.data_file(self.storage_dir, name)

        entries = decode(csv_path.read_text(encoding="utf-8-sig"))
        moved = 0
        for entry in entries:
            for attr in PATH_FIELDS:
                value = getattr(entry, attr)
                if not value or BookPaths.has_separator(value):
                    continue
                if self._migrate_media_file(value, media_folder):
                    moved += 1
                    setattr(entry, attr, BookPaths.media_relative(value))
                elif (media_folder / value).is_file():
                    # Moved by an earlier, interrupted run
                    setattr(entry, attr, BookPaths.media_relative(value))

        if target_csv.is_file():
            entries = self._merge_into_existing(target_csv, entries)

        atomic_write_text(target_csv, encode(entries))
        csv_path.unlink()
        return moved

    def _migrate_media_file(self, filename: str, media_folder: Path) -> bool:
        """Move ``<root>/<filename>`` into the media folder if it is there."""
        source = self.storage_dir / filename
        if not source.is_file():
            return False
        replace_item(source, media_folder / filename)
        return True

    @staticmethod
    def _merge_into_existing(target_csv: Path, migrated: List[WordEntry]) -> List[WordEntry]:
        """Existing folder book wins on order, migrated entries win on content."""
        existing = decode(target_csv.read_text(encoding="utf-8-sig"))
        merged: Dict[str, WordEntry] = {e.key: e for e in existing}
        for entry in migrated:
            merged[entry.key] = entry
        return list(merged.values())
