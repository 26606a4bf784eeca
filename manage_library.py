"""
TypeLex: Word Library Manager
-----------------------------

Command-line entry point for maintaining vocabulary books.
"""

import argparse
import sys
from typing import List, Optional

from typelex.config import SettingsManager
from typelex.services import BookManager, LibraryImportError, TypeLexError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="manage_library", description="Manage TypeLex vocabulary books.")
    parser.add_argument("--storage", help="Storage root (defaults to the saved location)")
    parser.add_argument("--settings", help="Path to settings.json")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("migrate", help="Upgrade the storage root layout and exit")
    sub.add_parser("books", help="List books")

    create = sub.add_parser("create", help="Create a book")
    create.add_argument("name")

    delete = sub.add_parser("delete", help="Delete a book")
    delete.add_argument("name")

    imp = sub.add_parser("import", help="Import a folder, ZIP or CSV library")
    imp.add_argument("source")
    imp.add_argument("--book", help="Target book (defaults to the last opened one)")

    find = sub.add_parser("find", help="Look a word up in every book")
    find.add_argument("word")

    stats = sub.add_parser("stats", help="Statistics of a book")
    stats.add_argument("--book", help="Book (defaults to the last opened one)")
    return parser


def main(argv: Optional[List[str]] = None) -> bool:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = SettingsManager(args.settings)
    manager = BookManager.startup(settings, storage_dir=args.storage)
    repo = manager.repository

    if args.command == "migrate":
        report = manager.migration_report
        print(f"Converted legacy files: {len(report.converted_legacy)}")
        print(f"Books moved into folders: {len(report.migrated_books)}")
        if report.failed:
            print(f"Failed: {', '.join(report.failed)}")
        return not report.failed

    if args.command == "books":
        for name in manager.available_books:
            marker = "*" if name == manager.current_book_name else " "
            print(f"{marker} {name}")
        return True

    if args.command == "create":
        print(f"Active book: {manager.create(args.name)}")
        return True

    if args.command == "delete":
        if not manager.delete(args.name):
            print(f"[!] Book {args.name} was not deleted.")
            return False
        print(f"Deleted {args.name}")
        return True

    if args.command == "import":
        if args.book:
            manager.switch(args.book)
        try:
            count = repo.import_library(args.source)
        except LibraryImportError as e:
            print(f"[ERROR] Import failed: {e}")
            return False
        print(f"Imported {count} words into {repo.current_book_name} ({repo.data_file_path})")
        return True

    if args.command == "find":
        entry = repo.find_across_all_collections(args.word)
        if entry is None:
            print(f"{args.word}: not found")
            return False
        print(f"{entry.word} {entry.phonetic or ''}".rstrip())
        print(f"  {entry.meaning}")
        if entry.example:
            print(f"  e.g. {entry.example}")
        return True

    if args.command == "stats":
        if args.book:
            manager.switch(args.book)
        for key, value in repo.statistics().items():
            print(f"{key}: {value}")
        return True

    return False


if __name__ == "__main__":
    try:
        success = main()
        sys.exit(0 if success else 1)
    except TypeLexError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n[!] Aborted by user.")
        sys.exit(1)
