"""Global settings and configuration."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

# Load .env from the project root before reading the environment
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


@dataclass
class Config:
    """Application-wide configuration."""

    # Book layout
    DEFAULT_BOOK_NAME: str = "Default"
    DATA_EXTENSION: str = "csv"
    LEGACY_EXTENSION: str = "json"
    ARCHIVE_EXTENSION: str = "zip"
    MEDIA_DIR_NAME: str = "media"
    IMAGE_EXT: str = ".png"

    # Importer encodings, tried in order until one yields text
    IMPORT_ENCODINGS: Tuple[str, ...] = (
        "utf-8-sig",
        "utf-16",
        "utf-16-le",
        "utf-16-be",
        "euc-jp",
        "latin-1",
    )

    LOG_LEVEL: str = os.environ.get("TYPELEX_LOG_LEVEL", "INFO")

    # Cross-platform paths using pathlib
    # BASE_DIR is the project root (parent of typelex/)
    BASE_DIR: Path = Path(__file__).parent.parent.parent.resolve()

    # Default storage root (overridable by TYPELEX_STORAGE_DIR)
    STORAGE_DIR: str = os.environ.get(
        "TYPELEX_STORAGE_DIR",
        str(Path.home() / "Documents" / "TypeLex"),
    )
    SETTINGS_FILE: str = os.environ.get(
        "TYPELEX_SETTINGS_FILE",
        str(Path.home() / ".typelex" / "settings.json"),
    )
