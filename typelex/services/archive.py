"""
Archive extraction capability used by the library importer.

The importer only depends on ``BaseExtractor.extract``; ``ZipExtractor``
is the in-process implementation.
"""

import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from ..utils.logger import setup_logger
from .exceptions import ExternalToolError

logger = setup_logger(__name__)


class BaseExtractor(ABC):
    """Extracts an archive into a destination directory."""

    @abstractmethod
    def extract(self, archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
        """Extract ``archive_path`` into ``destination``. Raises ExternalToolError."""
        pass


class ZipExtractor(BaseExtractor):
    """ZIP extraction via :mod:`zipfile`, refusing entries that escape the destination."""

    def extract(self, archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
        archive_path = Path(archive_path)
        destination = Path(destination)
        destination.mkdir(parents=True, exist_ok=True)
        root = destination.resolve()

        try:
            with zipfile.ZipFile(archive_path) as archive:
                for member in archive.infolist():
                    target = (root / member.filename).resolve()
                    if target != root and root not in target.parents:
                        raise ExternalToolError(f"Unsafe path in archive: {member.filename}")
                archive.extractall(root)
        except ExternalToolError:
            raise
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            logger.error("Unzip failed for %s: %s", archive_path, e)
            raise ExternalToolError(f"Could not extract {archive_path.name}: {e}") from e

        logger.info("Unzip successful to: %s", destination)
