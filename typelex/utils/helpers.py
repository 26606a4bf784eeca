"""Utility functions."""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Union

from .logger import setup_logger

logger = setup_logger(__name__)


def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure directory exists."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_quietly(path: Union[str, Path]) -> bool:
    """
    Delete a file, logging instead of raising on failure.

    Returns:
        True if the file is gone afterwards
    """
    path = Path(path)
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Could not delete %s: %s", path, e)
        return False


def atomic_write_text(path: Union[str, Path], content: str, encoding: str = "utf-8") -> None:
    """
    Write text through a temp file + rename.

    A failed write leaves the previous file untouched. Raises OSError.
    """
    path = Path(path)
    fd, temp_file = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
        os.replace(temp_file, path)
    except BaseException:
        # Clean up temp file on failure
        if os.path.exists(temp_file):
            os.remove(temp_file)
        raise


def replace_item(source: Union[str, Path], target: Union[str, Path]) -> None:
    """Move ``source`` to ``target``, removing whatever is at ``target`` first."""
    target = Path(target)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    elif target.exists() or target.is_symlink():
        target.unlink()
    shutil.move(str(source), str(target))
