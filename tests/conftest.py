from __future__ import annotations

from pathlib import Path

import pytest

from typelex.config import SettingsManager
from typelex.services import WordRepository


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in SettingsManager.ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> SettingsManager:
    return SettingsManager(str(tmp_path / "settings.json"))


@pytest.fixture
def storage(tmp_path: Path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def repo(settings: SettingsManager, storage: Path) -> WordRepository:
    return WordRepository(settings, storage_dir=storage)


@pytest.fixture
def write_book():
    def _write(root: Path, name: str, content: str) -> Path:
        folder = root / name
        (folder / "media").mkdir(parents=True, exist_ok=True)
        path = folder / f"{name}.csv"
        path.write_text(content, encoding="utf-8")
        return path

    return _write
