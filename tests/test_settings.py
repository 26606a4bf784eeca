from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from typelex.config import Config, SettingsManager
from typelex.utils.logger import setup_logger


def test_defaults(settings: SettingsManager) -> None:
    assert settings.get("LAST_OPEN_BOOK") == Config.DEFAULT_BOOK_NAME
    assert settings.get("STORAGE_DIR") == ""
    assert settings.get("IMPORT_ENCODINGS") == list(Config.IMPORT_ENCODINGS)
    assert settings.get("MISSING", "fallback") == "fallback"


def test_set_persists_to_disk(settings: SettingsManager) -> None:
    settings.set("LAST_OPEN_BOOK", "Verbs")

    on_disk = json.loads(settings.settings_file.read_text(encoding="utf-8"))
    assert on_disk["LAST_OPEN_BOOK"] == "Verbs"
    assert SettingsManager(str(settings.settings_file)).get("LAST_OPEN_BOOK") == "Verbs"


def test_set_without_persist(settings: SettingsManager) -> None:
    settings.set("LAST_OPEN_BOOK", "Temp", persist=False)
    assert settings.get("LAST_OPEN_BOOK") == "Temp"
    assert not settings.settings_file.exists()


def test_get_returns_copies_of_mutables(settings: SettingsManager) -> None:
    encodings = settings.get("IMPORT_ENCODINGS")
    encodings.append("ascii")
    assert "ascii" not in settings.get("IMPORT_ENCODINGS")


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"LAST_OPEN_BOOK": "FromFile"}), encoding="utf-8")
    monkeypatch.setenv("TYPELEX_LAST_OPEN_BOOK", "FromEnv")

    assert SettingsManager(str(path)).get("LAST_OPEN_BOOK") == "FromEnv"


@pytest.mark.parametrize("content", ["{broken", "[1, 2, 3]"])
def test_unreadable_file_falls_back_to_defaults(tmp_path: Path, content: str) -> None:
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")

    settings = SettingsManager(str(path))

    assert settings.get("LAST_OPEN_BOOK") == Config.DEFAULT_BOOK_NAME
    assert path.read_text(encoding="utf-8") == content


def test_reset(settings: SettingsManager) -> None:
    settings.set("LAST_OPEN_BOOK", "Verbs")
    settings.set("STORAGE_DIR", "/somewhere")

    settings.reset("STORAGE_DIR")
    assert settings.get("STORAGE_DIR") == ""
    assert settings.get("LAST_OPEN_BOOK") == "Verbs"

    settings.reset()
    assert settings.get_all() == SettingsManager.DEFAULTS


def test_reload_picks_up_external_changes(settings: SettingsManager) -> None:
    settings.set("LAST_OPEN_BOOK", "Verbs")
    settings.settings_file.write_text(json.dumps({"LAST_OPEN_BOOK": "Nouns"}), encoding="utf-8")

    settings.reload()

    assert settings.get("LAST_OPEN_BOOK") == "Nouns"


def test_loggers_share_one_handler() -> None:
    first = setup_logger("typelex.services.repository")
    second = setup_logger("some_plugin")

    assert first.name == "typelex.services.repository"
    assert second.name == "typelex.some_plugin"
    assert len(logging.getLogger("typelex").handlers) == 1
