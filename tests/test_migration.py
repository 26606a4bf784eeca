from __future__ import annotations

import json
from pathlib import Path

from typelex.models import WordEntry
from typelex.services import MigrationRunner
from typelex.utils.csv_codec import HEADER, decode, encode


def _snapshot(root: Path) -> dict:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def _read_book(root: Path, name: str) -> list[WordEntry]:
    return decode((root / name / f"{name}.csv").read_text(encoding="utf-8"))


def test_legacy_json_becomes_folder_book_in_one_run(storage: Path) -> None:
    legacy = [
        {"word": "abandon", "meaning": "v. 拋棄", "localImagePath": "foo.png", "isFavorite": True, "mistakeCount": 2},
        {"word": "", "meaning": "dropped"},
    ]
    (storage / "Verbs.json").write_text(json.dumps(legacy, ensure_ascii=False), encoding="utf-8")
    (storage / "foo.png").write_bytes(b"png")

    report = MigrationRunner(storage).run()

    assert report.converted_legacy == ["Verbs"]
    assert report.migrated_books == ["Verbs"]
    assert report.moved_media == 1
    assert report.failed == []
    assert not (storage / "Verbs.json").exists()
    assert not (storage / "Verbs.csv").exists()
    assert not (storage / "foo.png").exists()
    assert (storage / "Verbs" / "media" / "foo.png").read_bytes() == b"png"

    entries = _read_book(storage, "Verbs")
    assert len(entries) == 1
    assert entries[0].local_image_path == "media/foo.png"
    assert entries[0].is_favorite is True
    assert entries[0].mistake_count == 2


def test_paths_with_separators_are_left_alone(storage: Path) -> None:
    entries = [
        WordEntry(word="a", meaning="x", local_image_path="media/a.png"),
        WordEntry(word="b", meaning="y", sound_path="/Users/me/b.mp3"),
        WordEntry(word="c", meaning="z", sound_example_path="gone.mp3"),
    ]
    (storage / "Flat.csv").write_text(encode(entries), encoding="utf-8")

    report = MigrationRunner(storage).run()

    assert report.migrated_books == ["Flat"]
    assert report.moved_media == 0
    migrated = _read_book(storage, "Flat")
    assert migrated[0].local_image_path == "media/a.png"
    assert migrated[1].sound_path == "/Users/me/b.mp3"
    assert migrated[2].sound_example_path == "gone.mp3"
    assert (storage / "Flat" / "media").is_dir()


def test_second_run_is_a_no_op(storage: Path) -> None:
    (storage / "Verbs.json").write_text(json.dumps([{"word": "go", "meaning": "move", "localImagePath": "go.png"}]))
    (storage / "go.png").write_bytes(b"png")
    (storage / "Nouns.csv").write_text(HEADER + "\ncat,,,animal,,,,,,,,,false,0\n", encoding="utf-8")

    assert MigrationRunner(storage).run().changed
    before = _snapshot(storage)

    report = MigrationRunner(storage).run()

    assert not report.changed
    assert report.failed == []
    assert _snapshot(storage) == before


def test_broken_json_is_left_in_place(storage: Path) -> None:
    (storage / "Broken.json").write_text("{not json", encoding="utf-8")
    (storage / "Object.json").write_text('{"word": "x"}', encoding="utf-8")
    (storage / "Good.json").write_text('[{"word": "ok", "meaning": "fine"}]', encoding="utf-8")

    report = MigrationRunner(storage).run()

    assert sorted(report.failed) == ["Broken.json", "Object.json"]
    assert report.converted_legacy == ["Good"]
    assert (storage / "Broken.json").read_text(encoding="utf-8") == "{not json"
    assert (storage / "Object.json").exists()
    assert [e.word for e in _read_book(storage, "Good")] == ["ok"]


def test_interrupted_run_is_resumed(storage: Path) -> None:
    media = storage / "Flat" / "media"
    media.mkdir(parents=True)
    (media / "x.png").write_bytes(b"png")
    (storage / "Flat.csv").write_text(
        encode([WordEntry(word="x", meaning="m", local_image_path="x.png")]), encoding="utf-8"
    )

    report = MigrationRunner(storage).run()

    assert report.migrated_books == ["Flat"]
    assert report.moved_media == 0
    assert _read_book(storage, "Flat")[0].local_image_path == "media/x.png"
    assert not (storage / "Flat.csv").exists()


def test_flat_book_merges_into_existing_folder_book(storage: Path, write_book) -> None:
    write_book(storage, "Mixed", encode([
        WordEntry(word="keep", meaning="folder only"),
        WordEntry(word="Both", meaning="folder version"),
    ]))
    (storage / "Mixed.csv").write_text(
        encode([WordEntry(word="both", meaning="flat version"), WordEntry(word="new", meaning="flat only")]),
        encoding="utf-8",
    )

    MigrationRunner(storage).run()

    entries = _read_book(storage, "Mixed")
    assert [(e.word, e.meaning) for e in entries] == [
        ("keep", "folder only"),
        ("both", "flat version"),
        ("new", "flat only"),
    ]


def test_missing_root_is_ignored(tmp_path: Path) -> None:
    report = MigrationRunner(tmp_path / "absent").run()
    assert not report.changed
    assert report.failed == []
