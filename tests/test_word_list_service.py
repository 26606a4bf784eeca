from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from typelex.models import WordEntry, WordInfo
from typelex.services import (
    APIError,
    AuthenticationError,
    BaseImageProvider,
    BaseWordInfoProvider,
    RateLimitError,
    WordListImporter,
    WordRepository,
    parse_word_info,
    split_word_list,
)
from typelex.services.ai_service import build_word_info_prompt


class FakeTextProvider(BaseWordInfoProvider):
    def __init__(self, fail_on: Optional[str] = None):
        self.calls: list[str] = []
        self.fail_on = fail_on

    async def fetch_word_info(self, word: str) -> WordInfo:
        self.calls.append(word)
        if word == self.fail_on:
            raise RateLimitError("slow down")
        return WordInfo(
            phonetic=f"/{word}/",
            meaning=f"meaning of {word}",
            example=f"An example with {word}.",
            example_translation="",
        )


class FakeImageProvider(BaseImageProvider):
    def __init__(self, data: Optional[bytes] = b"img"):
        self.contexts: list[str] = []
        self.data = data

    async def generate_image(self, context: str) -> Optional[bytes]:
        self.contexts.append(context)
        return self.data


def test_split_word_list() -> None:
    assert split_word_list("  apple \r\n\nbanana\rcherry  pie\n") == ["apple", "banana", "cherry pie"]
    assert split_word_list("") == []


def test_unknown_words_are_generated(repo: WordRepository) -> None:
    text, image = FakeTextProvider(), FakeImageProvider()
    progress = []

    result = asyncio.run(
        WordListImporter(repo, text, image).import_words(
            ["apple", "banana"], progress=lambda i, total, word, msg: progress.append((i, total, word))
        )
    )

    assert result.success
    assert result.imported == ["apple", "banana"]
    assert result.reused == []
    assert text.calls == ["apple", "banana"]
    assert image.contexts == ["An example with apple.", "An example with banana."]

    apple = repo.get("apple")
    assert apple.meaning == "meaning of apple"
    assert apple.local_image_path.startswith("media/apple_")
    assert repo.resolve_path(apple.local_image_path).read_bytes() == b"img"
    assert (1, 2, "apple") in progress
    assert (2, 2, "banana") in progress


def test_known_words_are_reused_without_providers(repo: WordRepository) -> None:
    repo.create("Fruits")
    repo.add_or_update(WordEntry(word="Apple", meaning="a fruit"))
    repo.load("Default")
    text = FakeTextProvider()

    result = asyncio.run(WordListImporter(repo, text).import_words(["apple"]))

    assert result.reused == ["apple"]
    assert result.imported == ["apple"]
    assert text.calls == []
    assert repo.current_book_name == "Default"
    assert repo.get("apple").meaning == "a fruit"


def test_run_stops_at_first_failure(repo: WordRepository) -> None:
    text = FakeTextProvider(fail_on="bad")

    result = asyncio.run(WordListImporter(repo, text).import_words(["good", "bad", "never"]))

    assert not result.success
    assert isinstance(result.error, RateLimitError)
    assert result.failed_word == "bad"
    assert result.imported == ["good"]
    assert result.total == 3
    assert text.calls == ["good", "bad"]
    assert repo.get("never") is None


def test_missing_text_provider_stops_at_first_generated_word(repo: WordRepository) -> None:
    repo.add_or_update(WordEntry(word="pear", meaning="a fruit"))

    result = asyncio.run(WordListImporter(repo, None).import_words(["pear", "apple", "plum"]))

    assert isinstance(result.error, AuthenticationError)
    assert result.failed_word == "apple"
    assert result.imported == ["pear"]
    assert result.reused == ["pear"]


def test_reused_word_brings_its_media_along(repo: WordRepository) -> None:
    repo.create("Animals")
    stored = repo.save_imported_entry(
        WordEntry(word="cat", meaning="animal", sound_path="media/missing.mp3"), b"catimg"
    )
    repo.load("Default")

    result = asyncio.run(WordListImporter(repo, None).import_words(["cat"]))

    assert result.success
    assert result.reused == ["cat"]
    cat = repo.get("cat")
    image = repo.resolve_path(cat.local_image_path)
    assert cat.local_image_path == stored.local_image_path
    assert image.parent == repo.current_media_folder
    assert image.read_bytes() == b"catimg"
    assert cat.sound_path is None


def test_regenerate_text(repo: WordRepository) -> None:
    repo.add_or_update(WordEntry(word="apple", meaning="old", sound_path="media/apple.mp3"))

    entry = asyncio.run(WordListImporter(repo, FakeTextProvider()).regenerate_text("apple"))

    assert entry.meaning == "meaning of apple"
    assert entry.phonetic == "/apple/"
    assert entry.sound_path == "media/apple.mp3"
    assert asyncio.run(WordListImporter(repo, FakeTextProvider()).regenerate_text("pear")) is None


def test_regenerate_image(repo: WordRepository) -> None:
    repo.add_or_update(WordEntry(word="apple", meaning="fruit", example="I eat an apple."))
    image = FakeImageProvider(b"fresh")
    importer = WordListImporter(repo, FakeTextProvider(), image)

    assert asyncio.run(importer.regenerate_image("apple")) is True
    assert image.contexts == ["I eat an apple."]
    assert repo.resolve_path(repo.get("apple").local_image_path).read_bytes() == b"fresh"

    assert asyncio.run(importer.regenerate_image("pear")) is False
    assert asyncio.run(WordListImporter(repo, None, FakeImageProvider(None)).regenerate_image("apple")) is False


def test_parse_word_info_accepts_fenced_json() -> None:
    text = (
        "```json\n"
        '{"phonetic": "/ˈæp.əl/", "translation": "蘋果", "meaning": "a round fruit",'
        ' "meaningTranslation": "圓形水果", "example": "An apple a day.", "exampleTranslation": "一天一蘋果。"}\n'
        "```"
    )

    info = parse_word_info(text)

    assert info.translation == "蘋果"
    assert info.meaning_translation == "圓形水果"
    assert info.to_entry("apple").example_translation == "一天一蘋果。"


def test_parse_word_info_accepts_snake_case() -> None:
    info = parse_word_info('{"meaning": "m", "example": "e", "meaning_translation": "mt"}')
    assert info.meaning_translation == "mt"
    assert info.translation is None


@pytest.mark.parametrize("text", ["not json", "[1, 2]", '{"meaning": "only meaning"}', ""])
def test_parse_word_info_rejects_bad_answers(text: str) -> None:
    with pytest.raises(APIError):
        parse_word_info(text)


def test_prompt_names_the_word() -> None:
    prompt = build_word_info_prompt("abandon")
    assert '"abandon"' in prompt
    assert '"exampleTranslation"' in prompt
