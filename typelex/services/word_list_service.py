"""
Word List Service - Build entries from a pasted word list.

Each word is first looked up in every book; only unknown words are sent to
the AI providers. The run stops at the first provider failure so the caller
can show a single error message.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from ..models.entry import WordEntry
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from .ai_service import BaseImageProvider, BaseWordInfoProvider
from .exceptions import AuthenticationError
from .repository import WordRepository

logger = setup_logger(__name__)

# progress(index, total, word, message)
ProgressCallback = Callable[[int, int, str, str], None]


def split_word_list(text: str) -> List[str]:
    """One word per non-blank line, trimmed."""
    return TextParser.split_words(text)


@dataclass
class WordListResult:
    """Outcome of a word-list import."""

    total: int = 0
    imported: List[str] = field(default_factory=list)
    reused: List[str] = field(default_factory=list)
    failed_word: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def imported_count(self) -> int:
        return len(self.imported)


class WordListImporter:
    """
    Adds words to the active book, generating content for unknown ones.

    Usage:
        importer = WordListImporter(repo, text_provider, image_provider)
        result = await importer.import_words(split_word_list(pasted))
    """

    def __init__(
        self,
        repository: WordRepository,
        text_provider: Optional[BaseWordInfoProvider],
        image_provider: Optional[BaseImageProvider] = None,
    ):
        self.repository = repository
        self.text_provider = text_provider
        self.image_provider = image_provider

    def _require_text_provider(self) -> BaseWordInfoProvider:
        if self.text_provider is None:
            raise AuthenticationError("No word-info provider configured. Set an API key first.")
        return self.text_provider

    async def import_words(
        self,
        words: Iterable[str],
        progress: Optional[ProgressCallback] = None,
    ) -> WordListResult:
        """
        Import ``words`` in order.

        Words already present in some book need no provider. A word that
        needs generation without a text provider stops the run with an
        ``AuthenticationError`` in the result.

        Returns:
            Result with imported / reused words; ``error`` holds the
            failure that stopped the run
        """
        word_list = [w.strip() for w in words if w and w.strip()]
        result = WordListResult(total=len(word_list))
        logger.info("Start importing %d words...", result.total)

        def report(index: int, word: str, message: str) -> None:
            if progress is not None:
                progress(index, result.total, word, message)

        for index, word in enumerate(word_list, start=1):
            report(index, word, "Checking local library...")
            try:
                reused = await self._process_word(word, index, report)
            except Exception as e:
                logger.error("Error processing '%s': %s", word, e)
                result.failed_word = word
                result.error = e
                break

            result.imported.append(word)
            if reused:
                result.reused.append(word)

        logger.info("Import session finished. Success: %d/%d", result.imported_count, result.total)
        return result

    async def _process_word(self, word: str, index: int, report: Callable[[int, str, str], None]) -> bool:
        """Store one word; returns True if an existing entry was reused."""
        found = self.repository.find_with_source(word)
        if found is not None:
            existing, source_book = found
            logger.debug("Found locally: %s in %s", existing.word, source_book)
            report(index, word, "Found in local library!")
            self.repository.save_imported_entry(self.repository.copy_media_from(existing, source_book))
            return True

        report(index, word, "Generating definitions...")
        info = await self._require_text_provider().fetch_word_info(word)

        image_data: Optional[bytes] = None
        if self.image_provider is not None:
            report(index, word, "Generating illustration...")
            image_data = await self.image_provider.generate_image(info.example or word)

        report(index, word, "Saving...")
        self.repository.save_imported_entry(info.to_entry(word), image_data)
        return False

    async def regenerate_text(self, word: str) -> Optional[WordEntry]:
        """
        Fetch fresh dictionary data for an existing word.

        Returns:
            The updated entry, or None if the word is not in the active book
        """
        if self.repository.get(word) is None:
            return None

        info = await self._require_text_provider().fetch_word_info(word)
        self.repository.update_text_fields(
            word,
            phonetic=info.phonetic,
            translation=info.translation,
            meaning=info.meaning,
            meaning_translation=info.meaning_translation,
            example=info.example,
            example_translation=info.example_translation,
        )
        return self.repository.get(word)

    async def regenerate_image(self, word: str) -> bool:
        """
        Replace the image of an existing word.

        Returns:
            False if the word is unknown, no image provider is set or the
            provider returned nothing
        """
        entry = self.repository.get(word)
        if entry is None or self.image_provider is None:
            return False

        image_data = await self.image_provider.generate_image(entry.example or entry.word)
        if not image_data:
            logger.warning("Image provider returned nothing for %s", word)
            return False
        return self.repository.update_image(word, image_data)
