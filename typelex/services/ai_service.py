"""
AI Service - Contracts for the word-info and illustration providers.

The HTTP clients live outside this package; they implement these base
classes and are handed to :class:`WordListImporter`.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models.entry import WordInfo
from .exceptions import APIError

# Prompt shared by text providers; ``{word}`` is substituted
WORD_INFO_PROMPT = """You are a dictionary assistant. Provide the details for the English word: "{word}".
Output ONLY valid JSON with no markdown formatting.

Format:
{{
  "phonetic": "IPA phonetic transcription",
  "translation": "Short translation",
  "meaning": "Simple English definition",
  "meaningTranslation": "Translation of the meaning",
  "example": "A short English example sentence.",
  "exampleTranslation": "Translation of the example."
}}"""

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")

_REQUIRED_KEYS = ("meaning", "example")


class BaseWordInfoProvider(ABC):
    """Returns structured dictionary data for a word."""

    @abstractmethod
    async def fetch_word_info(self, word: str) -> WordInfo:
        """
        Generate dictionary data for ``word``.

        Raises:
            RateLimitError, APIError, AuthenticationError
        """
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None


class BaseImageProvider(ABC):
    """Returns raw image bytes illustrating a text context."""

    @abstractmethod
    async def generate_image(self, context: str) -> Optional[bytes]:
        """Generate an image for ``context``; None when the service has nothing."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None


def build_word_info_prompt(word: str) -> str:
    """Prompt asking a text model for the JSON consumed by ``parse_word_info``."""
    return WORD_INFO_PROMPT.format(word=word)


def parse_word_info(text: str) -> WordInfo:
    """
    Parse a model answer into :class:`WordInfo`.

    Accepts bare JSON or JSON wrapped in a markdown code fence; keys may be
    camelCase or snake_case.

    Raises:
        APIError: the answer is not a JSON object with a meaning and example
    """
    clean = _CODE_FENCE.sub("", (text or "").strip()).strip()
    try:
        data: Dict[str, Any] = json.loads(clean)
    except json.JSONDecodeError as e:
        raise APIError(f"Unparseable word info: {e}") from e

    if not isinstance(data, dict):
        raise APIError("Word info is not a JSON object")

    def value(camel: str, snake: str) -> str:
        raw = data.get(camel, data.get(snake, ""))
        return str(raw).strip() if raw is not None else ""

    info = WordInfo(
        phonetic=value("phonetic", "phonetic"),
        translation=value("translation", "translation") or None,
        meaning=value("meaning", "meaning"),
        meaning_translation=value("meaningTranslation", "meaning_translation") or None,
        example=value("example", "example"),
        example_translation=value("exampleTranslation", "example_translation"),
    )

    missing = [key for key in _REQUIRED_KEYS if not getattr(info, key)]
    if missing:
        raise APIError(f"Word info is missing {', '.join(missing)}")
    return info
