"""Data models for TypeLex."""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional, Tuple

# Column order of the book file; attribute name -> header name
FIELD_HEADERS: List[Tuple[str, str]] = [
    ("word", "word"),
    ("phonetic", "phonetic"),
    ("translation", "translation"),
    ("meaning", "meaning"),
    ("meaning_translation", "meaningTranslation"),
    ("example", "example"),
    ("example_translation", "exampleTranslation"),
    ("image_name", "imageName"),
    ("local_image_path", "localImagePath"),
    ("sound_path", "soundPath"),
    ("sound_meaning_path", "soundMeaningPath"),
    ("sound_example_path", "soundExamplePath"),
    ("is_favorite", "isFavorite"),
    ("mistake_count", "mistakeCount"),
]

# Fields holding a path relative to the book folder
PATH_FIELDS: Tuple[str, ...] = (
    "local_image_path",
    "sound_path",
    "sound_meaning_path",
    "sound_example_path",
)


@dataclass
class WordEntry:
    """One vocabulary item. ``None`` marks an unset optional field."""

    word: str
    meaning: str = ""

    phonetic: Optional[str] = None
    translation: Optional[str] = None
    meaning_translation: Optional[str] = None
    example: Optional[str] = None
    example_translation: Optional[str] = None

    # Bundled asset name vs. runtime file inside the book folder
    image_name: Optional[str] = None
    local_image_path: Optional[str] = None

    sound_path: Optional[str] = None
    sound_meaning_path: Optional[str] = None
    sound_example_path: Optional[str] = None

    is_favorite: bool = False
    mistake_count: int = 0

    @property
    def key(self) -> str:
        """Identity inside a book: the lowercased word."""
        return self.word.lower()

    def matches(self, word: str) -> bool:
        """Case-insensitive comparison against another word."""
        return self.key == word.strip().lower()

    def media_paths(self) -> Dict[str, str]:
        """Path-valued fields that are set, keyed by attribute name."""
        return {
            name: getattr(self, name)
            for name in PATH_FIELDS
            if getattr(self, name)
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase names used by the book header."""
        data = asdict(self)
        return {header: data[attr] for attr, header in FIELD_HEADERS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordEntry":
        """
        Build an entry from a camelCase (or snake_case) mapping.

        Unknown keys are ignored, empty strings become ``None`` for
        optional fields and a missing mistake count becomes 0.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for attr, header in FIELD_HEADERS:
            if header in data:
                kwargs[attr] = data[header]
            elif attr in data:
                kwargs[attr] = data[attr]

        word = str(kwargs.pop("word", "") or "")
        meaning = kwargs.pop("meaning", "") or ""
        entry = cls(word=word, meaning=str(meaning))

        for attr, value in kwargs.items():
            if attr not in known:
                continue
            if attr == "is_favorite":
                entry.is_favorite = value is True or str(value).lower() == "true"
            elif attr == "mistake_count":
                try:
                    entry.mistake_count = max(int(value or 0), 0)
                except (TypeError, ValueError):
                    entry.mistake_count = 0
            else:
                setattr(entry, attr, str(value) if value not in (None, "") else None)
        return entry


@dataclass
class WordInfo:
    """Structured text returned by an AI word-info provider."""

    phonetic: str = ""
    translation: Optional[str] = None
    meaning: str = ""
    meaning_translation: Optional[str] = None
    example: str = ""
    example_translation: str = ""

    def to_entry(self, word: str) -> WordEntry:
        """Assemble a fresh entry (no media yet) for ``word``."""
        return WordEntry(
            word=word,
            phonetic=self.phonetic or None,
            translation=self.translation or None,
            meaning=self.meaning,
            meaning_translation=self.meaning_translation or None,
            example=self.example or None,
            example_translation=self.example_translation or None,
        )
