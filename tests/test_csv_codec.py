from __future__ import annotations

import pytest

from typelex.models import WordEntry
from typelex.utils.csv_codec import HEADER, decode, encode, escape, parse_delimited


def test_header_lists_every_field_in_order() -> None:
    assert HEADER == (
        "word,phonetic,translation,meaning,meaningTranslation,example,exampleTranslation,"
        "imageName,localImagePath,soundPath,soundMeaningPath,soundExamplePath,isFavorite,mistakeCount"
    )


def test_encode_empty_list_is_header_only() -> None:
    assert encode([]) == HEADER + "\n"


def test_encode_writes_plain_fields_raw_and_flags_as_literals() -> None:
    entry = WordEntry(word="run", meaning="to move fast", is_favorite=True, mistake_count=3)
    row = encode([entry]).splitlines()[1]
    assert row == "run,,,to move fast,,,,,,,,,true,3"


@pytest.mark.parametrize(
    ("raw", "escaped"),
    [
        ("plain", "plain"),
        ("a,b", '"a,b"'),
        ('say "hi"', '"say ""hi"""'),
        ("line\nbreak", '"line\nbreak"'),
        ("carriage\rreturn", '"carriage\rreturn"'),
    ],
)
def test_escape(raw: str, escaped: str) -> None:
    assert escape(raw) == escaped


@pytest.mark.parametrize(
    "value",
    [
        "comma, inside",
        'quote " inside',
        '""',
        "multi\nline\r\nvalue",
        "trailing newline\n",
        "拋棄，放棄",
    ],
)
def test_special_characters_survive_a_round_trip(value: str) -> None:
    entry = WordEntry(word="abandon", meaning=value, example=value)
    decoded = decode(encode([entry]))
    assert len(decoded) == 1
    assert decoded[0].meaning == value
    assert decoded[0].example == value


def test_round_trip_keeps_every_field() -> None:
    entries = [
        WordEntry(
            word="abandon",
            phonetic="/ə'bændən/",
            translation="拋棄",
            meaning="v. 拋棄，放棄",
            meaning_translation="拋棄某物或某人",
            example="The crew had to abandon the sinking ship.",
            example_translation="船員們不得不棄船。",
            local_image_path="media/abandon_1.png",
            sound_path="media/abandon.mp3",
            sound_meaning_path="media/abandon_m.mp3",
            sound_example_path="media/abandon_e.mp3",
            is_favorite=True,
            mistake_count=7,
        ),
        WordEntry(word="bundle", meaning="", image_name="bundle_asset"),
    ]
    assert decode(encode(entries)) == entries


def test_empty_optional_fields_decode_as_unset() -> None:
    decoded = decode(encode([WordEntry(word="x", meaning="m", phonetic="")]))
    assert decoded[0].phonetic is None
    assert decoded[0].meaning == "m"


def test_parse_handles_all_line_terminators() -> None:
    assert parse_delimited("a,b\nc,d\r\ne,f\rg,h") == [
        ["a", "b"],
        ["c", "d"],
        ["e", "f"],
        ["g", "h"],
    ]


def test_parse_emits_unterminated_last_row() -> None:
    assert parse_delimited("a,b\nc,") == [["a", "b"], ["c", ""]]


def test_parse_quoted_fields() -> None:
    rows = parse_delimited('"a,1","say ""hi""","x\ny"\n')
    assert rows == [["a,1", 'say "hi"', "x\ny"]]


def test_parse_unterminated_quote_runs_to_end_of_input() -> None:
    assert parse_delimited('a,"b,c\nd') == [["a", "b,c\nd"]]


def test_parse_empty_input() -> None:
    assert parse_delimited("") == []


def test_decode_skips_rows_without_word_and_blank_rows() -> None:
    content = HEADER + "\n" + ",,,orphan meaning\n\n" + "hello,,,a greeting\n"
    entries = decode(content)
    assert [e.word for e in entries] == ["hello"]


def test_decode_maps_columns_by_header_name() -> None:
    content = "meaning,word,isFavorite\na greeting,hello,true\n"
    entries = decode(content)
    assert entries == [WordEntry(word="hello", meaning="a greeting", is_favorite=True)]


def test_decode_defaults_bad_mistake_count_to_zero() -> None:
    content = "word,meaning,mistakeCount\nhello,hi,lots\n"
    assert decode(content)[0].mistake_count == 0


def test_from_dict_accepts_legacy_json_shape() -> None:
    entry = WordEntry.from_dict(
        {"word": "abandon", "meaning": "v.", "localImagePath": "foo.png", "isFavorite": True, "mistakeCount": None}
    )
    assert entry.local_image_path == "foo.png"
    assert entry.is_favorite is True
    assert entry.mistake_count == 0
