"""
Book file codec - comma-separated rows with double-quote escaping.

The scanner is shared with the library importer, which reads exports from
arbitrary spreadsheet tools. It is lenient: an unterminated
quote runs to the end of the input instead of raising.
"""

from typing import Dict, Iterable, List, Optional

from ..models.entry import FIELD_HEADERS, WordEntry

SEPARATOR = ","
QUOTE = '"'

HEADER_NAMES: List[str] = [header for _, header in FIELD_HEADERS]
HEADER: str = SEPARATOR.join(HEADER_NAMES)

_NEEDS_QUOTING = (SEPARATOR, QUOTE, "\n", "\r")


def escape(text: str) -> str:
    """Quote ``text`` if it holds a separator, quote or line break."""
    if any(ch in text for ch in _NEEDS_QUOTING):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def encode_row(entry: WordEntry) -> str:
    """Serialize one entry in header order."""
    values: List[str] = []
    for attr, _ in FIELD_HEADERS:
        value = getattr(entry, attr)
        if attr == "is_favorite":
            values.append("true" if value else "false")
        elif attr == "mistake_count":
            values.append(str(value or 0))
        else:
            values.append(escape(value or ""))
    return SEPARATOR.join(values)


def encode(entries: Iterable[WordEntry]) -> str:
    """Serialize entries into a full book file (header included)."""
    lines = [HEADER]
    lines.extend(encode_row(entry) for entry in entries)
    return "\n".join(lines) + "\n"


def parse_delimited(content: str) -> List[List[str]]:
    """
    Split delimited text into rows of fields.

    Outside quotes a comma ends a field, a double quote opens quoted mode
    and LF, CR or CRLF ends a row. Inside quotes a doubled quote is a
    literal quote, a single quote closes the field and everything else,
    commas and line breaks included, is taken literally. A last row without
    a trailing line break is still emitted.
    """
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quotes = False

    i = 0
    length = len(content)
    while i < length:
        ch = content[i]
        if in_quotes:
            if ch == QUOTE:
                if i + 1 < length and content[i + 1] == QUOTE:
                    field.append(QUOTE)
                    i += 1
                else:
                    in_quotes = False
            else:
                field.append(ch)
        elif ch == QUOTE:
            in_quotes = True
        elif ch == SEPARATOR:
            row.append("".join(field))
            field = []
        elif ch == "\n" or ch == "\r":
            if ch == "\r" and i + 1 < length and content[i + 1] == "\n":
                i += 1
            row.append("".join(field))
            rows.append(row)
            row = []
            field = []
        else:
            field.append(ch)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows


def _index_map(header_row: List[str]) -> Dict[str, int]:
    return {name.strip(): i for i, name in enumerate(header_row)}


def decode(content: str) -> List[WordEntry]:
    """
    Parse a book file into entries.

    Columns are matched by exact header name, so their order in the file
    does not matter. Rows with an empty word are skipped.
    """
    rows = parse_delimited(content)
    if not rows:
        return []

    index = _index_map(rows[0])
    entries: List[WordEntry] = []

    for fields in rows[1:]:
        if not any(fields):
            continue

        def value(header: str) -> str:
            idx: Optional[int] = index.get(header)
            if idx is None or idx >= len(fields):
                return ""
            return fields[idx]

        word = value("word")
        if not word:
            continue

        entries.append(WordEntry.from_dict({header: value(header) for header in HEADER_NAMES}))

    return entries
