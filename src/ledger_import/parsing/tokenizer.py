"""
Quote-aware delimited text tokenizer.

Splits raw file text into a header row and one RawRow per non-blank data
line. Double-quoted fields may contain the delimiter; a doubled quote inside
a quoted field is a literal quote. This is not a full RFC 4180
reader: quoted fields cannot span lines.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache

from ..schemas.records import RawRow

logger = logging.getLogger(__name__)

LINE_BREAK = re.compile(r"\r?\n")
QUOTED_FIELD = re.compile(r'"((?:[^"]|"")*)"(.*)')


@dataclass
class ParsedTable:
    """Tokenizer output."""

    headers: list[str] = field(default_factory=list)
    rows: list[RawRow] = field(default_factory=list)


@lru_cache(maxsize=8)
def _field_pattern(delimiter: str) -> re.Pattern[str]:
    d = re.escape(delimiter)
    # Each match starts at the line start or on a delimiter and captures one
    # field: a quoted run (with "" escapes) plus any text trailing the closing
    # quote, or everything up to the next delimiter.
    return re.compile(rf'(?:^|{d})(\s*"(?:[^"]|"")*"[^{d}]*|[^{d}]*)')


def _unquote(value: str) -> str:
    value = value.strip()
    match = QUOTED_FIELD.fullmatch(value)
    if match:
        return match.group(1).replace('""', '"') + match.group(2)
    return value


def split_line(line: str, delimiter: str = ",") -> list[str]:
    """Split a single line into unquoted, stripped field values."""
    if not line.strip():
        return []
    return [_unquote(m.group(1)) for m in _field_pattern(delimiter).finditer(line)]


def tokenize(text: str, delimiter: str = ",") -> ParsedTable:
    """
    Split raw delimited text into headers and rows.

    Args:
        text: Full file contents
        delimiter: Single field separator character

    Returns:
        ParsedTable; every row has exactly one key per header, missing trailing
        values are empty strings and surplus values are dropped.

    Raises:
        ValueError: If the delimiter is not exactly one character
    """
    if len(delimiter) != 1:
        raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")

    lines = LINE_BREAK.split(text.lstrip("\ufeff"))

    header_pos = next((i for i, line in enumerate(lines) if line.strip()), None)
    if header_pos is None:
        return ParsedTable()

    headers = [h.replace('"', "") for h in split_line(lines[header_pos], delimiter)]

    rows: list[RawRow] = []
    for line in lines[header_pos + 1 :]:
        values = split_line(line, delimiter)
        if not values:
            continue
        rows.append(
            {header: values[i] if i < len(values) else "" for i, header in enumerate(headers)}
        )

    logger.debug("Tokenized %d columns, %d rows (delimiter %r)", len(headers), len(rows), delimiter)
    return ParsedTable(headers=headers, rows=rows)
