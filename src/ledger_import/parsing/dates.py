"""
Date layout detection and parsing.

Bank exports rarely say which date layout they use. The detector looks at a
sample of the mapped date column and decides between ISO, month-first and
day-first layouts; parse_date then reads single values with that layout.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional

from dateutil import parser as dateutil_parser

from ..schemas.records import RawRow

logger = logging.getLogger(__name__)

ISO_SHAPE = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}$")
SLASHED_SHAPE = re.compile(r"^\d{1,2}[-/]\d{1,2}[-/]\d{2,4}$")
DIGIT_GROUPS = re.compile(r"\d+")

DEFAULT_SAMPLE_SIZE = 20

# Two unrelated defaults; a free-form value that parses differently under
# each one is missing a day, month or year.
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class DateFormat(str, Enum):
    """Supported date layouts."""

    ISO = "YYYY-MM-DD"
    MDY = "MM/DD/YYYY"
    DMY = "DD/MM/YYYY"


# Tie-break order when scores are equal
_TIE_ORDER = (DateFormat.ISO, DateFormat.MDY, DateFormat.DMY)


@dataclass
class DateFormatDetection:
    """Outcome of date layout detection."""

    format: DateFormat
    scores: dict[DateFormat, int] = field(default_factory=dict)
    samples: int = 0
    # True when the layout was picked by tie-break or fallback rather than evidence
    ambiguous: bool = False


def analyze_date_samples(
    values: Iterable[str],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> DateFormatDetection:
    """
    Infer the date layout of a column from its values.

    Args:
        values: Raw cell values of the date column
        sample_size: Maximum number of non-empty values to inspect

    Returns:
        DateFormatDetection with the chosen layout and per-layout scores
    """
    samples: list[str] = []
    for value in values:
        if value and value.strip():
            samples.append(value.strip())
            if len(samples) >= sample_size:
                break

    scores = {fmt: 0 for fmt in _TIE_ORDER}
    if not samples:
        return DateFormatDetection(format=DateFormat.ISO, scores=scores, ambiguous=True)

    likely_dmy = False
    likely_mdy = False

    for sample in samples:
        if ISO_SHAPE.match(sample):
            scores[DateFormat.ISO] += 1
        elif SLASHED_SHAPE.match(sample):
            p1, p2, _ = (int(part) for part in re.split(r"[-/]", sample))
            if p1 > 12:
                likely_dmy = True
            if p2 > 12:
                likely_mdy = True
            if 1 <= p1 <= 12:
                scores[DateFormat.MDY] += 1
            if 1 <= p2 <= 12:
                scores[DateFormat.DMY] += 1

    if likely_dmy and not likely_mdy:
        return DateFormatDetection(DateFormat.DMY, scores, len(samples))
    if likely_mdy and not likely_dmy:
        return DateFormatDetection(DateFormat.MDY, scores, len(samples))

    best = max(scores.values())
    if best == 0:
        logger.warning(
            "No recognizable dates in %d samples, assuming %s", len(samples), DateFormat.DMY.value
        )
        return DateFormatDetection(DateFormat.DMY, scores, len(samples), ambiguous=True)

    winners = [fmt for fmt in _TIE_ORDER if scores[fmt] == best]
    ambiguous = len(winners) > 1
    if ambiguous:
        logger.warning(
            "Ambiguous date layout (%s), picking %s",
            ", ".join(f"{fmt.value}={scores[fmt]}" for fmt in _TIE_ORDER),
            winners[0].value,
        )
    return DateFormatDetection(winners[0], scores, len(samples), ambiguous=ambiguous)


def detect_date_format(
    rows: list[RawRow],
    column: str | None,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> DateFormat:
    """Detect the date layout of a mapped column; ISO when there is nothing to inspect."""
    if not column or not rows:
        return DateFormat.ISO
    return analyze_date_samples((row.get(column, "") for row in rows), sample_size).format


def parse_date(value: str, fmt: DateFormat | str) -> Optional[date]:
    """
    Parse a single date value with a known layout.

    Values with fewer than three digit groups (e.g. "Jan 5, 2024") fall back
    to a lenient free-form parse, which must still name a day, month and
    year ("Mar 2023" and "5" are rejected). Two-digit years are read as
    20xx. Dates that do not exist (31 April, 29 February in a common year)
    are rejected.

    Returns:
        Parsed date or None if the value cannot be read
    """
    if not value or not value.strip():
        return None

    groups = DIGIT_GROUPS.findall(value)
    if len(groups) < 3:
        return _parse_free_form(value.strip())

    fmt = DateFormat(fmt)
    p1, p2, p3 = groups[:3]
    if fmt == DateFormat.ISO:
        year_s, month_s, day_s = p1, p2, p3
    elif fmt == DateFormat.MDY:
        month_s, day_s, year_s = p1, p2, p3
    else:
        day_s, month_s, year_s = p1, p2, p3

    year = int(year_s)
    if len(year_s) == 2:
        year += 2000

    try:
        return date(year, int(month_s), int(day_s))
    except (ValueError, OverflowError):
        return None


def _parse_free_form(value: str) -> Optional[date]:
    try:
        parsed = {
            dateutil_parser.parse(value, default=default).date() for default in _FILL_DEFAULTS
        }
    except (ValueError, OverflowError):
        return None
    if len(parsed) != 1:
        return None
    return parsed.pop()
