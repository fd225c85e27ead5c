"""Column matching engine for mapping CSV headers onto schema fields.

Every (header, field) pair gets a 0-100 score from the field's keyword
synonyms:

- Exact: normalized header equals a normalized keyword (100)
- Contains: keyword is a substring of the header (70-90, longer keyword wins)
- Fuzzy: edit-distance similarity above the floor (up to 70)

Assignment is greedy and order-dependent: required fields pick first, and a
header claimed by one field is no longer available to the others.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from ledger_import.schemas.import_schema import FieldSpec, ImportSchema
from ledger_import.schemas.records import ColumnMap

logger = logging.getLogger(__name__)

NON_ALNUM = re.compile(r"[^a-z0-9]")

# Score constants
SCORE_EXACT = 100.0
SCORE_CONTAINS_BASE = 70.0
SCORE_CONTAINS_SPAN = 20.0
SCORE_FUZZY_SCALE = 70.0

DEFAULT_MATCH_THRESHOLD = 40.0
DEFAULT_SIMILARITY_FLOOR = 0.6


def normalize_label(value: str) -> str:
    """Lower-case and drop everything that is not a-z or 0-9."""
    return NON_ALNUM.sub("", value.lower())


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit cost insert, delete and substitute."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def calculate_match_score(
    header: str,
    keywords: Iterable[str],
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
) -> float:
    """Score a CSV header against a field's keyword list (0-100)."""
    normalized_header = normalize_label(header)
    if not normalized_header:
        return 0.0

    best = 0.0
    for keyword in keywords:
        normalized_keyword = normalize_label(keyword)
        if not normalized_keyword:
            continue

        if normalized_header == normalized_keyword:
            score = SCORE_EXACT
        elif normalized_keyword in normalized_header:
            ratio = len(normalized_keyword) / len(normalized_header)
            score = SCORE_CONTAINS_BASE + SCORE_CONTAINS_SPAN * ratio
        else:
            distance = levenshtein(normalized_header, normalized_keyword)
            similarity = 1 - distance / max(len(normalized_header), len(normalized_keyword))
            score = similarity * SCORE_FUZZY_SCALE if similarity > similarity_floor else 0.0

        if score > best:
            best = score
    return best


@dataclass
class ColumnMatch:
    """Chosen header for one field and the score that won it."""

    field_key: str
    header: str
    score: float

    def to_dict(self) -> dict:
        return {"field": self.field_key, "header": self.header, "score": round(self.score, 2)}


@dataclass
class ColumnMatchResult:
    """Result of auto-mapping a header row onto a schema."""

    matches: list[ColumnMatch] = field(default_factory=list)
    unmapped_fields: list[str] = field(default_factory=list)
    unused_headers: list[str] = field(default_factory=list)
    missing_required: list[str] = field(default_factory=list)

    @property
    def column_map(self) -> ColumnMap:
        return {m.field_key: m.header for m in self.matches}


def _required_first(fields: Iterable[FieldSpec]) -> list[FieldSpec]:
    # sorted() is stable, so declaration order is kept inside each group
    return sorted(fields, key=lambda spec: not spec.required)


def auto_map_columns(
    headers: list[str],
    schema: ImportSchema,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
) -> ColumnMatchResult:
    """Greedily assign CSV headers to schema fields.

    Args:
        headers: Header row in file order.
        schema: Target import schema.
        threshold: A header must score strictly above this to be assigned.
        similarity_floor: Minimum fuzzy similarity passed to the scorer.

    Returns:
        ColumnMatchResult with the mapping and per-field scores.
    """
    available = list(headers)
    result = ColumnMatchResult()

    for spec in _required_first(schema.fields):
        best_header = ""
        best_score = 0.0
        for header in available:
            score = calculate_match_score(header, spec.keywords, similarity_floor)
            if score > best_score:
                best_header, best_score = header, score

        if best_header and best_score > threshold:
            result.matches.append(ColumnMatch(spec.key, best_header, best_score))
            available.remove(best_header)
            logger.debug("Mapped field %s -> %r (score %.1f)", spec.key, best_header, best_score)
        else:
            result.unmapped_fields.append(spec.key)
            if spec.required:
                result.missing_required.append(spec.key)

    result.unused_headers = available
    logger.info(
        "Auto-mapped %d of %d %s fields",
        len(result.matches),
        len(schema.fields),
        schema.import_type.value,
    )
    return result
