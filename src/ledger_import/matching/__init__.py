"""Fuzzy header-to-field matching for CSV imports."""

from ledger_import.matching.engine import (
    ColumnMatch,
    ColumnMatchResult,
    auto_map_columns,
    calculate_match_score,
    levenshtein,
    normalize_label,
)

__all__ = [
    "ColumnMatch",
    "ColumnMatchResult",
    "auto_map_columns",
    "calculate_match_score",
    "levenshtein",
    "normalize_label",
]
