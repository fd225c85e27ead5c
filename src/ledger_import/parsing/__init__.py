"""Delimited text tokenizing and date layout handling."""

from ledger_import.parsing.dates import (
    DateFormat,
    DateFormatDetection,
    analyze_date_samples,
    detect_date_format,
    parse_date,
)
from ledger_import.parsing.tokenizer import ParsedTable, split_line, tokenize

__all__ = [
    "DateFormat",
    "DateFormatDetection",
    "ParsedTable",
    "analyze_date_samples",
    "detect_date_format",
    "parse_date",
    "split_line",
    "tokenize",
]
