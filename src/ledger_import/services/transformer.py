"""
Row transformer: column mapping, type coercion and validation.

Each raw row is turned into either a CleanedRow or a set of per-field error
messages. Coercion happens per cell (CellResult) and the cell results are
composed into a row result, so a single bad cell never stops the batch.

Rules per mapped field, in order:
1. Date fields (key contains "date"): parse with the selected layout
2. Numeric fields: keep digits, dot and minus, read the leading number
3. Required fields: an empty or missing value is always an error

Transactions get extra handling after the generic pass: double-entry amounts,
account source and the default currency.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from ..parsing.dates import DateFormat, parse_date
from ..schemas.import_schema import FieldSpec, ImportSchema
from ..schemas.records import CleanedRow, ColumnMap, ErrorMap, RawRow

logger = logging.getLogger(__name__)

# Field keys coerced to Decimal
NUMERIC_FIELD_KEYS = frozenset(
    {"amount", "balance", "total", "quantity", "currentAmount", "amountIn", "amountOut"}
)

NON_NUMERIC = re.compile(r"[^0-9.\-]")
LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

MISSING_REQUIRED = "Missing required field"
MISSING_ACCOUNT = "Missing account"
INVALID_DOUBLE_ENTRY = "Invalid double entry amounts"


class AmountMode(str, Enum):
    """How a transaction's signed amount is read."""

    SINGLE_SIGNED = "single_signed"  # One signed amount column
    DOUBLE_ENTRY = "double_entry"  # amount = credit (in) - debit (out)


class AccountSource(str, Enum):
    """Where a transaction's account comes from."""

    COLUMN = "column"  # Per-row account column
    SINGLE = "single"  # One account chosen for the whole file


@dataclass(frozen=True)
class TransformOptions:
    """User choices that drive coercion."""

    date_format: DateFormat = DateFormat.ISO
    amount_mode: AmountMode = AmountMode.SINGLE_SIGNED
    account_source: AccountSource = AccountSource.COLUMN
    single_account_id: Optional[str] = None
    default_currency: str = "EUR"


@dataclass(frozen=True)
class CellResult:
    """Coerced value of one cell, or the reason it was rejected."""

    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RowResult:
    """Composed cell results for one raw row."""

    index: int
    values: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    def add(self, key: str, cell: CellResult) -> None:
        self.values[key] = cell.value
        if cell.error:
            self.errors[key] = cell.error

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class TransformResult:
    """Cleaned rows and the error map for rows that failed validation."""

    cleaned: list[CleanedRow] = field(default_factory=list)
    errors: ErrorMap = field(default_factory=dict)


def parse_number(value: Any) -> Optional[Decimal]:
    """
    Read a number from a messy cell ("$1,234.50", "-12 EUR").

    Everything except digits, dot and minus is dropped and the leading
    numeric prefix is read, so "1.5-2" gives 1.5.

    Returns:
        Decimal or None if no number is present
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    match = LEADING_NUMBER.match(NON_NUMERIC.sub("", str(value)))
    if not match:
        return None
    try:
        return Decimal(match.group())
    except InvalidOperation:
        return None


def coerce_cell(spec: FieldSpec, raw: Optional[str], date_format: DateFormat) -> CellResult:
    """Coerce one raw cell according to its field spec."""
    value: Any = raw if raw not in (None, "") else None
    error: Optional[str] = None

    if "date" in spec.key.lower() and value is not None:
        parsed = parse_date(value, date_format)
        if parsed is not None:
            value = parsed
        elif spec.required:
            error = f"Invalid date: {value}"

    if spec.key in NUMERIC_FIELD_KEYS and value is not None:
        number = parse_number(value)
        if number is not None:
            value = number
        elif spec.required:
            error = f"Invalid number: {value}"

    if spec.required and value is None:
        error = MISSING_REQUIRED

    return CellResult(value=value, error=error)


def _raw_value(row: RawRow, column_map: ColumnMap, key: str) -> Optional[str]:
    header = column_map.get(key)
    if not header:
        return None
    return row.get(header)


def _apply_transaction_rules(
    result: RowResult,
    row: RawRow,
    column_map: ColumnMap,
    options: TransformOptions,
) -> None:
    if options.amount_mode == AmountMode.DOUBLE_ENTRY:
        amount_in = parse_number(_raw_value(row, column_map, "amountIn") or "0")
        amount_out = parse_number(_raw_value(row, column_map, "amountOut") or "0")
        if amount_in is None or amount_out is None:
            result.errors["amount"] = INVALID_DOUBLE_ENTRY
        else:
            result.values["amount"] = amount_in - amount_out

    if options.account_source == AccountSource.SINGLE:
        result.values["account"] = options.single_account_id
    else:
        account = _raw_value(row, column_map, "account")
        result.values["account"] = account or None
        if not account:
            result.errors["account"] = MISSING_ACCOUNT

    if not result.values.get("currency"):
        result.values["currency"] = options.default_currency


def transform_row(
    row: RawRow,
    index: int,
    schema: ImportSchema,
    column_map: ColumnMap,
    options: TransformOptions,
) -> RowResult:
    """Coerce and validate a single raw row."""
    result = RowResult(index=index)
    takes_account = schema.has_account_source

    for spec in schema.fields:
        if (
            takes_account
            and spec.key == "amount"
            and options.amount_mode == AmountMode.DOUBLE_ENTRY
        ):
            continue
        raw = _raw_value(row, column_map, spec.key)
        result.add(spec.key, coerce_cell(spec, raw, options.date_format))

    if takes_account:
        _apply_transaction_rules(result, row, column_map, options)

    return result


def transform_rows(
    rows: list[RawRow],
    schema: ImportSchema,
    column_map: ColumnMap,
    options: TransformOptions,
) -> TransformResult:
    """
    Clean every raw row.

    Args:
        rows: Tokenizer output, index-stable
        schema: Active import schema
        column_map: Field key -> CSV header
        options: Date layout, amount mode, account source, default currency

    Returns:
        TransformResult; each row index lands in exactly one of
        cleaned/errors. Calling twice with the same inputs gives equal results.
    """
    outcome = TransformResult()

    for index, row in enumerate(rows):
        result = transform_row(row, index, schema, column_map, options)
        if result.ok:
            outcome.cleaned.append(CleanedRow(original_index=index, values=result.values))
        else:
            outcome.errors[index] = result.errors
            logger.debug("Row %d rejected: %s", index, result.errors)

    logger.info(
        "Cleaned %d %s rows (%d rejected)",
        len(outcome.cleaned),
        schema.import_type.value,
        len(outcome.errors),
    )
    return outcome
