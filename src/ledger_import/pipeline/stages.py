"""
Pure pipeline stages.

Each stage takes the current PipelineState plus its settings and returns a
new state with that stage's derived fields fully replaced. Stages never
mutate their input and give equal output for equal input.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..matching.engine import (
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_SIMILARITY_FLOOR,
    auto_map_columns,
)
from ..parsing.dates import (
    DEFAULT_SAMPLE_SIZE,
    DateFormat,
    DateFormatDetection,
    analyze_date_samples,
)
from ..parsing.tokenizer import tokenize
from ..schemas.import_schema import ImportType, get_schema
from ..schemas.records import ImportContext
from ..services.reconciliation import EntityMaps, reconcile_entities
from ..services.transformer import AmountMode, TransformOptions, transform_rows
from .state import EmptyInputError, PipelineState

logger = logging.getLogger(__name__)


def detect_state_date_format(
    state: PipelineState,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> DateFormatDetection | None:
    """Run date detection on the column currently mapped to "date"."""
    column = state.column_map.get("date")
    if not column or not state.rows:
        return None
    return analyze_date_samples((row.get(column, "") for row in state.rows), sample_size)


def run_upload_stage(
    state: PipelineState,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> PipelineState:
    """
    Tokenize the raw text, auto-map columns and detect the date layout.

    Also switches transactions to double-entry mode when both credit and
    debit columns were found. Everything derived from the previous parse
    (cleaned rows, errors, exclusions, entity maps) is discarded.

    Raises:
        EmptyInputError: If there is no raw text
    """
    if not state.raw_text or not state.raw_text.strip():
        raise EmptyInputError("No file content to import")

    table = tokenize(state.raw_text, state.delimiter)
    schema = get_schema(state.import_type)
    match = auto_map_columns(table.headers, schema, threshold, similarity_floor)

    updated = replace(
        state,
        headers=table.headers,
        rows=table.rows,
        column_map=match.column_map,
        column_scores={m.field_key: m.score for m in match.matches},
        cleaned=[],
        errors={},
        excluded=frozenset(),
        entity_maps=EntityMaps(),
    )

    detection = detect_state_date_format(updated, sample_size)
    date_format = detection.format if detection else DateFormat.ISO
    amount_mode = state.amount_mode
    if (
        state.import_type == ImportType.TRANSACTIONS
        and "amountIn" in match.column_map
        and "amountOut" in match.column_map
    ):
        amount_mode = AmountMode.DOUBLE_ENTRY

    if match.missing_required:
        logger.warning("Required fields without a column: %s", ", ".join(match.missing_required))

    return replace(
        updated,
        date_detection=detection,
        date_format=date_format,
        amount_mode=amount_mode,
    )


def run_transform_stage(state: PipelineState, context: ImportContext) -> PipelineState:
    """Coerce and validate all rows.

    Entity maps are cleared: they are derived from cleaned values.
    """
    options = TransformOptions(
        date_format=state.date_format,
        amount_mode=state.amount_mode,
        account_source=state.account_source,
        single_account_id=state.single_account_id,
        default_currency=context.default_currency,
    )
    result = transform_rows(state.rows, get_schema(state.import_type), state.column_map, options)
    return replace(
        state,
        cleaned=result.cleaned,
        errors=result.errors,
        entity_maps=EntityMaps(),
    )


def run_reconcile_stage(state: PipelineState, context: ImportContext) -> PipelineState:
    """Seed the entity maps from the non-excluded cleaned rows."""
    maps = reconcile_entities(
        state.cleaned,
        state.import_type,
        context,
        account_source=state.account_source,
        excluded=state.excluded,
    )
    return replace(state, entity_maps=maps)
