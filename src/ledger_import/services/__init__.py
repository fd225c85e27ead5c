"""Row cleaning and entity reconciliation services."""

from ledger_import.services.reconciliation import (
    EntityMaps,
    EntityReconciler,
    reconcile_entities,
)
from ledger_import.services.transformer import (
    AccountSource,
    AmountMode,
    CellResult,
    TransformOptions,
    TransformResult,
    coerce_cell,
    parse_number,
    transform_rows,
)

__all__ = [
    "AccountSource",
    "AmountMode",
    "CellResult",
    "EntityMaps",
    "EntityReconciler",
    "TransformOptions",
    "TransformResult",
    "coerce_cell",
    "parse_number",
    "reconcile_entities",
    "transform_rows",
]
