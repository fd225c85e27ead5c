"""
SSOT (Single Source of Truth) schemas for the import pipeline.

These canonical schemas are the ONLY models used across all modules.
No duplicated "near-same" models allowed.
"""

from .import_schema import (
    SCHEMA_CATALOG,
    FieldSpec,
    ImportSchema,
    ImportType,
    get_schema,
)
from .records import (
    CREATE_NEW_PREFIX,
    SKIP_TOKEN,
    UNASSIGNED_TOKEN,
    Account,
    AccountRecord,
    Category,
    CleanedRow,
    ColumnMap,
    EntityAction,
    EntityKind,
    EntityMap,
    EntityRef,
    ErrorMap,
    ImportContext,
    ImportedRecord,
    PublishResult,
    RawRow,
    TransactionRecord,
    TypedRow,
    flatten_categories,
)

__all__ = [
    # Import schema catalog
    "FieldSpec",
    "ImportSchema",
    "ImportType",
    "SCHEMA_CATALOG",
    "get_schema",
    # Row shapes
    "RawRow",
    "ColumnMap",
    "CleanedRow",
    "ErrorMap",
    # Entity references
    "EntityAction",
    "EntityKind",
    "EntityMap",
    "EntityRef",
    "CREATE_NEW_PREFIX",
    "UNASSIGNED_TOKEN",
    "SKIP_TOKEN",
    # Collaborator entities
    "Account",
    "Category",
    "ImportContext",
    "flatten_categories",
    # Publish output
    "TransactionRecord",
    "AccountRecord",
    "ImportedRecord",
    "TypedRow",
    "PublishResult",
]
