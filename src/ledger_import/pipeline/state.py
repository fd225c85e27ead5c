"""
Import pipeline state.

PipelineState is immutable: every stage returns a new state via
dataclasses.replace and the controller swaps it in wholesale. A stage's
derived fields are always replaced, never patched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from ..parsing.dates import DateFormat, DateFormatDetection
from ..schemas.import_schema import ImportType
from ..schemas.records import CleanedRow, ColumnMap, ErrorMap, RawRow
from ..services.reconciliation import EntityMaps
from ..services.transformer import AccountSource, AmountMode


class PipelineError(Exception):
    """Raised when the pipeline is driven out of order."""

    pass


class EmptyInputError(PipelineError):
    """Raised when leaving the upload step without any file text."""

    pass


class PipelineStep(IntEnum):
    """Wizard steps in strict forward order."""

    UPLOAD = 1
    CONFIGURE = 2
    PREVIEW = 3
    CLEAN = 4
    MAP = 5
    CONFIRM = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class PipelineState:
    """Everything accumulated by one import run."""

    import_type: ImportType
    step: PipelineStep = PipelineStep.UPLOAD

    # Upload
    file_name: str = ""
    raw_text: str = ""
    delimiter: str = ","

    # Tokenizer + column matcher + date detector
    headers: list[str] = field(default_factory=list)
    rows: list[RawRow] = field(default_factory=list)
    column_map: ColumnMap = field(default_factory=dict)
    column_scores: dict[str, float] = field(default_factory=dict)
    date_detection: Optional[DateFormatDetection] = None

    # Configure
    date_format: DateFormat = DateFormat.ISO
    amount_mode: AmountMode = AmountMode.SINGLE_SIGNED
    account_source: AccountSource = AccountSource.COLUMN
    single_account_id: Optional[str] = None

    # Transformer
    cleaned: list[CleanedRow] = field(default_factory=list)
    errors: ErrorMap = field(default_factory=dict)

    # Clean (user choice)
    excluded: frozenset[int] = frozenset()

    # Reconciler
    entity_maps: EntityMaps = field(default_factory=EntityMaps)

    @property
    def active_rows(self) -> list[CleanedRow]:
        """Cleaned rows the user has not excluded."""
        return [row for row in self.cleaned if row.original_index not in self.excluded]
