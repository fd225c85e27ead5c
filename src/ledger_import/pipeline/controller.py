"""
Import pipeline controller.

Sequences the wizard steps Upload → Configure → Preview → Clean → Map →
Confirm over an immutable PipelineState. The controller only decides which
pure stage to run:

- Leaving UPLOAD: tokenize, auto-map columns, detect date layout
- Leaving CONFIGURE: coerce and validate rows
- Leaving CLEAN: seed entity maps

Going back never invalidates anything, and revisiting a later step does not
recompute it. Configuration setters only record the user's choice; the next
forward transition out of the owning step picks it up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from ..config import Config
from ..parsing.dates import DateFormat
from ..schemas.import_schema import ImportSchema, ImportType, get_schema
from ..schemas.records import EntityKind, EntityRef, ImportContext, PublishResult
from ..services.transformer import AccountSource, AmountMode
from .publish import new_account_id, publish
from .stages import (
    detect_state_date_format,
    run_reconcile_stage,
    run_transform_stage,
    run_upload_stage,
)
from .state import PipelineError, PipelineState, PipelineStep

logger = logging.getLogger(__name__)

ERROR_MARKER = "ERR: "


@dataclass
class PreviewRow:
    """Display view of one row for the preview and clean steps."""

    index: int
    cells: dict[str, str]
    has_errors: bool
    excluded: bool


def _display(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


class PipelineController:
    """
    Owns one import run.

    Usage:
        controller = PipelineController(ImportType.TRANSACTIONS, context, config)
        controller.load_text(text, "bank.csv")
        controller.go_to(PipelineStep.CONFIRM)
        result = controller.publish()
    """

    def __init__(
        self,
        import_type: ImportType | str,
        context: ImportContext | None = None,
        config: Config | None = None,
        id_factory: Callable[[], str] = new_account_id,
    ) -> None:
        """
        Initialize an empty import run.

        Args:
            import_type: What kind of records the file holds.
            context: Existing accounts/categories and closed value sets.
            config: Parsing and matching settings (defaults if omitted).
            id_factory: Generator for ids of accounts created at publish.
        """
        self.config = config or Config()
        self.context = context or ImportContext.from_config(self.config)
        self.id_factory = id_factory

        accounts = self.context.accounts
        self.state = PipelineState(
            import_type=ImportType(import_type),
            delimiter=self.config.parsing.delimiter,
            single_account_id=accounts[0].id if accounts else None,
        )

    @property
    def step(self) -> PipelineStep:
        return self.state.step

    @property
    def schema(self) -> ImportSchema:
        return get_schema(self.state.import_type)

    @property
    def rows_ready(self) -> int:
        """Number of cleaned rows that will be published (after exclusions)."""
        return len(self.state.active_rows)

    # Configuration

    def _update(self, **changes: Any) -> PipelineState:
        self.state = replace(self.state, **changes)
        return self.state

    def load_text(self, text: str, file_name: str = "") -> PipelineState:
        """Record the uploaded file's text; parsing happens on advance()."""
        return self._update(raw_text=text, file_name=file_name)

    def set_delimiter(self, delimiter: str) -> PipelineState:
        if len(delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")
        return self._update(delimiter=delimiter)

    def set_column(self, field_key: str, header: Optional[str]) -> PipelineState:
        """Map a field to a header (None to skip the field).

        Remapping the date field re-runs date layout detection on the new column.
        """
        if self.schema.field(field_key) is None:
            raise ValueError(f"Unknown field {field_key!r} for {self.state.import_type.value}")
        if header is not None and header not in self.state.headers:
            raise ValueError(f"Unknown column {header!r}")

        column_map = dict(self.state.column_map)
        if header is None:
            column_map.pop(field_key, None)
        else:
            column_map[field_key] = header
        self._update(column_map=column_map)

        if field_key == "date":
            detection = detect_state_date_format(self.state, self.config.parsing.date_sample_size)
            self._update(
                date_detection=detection,
                date_format=detection.format if detection else DateFormat.ISO,
            )
        return self.state

    def set_date_format(self, date_format: DateFormat | str) -> PipelineState:
        return self._update(date_format=DateFormat(date_format))

    def set_amount_mode(self, mode: AmountMode | str) -> PipelineState:
        return self._update(amount_mode=AmountMode(mode))

    def set_account_source(
        self,
        source: AccountSource | str,
        account_id: Optional[str] = None,
    ) -> PipelineState:
        source = AccountSource(source)
        if source == AccountSource.SINGLE:
            account_id = account_id or self.state.single_account_id
            if account_id not in {acc.id for acc in self.context.accounts}:
                raise ValueError(f"Unknown account id {account_id!r}")
            return self._update(account_source=source, single_account_id=account_id)
        return self._update(account_source=source)

    def toggle_row_excluded(self, index: int) -> PipelineState:
        """Exclude a cleaned row from publishing, or include it again."""
        excluded = set(self.state.excluded)
        if index in excluded:
            excluded.discard(index)
        else:
            excluded.add(index)
        return self._update(excluded=frozenset(excluded))

    def set_entity_mapping(
        self,
        kind: EntityKind | str,
        value: str,
        ref: EntityRef | str,
    ) -> PipelineState:
        """Override one seeded entity mapping (accepts an EntityRef or a sentinel token).

        Existing category and account references are resolved against the
        context so they carry the canonical name.

        Raises:
            ValueError: The value was not observed, or the id is unknown.
        """
        kind = EntityKind(kind)
        if isinstance(ref, str):
            ref = EntityRef.from_token(ref)
        if value not in self.state.entity_maps.get(kind):
            raise ValueError(f"{value!r} is not an observed {kind.value} value")
        if ref.is_existing:
            ref = self._resolve_existing(kind, ref)
        return self._update(entity_maps=self.state.entity_maps.with_entry(kind, value, ref))

    def _resolve_existing(self, kind: EntityKind, ref: EntityRef) -> EntityRef:
        if kind == EntityKind.CATEGORY:
            known = self.context.flat_categories
        elif kind == EntityKind.ACCOUNT:
            known = self.context.accounts
        else:
            return ref
        for entity in known:
            if entity.id == ref.entity_id:
                return EntityRef.existing(entity.id, entity.name)
        raise ValueError(f"Unknown {kind.value} id {ref.entity_id!r}")

    # Navigation

    def advance(self) -> PipelineState:
        """Move one step forward, running the stage owned by the step being left.

        Raises:
            EmptyInputError: Leaving UPLOAD without file text.
            PipelineError: Already at CONFIRM.
        """
        current = self.state.step
        if current == PipelineStep.CONFIRM:
            raise PipelineError("Already at the last step; call publish()")

        state = self.state
        if current == PipelineStep.UPLOAD:
            parsing = self.config.parsing
            matching = self.config.matching
            state = run_upload_stage(
                state,
                threshold=matching.match_threshold,
                similarity_floor=matching.similarity_floor,
                sample_size=parsing.date_sample_size,
            )
        elif current == PipelineStep.CONFIGURE:
            state = run_transform_stage(state, self.context)
        elif current == PipelineStep.CLEAN:
            state = run_reconcile_stage(state, self.context)

        self.state = replace(state, step=PipelineStep(current + 1))
        logger.debug("Pipeline step %s -> %s", current.label, self.state.step.label)
        return self.state

    def back(self) -> PipelineState:
        """Move one step back; derived state is kept as-is."""
        if self.state.step > PipelineStep.UPLOAD:
            self._update(step=PipelineStep(self.state.step - 1))
        return self.state

    def go_to(self, step: PipelineStep | int) -> PipelineState:
        """Jump to a step; forward jumps run every transition on the way."""
        target = PipelineStep(step)
        if target < self.state.step:
            return self._update(step=target)
        while self.state.step < target:
            self.advance()
        return self.state

    # Output

    def preview_rows(self) -> list[PreviewRow]:
        """Per-row display cells: coerced value or "ERR: <message>"."""
        cleaned = {row.original_index: row for row in self.state.cleaned}
        keys = self.schema.keys
        preview: list[PreviewRow] = []

        for index, raw in enumerate(self.state.rows):
            errors = self.state.errors.get(index, {})
            row = cleaned.get(index)
            cells: dict[str, str] = {}
            for key in keys:
                if key in errors:
                    cells[key] = f"{ERROR_MARKER}{errors[key]}"
                elif row is not None:
                    cells[key] = _display(row.get(key))
                else:
                    header = self.state.column_map.get(key)
                    cells[key] = raw.get(header, "") if header else ""
            preview.append(
                PreviewRow(
                    index=index,
                    cells=cells,
                    has_errors=bool(errors),
                    excluded=index in self.state.excluded,
                )
            )
        return preview

    def publish(self) -> PublishResult:
        """Build the final record set. Only allowed at CONFIRM."""
        if self.state.step != PipelineStep.CONFIRM:
            raise PipelineError(
                f"Publish is only available at {PipelineStep.CONFIRM.label}, "
                f"current step is {self.state.step.label}"
            )
        return publish(self.state, self.context, self.id_factory)
