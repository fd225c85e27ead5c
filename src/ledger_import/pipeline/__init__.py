"""Import wizard state machine, pure stages and publish step."""

from ledger_import.pipeline.controller import PipelineController, PreviewRow
from ledger_import.pipeline.publish import publish
from ledger_import.pipeline.stages import (
    run_reconcile_stage,
    run_transform_stage,
    run_upload_stage,
)
from ledger_import.pipeline.state import (
    EmptyInputError,
    PipelineError,
    PipelineState,
    PipelineStep,
)

__all__ = [
    "EmptyInputError",
    "PipelineController",
    "PipelineError",
    "PipelineState",
    "PipelineStep",
    "PreviewRow",
    "publish",
    "run_reconcile_stage",
    "run_transform_stage",
    "run_upload_stage",
]
