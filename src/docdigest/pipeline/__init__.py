"""Pipeline package -- stage sequencing and the run report.

Public API:
    PipelineController(...).run(cancel_event) -> PipelineReport
    run_pipeline(...)                         -> PipelineReport
"""

from docdigest.pipeline.controller import PipelineController, run_pipeline
from docdigest.pipeline.report import (
    ExitCode,
    FileFailure,
    NotificationOutcome,
    PipelineReport,
    PipelineState,
)

__all__ = [
    "ExitCode",
    "FileFailure",
    "NotificationOutcome",
    "PipelineController",
    "PipelineReport",
    "PipelineState",
    "run_pipeline",
]
