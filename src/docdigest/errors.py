"""Exception taxonomy for run-level pipeline failures.

Per-file extraction problems are not exceptions -- they travel as
``ExtractionStatus`` values on ``ExtractionResult``.  Everything here halts
the pipeline at the stage that raised it.
"""

from __future__ import annotations

from enum import Enum


class PipelineError(Exception):
    """Base class for pipeline exceptions."""


class DiscoveryError(PipelineError):
    """Raised when the root directory is missing, not a directory, or unreadable."""


class MergeError(PipelineError):
    """Raised when no extraction result qualifies for the corpus."""


class CorpusBudgetError(PipelineError):
    """Raised when max_corpus_chars cannot hold even one section header."""


class SummarizationErrorKind(Enum):
    """Why the inference engine call failed."""

    TIMEOUT = "timeout"
    MODEL_NOT_FOUND = "model_not_found"
    CONNECTION_ERROR = "connection_error"
    UPSTREAM_ERROR = "upstream_error"

    @property
    def retryable(self) -> bool:
        """Timeouts and connection failures are worth retrying by the caller."""
        return self in (
            SummarizationErrorKind.TIMEOUT,
            SummarizationErrorKind.CONNECTION_ERROR,
        )


class SummarizationError(PipelineError):
    """Raised when the inference engine does not return a usable summary."""

    def __init__(self, kind: SummarizationErrorKind, detail: str):
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail


class DeliveryError(PipelineError):
    """Raised when the notification webhook rejects or never receives a message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PipelineCancelled(PipelineError):
    """Raised at a stage boundary when the run was cancelled."""
