"""Run report and state types for the pipeline controller.

Every run, successful or not, ends with a PipelineReport.  The report states
how many files were discovered and extracted, which files failed and why,
whether the corpus was truncated, the summary (if any), the notification
outcome, and the process exit code for the CLI.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from docdigest.extractor.types import ExtractionResult, ExtractionStatus


class PipelineState(Enum):
    """Controller states, in the order a successful run visits them."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    EXTRACTING = "extracting"
    MERGING = "merging"
    SUMMARIZING = "summarizing"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


class NotificationOutcome(Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"
    FAILURE_NOTICE_SENT = "failure_notice_sent"


class ExitCode(IntEnum):
    """Process exit codes, one per fatal outcome."""

    SUCCESS = 0
    UNEXPECTED_ERROR = 1
    DISCOVERY_FAILED = 2
    NO_FILES = 3
    ALL_EXTRACTIONS_FAILED = 4
    SUMMARIZATION_FAILED = 5
    NOTIFICATION_FAILED = 6
    CANCELLED = 130


# error_kind values set by the controller
KIND_CONFIG = "config_error"
KIND_DISCOVERY = "discovery_error"
KIND_NO_FILES = "no_files"
KIND_MERGE = "merge_error"
KIND_BUDGET = "budget_error"
KIND_DELIVERY = "delivery_error"
KIND_CANCELLED = "cancelled"
KIND_UNEXPECTED = "unexpected_error"


def utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass(frozen=True)
class FileFailure:
    """A discovered file that did not make it into the corpus."""

    path: str
    file_name: str
    status: ExtractionStatus
    detail: str

    @classmethod
    def from_result(cls, result: ExtractionResult) -> FileFailure:
        return cls(
            path=str(result.source_path),
            file_name=result.file_name,
            status=result.status,
            detail=result.error_detail or result.status.value,
        )


@dataclass
class PipelineReport:
    """Structured outcome of one pipeline run."""

    root_dir: str
    model: str
    state: PipelineState = PipelineState.IDLE
    failed_stage: PipelineState | None = None
    error_kind: str | None = None
    error_detail: str | None = None

    files_discovered: int = 0
    files_extracted: int = 0
    file_count: int = 0
    failures: list[FileFailure] = field(default_factory=list)
    truncated: bool = False
    omitted: list[str] = field(default_factory=list)
    corpus_chars: int = 0

    summary: str | None = None
    prompt_version: str = ""
    notification: NotificationOutcome = NotificationOutcome.SKIPPED

    started_at: str = field(default_factory=utc_now)
    finished_at: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.DONE

    @property
    def exit_code(self) -> ExitCode:
        """Map the outcome to a CLI exit code."""
        if self.state is PipelineState.DONE:
            return ExitCode.SUCCESS
        if self.error_kind == KIND_CANCELLED:
            return ExitCode.CANCELLED
        if self.error_kind == KIND_UNEXPECTED:
            return ExitCode.UNEXPECTED_ERROR
        if self.error_kind == KIND_NO_FILES:
            return ExitCode.NO_FILES
        if self.error_kind in (KIND_DISCOVERY, KIND_CONFIG, KIND_BUDGET):
            return ExitCode.DISCOVERY_FAILED
        if self.failed_stage is PipelineState.MERGING:
            return ExitCode.ALL_EXTRACTIONS_FAILED
        if self.failed_stage is PipelineState.SUMMARIZING:
            return ExitCode.SUMMARIZATION_FAILED
        if self.failed_stage is PipelineState.NOTIFYING:
            return ExitCode.NOTIFICATION_FAILED
        return ExitCode.UNEXPECTED_ERROR

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable view of the report."""
        return {
            "state": self.state.value,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error_kind": self.error_kind,
            "error_detail": self.error_detail,
            "exit_code": int(self.exit_code),
            "root_dir": self.root_dir,
            "files_discovered": self.files_discovered,
            "files_extracted": self.files_extracted,
            "files_failed": len(self.failures),
            "file_count": self.file_count,
            "failures": [
                {
                    "path": failure.path,
                    "file_name": failure.file_name,
                    "status": failure.status.value,
                    "detail": failure.detail,
                }
                for failure in self.failures
            ],
            "truncated": self.truncated,
            "omitted": list(self.omitted),
            "corpus_chars": self.corpus_chars,
            "model": self.model,
            "prompt_version": self.prompt_version,
            "summary": self.summary,
            "notification": self.notification.value,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }
