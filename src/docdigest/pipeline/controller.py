"""Pipeline controller: sequences the stages and owns failure policy.

State machine::

    IDLE -> DISCOVERING -> EXTRACTING -> MERGING -> SUMMARIZING -> NOTIFYING -> DONE
      \\___________\\____________\\___________\\____________\\_____________-> FAILED

Per-file extraction failures are absorbed and recorded; EXTRACTING itself
never fails.  Everything else is fatal at its own stage: invalid root or
config, no matching files, zero qualifying sections (MergeError), a corpus
budget too small for any section, a summarization error, or a delivery
error.  A fatal stage skips the stages
after it, but the run always ends with a PipelineReport.

Cancellation is checked at every stage boundary and before each extraction
task starts.  In-flight HTTP calls are bounded by their timeouts.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from docdigest.config.settings import (
    ExtractionSettings,
    NotifierSettings,
    PipelineSettings,
    SummarizerSettings,
)
from docdigest.discovery import discover_paths
from docdigest.errors import (
    CorpusBudgetError,
    DeliveryError,
    DiscoveryError,
    MergeError,
    PipelineCancelled,
    SummarizationError,
)
from docdigest.extractor import extract_paths
from docdigest.merger import MergeOptions, merge
from docdigest.notifier import (
    FailureNote,
    NotificationDispatcher,
    format_failure_message,
    format_summary_message,
)
from docdigest.pipeline.report import (
    KIND_BUDGET,
    KIND_CANCELLED,
    KIND_CONFIG,
    KIND_DELIVERY,
    KIND_DISCOVERY,
    KIND_MERGE,
    KIND_NO_FILES,
    KIND_UNEXPECTED,
    FileFailure,
    NotificationOutcome,
    PipelineReport,
    PipelineState,
    utc_now,
)
from docdigest.summarizer import SummarizationClient, resolve_prompt_template

logger = logging.getLogger(__name__)


class PipelineController:
    """Runs one discovery-to-notification pass over a document directory.

    The summarization client and notification dispatcher may be injected
    (tests, alternative transports); otherwise they are built from settings
    for the duration of ``run`` and closed afterwards.
    """

    def __init__(
        self,
        pipeline_settings: PipelineSettings,
        extraction_settings: ExtractionSettings,
        summarizer_settings: SummarizerSettings,
        notifier_settings: NotifierSettings,
        summarizer: SummarizationClient | None = None,
        notifier: NotificationDispatcher | None = None,
    ):
        self.pipeline_settings = pipeline_settings
        self.extraction_settings = extraction_settings
        self.summarizer_settings = summarizer_settings
        self.notifier_settings = notifier_settings
        self._summarizer = summarizer
        self._notifier = notifier
        self.state = PipelineState.IDLE
        self.on_transition: Callable[[PipelineState], None] | None = None

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _enter(self, state: PipelineState, cancel_event: threading.Event | None) -> None:
        """Move to *state*, honouring a pending cancellation first."""
        if cancel_event is not None and cancel_event.is_set():
            raise PipelineCancelled(f"Run cancelled before {state.value}")
        logger.info("Pipeline state: %s -> %s", self.state.value, state.value)
        self.state = state
        if self.on_transition is not None:
            self.on_transition(state)

    def _fail(
        self,
        report: PipelineReport,
        kind: str,
        detail: str,
    ) -> None:
        report.failed_stage = self.state
        report.error_kind = kind
        report.error_detail = detail
        report.state = PipelineState.FAILED
        logger.error(
            "Pipeline failed during %s (%s): %s",
            self.state.value,
            kind,
            detail,
        )
        self.state = PipelineState.FAILED

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, cancel_event: threading.Event | None = None) -> PipelineReport:
        """Execute the pipeline and return its report.  Never raises."""
        self.state = PipelineState.IDLE
        report = PipelineReport(
            root_dir=str(self.pipeline_settings.root_dir),
            model=self.summarizer_settings.model,
        )

        owns_summarizer = self._summarizer is None
        owns_notifier = self._notifier is None
        summarizer = self._summarizer or SummarizationClient(self.summarizer_settings)
        notifier = self._notifier or NotificationDispatcher(self.notifier_settings)

        try:
            self._run_stages(report, summarizer, notifier, cancel_event)
        except PipelineCancelled as e:
            self._fail(report, KIND_CANCELLED, str(e))
        except Exception as e:
            logger.exception("Unexpected error in pipeline controller")
            self._fail(report, KIND_UNEXPECTED, f"{type(e).__name__}: {e}")
        finally:
            if owns_summarizer:
                summarizer.close()
            if owns_notifier:
                notifier.close()
            report.finished_at = utc_now()

        logger.info(
            "Run complete: state=%s, discovered=%d, extracted=%d, failed=%d, "
            "summarized=%d, truncated=%s, notification=%s, exit_code=%d",
            report.state.value,
            report.files_discovered,
            report.files_extracted,
            len(report.failures),
            report.file_count,
            report.truncated,
            report.notification.value,
            report.exit_code,
        )
        return report

    def _run_stages(
        self,
        report: PipelineReport,
        summarizer: SummarizationClient,
        notifier: NotificationDispatcher,
        cancel_event: threading.Event | None,
    ) -> None:
        settings = self.pipeline_settings

        # --- Configuration: fail before touching any document ---
        try:
            template, version = resolve_prompt_template(self.summarizer_settings)
        except (OSError, ValueError) as e:
            self._fail(report, KIND_CONFIG, f"Prompt template unusable: {e}")
            return
        report.prompt_version = version

        # --- Discovery ---
        self._enter(PipelineState.DISCOVERING, cancel_event)
        try:
            paths = discover_paths(Path(settings.root_dir), settings.extensions)
        except DiscoveryError as e:
            self._fail(report, KIND_DISCOVERY, str(e))
            return

        report.files_discovered = len(paths)
        if not paths:
            self._fail(
                report,
                KIND_NO_FILES,
                f"No files with extensions {sorted(settings.extensions)} "
                f"under {settings.root_dir}",
            )
            self._notify_failure(report, notifier)
            return

        # --- Extraction: per-file failures are recorded, never fatal ---
        self._enter(PipelineState.EXTRACTING, cancel_event)
        results = extract_paths(paths, self.extraction_settings, cancel_event)
        report.files_extracted = sum(1 for result in results if result.success)
        report.failures = [
            FileFailure.from_result(result) for result in results if not result.success
        ]

        # --- Merge ---
        self._enter(PipelineState.MERGING, cancel_event)
        try:
            corpus = merge(results, MergeOptions(max_corpus_chars=settings.max_corpus_chars))
        except MergeError as e:
            self._fail(report, KIND_MERGE, str(e))
            self._notify_failure(report, notifier)
            return
        except CorpusBudgetError as e:
            self._fail(report, KIND_BUDGET, str(e))
            self._notify_failure(report, notifier)
            return
        report.file_count = corpus.file_count
        report.truncated = corpus.truncated
        report.omitted = list(corpus.omitted)
        report.corpus_chars = corpus.total_characters

        # --- Summarization ---
        self._enter(PipelineState.SUMMARIZING, cancel_event)
        try:
            summary = summarizer.summarize(
                self.summarizer_settings.model,
                template,
                corpus,
                prompt_version=version,
            )
        except SummarizationError as e:
            self._fail(report, e.kind.value, e.detail)
            self._notify_failure(report, notifier)
            return
        report.summary = summary.text

        # --- Notification: the summary stays in the report even if this fails ---
        self._enter(PipelineState.NOTIFYING, cancel_event)
        message = format_summary_message(
            summary.text,
            corpus.file_count,
            failures=[
                FailureNote(failure.file_name, failure.status.value)
                for failure in report.failures
            ],
            truncated=corpus.truncated,
            omitted=corpus.omitted,
        )
        try:
            notifier.notify(message, self._metadata(report))
        except DeliveryError as e:
            report.notification = NotificationOutcome.FAILED
            self._fail(report, KIND_DELIVERY, str(e))
            return
        report.notification = NotificationOutcome.SENT

        self._enter(PipelineState.DONE, None)
        report.state = PipelineState.DONE

    def _metadata(self, report: PipelineReport) -> dict[str, Any]:
        return {
            "files_discovered": report.files_discovered,
            "file_count": report.file_count,
            "failed_files": [failure.file_name for failure in report.failures],
            "truncated": report.truncated,
            "model": report.model,
            "prompt_version": report.prompt_version,
        }

    def _notify_failure(
        self,
        report: PipelineReport,
        notifier: NotificationDispatcher,
    ) -> None:
        """Send a failure notice when ``notify_on_failure`` is enabled.

        Delivery problems here are logged only; the run has already failed
        for another reason and that reason stays in the report.
        """
        if not self.pipeline_settings.notify_on_failure:
            return
        stage = report.failed_stage.value if report.failed_stage else "unknown"
        message = format_failure_message(
            stage,
            report.error_kind or KIND_UNEXPECTED,
            report.error_detail or "",
        )
        try:
            notifier.notify(message, self._metadata(report))
        except DeliveryError as e:
            report.notification = NotificationOutcome.FAILED
            logger.warning("Failure notice could not be delivered: %s", e)
            return
        report.notification = NotificationOutcome.FAILURE_NOTICE_SENT


def run_pipeline(
    pipeline_settings: PipelineSettings | None = None,
    extraction_settings: ExtractionSettings | None = None,
    summarizer_settings: SummarizerSettings | None = None,
    notifier_settings: NotifierSettings | None = None,
    cancel_event: threading.Event | None = None,
) -> PipelineReport:
    """Build a controller from settings (loading defaults) and run it once."""
    controller = PipelineController(
        pipeline_settings or PipelineSettings(),
        extraction_settings or ExtractionSettings(),
        summarizer_settings or SummarizerSettings(),
        notifier_settings or NotifierSettings(),
    )
    return controller.run(cancel_event)
