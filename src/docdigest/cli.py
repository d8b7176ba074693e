"""Command-line entry point for the document summarization pipeline.

Usage:
    docdigest run --root ./inbox
    docdigest run --root ./inbox --model llama3.1:8b --max-corpus-chars 60000
    docdigest run --root ./inbox --webhook-url https://hooks.example/... \\
        --report-json out/report.json

Startup sequence:
    1. Parse arguments and load settings (CLI flags override env/.env/YAML)
    2. Setup logging (must happen before any code that logs)
    3. Run the pipeline; the first Ctrl-C cancels at the next stage boundary
    4. Print the JSON report to stdout and exit with the report's exit code
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from docdigest import __version__
from docdigest.config import (
    ExtractionSettings,
    NotifierSettings,
    PipelineSettings,
    SummarizerSettings,
)
from docdigest.logging import setup_logging
from docdigest.notifier import redact_url
from docdigest.pipeline import ExitCode, PipelineController

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docdigest",
        description=(
            "Summarize a directory of PDF, DOCX, Markdown and text documents "
            "with a locally hosted language model."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Discover, extract, summarize and notify once.")
    run.add_argument("--root", dest="root_dir", help="Directory to scan for documents.")
    run.add_argument(
        "--ext",
        dest="extensions",
        action="append",
        metavar="SUFFIX",
        help="Recognized suffix (repeatable), e.g. --ext .pdf --ext .md",
    )
    run.add_argument("--max-corpus-chars", type=int, help="Corpus size budget.")
    run.add_argument(
        "--notify-on-failure",
        action="store_true",
        default=None,
        help="Send a failure notice when the run fails.",
    )
    run.add_argument("--log-dir", help="Directory for the JSON log file.")
    run.add_argument("--workers", dest="max_workers", type=int, help="Extraction threads.")
    run.add_argument("--model", help="Model identifier for the inference engine.")
    run.add_argument("--endpoint", dest="endpoint_url", help="Inference engine generate URL.")
    run.add_argument(
        "--prompt-template",
        dest="template_path",
        help="Prompt template file with {file_count} and {documents}.",
    )
    run.add_argument(
        "--summarization-timeout",
        dest="summarizer_timeout",
        type=float,
        help="Seconds to wait for the model.",
    )
    run.add_argument("--webhook-url", help="Notification webhook URL.")
    run.add_argument(
        "--notification-timeout",
        dest="notifier_timeout",
        type=float,
        help="Seconds to wait for the webhook.",
    )
    run.add_argument("--report-json", type=Path, help="Also write the report to this file.")
    run.add_argument("-v", "--verbose", action="store_true", help="DEBUG console output.")
    return parser


def _overrides(args: argparse.Namespace, mapping: dict[str, str]) -> dict[str, Any]:
    """Collect CLI values that were actually given, renamed to settings fields."""
    values = {}
    for arg_name, field_name in mapping.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            values[field_name] = value
    return values


def load_settings(
    args: argparse.Namespace,
) -> tuple[PipelineSettings, ExtractionSettings, SummarizerSettings, NotifierSettings]:
    """Build settings objects, letting CLI flags take precedence."""
    pipeline = PipelineSettings(
        **_overrides(
            args,
            {
                "root_dir": "root_dir",
                "extensions": "extensions",
                "max_corpus_chars": "max_corpus_chars",
                "notify_on_failure": "notify_on_failure",
                "log_dir": "log_dir",
            },
        )
    )
    extraction = ExtractionSettings(**_overrides(args, {"max_workers": "max_workers"}))
    summarizer = SummarizerSettings(
        **_overrides(
            args,
            {
                "model": "model",
                "endpoint_url": "endpoint_url",
                "template_path": "template_path",
                "summarizer_timeout": "timeout_seconds",
            },
        )
    )
    notifier = NotifierSettings(
        **_overrides(
            args,
            {"webhook_url": "webhook_url", "notifier_timeout": "timeout_seconds"},
        )
    )
    return pipeline, extraction, summarizer, notifier


def _install_cancel_handler(cancel_event: threading.Event) -> None:
    """First Ctrl-C requests cancellation; a second one interrupts immediately."""

    def _handler(signum, frame):
        if cancel_event.is_set():
            signal.signal(signal.SIGINT, signal.default_int_handler)
            raise KeyboardInterrupt
        logger.warning("Cancellation requested; stopping at the next stage boundary")
        cancel_event.set()

    signal.signal(signal.SIGINT, _handler)


def run_command(args: argparse.Namespace) -> int:
    try:
        pipeline, extraction, summarizer, notifier = load_settings(args)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return int(ExitCode.DISCOVERY_FAILED)

    log_file = setup_logging(
        log_dir=pipeline.log_dir,
        log_level_console=logging.DEBUG if args.verbose else logging.INFO,
        max_bytes=pipeline.log_max_bytes,
        backup_count=pipeline.log_backup_count,
        secrets=[notifier.webhook_url],
    )
    logger.info("docdigest %s starting (log file %s)", __version__, log_file)

    # Log non-sensitive config values (never log the webhook path)
    logger.info(
        "Config loaded -- pipeline: root_dir=%s, extensions=%s, max_corpus_chars=%d",
        pipeline.root_dir,
        pipeline.extensions,
        pipeline.max_corpus_chars,
    )
    logger.info(
        "Config loaded -- summarizer: endpoint=%s, model=%s, timeout=%.0fs",
        summarizer.endpoint_url,
        summarizer.model,
        summarizer.timeout_seconds,
    )
    logger.info(
        "Config loaded -- notifier: webhook=%s, timeout=%.0fs",
        redact_url(notifier.webhook_url),
        notifier.timeout_seconds,
    )

    cancel_event = threading.Event()
    _install_cancel_handler(cancel_event)

    controller = PipelineController(pipeline, extraction, summarizer, notifier)
    report = controller.run(cancel_event)

    report_json = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
    print(report_json)
    if args.report_json is not None:
        args.report_json.parent.mkdir(parents=True, exist_ok=True)
        args.report_json.write_text(report_json + "\n", encoding="utf-8")
        logger.info("Report written to %s", args.report_json)

    return int(report.exit_code)


def main(argv: list[str] | None = None) -> int:
    """Parse *argv* and dispatch the requested command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "run":
        return run_command(args)
    parser.error(f"Unknown command {args.command!r}")
    return int(ExitCode.UNEXPECTED_ERROR)


if __name__ == "__main__":
    sys.exit(main())
