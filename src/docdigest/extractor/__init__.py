"""Batch extraction with per-document failure isolation.

Extracts every discovered file independently on a thread pool.  Each worker
reads only its own file and returns its own ExtractionResult, so no locking
is needed.  Results come back in the order the paths were given (discovery
order), not in completion order.  One document's failure never affects the
others.

Public API:
    extract_paths(paths, extraction_settings, cancel_event=None)
        -> list[ExtractionResult]
    extract_document(document, extraction_settings) -> ExtractionResult
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from docdigest.config.settings import ExtractionSettings
from docdigest.errors import PipelineCancelled
from docdigest.extractor.service import extract_document, extract_path
from docdigest.extractor.types import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStatus,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ExtractionMethod",
    "ExtractionResult",
    "ExtractionStatus",
    "extract_document",
    "extract_path",
    "extract_paths",
]


def extract_paths(
    paths: list[Path],
    extraction_settings: ExtractionSettings,
    cancel_event: threading.Event | None = None,
) -> list[ExtractionResult]:
    """Extract text from every path, preserving input order.

    Args:
        paths: Files to extract, in discovery order.
        extraction_settings: Extraction configuration; ``max_workers == 1``
            runs sequentially in the calling thread.
        cancel_event: Checked before each file starts.

    Returns:
        One ExtractionResult per path, index-aligned with *paths*.

    Raises:
        PipelineCancelled: If *cancel_event* was set during the batch.
    """

    def _work(path: Path) -> ExtractionResult:
        if cancel_event is not None and cancel_event.is_set():
            raise PipelineCancelled(f"Cancelled before extracting {path.name}")
        return extract_path(path, extraction_settings)

    workers = min(extraction_settings.max_workers, max(len(paths), 1))
    logger.info("Extracting %d document(s) with %d worker(s)", len(paths), workers)

    if workers == 1:
        results = [_work(path) for path in paths]
    else:
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="extract"
        ) as executor:
            # Executor.map yields in submission order regardless of completion
            results = list(executor.map(_work, paths))

    counts = Counter(result.status for result in results)
    logger.info(
        "Extraction batch complete: %d succeeded, %d empty, %d unsupported, "
        "%d failed",
        counts[ExtractionStatus.SUCCESS],
        counts[ExtractionStatus.EMPTY_CONTENT],
        counts[ExtractionStatus.UNSUPPORTED_FORMAT],
        counts[ExtractionStatus.EXTRACTION_ERROR],
    )
    return results
