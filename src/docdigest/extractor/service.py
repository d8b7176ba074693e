"""Per-document extraction service with format dispatch and failure isolation.

Routes each Document to the extractor for its format:

1. **Plain text / Markdown** -- UTF-8 decode, replace-and-continue.
2. **PDF** -- PyMuPDF text layer, with pdfplumber as fallback when PyMuPDF
   cannot open the file.
3. **DOCX** -- python-docx body paragraphs.

Anything else is UNSUPPORTED_FORMAT.  ``extract_document`` never raises:
an unexpected parser fault becomes EXTRACTION_ERROR so one bad file cannot
abort the batch.
"""

from __future__ import annotations

import logging
from pathlib import Path

from docdigest.config.settings import ExtractionSettings
from docdigest.discovery.models import Document, DocumentFormat, load_document
from docdigest.extractor.docx_extractor import try_python_docx
from docdigest.extractor.pdfplumber_extractor import try_pdfplumber
from docdigest.extractor.pymupdf_extractor import ENCRYPTED, try_pymupdf
from docdigest.extractor.quality import check_garble
from docdigest.extractor.text_extractor import extract_text_document
from docdigest.extractor.types import (
    ExtractionResult,
    ExtractionStatus,
    failed_result,
)

logger = logging.getLogger(__name__)

__all__ = [
    "extract_document",
    "extract_path",
]


def _extract_pdf(document: Document, settings: ExtractionSettings) -> ExtractionResult:
    result = try_pymupdf(document)
    if result.status is not ExtractionStatus.EXTRACTION_ERROR:
        return result

    if result.error_detail == ENCRYPTED or not settings.pdf_fallback_enabled:
        return result

    logger.warning(
        "PyMuPDF could not read %s (%s), falling back to pdfplumber",
        document.name,
        result.error_detail,
    )
    fallback = try_pdfplumber(document)
    if fallback.status is ExtractionStatus.EXTRACTION_ERROR:
        # Report both tiers so the operator sees why the file is unreadable
        fallback.error_detail = f"{result.error_detail}; {fallback.error_detail}"
    return fallback


def extract_document(
    document: Document,
    settings: ExtractionSettings,
) -> ExtractionResult:
    """Extract normalized text from one Document.

    Args:
        document: Document with its raw bytes already read.
        settings: Extraction configuration (fallback, garble threshold).

    Returns:
        ExtractionResult; never raises.
    """
    try:
        if document.format in (DocumentFormat.PLAIN_TEXT, DocumentFormat.MARKDOWN):
            result = extract_text_document(document)
        elif document.format is DocumentFormat.PDF:
            result = _extract_pdf(document, settings)
        elif document.format is DocumentFormat.DOCX:
            result = try_python_docx(document)
        else:
            logger.warning(
                "Unsupported format for %s (suffix %r)",
                document.name,
                document.path.suffix,
            )
            return failed_result(
                document.path,
                ExtractionStatus.UNSUPPORTED_FORMAT,
                f"No extractor for suffix {document.path.suffix!r}",
                content_hash=document.content_hash,
            )
    except Exception as e:
        logger.exception("Unexpected error extracting %s", document.name)
        return failed_result(
            document.path,
            ExtractionStatus.EXTRACTION_ERROR,
            f"unexpected_error: {type(e).__name__}: {e}",
            content_hash=document.content_hash,
        )

    if result.success:
        check_garble(result.text, settings.garble_ratio_threshold, document.name)
        logger.info(
            "Extracted %s via %s (%d chars)",
            document.name,
            result.method.value,
            result.char_count,
        )
    else:
        logger.warning(
            "Extraction of %s ended with %s: %s",
            document.name,
            result.status.value,
            result.error_detail,
        )
    return result


def extract_path(path: Path, settings: ExtractionSettings) -> ExtractionResult:
    """Read *path* once, extract it, and let the Document go.

    Files above ``settings.max_file_size_bytes`` are rejected before their
    bytes are read.  Read failures become EXTRACTION_ERROR results.
    """
    try:
        size = path.stat().st_size
        if size > settings.max_file_size_bytes:
            logger.warning(
                "Oversized file skipped (%d bytes > %d max): %s",
                size,
                settings.max_file_size_bytes,
                path.name,
            )
            return failed_result(
                path,
                ExtractionStatus.EXTRACTION_ERROR,
                f"too_large ({size} bytes > {settings.max_file_size_bytes})",
            )
        document = load_document(path)
    except OSError as e:
        logger.error("Cannot read %s: %s", path.name, e)
        return failed_result(
            path,
            ExtractionStatus.EXTRACTION_ERROR,
            f"cannot_read: {e}",
        )

    return extract_document(document, settings)
