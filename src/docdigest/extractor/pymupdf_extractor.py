"""Primary PDF text extraction using PyMuPDF.

Reads the text layer page by page and joins pages with a newline.  This is
the first tier in the PDF fallback chain; pdfplumber is only tried when
PyMuPDF cannot open or parse the file.
"""

from __future__ import annotations

import logging

import pymupdf

from docdigest.discovery.models import Document
from docdigest.extractor.quality import normalize_text
from docdigest.extractor.types import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStatus,
    failed_result,
)

logger = logging.getLogger(__name__)

# Error detail for password-protected PDFs; no fallback tier can read them
ENCRYPTED = "encrypted"


def try_pymupdf(document: Document) -> ExtractionResult:
    """Extract the text layer of a PDF held in memory.

    Args:
        document: PDF document with its raw bytes.

    Returns:
        SUCCESS with page text, EMPTY_CONTENT for image-only PDFs, or
        EXTRACTION_ERROR with the PyMuPDF diagnostic.
    """
    try:
        with pymupdf.open(stream=document.raw_bytes, filetype="pdf") as pdf:
            if pdf.needs_pass:
                logger.warning("Encrypted PDF skipped: %s", document.name)
                return failed_result(
                    document.path,
                    ExtractionStatus.EXTRACTION_ERROR,
                    ENCRYPTED,
                    content_hash=document.content_hash,
                    method=ExtractionMethod.PYMUPDF,
                )

            page_count = pdf.page_count
            pages_text = [page.get_text("text") for page in pdf]

    except Exception as e:
        logger.warning("PyMuPDF extraction failed for %s: %s", document.name, e)
        return failed_result(
            document.path,
            ExtractionStatus.EXTRACTION_ERROR,
            f"cannot_open: {e}",
            content_hash=document.content_hash,
            method=ExtractionMethod.PYMUPDF,
        )

    text = normalize_text("\n".join(pages_text))
    logger.debug(
        "PyMuPDF extracted %d chars from %d pages: %s",
        len(text),
        page_count,
        document.name,
    )

    if not text:
        logger.info(
            "No text layer in %s (%d pages), likely scanned",
            document.name,
            page_count,
        )
        return failed_result(
            document.path,
            ExtractionStatus.EMPTY_CONTENT,
            f"No extractable text in {page_count} page(s)",
            content_hash=document.content_hash,
            method=ExtractionMethod.PYMUPDF,
            page_count=page_count,
        )

    return ExtractionResult(
        source_path=document.path,
        status=ExtractionStatus.SUCCESS,
        text=text,
        method=ExtractionMethod.PYMUPDF,
        page_count=page_count,
        content_hash=document.content_hash,
    )
