"""Fallback PDF text extraction using pdfplumber.

pdfminer's parser tolerates some structural damage that PyMuPDF rejects.
This is the second tier in the PDF fallback chain, activated only when
PyMuPDF could not open the file.
"""

from __future__ import annotations

import io
import logging

import pdfplumber

from docdigest.discovery.models import Document
from docdigest.extractor.quality import normalize_text
from docdigest.extractor.types import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStatus,
    failed_result,
)

logger = logging.getLogger(__name__)


def try_pdfplumber(document: Document) -> ExtractionResult:
    """Extract text from a PDF page by page with pdfplumber.

    Args:
        document: PDF document with its raw bytes.

    Returns:
        SUCCESS with page text, EMPTY_CONTENT when no page has text, or
        EXTRACTION_ERROR with the parser diagnostic.
    """
    try:
        pages_text: list[str] = []
        with pdfplumber.open(io.BytesIO(document.raw_bytes)) as pdf:
            page_count = len(pdf.pages)
            for page in pdf.pages:
                pages_text.append(page.extract_text() or "")

    except Exception as e:
        logger.warning("pdfplumber extraction failed for %s: %s", document.name, e)
        return failed_result(
            document.path,
            ExtractionStatus.EXTRACTION_ERROR,
            f"pdfplumber: {e}",
            content_hash=document.content_hash,
            method=ExtractionMethod.PDFPLUMBER,
        )

    text = normalize_text("\n".join(pages_text))
    logger.debug(
        "pdfplumber extracted %d chars from %d pages: %s",
        len(text),
        page_count,
        document.name,
    )

    if not text:
        return failed_result(
            document.path,
            ExtractionStatus.EMPTY_CONTENT,
            f"No extractable text in {page_count} page(s)",
            content_hash=document.content_hash,
            method=ExtractionMethod.PDFPLUMBER,
            page_count=page_count,
        )

    return ExtractionResult(
        source_path=document.path,
        status=ExtractionStatus.SUCCESS,
        text=text,
        method=ExtractionMethod.PDFPLUMBER,
        page_count=page_count,
        content_hash=document.content_hash,
    )
