"""DOCX extraction using python-docx.

Only body paragraphs are read, in document order.  Headers, footers, tables
and embedded objects are ignored.
"""

from __future__ import annotations

import io
import logging

import docx

from docdigest.discovery.models import Document
from docdigest.extractor.quality import normalize_text
from docdigest.extractor.types import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStatus,
    failed_result,
)

logger = logging.getLogger(__name__)


def try_python_docx(document: Document) -> ExtractionResult:
    """Extract body paragraph text from a .docx held in memory."""
    try:
        word_doc = docx.Document(io.BytesIO(document.raw_bytes))
        paragraphs = [paragraph.text for paragraph in word_doc.paragraphs]
    except Exception as e:
        # Corrupt archives surface as BadZipFile, KeyError or PackageNotFoundError
        logger.warning("python-docx extraction failed for %s: %s", document.name, e)
        return failed_result(
            document.path,
            ExtractionStatus.EXTRACTION_ERROR,
            f"{type(e).__name__}: {e}",
            content_hash=document.content_hash,
            method=ExtractionMethod.PYTHON_DOCX,
        )

    text = normalize_text("\n".join(paragraphs))
    if not text:
        return failed_result(
            document.path,
            ExtractionStatus.EMPTY_CONTENT,
            "Document body has no paragraph text",
            content_hash=document.content_hash,
            method=ExtractionMethod.PYTHON_DOCX,
        )

    logger.debug(
        "python-docx extracted %d chars from %d paragraphs: %s",
        len(text),
        len(paragraphs),
        document.name,
    )
    return ExtractionResult(
        source_path=document.path,
        status=ExtractionStatus.SUCCESS,
        text=text,
        method=ExtractionMethod.PYTHON_DOCX,
        content_hash=document.content_hash,
    )
