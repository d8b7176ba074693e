"""Plain-text and Markdown extraction.

Raw bytes are decoded as UTF-8 with replace-and-continue: invalid byte
sequences become U+FFFD and decoding never fails.  A leading byte-order mark
is dropped.  Apart from that, valid UTF-8 comes back unchanged, control
characters included; JSON encoding of the prompt escapes them.
"""

from __future__ import annotations

import logging

from docdigest.discovery.models import Document
from docdigest.extractor.types import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStatus,
    failed_result,
)

logger = logging.getLogger(__name__)

_REPLACEMENT_CHAR = "\ufffd"


def decode_text(raw_bytes: bytes) -> tuple[str, int]:
    """Decode UTF-8 bytes, replacing invalid sequences.

    Returns:
        Tuple of (text, replaced_count) where replaced_count is the number of
        replacement characters introduced by decoding.
    """
    text = raw_bytes.decode("utf-8-sig", errors="replace")
    # Count only replacements introduced by decoding, not literal U+FFFD
    replaced = text.count(_REPLACEMENT_CHAR) - raw_bytes.count(
        _REPLACEMENT_CHAR.encode("utf-8")
    )
    return text, max(replaced, 0)


def extract_text_document(document: Document) -> ExtractionResult:
    """Extract text from a .txt or .md document."""
    text, replaced = decode_text(document.raw_bytes)
    if replaced:
        logger.warning(
            "Replaced %d invalid UTF-8 sequence(s) in %s",
            replaced,
            document.name,
        )

    if not text.strip():
        return failed_result(
            document.path,
            ExtractionStatus.EMPTY_CONTENT,
            "File contains no text",
            content_hash=document.content_hash,
            method=ExtractionMethod.UTF8,
        )

    return ExtractionResult(
        source_path=document.path,
        status=ExtractionStatus.SUCCESS,
        text=text,
        method=ExtractionMethod.UTF8,
        content_hash=document.content_hash,
    )
