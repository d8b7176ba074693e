"""Document model produced by discovery and consumed by extraction.

A Document holds the raw bytes of one input file.  It is created right
before extraction and dropped once its ExtractionResult exists, so at most
``max_workers`` documents are held in memory at a time.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class DocumentFormat(Enum):
    """Input format, derived from the file suffix."""

    PLAIN_TEXT = "plain_text"
    MARKDOWN = "markdown"
    PDF = "pdf"
    DOCX = "docx"
    UNKNOWN = "unknown"


_SUFFIX_FORMATS: dict[str, DocumentFormat] = {
    ".txt": DocumentFormat.PLAIN_TEXT,
    ".text": DocumentFormat.PLAIN_TEXT,
    ".md": DocumentFormat.MARKDOWN,
    ".markdown": DocumentFormat.MARKDOWN,
    ".pdf": DocumentFormat.PDF,
    ".docx": DocumentFormat.DOCX,
}


def detect_format(path: Path) -> DocumentFormat:
    """Map a file suffix (case-insensitive) to a DocumentFormat."""
    return _SUFFIX_FORMATS.get(path.suffix.lower(), DocumentFormat.UNKNOWN)


@dataclass(frozen=True)
class Document:
    """One input file.

    Attributes:
        path: Absolute filesystem path, unique within a run.
        format: Format detected from the suffix.
        raw_bytes: File content, read once.
        content_hash: SHA-256 hex digest of raw_bytes.
    """

    path: Path
    format: DocumentFormat
    raw_bytes: bytes = field(repr=False)
    content_hash: str = ""

    @classmethod
    def from_bytes(cls, path: Path, raw_bytes: bytes) -> Document:
        """Build a Document, detecting its format and hashing its content."""
        return cls(
            path=path,
            format=detect_format(path),
            raw_bytes=raw_bytes,
            content_hash=hashlib.sha256(raw_bytes).hexdigest(),
        )

    @property
    def name(self) -> str:
        """Base file name, safe to expose in prompts and messages."""
        return self.path.name


def load_document(path: Path) -> Document:
    """Read *path* once and return a Document.

    Raises:
        OSError: If the file cannot be read.
    """
    return Document.from_bytes(path, path.read_bytes())
