"""Shared types for the extraction pipeline.

Defines ExtractionResult, ExtractionStatus and ExtractionMethod used across
all extractor modules, quality checks, the merger, and the pipeline report.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ExtractionStatus(Enum):
    """Outcome of extracting text from one document."""

    SUCCESS = "success"
    EMPTY_CONTENT = "empty_content"
    UNSUPPORTED_FORMAT = "unsupported_format"
    EXTRACTION_ERROR = "extraction_error"


class ExtractionMethod(Enum):
    """Method used to extract text from a document."""

    UTF8 = "utf8"
    PYMUPDF = "pymupdf"
    PDFPLUMBER = "pdfplumber"
    PYTHON_DOCX = "python-docx"
    NONE = "none"


@dataclass
class ExtractionResult:
    """Result of extracting text from a single document.

    Attributes:
        source_path: Path of the originating document.
        status: Extraction outcome.
        text: Normalized text; non-empty exactly when status is SUCCESS.
        error_detail: Diagnostic when status is not SUCCESS.
        method: Which extraction method produced this result.
        page_count: Number of pages (PDF only, 0 otherwise).
        char_count: Length of ``text``.
        content_hash: SHA-256 of the source bytes, empty if never read.
    """

    source_path: Path
    status: ExtractionStatus
    text: str = ""
    error_detail: str | None = None
    method: ExtractionMethod = field(default=ExtractionMethod.NONE)
    page_count: int = 0
    char_count: int = 0
    content_hash: str = ""

    def __post_init__(self) -> None:
        if self.status is ExtractionStatus.SUCCESS and not self.text.strip():
            raise ValueError("A successful extraction must carry non-empty text")
        if self.status is not ExtractionStatus.SUCCESS:
            self.text = ""
        self.char_count = len(self.text)

    @property
    def success(self) -> bool:
        return self.status is ExtractionStatus.SUCCESS

    @property
    def file_name(self) -> str:
        return self.source_path.name


def failed_result(
    source_path: Path,
    status: ExtractionStatus,
    detail: str,
    content_hash: str = "",
    method: ExtractionMethod = ExtractionMethod.NONE,
    page_count: int = 0,
) -> ExtractionResult:
    """Build a non-success ExtractionResult with a diagnostic."""
    return ExtractionResult(
        source_path=source_path,
        status=status,
        error_detail=detail,
        method=method,
        page_count=page_count,
        content_hash=content_hash,
    )
