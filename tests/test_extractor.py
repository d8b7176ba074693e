"""Tests for per-format extraction and batch failure isolation."""

import threading
from pathlib import Path

import pytest

from conftest import make_docx, make_pdf, make_scanned_pdf
from docdigest.config import ExtractionSettings
from docdigest.discovery import load_document
from docdigest.errors import PipelineCancelled
from docdigest.extractor import (
    ExtractionMethod,
    ExtractionResult,
    ExtractionStatus,
    extract_document,
    extract_path,
    extract_paths,
)
from docdigest.extractor import service as extractor_service
from docdigest.extractor.quality import (
    check_garble,
    garble_ratio,
    normalize_text,
    strip_control_chars,
)
from docdigest.extractor.text_extractor import decode_text


# ---------------------------------------------------------------------------
# Plain text and Markdown
# ---------------------------------------------------------------------------


class TestTextExtraction:
    def test_valid_utf8_round_trips_exactly(self, tmp_path, extraction_settings):
        original = "Résumé: naïve café ☕\n\n  indented line\ttab\r\nwindows line"
        path = tmp_path / "notes.txt"
        path.write_bytes(original.encode("utf-8"))

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.SUCCESS
        assert result.text == original
        assert result.method is ExtractionMethod.UTF8
        assert result.char_count == len(original)

    def test_markdown_is_kept_verbatim(self, tmp_path, extraction_settings):
        path = tmp_path / "plan.md"
        path.write_text("## Plan\n- Step 1", encoding="utf-8")

        result = extract_path(path, extraction_settings)

        assert result.success
        assert result.text == "## Plan\n- Step 1"

    def test_invalid_bytes_are_replaced(self, tmp_path, extraction_settings):
        path = tmp_path / "broken.txt"
        path.write_bytes(b"good start \xff\xfe bad bytes \xc3 end")

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.SUCCESS
        assert "\ufffd" in result.text
        assert result.text.startswith("good start ")
        assert result.text.endswith(" end")

    def test_decode_counts_only_introduced_replacements(self):
        raw = "literal \ufffd ".encode("utf-8") + b"\xff"
        text, replaced = decode_text(raw)
        assert text.count("\ufffd") == 2
        assert replaced == 1

    def test_bom_is_dropped(self, tmp_path, extraction_settings):
        path = tmp_path / "bom.txt"
        path.write_bytes(b"\xef\xbb\xbfhello")
        assert extract_path(path, extraction_settings).text == "hello"

    def test_control_characters_are_kept(self, tmp_path, extraction_settings):
        original = "Page one\x0cPage two\x07 bell\x7f and\x00nul"
        path = tmp_path / "rfc.txt"
        path.write_bytes(original.encode("utf-8"))

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.SUCCESS
        assert result.text == original

    def test_control_heavy_text_logs_garble_warning(
        self, tmp_path, extraction_settings, caplog
    ):
        path = tmp_path / "binary.txt"
        path.write_bytes(b"ok" + b"\x01\x02\x03" * 10)

        result = extract_path(path, extraction_settings)

        assert result.success
        assert "Garbled text in binary.txt" in caplog.text

    @pytest.mark.parametrize("content", [b"", b"   \n\t\n  "])
    def test_blank_file_is_empty_content(self, tmp_path, extraction_settings, content):
        path = tmp_path / "blank.txt"
        path.write_bytes(content)

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.EMPTY_CONTENT
        assert result.text == ""


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------


class TestPdfExtraction:
    def test_text_layer_is_extracted(self, tmp_path, extraction_settings):
        path = make_pdf(tmp_path / "report.pdf", ["Quarterly revenue grew", "Costs fell"])

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.SUCCESS
        assert result.method is ExtractionMethod.PYMUPDF
        assert result.page_count == 2
        assert "Quarterly revenue grew" in result.text
        assert "Costs fell" in result.text
        assert result.text.index("Quarterly") < result.text.index("Costs")

    def test_scanned_pdf_is_empty_content(self, tmp_path, extraction_settings):
        path = make_scanned_pdf(tmp_path / "scan.pdf", page_count=2)

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.EMPTY_CONTENT
        assert result.page_count == 2
        assert result.text == ""

    def test_blank_pages_are_empty_content(self, tmp_path, extraction_settings):
        path = make_pdf(tmp_path / "blank.pdf", ["", ""])
        assert extract_path(path, extraction_settings).status is ExtractionStatus.EMPTY_CONTENT

    def test_corrupt_pdf_fails_without_raising(self, tmp_path, extraction_settings):
        path = tmp_path / "corrupt.pdf"
        path.write_bytes(b"this is not a pdf at all")

        result = extract_path(path, extraction_settings)

        assert not result.success
        assert result.text == ""
        assert result.error_detail

    def test_pdfplumber_fallback_when_pymupdf_fails(
        self, tmp_path, extraction_settings, monkeypatch
    ):
        path = make_pdf(tmp_path / "report.pdf", ["Fallback text survives"])

        def _broken(document):
            return extractor_service.failed_result(
                document.path, ExtractionStatus.EXTRACTION_ERROR, "cannot_open: boom"
            )

        monkeypatch.setattr(extractor_service, "try_pymupdf", _broken)

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.SUCCESS
        assert result.method is ExtractionMethod.PDFPLUMBER
        assert "Fallback text survives" in result.text

    def test_fallback_can_be_disabled(self, tmp_path, monkeypatch):
        path = make_pdf(tmp_path / "report.pdf", ["text"])

        def _broken(document):
            return extractor_service.failed_result(
                document.path, ExtractionStatus.EXTRACTION_ERROR, "cannot_open: boom"
            )

        monkeypatch.setattr(extractor_service, "try_pymupdf", _broken)

        result = extract_path(path, ExtractionSettings(pdf_fallback_enabled=False))

        assert result.status is ExtractionStatus.EXTRACTION_ERROR
        assert result.error_detail == "cannot_open: boom"


# ---------------------------------------------------------------------------
# DOCX
# ---------------------------------------------------------------------------


class TestDocxExtraction:
    def test_paragraphs_in_order(self, tmp_path, extraction_settings):
        path = make_docx(
            tmp_path / "memo.docx",
            ["First paragraph", "Second paragraph", "Third paragraph"],
        )

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.SUCCESS
        assert result.method is ExtractionMethod.PYTHON_DOCX
        assert result.text == "First paragraph\nSecond paragraph\nThird paragraph"

    def test_headers_are_ignored(self, tmp_path, extraction_settings):
        path = make_docx(tmp_path / "memo.docx", ["Body text"], header="CONFIDENTIAL")

        result = extract_path(path, extraction_settings)

        assert result.text == "Body text"

    def test_empty_document_is_empty_content(self, tmp_path, extraction_settings):
        path = make_docx(tmp_path / "empty.docx", [])
        assert extract_path(path, extraction_settings).status is ExtractionStatus.EMPTY_CONTENT

    def test_corrupt_docx_is_extraction_error(self, tmp_path, extraction_settings):
        path = tmp_path / "broken.docx"
        path.write_bytes(b"PK\x03\x04 definitely not a zip archive")

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.EXTRACTION_ERROR
        assert result.method is ExtractionMethod.PYTHON_DOCX
        assert result.text == ""


# ---------------------------------------------------------------------------
# Dispatch and guards
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_unknown_suffix_is_unsupported(self, tmp_path, extraction_settings):
        path = tmp_path / "legacy.doc"
        path.write_bytes(b"\xd0\xcf\x11\xe0")

        result = extract_path(path, extraction_settings)

        assert result.status is ExtractionStatus.UNSUPPORTED_FORMAT

    def test_oversized_file_is_rejected(self, tmp_path):
        path = tmp_path / "big.txt"
        path.write_text("x" * 100)

        result = extract_path(path, ExtractionSettings(max_file_size_bytes=10))

        assert result.status is ExtractionStatus.EXTRACTION_ERROR
        assert result.error_detail.startswith("too_large")

    def test_unreadable_path_is_extraction_error(self, tmp_path, extraction_settings):
        result = extract_path(tmp_path / "vanished.txt", extraction_settings)

        assert result.status is ExtractionStatus.EXTRACTION_ERROR
        assert result.error_detail.startswith("cannot_read")

    def test_unexpected_parser_fault_is_contained(
        self, tmp_path, extraction_settings, monkeypatch
    ):
        path = make_docx(tmp_path / "memo.docx", ["text"])

        def _explode(document):
            raise RuntimeError("parser bug")

        monkeypatch.setattr(extractor_service, "try_python_docx", _explode)

        result = extract_document(load_document(path), extraction_settings)

        assert result.status is ExtractionStatus.EXTRACTION_ERROR
        assert "parser bug" in result.error_detail

    def test_content_hash_recorded(self, tmp_path, extraction_settings):
        path = tmp_path / "a.txt"
        path.write_text("hash me")
        document = load_document(path)

        result = extract_document(document, extraction_settings)

        assert result.content_hash == document.content_hash

    def test_extraction_is_idempotent(self, tmp_path, extraction_settings):
        path = make_pdf(tmp_path / "report.pdf", ["Same every time"])
        first = extract_path(path, extraction_settings)
        second = extract_path(path, extraction_settings)
        assert first == second


class TestExtractionResult:
    def test_success_requires_text(self):
        with pytest.raises(ValueError):
            ExtractionResult(
                source_path=Path("a.txt"), status=ExtractionStatus.SUCCESS, text="  "
            )

    def test_failure_clears_text(self):
        result = ExtractionResult(
            source_path=Path("a.txt"),
            status=ExtractionStatus.EMPTY_CONTENT,
            text="leftover",
        )
        assert result.text == ""
        assert result.char_count == 0


# ---------------------------------------------------------------------------
# Batch extraction
# ---------------------------------------------------------------------------


class TestExtractPaths:
    @pytest.fixture
    def batch(self, tmp_path):
        paths = []
        for i in range(6):
            path = tmp_path / f"{i:02d}.txt"
            path.write_text(f"document {i}")
            paths.append(path)
        broken = tmp_path / "03.docx"
        broken.write_bytes(b"garbage")
        paths.insert(3, broken)
        return paths

    @pytest.mark.parametrize("workers", [1, 4])
    def test_results_follow_input_order(self, batch, workers):
        results = extract_paths(batch, ExtractionSettings(max_workers=workers))

        assert [r.source_path for r in results] == batch

    def test_one_failure_does_not_affect_others(self, batch, extraction_settings):
        results = extract_paths(batch, extraction_settings)

        statuses = [r.status for r in results]
        assert statuses.count(ExtractionStatus.EXTRACTION_ERROR) == 1
        assert statuses.count(ExtractionStatus.SUCCESS) == 6
        assert results[3].status is ExtractionStatus.EXTRACTION_ERROR

    def test_empty_batch(self, extraction_settings):
        assert extract_paths([], extraction_settings) == []

    def test_cancelled_batch_raises(self, batch, extraction_settings):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(PipelineCancelled):
            extract_paths(batch, extraction_settings, cancel)


# ---------------------------------------------------------------------------
# Quality helpers
# ---------------------------------------------------------------------------


class TestQuality:
    def test_normalize_text(self):
        raw = "line one   \r\nline two\r\n\r\n\r\n\r\nline three\x0cnext page  "
        assert normalize_text(raw) == "line one\nline two\n\nline three\nnext page"

    def test_strip_control_chars_keeps_whitespace(self):
        assert strip_control_chars("a\tb\nc\x01d\x7f") == "a\tb\ncd"

    def test_garble_ratio(self):
        assert garble_ratio("") == 0.0
        assert garble_ratio("abcd") == 0.0
        assert garble_ratio("ab\ufffd\ufffd") == 0.5

    def test_check_garble_logs_warning(self, caplog):
        assert check_garble("\ufffd" * 5 + "ok", 0.05, "bad.txt") is False
        assert "Garbled text in bad.txt" in caplog.text
        assert check_garble("clean text", 0.05, "good.txt") is True
