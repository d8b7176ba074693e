"""Shared fixtures for the docdigest test suite.

Sample documents are generated on the fly in ``tmp_path``: PDFs with PyMuPDF,
DOCX files with python-docx.  HTTP collaborators are replaced with
``httpx.MockTransport`` so no test touches the network.
"""

from __future__ import annotations

import json
import logging
import signal
from collections.abc import Callable
from pathlib import Path

import docx
import httpx
import pymupdf
import pytest

from docdigest.config import (
    ExtractionSettings,
    NotifierSettings,
    PipelineSettings,
    SummarizerSettings,
)
from docdigest.notifier import NotificationDispatcher
from docdigest.summarizer import SummarizationClient

TEST_TEMPLATE = "Summarize the following {file_count} documents.\n\n{documents}"
WEBHOOK_URL = "https://hooks.test/services/T000/B000/secret"


# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------


def make_pdf(path: Path, pages: list[str]) -> Path:
    """Write a PDF with one page per entry; empty entries get no text layer."""
    pdf = pymupdf.open()
    for text in pages:
        page = pdf.new_page()
        if text:
            page.insert_text((72, 72), text)
    pdf.save(str(path))
    pdf.close()
    return path


def make_scanned_pdf(path: Path, page_count: int = 1) -> Path:
    """Write an image-only PDF, like a scan without OCR."""
    pdf = pymupdf.open()
    for _ in range(page_count):
        page = pdf.new_page()
        pixmap = pymupdf.Pixmap(pymupdf.csRGB, pymupdf.IRect(0, 0, 32, 32), False)
        pixmap.clear_with(200)
        page.insert_image(pymupdf.Rect(72, 72, 272, 272), pixmap=pixmap)
    pdf.save(str(path))
    pdf.close()
    return path


def make_docx(path: Path, paragraphs: list[str], header: str | None = None) -> Path:
    document = docx.Document()
    if header is not None:
        document.sections[0].header.paragraphs[0].text = header
    for text in paragraphs:
        document.add_paragraph(text)
    document.save(str(path))
    return path


@pytest.fixture
def scenario_dir(tmp_path: Path) -> Path:
    """notes.txt + scanned report.pdf + plan.md."""
    root = tmp_path / "inbox"
    root.mkdir()
    (root / "notes.txt").write_text("Meeting at 3pm", encoding="utf-8")
    make_scanned_pdf(root / "report.pdf")
    (root / "plan.md").write_text("## Plan\n- Step 1", encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def extraction_settings() -> ExtractionSettings:
    return ExtractionSettings(max_workers=4)


@pytest.fixture
def summarizer_settings() -> SummarizerSettings:
    return SummarizerSettings(
        endpoint_url="http://inference.test/api/generate",
        model="test-model",
        prompt_template=TEST_TEMPLATE,
        timeout_seconds=5,
        max_retries=0,
    )


@pytest.fixture
def notifier_settings() -> NotifierSettings:
    return NotifierSettings(webhook_url=WEBHOOK_URL, max_attempts=3)


@pytest.fixture
def pipeline_settings_for(tmp_path: Path) -> Callable[..., PipelineSettings]:
    def _build(root: Path, **overrides) -> PipelineSettings:
        return PipelineSettings(
            root_dir=str(root),
            log_dir=str(tmp_path / "logs"),
            **overrides,
        )

    return _build


# ---------------------------------------------------------------------------
# HTTP fakes
# ---------------------------------------------------------------------------


class RecordingTransport:
    """MockTransport handler that records JSON bodies and replays responses.

    ``responses`` items are either ``httpx.Response`` objects or exception
    classes/instances to raise.  The last item repeats once the list runs out.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        outcome = self.responses[index]
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("simulated failure", request=request)
        if isinstance(outcome, Exception):
            raise outcome
        # Fresh copy per call: a Response object is bound to one request
        return httpx.Response(
            outcome.status_code, headers=outcome.headers, content=outcome.content
        )

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def ok_summary(text: str = "Two documents: a meeting and a plan.") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "model": "test-model",
            "response": text,
            "done": True,
            "prompt_eval_count": 42,
            "eval_count": 12,
        },
    )


@pytest.fixture
def engine() -> RecordingTransport:
    return RecordingTransport(ok_summary())


@pytest.fixture
def webhook() -> RecordingTransport:
    return RecordingTransport(httpx.Response(200, text="ok"))


@pytest.fixture
def summarizer_for(summarizer_settings):
    def _build(transport: RecordingTransport, **overrides) -> SummarizationClient:
        settings = summarizer_settings.model_copy(update=overrides)
        client = SummarizationClient(settings, http_client=transport.client())
        client.sleep = lambda seconds: None
        return client

    return _build


@pytest.fixture
def notifier_for(notifier_settings):
    def _build(transport: RecordingTransport, **overrides) -> NotificationDispatcher:
        settings = notifier_settings.model_copy(update=overrides)
        dispatcher = NotificationDispatcher(settings, http_client=transport.client())
        dispatcher.sleep = lambda seconds: None
        return dispatcher

    return _build


# ---------------------------------------------------------------------------
# Global state restored after CLI / logging tests
# ---------------------------------------------------------------------------


@pytest.fixture
def restore_process_state():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    sigint = signal.getsignal(signal.SIGINT)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    signal.signal(signal.SIGINT, sigint)
