"""Tests for message formatting and webhook delivery."""

import httpx
import pytest

from conftest import WEBHOOK_URL, RecordingTransport
from docdigest.errors import DeliveryError
from docdigest.notifier import (
    FailureNote,
    format_failure_message,
    format_summary_message,
    redact_url,
)


# ---------------------------------------------------------------------------
# Message formatting
# ---------------------------------------------------------------------------


class TestFormatSummaryMessage:
    def test_summary_first_then_footer(self):
        message = format_summary_message("The summary.", 2)

        assert message.splitlines()[0] == "The summary."
        assert "Summary of 2 documents." in message
        assert "could not be read" not in message

    def test_singular_document(self):
        assert "Summary of 1 document." in format_summary_message("s", 1)

    def test_failures_listed_as_footnote(self):
        message = format_summary_message(
            "The summary.",
            2,
            failures=[FailureNote("report.pdf", "empty_content")],
        )

        assert "1 file(s) could not be read:" in message
        assert "  * report.pdf: empty_content" in message

    def test_truncation_note_names_omitted_files(self):
        message = format_summary_message(
            "s", 1, truncated=True, omitted=["b.txt", "c.txt"]
        )
        assert "truncated" in message
        assert "not included: b.txt, c.txt" in message

    def test_failure_message(self):
        message = format_failure_message("summarizing", "timeout", "No response within 600s")
        assert "summarizing" in message
        assert "timeout" in message
        assert "No response within 600s" in message


class TestRedactUrl:
    def test_path_and_query_removed(self):
        assert redact_url(WEBHOOK_URL) == "https://hooks.test"

    def test_unset(self):
        assert redact_url("") == "<unset>"


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


class TestNotify:
    def test_posts_text_payload(self, notifier_for, webhook):
        notifier_for(webhook).notify("hello", {"file_count": 2})

        assert webhook.requests == [{"text": "hello"}]

    def test_metadata_attached_when_enabled(self, notifier_for, webhook):
        notifier_for(webhook, include_metadata=True).notify("hello", {"file_count": 2})

        assert webhook.requests == [{"text": "hello", "metadata": {"file_count": 2}}]

    def test_blank_webhook_raises_without_request(self, notifier_for, webhook):
        with pytest.raises(DeliveryError, match="No webhook URL"):
            notifier_for(webhook, webhook_url="  ").notify("hello")
        assert webhook.calls == 0

    def test_client_error_not_retried(self, notifier_for):
        webhook = RecordingTransport(httpx.Response(403, text="invalid token"))

        with pytest.raises(DeliveryError) as excinfo:
            notifier_for(webhook).notify("hello")

        assert excinfo.value.status_code == 403
        assert webhook.calls == 1

    def test_server_error_retried_then_raises(self, notifier_for):
        webhook = RecordingTransport(httpx.Response(503, text="unavailable"))

        with pytest.raises(DeliveryError) as excinfo:
            notifier_for(webhook, max_attempts=3).notify("hello")

        assert excinfo.value.status_code == 503
        assert webhook.calls == 3

    def test_transient_error_then_success(self, notifier_for):
        webhook = RecordingTransport(
            httpx.ConnectError, httpx.Response(500), httpx.Response(200, text="ok")
        )

        notifier_for(webhook, max_attempts=3).notify("hello")

        assert webhook.calls == 3

    def test_unreachable_webhook(self, notifier_for):
        webhook = RecordingTransport(httpx.ConnectError)

        with pytest.raises(DeliveryError, match="unreachable") as excinfo:
            notifier_for(webhook, max_attempts=2).notify("hello")

        assert excinfo.value.status_code is None
        assert webhook.calls == 2

    def test_webhook_secret_never_logged(self, notifier_for, webhook, caplog):
        caplog.set_level("DEBUG", logger="docdigest")
        notifier_for(webhook).notify("hello")

        ours = [r.getMessage() for r in caplog.records if r.name.startswith("docdigest")]
        assert ours
        assert not any("secret" in line or "T000" in line for line in ours)
