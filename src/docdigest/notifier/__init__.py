"""Notification stage -- message formatting and webhook delivery.

Public API:
    NotificationDispatcher(settings).notify(message, metadata)
    format_summary_message(summary, file_count, failures, truncated, omitted)
    format_failure_message(stage, error_kind, detail)
"""

from docdigest.notifier.message import (
    FailureNote,
    format_failure_message,
    format_summary_message,
)
from docdigest.notifier.service import NotificationDispatcher, redact_url

__all__ = [
    "FailureNote",
    "NotificationDispatcher",
    "format_failure_message",
    "format_summary_message",
    "redact_url",
]
