"""Plain-text message formatting for webhook delivery.

Builds the text posted to the notification channel: the summary itself,
followed by a short footer with the document count, truncation note and
a footnote listing files that could not be included.  Failed files never
block delivery; they are only reported.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class FailureNote:
    """A file left out of the summary and why."""

    file_name: str
    reason: str


def format_summary_message(
    summary: str,
    file_count: int,
    failures: Sequence[FailureNote] = (),
    truncated: bool = False,
    omitted: Sequence[str] = (),
) -> str:
    """Compose the success message for the notification channel.

    Args:
        summary: Summary text returned by the model.
        file_count: Number of documents included in the corpus.
        failures: Files that failed extraction.
        truncated: Whether the corpus was cut to fit the size budget.
        omitted: Files dropped from the corpus by truncation.

    Returns:
        Message text ready for the webhook ``text`` field.
    """
    noun = "document" if file_count == 1 else "documents"
    lines = [summary.strip(), "", "---", f"Summary of {file_count} {noun}."]

    if truncated:
        note = "Input was truncated to fit the model's size limit"
        if omitted:
            note += f"; not included: {', '.join(omitted)}"
        lines.append(note + ".")

    if failures:
        lines.append(f"{len(failures)} file(s) could not be read:")
        lines.extend(f"  * {note.file_name}: {note.reason}" for note in failures)

    return "\n".join(lines)


def format_failure_message(stage: str, error_kind: str, detail: str) -> str:
    """Compose the message sent when a run fails before producing a summary."""
    return (
        f"Document summary run failed during {stage} ({error_kind}).\n"
        f"{detail}"
    )
