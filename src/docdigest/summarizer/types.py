"""Shared types for the summarization stage."""

from dataclasses import dataclass


@dataclass
class SummaryResult:
    """Result of one successful summarization call.

    Attributes:
        text: Summary returned by the model.
        model: Model id the request was sent with.
        prompt_version: SHA-256 prefix of the prompt template.
        prompt_chars: Length of the prompt sent.
        processing_time_seconds: Wall-clock time of the HTTP call.
        input_tokens: Prompt token count (None if the engine did not report it).
        output_tokens: Generated token count (None if not reported).
    """

    text: str
    model: str
    prompt_version: str = ""
    prompt_chars: int = 0
    processing_time_seconds: float = 0.0
    input_tokens: int | None = None
    output_tokens: int | None = None
