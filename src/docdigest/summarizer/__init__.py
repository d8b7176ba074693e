"""Summarization stage -- prompt building and the inference engine client.

Public API:
    SummarizationClient(settings).summarize(model_id, prompt_template, corpus)
        -> SummaryResult
    resolve_prompt_template(settings) -> (template, version_hash)
"""

from docdigest.summarizer.prompt import (
    build_prompt,
    load_prompt_template,
    resolve_prompt_template,
    template_version,
)
from docdigest.summarizer.schemas import SummarizationRequest, SummarizationResponse
from docdigest.summarizer.service import SummarizationClient
from docdigest.summarizer.types import SummaryResult

__all__ = [
    "SummarizationClient",
    "SummarizationRequest",
    "SummarizationResponse",
    "SummaryResult",
    "build_prompt",
    "load_prompt_template",
    "resolve_prompt_template",
    "template_version",
]
